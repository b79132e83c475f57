"""Session revocation list kept in Redis until the session would expire anyway."""
import logging

from healthcheck.redis_client import get_redis_client

logger = logging.getLogger(__name__)


def _revoked_key(session_id: str) -> str:
    return f"session:revoked:{session_id}"


async def revoke_session(session_id: str | None, ttl_seconds: int) -> bool:
    """Mark a session as ended. Returns False if it could not be recorded."""
    if not session_id:
        return False

    r = await get_redis_client()
    if not r:
        logger.warning(f"Session revocation unavailable, Redis not configured: {session_id[:8]}...")
        return False

    try:
        await r.setex(_revoked_key(session_id), ttl_seconds, b"1")
        logger.info(f"Session revoked: {session_id[:8]}...")
        return True
    except Exception as e:
        logger.warning(f"Session revocation failed for {session_id[:8]}...: {type(e).__name__}: {e}")
        return False


async def is_session_revoked(session_id: str | None) -> bool:
    if not session_id:
        return False

    r = await get_redis_client()
    if not r:
        return False

    try:
        return bool(await r.exists(_revoked_key(session_id)))
    except Exception as e:
        logger.warning(f"Session revocation check failed: {type(e).__name__}: {e}")
        return False
