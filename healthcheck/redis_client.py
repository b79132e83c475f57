"""Optional async Redis connection shared by the rate limiter and session revocation."""
import logging
import os

import redis.asyncio as redis

logger = logging.getLogger(__name__)

_redis_client: redis.Redis | None = None


async def get_redis_client() -> redis.Redis | None:
    """
    Returns a Redis client if Redis is configured and reachable. Returns None if disabled.

    Set REDIS_HOST (and optionally REDIS_PORT) to enable it.
    """
    global _redis_client
    if _redis_client:
        return _redis_client

    host = os.getenv("REDIS_HOST")
    if not host:
        return None

    try:
        port = int(os.getenv("REDIS_PORT", "6379"))
        client = redis.Redis(
            host=host,
            port=port,
            decode_responses=False,
            socket_connect_timeout=5,
            socket_timeout=5,
            retry_on_timeout=True,
        )
        await client.ping()
        _redis_client = client
        logger.info(f"Redis connected: {host}:{port}")
        return client
    except Exception as e:
        logger.warning(f"Redis connection failed: {host}:{port} - {type(e).__name__}: {e}")
        return None
