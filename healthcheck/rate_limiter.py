"""
Per-client request limiting with a Redis token bucket.

The default limit is 100 requests per 15 minutes per client IP. Without
Redis every request is allowed.
"""
import os
import time
import logging
from fastapi import Request, status
from fastapi.responses import PlainTextResponse

from healthcheck.redis_client import get_redis_client

logger = logging.getLogger(__name__)

DISABLE_RATE_LIMIT = os.getenv("DISABLE_RATE_LIMIT", "false").lower() == "true"

MAX_REQUESTS = int(os.getenv("RATE_LIMIT_MAX_REQUESTS", "100"))
WINDOW_SECONDS = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", str(15 * 60)))
REFILL_RATE = MAX_REQUESTS / WINDOW_SECONDS

TOKEN_BUCKET_SCRIPT = """
local key = KEYS[1]
local capacity = tonumber(ARGV[1])
local rate = tonumber(ARGV[2])
local now = tonumber(ARGV[3])
local ttl = tonumber(ARGV[4])

local bucket = redis.call('HMGET', key, 'tokens', 'last_refill')
local tokens = tonumber(bucket[1]) or capacity
local last_refill = tonumber(bucket[2]) or now

tokens = math.min(capacity, tokens + (now - last_refill) * rate)

local allowed = 0
if tokens >= 1 then
    tokens = tokens - 1
    allowed = 1
end

redis.call('HSET', key, 'tokens', tokens, 'last_refill', now)
redis.call('EXPIRE', key, ttl)
return allowed
"""

_script_sha: str | None = None


async def load_rate_limit_script() -> str | None:
    """Load Lua script into Redis and return SHA. Call on startup."""
    global _script_sha
    if _script_sha:
        return _script_sha

    redis_client = await get_redis_client()
    if not redis_client:
        logger.warning("Redis not available, rate limiting disabled")
        return None

    try:
        _script_sha = await redis_client.script_load(TOKEN_BUCKET_SCRIPT)
        logger.info(f"Rate limit script loaded: {_script_sha[:8]}... ({MAX_REQUESTS} requests / {WINDOW_SECONDS}s)")
        return _script_sha
    except Exception as e:
        logger.warning(f"Failed to load rate limit script: {e}")
        return None


def get_client_ip(request: Request) -> str:
    """Extract client IP from request headers."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


async def is_request_allowed(identifier: str, script_sha: str) -> bool:
    """Take one token from the client's bucket. Fails open if Redis errors."""
    redis_client = await get_redis_client()
    if not redis_client:
        return True

    try:
        result = await redis_client.evalsha(
            script_sha, 1, f"ratelimit:{identifier}",
            MAX_REQUESTS, REFILL_RATE, time.time(), WINDOW_SECONDS,
        )
        return bool(result)
    except Exception as e:
        logger.warning(f"Rate limit check failed: {e}")
        return True


async def rate_limit_middleware(request: Request, call_next):
    """Rate limiting middleware using token bucket algorithm."""
    if DISABLE_RATE_LIMIT or not _script_sha:
        return await call_next(request)

    client_ip = get_client_ip(request)
    if not await is_request_allowed(f"ip:{client_ip}", _script_sha):
        logger.info(f"Rate limit exceeded for {client_ip}")
        return PlainTextResponse(
            "Too many requests, please try again later.",
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            headers={"Retry-After": str(int(1 / REFILL_RATE) + 1)},
        )

    response = await call_next(request)
    response.headers["X-RateLimit-Limit"] = str(MAX_REQUESTS)
    response.headers["X-RateLimit-Window"] = f"{WINDOW_SECONDS}s"
    return response
