from functools import lru_cache

from redis.asyncio import Redis

from app.core.settings import settings


@lru_cache(maxsize=1)
def get_redis_client() -> Redis | None:
    """Shared client for the readiness check.

    Redis backs the slowapi counters only; without ``REDIS_URL`` the limiter runs
    in memory and readiness reports the check as skipped.
    """
    if not settings.redis_url:
        return None
    return Redis.from_url(settings.redis_url, decode_responses=True, socket_connect_timeout=2)
