from slowapi import Limiter
from slowapi.util import get_remote_address

from app.core.settings import settings

# Counters live in redis so limits hold across workers; an empty REDIS_URL keeps them in-process.
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[f"{settings.rate_limit_per_minute}/minute"],
    storage_uri=settings.redis_url or "memory://",
)


def login_limit() -> str:
    return f"{settings.login_rate_limit_per_minute}/minute"


__all__ = ["limiter", "login_limit"]
