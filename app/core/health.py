from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import text

from app.core.settings import settings
from app.db.session import engine
from app.utils.redis_client import get_redis_client

APP_VERSION = "0.1.0"
CHECK_TIMEOUT_SECONDS = 3.0

# Statuses that count as healthy for readiness.
_HEALTHY = frozenset({"ok", "skipped"})


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


async def _check_db() -> dict[str, str]:
    try:
        async with engine.connect() as conn:
            await asyncio.wait_for(conn.execute(text("SELECT 1")), CHECK_TIMEOUT_SECONDS)
    except Exception as exc:  # pragma: no cover - exercised in runtime
        return {"status": "error", "error": str(exc)}
    return {"status": "ok"}


async def _check_redis() -> dict[str, str]:
    redis = get_redis_client()
    if redis is None:
        return {"status": "skipped"}
    try:
        await asyncio.wait_for(redis.ping(), CHECK_TIMEOUT_SECONDS)
    except Exception as exc:
        return {"status": "error", "error": str(exc)}
    return {"status": "ok"}


async def live_payload() -> dict[str, str]:
    return {
        "status": "ok",
        "message": "Loan Desk API is running",
        "version": APP_VERSION,
        "timestamp": _now(),
    }


async def ready_payload() -> dict[str, Any]:
    database, redis = await asyncio.gather(_check_db(), _check_redis())
    checks = {"database": database, "redis": redis}
    ready = all(check.get("status") in _HEALTHY for check in checks.values())
    return {
        "status": "ok" if ready else "degraded",
        "ready": ready,
        "environment": settings.environment,
        "version": APP_VERSION,
        "timestamp": _now(),
        "checks": checks,
    }
