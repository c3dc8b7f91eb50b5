import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from app.core.settings import settings
from app.db.init_db import init_db
from app.db.session import engine

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Seed the admin account before serving and release pooled connections on exit.

    Seeding is skipped when ``SEED_ADMIN_ON_STARTUP`` is false, e.g. when
    accounts are managed with ``python -m app.db.init_db`` instead.
    """
    logger.info("Application startup", extra={"seed_admin": settings.seed_admin_on_startup})
    if settings.seed_admin_on_startup:
        await init_db()
    try:
        yield
    finally:
        logger.info("Application shutdown")
        await engine.dispose()
