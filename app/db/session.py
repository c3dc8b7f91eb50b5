from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.core.settings import settings

engine = create_async_engine(settings.database_url, future=True, echo=False, pool_pre_ping=True)

# Loans and users are read back after commit (e.g. when the response expands
# verifiedBy/approvedBy), so committed instances must not expire.
AsyncSessionLocal = async_sessionmaker(engine, expire_on_commit=False, autoflush=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """One session per request.

    Services commit or roll back explicitly; a lifecycle move that loses the
    conditional update rolls back before raising ``Conflict``. Anything left
    uncommitted when the request ends is discarded on close.
    """
    async with AsyncSessionLocal() as session:
        yield session
