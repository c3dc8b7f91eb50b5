import uuid

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import Forbidden, Unauthenticated
from app.core.permissions import Operation
from app.core.security import decode_token
from app.db.session import get_db
from app.models.user import User
from app.services import authz

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


async def get_db_session(db: AsyncSession = Depends(get_db)) -> AsyncSession:
    return db


async def get_current_user(
    token: str | None = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> User:
    if not token:
        raise Unauthenticated("Access token required")
    try:
        payload = decode_token(token, expected_type="access")
        user_id = uuid.UUID(str(payload.get("sub")))
    except ValueError as exc:
        raise Unauthenticated("Invalid or expired token") from exc

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user or not user.is_active:
        raise Unauthenticated("Invalid or inactive user")
    return user


async def require_authenticated_user(current_user: User = Depends(get_current_user)) -> User:
    """Simple guard to require an authenticated user (no role checks)."""
    return current_user


def require_permission(operation: Operation):
    async def dependency(current_user: User = Depends(require_authenticated_user)) -> User:
        if not authz.check_permission(current_user, operation):
            raise Forbidden("Insufficient permissions")
        return current_user

    return dependency
