from __future__ import annotations

from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import InternalError, NotFound, ValidationError
from app.core.logging import get_audit_logger
from app.core.permissions import Role
from app.core.security import get_password_hash
from app.db.integrity import violates
from app.models.user import User
from app.schemas.users import UserCreate
from app.utils.query import contains_pattern, page_offset

audit_logger = get_audit_logger()


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


async def get_user(db: AsyncSession, user_id: UUID) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise NotFound("User not found")
    return user


async def list_users(
    db: AsyncSession,
    *,
    role: str | None = None,
    search: str | None = None,
    page: int = 1,
    limit: int = 10,
) -> tuple[list[User], int]:
    conditions = []
    if role and role != "all":
        try:
            conditions.append(User.role == Role(role).value)
        except ValueError as exc:
            raise ValidationError(
                "Invalid role filter",
                errors=[{"field": "role", "message": f"Unknown role: {role}"}],
            ) from exc
    term = (search or "").strip()
    if term:
        pattern = contains_pattern(term)
        conditions.append(
            or_(User.name.ilike(pattern, escape="\\"), User.email.ilike(pattern, escape="\\"))
        )

    stmt = (
        select(User)
        .where(*conditions)
        .order_by(User.created_at.desc())
        .offset(page_offset(page, limit))
        .limit(limit)
    )
    users = list((await db.execute(stmt)).scalars().all())
    count_stmt = select(func.count()).select_from(User).where(*conditions)
    total = int((await db.execute(count_stmt)).scalar_one() or 0)
    return users, total


async def create_user(db: AsyncSession, payload: UserCreate, *, actor: User | None = None) -> User:
    if await get_user_by_email(db, payload.email) is not None:
        raise ValidationError("User already exists with this email")
    try:
        hashed_password = get_password_hash(payload.password)
    except ValueError as exc:
        raise ValidationError(
            str(exc), errors=[{"field": "password", "message": str(exc)}]
        ) from exc

    user = User(
        email=payload.email,
        name=payload.name,
        hashed_password=hashed_password,
        role=payload.role.value,
        is_active=True,
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        if violates(exc, "uq_users_email"):
            raise ValidationError("User already exists with this email") from exc
        raise InternalError("User could not be stored") from exc
    await db.refresh(user)
    audit_logger.info(
        "user.created",
        extra={
            "user_id": str(user.id),
            "role": user.role,
            "actor_id": str(actor.id) if actor else None,
        },
    )
    return user


async def set_user_active(db: AsyncSession, user_id: UUID, is_active: bool, *, actor: User) -> User:
    """Flip the active flag; users are never physically deleted."""
    if user_id == actor.id and not is_active:
        raise ValidationError("Cannot deactivate your own account")
    user = await get_user(db, user_id)
    user.is_active = is_active
    db.add(user)
    await db.commit()
    await db.refresh(user)
    audit_logger.info(
        "user.activated" if is_active else "user.deactivated",
        extra={"user_id": str(user.id), "actor_id": str(actor.id)},
    )
    return user
