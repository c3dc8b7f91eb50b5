from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api import deps
from app.core.errors import ValidationError
from app.core.permissions import Operation
from app.core.response_envelope import envelope
from app.core.settings import settings
from app.db.session import get_db
from app.models.user import User
from app.schemas.common import Pagination
from app.schemas.loan import LoanDecisionRequest, LoanDetailResponse, LoanOut
from app.schemas.users import (
    UserActivateRequest,
    UserCreate,
    UserDetailResponse,
    UserListResponse,
    UserOut,
)
from app.services import loan_lifecycle, users as users_service
from app.utils.query import clamp_limit

router = APIRouter(prefix="/admin", tags=["admin"])


@router.patch("/loans/{loan_id}/approve", summary="Approve or reject a verified loan")
async def approve_loan(
    loan_id: UUID,
    decision: LoanDecisionRequest,
    current_user: User = Depends(deps.require_permission(Operation.LOAN_APPROVE)),
    db: AsyncSession = Depends(get_db),
) -> dict:
    loan, transition = await loan_lifecycle.apply_transition(
        db,
        loan_id,
        loan_lifecycle.LoanStage.APPROVAL,
        current_user,
        action=decision.action,
        rejection_reason=decision.rejection_reason,
    )
    return envelope(
        LoanDetailResponse(loan=LoanOut.model_validate(loan)),
        message=loan_lifecycle.success_message(transition),
    )


@router.get("/users", response_model=UserListResponse, summary="List back-office users")
async def list_users(
    role: str | None = Query(default=None),
    search: str | None = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=settings.default_page_size, ge=1),
    _: User = Depends(deps.require_permission(Operation.USER_LIST)),
    db: AsyncSession = Depends(get_db),
) -> UserListResponse:
    limit = clamp_limit(limit)
    users, total = await users_service.list_users(db, role=role, search=search, page=page, limit=limit)
    return UserListResponse(
        users=[UserOut.model_validate(user) for user in users],
        pagination=Pagination.build(page=page, limit=limit, total=total),
    )


@router.post("/users", status_code=status.HTTP_201_CREATED, summary="Create a back-office user")
async def create_user(
    payload: UserCreate,
    current_user: User = Depends(deps.require_permission(Operation.USER_CREATE)),
    db: AsyncSession = Depends(get_db),
) -> dict:
    user = await users_service.create_user(db, payload, actor=current_user)
    return envelope(
        UserDetailResponse(user=UserOut.model_validate(user)),
        message="User created successfully",
    )


@router.delete("/users/{user_id}", summary="Deactivate a user")
async def delete_user(
    user_id: UUID,
    current_user: User = Depends(deps.require_permission(Operation.USER_DEACTIVATE)),
    db: AsyncSession = Depends(get_db),
) -> dict:
    if user_id == current_user.id:
        raise ValidationError("Cannot delete your own account")
    await users_service.set_user_active(db, user_id, False, actor=current_user)
    return envelope(message="User deactivated successfully")


@router.patch("/users/{user_id}/activate", summary="Activate or deactivate a user")
async def set_user_active(
    user_id: UUID,
    payload: UserActivateRequest,
    current_user: User = Depends(deps.require_permission(Operation.USER_ACTIVATE)),
    db: AsyncSession = Depends(get_db),
) -> dict:
    user = await users_service.set_user_active(db, user_id, payload.is_active, actor=current_user)
    state = "activated" if payload.is_active else "deactivated"
    return envelope(
        UserDetailResponse(user=UserOut.model_validate(user)),
        message=f"User {state} successfully",
    )
