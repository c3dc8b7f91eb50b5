from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api import deps
from app.core.permissions import Operation
from app.core.response_envelope import envelope
from app.core.settings import settings
from app.db.session import get_db
from app.models.user import User
from app.schemas.common import Pagination
from app.schemas.loan import (
    LoanApplyRequest,
    LoanDecisionRequest,
    LoanDetailResponse,
    LoanListResponse,
    LoanOut,
    LoanSubmitted,
    LoanStatus,
)
from app.services import loan_applications, loan_lifecycle
from app.utils.query import clamp_limit

router = APIRouter(prefix="/loans", tags=["loans"])


@router.post("/apply", status_code=status.HTTP_201_CREATED, summary="Submit a loan application")
async def apply_for_loan(
    payload: LoanApplyRequest,
    db: AsyncSession = Depends(get_db),
) -> dict:
    loan = await loan_applications.submit_application(db, payload)
    return envelope(
        LoanSubmitted(loan_id=loan.id, status=LoanStatus(loan.status)),
        message="Loan application submitted successfully",
    )


@router.get("", response_model=LoanListResponse, summary="List loan applications")
async def list_loans(
    status_filter: str | None = Query(default=None, alias="status"),
    search: str | None = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=settings.default_page_size, ge=1),
    current_user: User = Depends(deps.require_permission(Operation.LOAN_LIST)),
    db: AsyncSession = Depends(get_db),
) -> LoanListResponse:
    limit = clamp_limit(limit)
    loans, total = await loan_applications.list_loans(
        db,
        current_user,
        status=status_filter,
        search=search,
        page=page,
        limit=limit,
    )
    return LoanListResponse(
        loans=[LoanOut.model_validate(loan) for loan in loans],
        pagination=Pagination.build(page=page, limit=limit, total=total),
    )


@router.get("/{loan_id}", response_model=LoanDetailResponse, summary="Get a loan application")
async def get_loan(
    loan_id: UUID,
    current_user: User = Depends(deps.require_permission(Operation.LOAN_VIEW)),
    db: AsyncSession = Depends(get_db),
) -> LoanDetailResponse:
    loan = await loan_applications.get_loan_for_viewer(db, loan_id, current_user)
    return LoanDetailResponse(loan=LoanOut.model_validate(loan))


@router.patch("/{loan_id}/verify", summary="Verify or reject a pending loan")
async def verify_loan(
    loan_id: UUID,
    decision: LoanDecisionRequest,
    current_user: User = Depends(deps.require_permission(Operation.LOAN_VERIFY)),
    db: AsyncSession = Depends(get_db),
) -> dict:
    loan, transition = await loan_lifecycle.apply_transition(
        db,
        loan_id,
        loan_lifecycle.LoanStage.VERIFICATION,
        current_user,
        action=decision.action,
        rejection_reason=decision.rejection_reason,
    )
    return envelope(
        LoanDetailResponse(loan=LoanOut.model_validate(loan)),
        message=loan_lifecycle.success_message(transition),
    )
