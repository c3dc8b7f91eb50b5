from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.errors import DuplicateApplication, Forbidden, InternalError, NotFound, ValidationError
from app.core.permissions import Role
from app.db.integrity import violates
from app.models.loan import Loan
from app.models.user import User
from app.schemas.loan import LoanApplyRequest, LoanStatus
from app.utils.query import contains_pattern, page_offset

logger = logging.getLogger(__name__)

OPEN_STATUSES = (LoanStatus.PENDING.value, LoanStatus.VERIFIED.value)


def _loan_query():
    return select(Loan).options(selectinload(Loan.verified_by), selectinload(Loan.approved_by))


def resolve_status_filter(viewer: User, requested: str | None) -> str | None:
    """Status a listing is restricted to; verifiers only ever see pending loans."""
    if viewer.role == Role.VERIFIER.value:
        return LoanStatus.PENDING.value
    if not requested or requested == "all":
        return None
    try:
        return LoanStatus(requested).value
    except ValueError as exc:
        raise ValidationError(
            "Invalid status filter",
            errors=[{"field": "status", "message": f"Unknown status: {requested}"}],
        ) from exc


async def get_loan(db: AsyncSession, loan_id: UUID, *, refresh: bool = False) -> Loan:
    stmt = _loan_query().where(Loan.id == loan_id)
    if refresh:
        stmt = stmt.execution_options(populate_existing=True)
    result = await db.execute(stmt)
    loan = result.scalar_one_or_none()
    if loan is None:
        raise NotFound("Loan not found")
    return loan


async def get_loan_for_viewer(db: AsyncSession, loan_id: UUID, viewer: User) -> Loan:
    loan = await get_loan(db, loan_id)
    if viewer.role == Role.VERIFIER.value and loan.status != LoanStatus.PENDING.value:
        raise Forbidden("Access denied")
    return loan


async def find_open_application(db: AsyncSession, email: str) -> Loan | None:
    stmt = select(Loan).where(Loan.email == email, Loan.status.in_(OPEN_STATUSES)).limit(1)
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def submit_application(db: AsyncSession, payload: LoanApplyRequest) -> Loan:
    if await find_open_application(db, payload.email) is not None:
        raise DuplicateApplication("You already have a pending loan application")

    documents = payload.documents.model_dump(by_alias=True, exclude_none=True) if payload.documents else {}
    loan = Loan(
        applicant_name=payload.applicant_name,
        email=payload.email,
        phone_number=payload.phone_number,
        loan_amount=payload.loan_amount,
        loan_purpose=payload.loan_purpose,
        employment_status=payload.employment_status.value,
        monthly_income=payload.monthly_income,
        credit_score=payload.credit_score,
        status=LoanStatus.PENDING.value,
        documents=documents,
    )
    db.add(loan)
    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        if violates(exc, "uq_loans_open_email"):
            # Lost a race against a concurrent submission for the same email.
            raise DuplicateApplication("You already have a pending loan application") from exc
        raise InternalError("Loan application could not be stored") from exc
    await db.refresh(loan)
    logger.info("Loan application submitted", extra={"loan_id": str(loan.id)})
    return loan


async def list_loans(
    db: AsyncSession,
    viewer: User,
    *,
    status: str | None = None,
    search: str | None = None,
    page: int = 1,
    limit: int = 10,
) -> tuple[list[Loan], int]:
    conditions = []
    status_filter = resolve_status_filter(viewer, status)
    if status_filter:
        conditions.append(Loan.status == status_filter)
    term = (search or "").strip()
    if term:
        pattern = contains_pattern(term)
        conditions.append(
            or_(
                Loan.applicant_name.ilike(pattern, escape="\\"),
                Loan.email.ilike(pattern, escape="\\"),
                Loan.phone_number.ilike(pattern, escape="\\"),
            )
        )

    stmt = (
        _loan_query()
        .where(*conditions)
        .order_by(Loan.created_at.desc())
        .offset(page_offset(page, limit))
        .limit(limit)
    )
    result = await db.execute(stmt)
    loans = list(result.scalars().all())

    count_stmt = select(func.count()).select_from(Loan).where(*conditions)
    total = int((await db.execute(count_stmt)).scalar_one() or 0)
    return loans, total
