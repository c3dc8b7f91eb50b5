from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Iterable

from sqlalchemy import case, extract, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.permissions import Role
from app.models.loan import Loan
from app.models.user import User
from app.schemas.dashboard import (
    AdminActivity,
    DashboardStats,
    LoanOverview,
    MonthlyTrend,
    StatusShare,
    UserStats,
    VerifierActivity,
)
from app.schemas.loan import LoanStatus

RECENT_WINDOW_DAYS = 30
TREND_MONTHS = 6


def _as_float(value: Decimal | float | int | None) -> float:
    return float(value or 0)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def day_bounds(now: datetime) -> tuple[datetime, datetime]:
    start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    return start, start + timedelta(days=1)


def trend_months(now: datetime, months: int = TREND_MONTHS) -> list[tuple[int, int]]:
    """(year, month) pairs for the trailing *months* calendar months, oldest first."""
    pairs = []
    year, month = now.year, now.month
    for _ in range(months):
        pairs.append((year, month))
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return list(reversed(pairs))


def status_distribution(counts: dict[str, int]) -> list[StatusShare]:
    total = sum(counts.get(status.value, 0) for status in LoanStatus)
    shares = []
    for status in LoanStatus:
        count = counts.get(status.value, 0)
        percentage = round(count / total * 100, 1) if total else 0.0
        shares.append(StatusShare(status=status, count=count, percentage=percentage))
    return shares


def summarize_users(rows: Iterable[tuple]) -> UserStats:
    stats = UserStats()
    for role, is_active, count in rows:
        count = int(count or 0)
        stats.total += count
        if not is_active:
            continue
        stats.active += count
        if role == Role.ADMIN.value:
            stats.admins += count
        elif role == Role.VERIFIER.value:
            stats.verifiers += count
    return stats


def build_monthly_trends(rows: Iterable[tuple], now: datetime) -> list[MonthlyTrend]:
    buckets = {
        (int(year), int(month)): (int(applications or 0), _as_float(amount), int(approved or 0))
        for year, month, applications, amount, approved in rows
    }
    trends = []
    for year, month in trend_months(now):
        applications, amount, approved = buckets.get((year, month), (0, 0.0, 0))
        trends.append(
            MonthlyTrend(
                year=year,
                month=month,
                applications=applications,
                total_amount=amount,
                approved=approved,
            )
        )
    return trends


def monthly_trend_query(now: datetime):
    """Per-month counts since the start of the trend window, bucketed by UTC month."""
    first_year, first_month = trend_months(now)[0]
    window_start = datetime(first_year, first_month, 1, tzinfo=timezone.utc)
    created_utc = func.timezone("UTC", Loan.created_at)
    year_col = extract("year", created_utc)
    month_col = extract("month", created_utc)
    return (
        select(
            year_col,
            month_col,
            func.count(),
            func.coalesce(func.sum(Loan.loan_amount), 0),
            func.sum(case((Loan.status == LoanStatus.APPROVED.value, 1), else_=0)),
        )
        .where(Loan.created_at >= window_start)
        .group_by(year_col, month_col)
    )


async def build_dashboard_stats(
    db: AsyncSession,
    viewer: User,
    now: datetime | None = None,
) -> DashboardStats:
    now = now or _utcnow()

    status_stmt = select(Loan.status, func.count()).group_by(Loan.status)
    status_rows = (await db.execute(status_stmt)).all()
    counts = {row[0]: int(row[1]) for row in status_rows}

    approved_amount = case((Loan.status == LoanStatus.APPROVED.value, Loan.loan_amount), else_=0)
    amount_stmt = select(
        func.coalesce(func.sum(Loan.loan_amount), 0),
        func.coalesce(func.sum(approved_amount), 0),
    )
    amount_row = (await db.execute(amount_stmt)).first()
    total_amount, approved_total = amount_row if amount_row else (0, 0)

    recent_stmt = (
        select(func.count())
        .select_from(Loan)
        .where(Loan.created_at >= now - timedelta(days=RECENT_WINDOW_DAYS))
    )
    recent_applications = int((await db.execute(recent_stmt)).scalar_one() or 0)

    trend_rows = (await db.execute(monthly_trend_query(now))).all()

    users = None
    if viewer.role == Role.ADMIN.value:
        user_stmt = select(User.role, User.is_active, func.count()).group_by(User.role, User.is_active)
        users = summarize_users((await db.execute(user_stmt)).all())

    overview = LoanOverview(
        total_loans=sum(counts.values()),
        pending_loans=counts.get(LoanStatus.PENDING.value, 0),
        verified_loans=counts.get(LoanStatus.VERIFIED.value, 0),
        approved_loans=counts.get(LoanStatus.APPROVED.value, 0),
        rejected_loans=counts.get(LoanStatus.REJECTED.value, 0),
        recent_applications=recent_applications,
        total_loan_amount=_as_float(total_amount),
        approved_loan_amount=_as_float(approved_total),
    )
    return DashboardStats(
        overview=overview,
        users=users,
        status_distribution=status_distribution(counts),
        monthly_trends=build_monthly_trends(trend_rows, now),
    )


async def list_recent_loans(db: AsyncSession, viewer: User, limit: int = 10) -> list[Loan]:
    stmt = (
        select(Loan)
        .options(selectinload(Loan.verified_by), selectinload(Loan.approved_by))
        .order_by(Loan.created_at.desc())
        .limit(limit)
    )
    if viewer.role == Role.VERIFIER.value:
        stmt = stmt.where(Loan.status == LoanStatus.PENDING.value)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def _count(db: AsyncSession, *conditions) -> int:
    stmt = select(func.count()).select_from(Loan).where(*conditions)
    return int((await db.execute(stmt)).scalar_one() or 0)


async def build_activity(
    db: AsyncSession,
    viewer: User,
    now: datetime | None = None,
) -> VerifierActivity | AdminActivity | None:
    start, end = day_bounds(now or _utcnow())
    if viewer.role == Role.VERIFIER.value:
        return VerifierActivity(
            verifications_today=await _count(
                db,
                Loan.verified_by_id == viewer.id,
                Loan.verification_date >= start,
                Loan.verification_date < end,
            ),
            total_verifications=await _count(db, Loan.verified_by_id == viewer.id),
            pending_verifications=await _count(db, Loan.status == LoanStatus.PENDING.value),
        )
    if viewer.role == Role.ADMIN.value:
        return AdminActivity(
            approvals_today=await _count(
                db,
                Loan.approved_by_id == viewer.id,
                Loan.approval_date >= start,
                Loan.approval_date < end,
            ),
            total_approvals=await _count(db, Loan.approved_by_id == viewer.id),
            pending_approvals=await _count(db, Loan.status == LoanStatus.VERIFIED.value),
        )
    return None
