from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api import deps
from app.core.permissions import Operation
from app.db.session import get_db
from app.models.user import User
from app.schemas.dashboard import ActivityResponse, DashboardStats, RecentLoan, RecentLoansResponse
from app.services import dashboard
from app.utils.query import clamp_limit

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get(
    "/stats",
    response_model=DashboardStats,
    response_model_exclude_none=True,
    summary="Loan and user statistics",
)
async def get_stats(
    current_user: User = Depends(deps.require_permission(Operation.DASHBOARD_VIEW)),
    db: AsyncSession = Depends(get_db),
) -> DashboardStats:
    return await dashboard.build_dashboard_stats(db, current_user)


@router.get("/recent-loans", response_model=RecentLoansResponse, summary="Most recent applications")
async def get_recent_loans(
    limit: int = Query(default=10, ge=1),
    current_user: User = Depends(deps.require_permission(Operation.DASHBOARD_VIEW)),
    db: AsyncSession = Depends(get_db),
) -> RecentLoansResponse:
    loans = await dashboard.list_recent_loans(db, current_user, clamp_limit(limit))
    return RecentLoansResponse(loans=[RecentLoan.model_validate(loan) for loan in loans])


@router.get("/my-activity", response_model=ActivityResponse, summary="Current user's review activity")
async def get_my_activity(
    current_user: User = Depends(deps.require_permission(Operation.DASHBOARD_VIEW)),
    db: AsyncSession = Depends(get_db),
) -> ActivityResponse:
    return ActivityResponse(activity=await dashboard.build_activity(db, current_user))
