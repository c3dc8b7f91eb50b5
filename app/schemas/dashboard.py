from datetime import datetime
from uuid import UUID

from app.schemas.common import CamelModel
from app.schemas.loan import LoanStatus


class LoanOverview(CamelModel):
    total_loans: int = 0
    pending_loans: int = 0
    verified_loans: int = 0
    approved_loans: int = 0
    rejected_loans: int = 0
    recent_applications: int = 0
    total_loan_amount: float = 0
    approved_loan_amount: float = 0


class UserStats(CamelModel):
    total: int = 0
    active: int = 0
    admins: int = 0
    verifiers: int = 0


class StatusShare(CamelModel):
    status: LoanStatus
    count: int
    percentage: float


class MonthlyTrend(CamelModel):
    year: int
    month: int
    applications: int
    total_amount: float
    approved: int


class DashboardStats(CamelModel):
    overview: LoanOverview
    users: UserStats | None = None
    status_distribution: list[StatusShare]
    monthly_trends: list[MonthlyTrend]


class ActorName(CamelModel):
    id: UUID
    name: str


class RecentLoan(CamelModel):
    id: UUID
    applicant_name: str
    email: str
    loan_amount: float
    status: LoanStatus
    created_at: datetime | None = None
    verification_date: datetime | None = None
    approval_date: datetime | None = None
    verified_by: ActorName | None = None
    approved_by: ActorName | None = None


class RecentLoansResponse(CamelModel):
    loans: list[RecentLoan]


class VerifierActivity(CamelModel):
    verifications_today: int
    total_verifications: int
    pending_verifications: int


class AdminActivity(CamelModel):
    approvals_today: int
    total_approvals: int
    pending_approvals: int


class ActivityResponse(CamelModel):
    activity: VerifierActivity | AdminActivity | None = None
