from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import EmailStr, Field, field_validator

from app.schemas.common import CamelModel, Pagination, normalize_email, normalize_text


class LoanStatus(str, Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    APPROVED = "approved"
    REJECTED = "rejected"


class EmploymentStatus(str, Enum):
    EMPLOYED = "employed"
    SELF_EMPLOYED = "self-employed"
    UNEMPLOYED = "unemployed"
    RETIRED = "retired"


class LoanDocuments(CamelModel):
    id_proof: str | None = None
    income_proof: str | None = None
    address_proof: str | None = None


class LoanApplyRequest(CamelModel):
    applicant_name: str = Field(min_length=2, max_length=255)
    email: EmailStr
    phone_number: str = Field(min_length=10, max_length=50)
    loan_amount: float = Field(ge=1000, le=10_000_000)
    loan_purpose: str = Field(min_length=5)
    employment_status: EmploymentStatus
    monthly_income: float = Field(ge=0)
    credit_score: int | None = Field(default=None, ge=300, le=850)
    documents: LoanDocuments | None = None

    @field_validator("applicant_name", "phone_number", "loan_purpose", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("email", mode="before")
    @classmethod
    def lower_email(cls, v):
        return normalize_email(v) if isinstance(v, str) else v


class LoanSubmitted(CamelModel):
    loan_id: UUID
    status: LoanStatus


class LoanDecisionRequest(CamelModel):
    action: str | None = None
    rejection_reason: str | None = None

    @field_validator("rejection_reason")
    @classmethod
    def clean_reason(cls, v: str | None) -> str | None:
        return normalize_text(v)


class ActorSummary(CamelModel):
    id: UUID
    name: str
    email: str


class LoanOut(CamelModel):
    id: UUID
    applicant_name: str
    email: str
    phone_number: str
    loan_amount: float
    loan_purpose: str
    employment_status: str
    monthly_income: float
    credit_score: int | None = None
    status: LoanStatus
    verified_by: ActorSummary | None = None
    approved_by: ActorSummary | None = None
    verification_date: datetime | None = None
    approval_date: datetime | None = None
    rejection_reason: str | None = None
    documents: LoanDocuments = Field(default_factory=LoanDocuments)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("documents", mode="before")
    @classmethod
    def default_documents(cls, v):
        return v or {}


class LoanListResponse(CamelModel):
    loans: list[LoanOut]
    pagination: Pagination


class LoanDetailResponse(CamelModel):
    loan: LoanOut
