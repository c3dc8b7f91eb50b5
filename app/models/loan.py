import uuid

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    func,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import relationship

from app.db.base import Base


class Loan(Base):
    __tablename__ = "loans"
    __table_args__ = (
        CheckConstraint("loan_amount >= 1000 AND loan_amount <= 10000000", name="ck_loans_amount_range"),
        CheckConstraint("monthly_income >= 0", name="ck_loans_income_nonneg"),
        CheckConstraint(
            "credit_score IS NULL OR (credit_score >= 300 AND credit_score <= 850)",
            name="ck_loans_credit_score_range",
        ),
        CheckConstraint(
            "status IN ('pending', 'verified', 'approved', 'rejected')",
            name="ck_loans_status",
        ),
        CheckConstraint(
            "employment_status IN ('employed', 'self-employed', 'unemployed', 'retired')",
            name="ck_loans_employment_status",
        ),
        CheckConstraint(
            "status <> 'rejected' OR length(trim(rejection_reason)) > 0",
            name="ck_loans_rejection_reason",
        ),
        # At most one open application per applicant email.
        Index(
            "uq_loans_open_email",
            "email",
            unique=True,
            postgresql_where=text("status IN ('pending', 'verified')"),
        ),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    applicant_name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    phone_number = Column(String(50), nullable=False)
    loan_amount = Column(Numeric(14, 2), nullable=False)
    loan_purpose = Column(Text, nullable=False)
    employment_status = Column(String(20), nullable=False)
    monthly_income = Column(Numeric(14, 2), nullable=False)
    credit_score = Column(Integer, nullable=True)
    status = Column(String(20), nullable=False, default="pending", index=True)
    verified_by_id = Column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )
    approved_by_id = Column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )
    verification_date = Column(DateTime(timezone=True), nullable=True)
    approval_date = Column(DateTime(timezone=True), nullable=True)
    rejection_reason = Column(Text, nullable=True)
    documents = Column(JSONB, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), index=True)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    verified_by = relationship("User", foreign_keys=[verified_by_id])
    approved_by = relationship("User", foreign_keys=[approved_by_id])
