"""Create users and loans tables"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "0001_users_and_loans"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=20), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
            server_onupdate=sa.func.now(),
        ),
        sa.UniqueConstraint("email", name="uq_users_email"),
        sa.CheckConstraint("role IN ('admin', 'verifier')", name="ck_users_role"),
    )
    op.create_index("ix_users_role", "users", ["role"])

    op.create_table(
        "loans",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("applicant_name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("phone_number", sa.String(length=50), nullable=False),
        sa.Column("loan_amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("loan_purpose", sa.Text(), nullable=False),
        sa.Column("employment_status", sa.String(length=20), nullable=False),
        sa.Column("monthly_income", sa.Numeric(14, 2), nullable=False),
        sa.Column("credit_score", sa.Integer(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column(
            "verified_by_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "approved_by_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("verification_date", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("approval_date", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        sa.Column(
            "documents",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
            server_onupdate=sa.func.now(),
        ),
        sa.CheckConstraint("loan_amount >= 1000 AND loan_amount <= 10000000", name="ck_loans_amount_range"),
        sa.CheckConstraint("monthly_income >= 0", name="ck_loans_income_nonneg"),
        sa.CheckConstraint(
            "credit_score IS NULL OR (credit_score >= 300 AND credit_score <= 850)",
            name="ck_loans_credit_score_range",
        ),
        sa.CheckConstraint(
            "status IN ('pending', 'verified', 'approved', 'rejected')", name="ck_loans_status"
        ),
        sa.CheckConstraint(
            "employment_status IN ('employed', 'self-employed', 'unemployed', 'retired')",
            name="ck_loans_employment_status",
        ),
        sa.CheckConstraint(
            "status <> 'rejected' OR length(trim(rejection_reason)) > 0",
            name="ck_loans_rejection_reason",
        ),
    )
    op.create_index("ix_loans_email", "loans", ["email"])
    op.create_index("ix_loans_status", "loans", ["status"])
    op.create_index("ix_loans_created_at", "loans", ["created_at"])
    op.create_index("ix_loans_verified_by_id", "loans", ["verified_by_id"])
    op.create_index("ix_loans_approved_by_id", "loans", ["approved_by_id"])
    op.create_index(
        "uq_loans_open_email",
        "loans",
        ["email"],
        unique=True,
        postgresql_where=sa.text("status IN ('pending', 'verified')"),
    )


def downgrade() -> None:
    op.drop_index("uq_loans_open_email", table_name="loans")
    op.drop_index("ix_loans_approved_by_id", table_name="loans")
    op.drop_index("ix_loans_verified_by_id", table_name="loans")
    op.drop_index("ix_loans_created_at", table_name="loans")
    op.drop_index("ix_loans_status", table_name="loans")
    op.drop_index("ix_loans_email", table_name="loans")
    op.drop_table("loans")
    op.drop_index("ix_users_role", table_name="users")
    op.drop_table("users")
