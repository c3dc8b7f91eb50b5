"""Database bootstrap.

``python -m app.db.init_db`` makes sure the configured admin account exists.
``--demo`` additionally creates a verifier and a handful of loans spread over
every status so the dashboard has something to show.
"""

import argparse
import asyncio
import logging
from datetime import datetime, timedelta, timezone

from pydantic import EmailStr, TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.logging import configure_logging
from app.core.permissions import Role
from app.core.security import get_password_hash
from app.core.settings import settings
from app.db.session import AsyncSessionLocal
from app.models.loan import Loan
from app.models.user import User
from app.schemas.loan import EmploymentStatus, LoanStatus

logger = logging.getLogger(__name__)

DEMO_VERIFIER_EMAIL = "verifier@loandesk.com"
DEMO_VERIFIER_PASSWORD = "verifier123"

DEMO_APPLICANTS = [
    ("Asha Rao", "asha.rao@example.com", "9876543210", 250000, LoanStatus.PENDING),
    ("Daniel Okafor", "daniel.okafor@example.com", "9123456780", 75000, LoanStatus.PENDING),
    ("Mei Lin", "mei.lin@example.com", "9988776655", 1200000, LoanStatus.VERIFIED),
    ("Carlos Mendes", "carlos.mendes@example.com", "9090909090", 500000, LoanStatus.APPROVED),
    ("Fatima Noor", "fatima.noor@example.com", "9812345670", 3000000, LoanStatus.REJECTED),
]


# Seed accounts must pass the same check the login endpoint applies.
_login_email = TypeAdapter(EmailStr)


def validate_seed_email(value: str) -> str:
    try:
        return _login_email.validate_python(value.strip().lower())
    except PydanticValidationError as exc:
        raise ValueError(f"Seed email {value!r} cannot be used to log in: {exc.errors()[0]['msg']}") from exc


async def _ensure_user(session: AsyncSession, email: str, password: str, name: str, role: Role) -> User:
    email = validate_seed_email(email)
    result = await session.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()
    if user is not None:
        logger.info("User already exists", extra={"email": email})
        return user

    user = User(
        email=email,
        name=name,
        hashed_password=get_password_hash(password),
        role=role.value,
        is_active=True,
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)
    logger.info("User created", extra={"email": email, "role": role.value})
    return user


async def init_db() -> User:
    """Create the seed admin if it is missing. Safe to run repeatedly."""
    async with AsyncSessionLocal() as session:
        return await _ensure_user(
            session,
            settings.seed_admin_email,
            settings.seed_admin_password,
            settings.seed_admin_name,
            Role.ADMIN,
        )


async def seed_demo_data() -> None:
    admin = await init_db()
    async with AsyncSessionLocal() as session:
        verifier = await _ensure_user(
            session, DEMO_VERIFIER_EMAIL, DEMO_VERIFIER_PASSWORD, "Demo Verifier", Role.VERIFIER
        )
        existing = (await session.execute(select(func.count()).select_from(Loan))).scalar_one()
        if existing:
            logger.info("Loans already present; skipping demo loans", extra={"count": existing})
            return

        now = datetime.now(timezone.utc)
        for index, (name, email, phone, amount, status) in enumerate(DEMO_APPLICANTS):
            loan = Loan(
                applicant_name=name,
                email=email,
                phone_number=phone,
                loan_amount=amount,
                loan_purpose="Home renovation and debt consolidation",
                employment_status=EmploymentStatus.EMPLOYED.value,
                monthly_income=85000,
                credit_score=650 + index * 30,
                status=status.value,
                documents={},
                created_at=now - timedelta(days=35 * index),
            )
            if status != LoanStatus.PENDING:
                loan.verified_by_id = verifier.id
                loan.verification_date = now - timedelta(days=35 * index - 1)
            if status == LoanStatus.APPROVED:
                loan.approved_by_id = admin.id
                loan.approval_date = now - timedelta(days=35 * index - 2)
            if status == LoanStatus.REJECTED:
                loan.rejection_reason = "Requested amount exceeds repayment capacity"
            session.add(loan)
        await session.commit()
        logger.info("Demo loans created", extra={"count": len(DEMO_APPLICANTS)})


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Seed the loan desk database.")
    parser.add_argument("--demo", action="store_true", help="also create a verifier and sample loans")
    args = parser.parse_args(argv)

    configure_logging()
    asyncio.run(seed_demo_data() if args.demo else init_db())


if __name__ == "__main__":
    main()
