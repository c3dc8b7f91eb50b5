"""Loan status lifecycle.

A loan moves ``pending -> verified | rejected`` during verification and
``verified -> approved | rejected`` during approval. ``approved`` and
``rejected`` are terminal. Each move records the acting user and a timestamp
on the loan and is written with a conditional update keyed on the expected
source status, so concurrent decisions on the same loan cannot both succeed.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import Conflict, Forbidden, InvalidTransition, ValidationError
from app.core.logging import get_audit_logger
from app.core.permissions import ADMIN_ONLY, VERIFIER_OR_ADMIN, Role
from app.models.loan import Loan
from app.models.user import User
from app.schemas.loan import LoanStatus
from app.services import authz, loan_applications

audit_logger = get_audit_logger()


class LoanStage(str, Enum):
    VERIFICATION = "verification"
    APPROVAL = "approval"


@dataclass(frozen=True, slots=True)
class Transition:
    stage: LoanStage
    action: str
    source: LoanStatus
    target: LoanStatus
    roles: frozenset[Role]
    actor_field: str
    date_field: str
    requires_reason: bool = False


TRANSITIONS: dict[tuple[LoanStage, str], Transition] = {
    (LoanStage.VERIFICATION, "verify"): Transition(
        stage=LoanStage.VERIFICATION,
        action="verify",
        source=LoanStatus.PENDING,
        target=LoanStatus.VERIFIED,
        roles=VERIFIER_OR_ADMIN,
        actor_field="verified_by_id",
        date_field="verification_date",
    ),
    (LoanStage.VERIFICATION, "reject"): Transition(
        stage=LoanStage.VERIFICATION,
        action="reject",
        source=LoanStatus.PENDING,
        target=LoanStatus.REJECTED,
        roles=VERIFIER_OR_ADMIN,
        actor_field="verified_by_id",
        date_field="verification_date",
        requires_reason=True,
    ),
    (LoanStage.APPROVAL, "approve"): Transition(
        stage=LoanStage.APPROVAL,
        action="approve",
        source=LoanStatus.VERIFIED,
        target=LoanStatus.APPROVED,
        roles=ADMIN_ONLY,
        actor_field="approved_by_id",
        date_field="approval_date",
    ),
    (LoanStage.APPROVAL, "reject"): Transition(
        stage=LoanStage.APPROVAL,
        action="reject",
        source=LoanStatus.VERIFIED,
        target=LoanStatus.REJECTED,
        roles=ADMIN_ONLY,
        actor_field="approved_by_id",
        date_field="approval_date",
        requires_reason=True,
    ),
}

TERMINAL_STATUSES = frozenset({LoanStatus.APPROVED, LoanStatus.REJECTED})

_WRONG_SOURCE_MESSAGES = {
    LoanStage.VERIFICATION: "Only pending loans can be verified or rejected",
    LoanStage.APPROVAL: "Only verified loans can be approved or rejected",
}


def stage_actions(stage: LoanStage) -> list[str]:
    return [action for (candidate, action) in TRANSITIONS if candidate == stage]


def resolve_transition(stage: LoanStage, action: str | None, rejection_reason: str | None) -> Transition:
    transition = TRANSITIONS.get((stage, action or ""))
    if transition is None:
        first, second = stage_actions(stage)
        raise ValidationError(
            f'Action must be either "{first}" or "{second}"',
            errors=[{"field": "action", "message": f"Expected one of: {first}, {second}"}],
        )
    if transition.requires_reason and not (rejection_reason or "").strip():
        raise ValidationError(
            "Rejection reason is required",
            errors=[{"field": "rejectionReason", "message": "Rejection reason is required"}],
        )
    return transition


def ensure_transition_allowed(transition: Transition, current_status: str, actor: User) -> None:
    if current_status != transition.source.value:
        message = _WRONG_SOURCE_MESSAGES[transition.stage]
        if current_status in TERMINAL_STATUSES:
            message = f"{message}; this loan is already {current_status}"
        raise InvalidTransition(message)
    if authz.role_of(actor) not in transition.roles:
        raise Forbidden("Insufficient permissions")


def success_message(transition: Transition) -> str:
    return f"Loan {transition.target.value} successfully"


async def apply_transition(
    db: AsyncSession,
    loan_id: UUID,
    stage: LoanStage,
    actor: User,
    *,
    action: str | None,
    rejection_reason: str | None = None,
    now: datetime | None = None,
) -> tuple[Loan, Transition]:
    transition = resolve_transition(stage, action, rejection_reason)
    loan = await loan_applications.get_loan(db, loan_id)
    ensure_transition_allowed(transition, loan.status, actor)

    values = {
        "status": transition.target.value,
        transition.actor_field: actor.id,
        transition.date_field: now or datetime.now(timezone.utc),
    }
    if transition.requires_reason:
        values["rejection_reason"] = rejection_reason.strip()

    stmt = (
        update(Loan)
        .where(Loan.id == loan.id, Loan.status == transition.source.value)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    result = await db.execute(stmt)
    if result.rowcount != 1:
        await db.rollback()
        raise Conflict("Loan status changed while this request was processed; reload and retry")
    await db.commit()

    audit_logger.info(
        "loan.%s",
        transition.target.value,
        extra={
            "loan_id": str(loan.id),
            "actor_id": str(actor.id),
            "from_status": transition.source.value,
            "to_status": transition.target.value,
        },
    )
    updated = await loan_applications.get_loan(db, loan.id, refresh=True)
    return updated, transition
