from datetime import datetime, timezone

import pytest

from app.core.errors import Conflict, Forbidden, InvalidTransition, NotFound, ValidationError
from app.core.permissions import Role
from app.schemas.loan import LoanStatus
from app.services.loan_lifecycle import (
    TRANSITIONS,
    LoanStage,
    apply_transition,
    ensure_transition_allowed,
    resolve_transition,
    success_message,
)

from conftest import FakeAsyncSession, FakeResult, make_loan, make_user, sequence_handler, update_handler


def test_transition_table_shape():
    assert {(stage, action) for stage, action in TRANSITIONS} == {
        (LoanStage.VERIFICATION, "verify"),
        (LoanStage.VERIFICATION, "reject"),
        (LoanStage.APPROVAL, "approve"),
        (LoanStage.APPROVAL, "reject"),
    }
    for transition in TRANSITIONS.values():
        assert transition.target not in (LoanStatus.PENDING,)
        assert transition.requires_reason == (transition.target == LoanStatus.REJECTED)


def test_unknown_action_is_rejected():
    with pytest.raises(ValidationError) as exc:
        resolve_transition(LoanStage.VERIFICATION, "approve", None)
    assert exc.value.message == 'Action must be either "verify" or "reject"'


def test_missing_action_is_rejected():
    with pytest.raises(ValidationError) as exc:
        resolve_transition(LoanStage.APPROVAL, None, None)
    assert exc.value.message == 'Action must be either "approve" or "reject"'


def test_reject_requires_reason():
    with pytest.raises(ValidationError) as exc:
        resolve_transition(LoanStage.VERIFICATION, "reject", "   ")
    assert exc.value.message == "Rejection reason is required"


def test_reason_is_optional_for_verify():
    transition = resolve_transition(LoanStage.VERIFICATION, "verify", None)
    assert transition.target == LoanStatus.VERIFIED
    assert success_message(transition) == "Loan verified successfully"


def test_wrong_source_status():
    transition = resolve_transition(LoanStage.APPROVAL, "approve", None)
    with pytest.raises(InvalidTransition) as exc:
        ensure_transition_allowed(transition, "pending", make_user(role=Role.ADMIN))
    assert exc.value.message == "Only verified loans can be approved or rejected"


def test_terminal_status_is_named_in_message():
    transition = resolve_transition(LoanStage.APPROVAL, "approve", None)
    with pytest.raises(InvalidTransition) as exc:
        ensure_transition_allowed(transition, "approved", make_user(role=Role.ADMIN))
    assert "already approved" in exc.value.message


def test_verifier_cannot_approve():
    transition = resolve_transition(LoanStage.APPROVAL, "approve", None)
    with pytest.raises(Forbidden):
        ensure_transition_allowed(transition, "verified", make_user(role=Role.VERIFIER))


def test_source_status_is_checked_before_role():
    transition = resolve_transition(LoanStage.APPROVAL, "approve", None)
    with pytest.raises(InvalidTransition):
        ensure_transition_allowed(transition, "pending", make_user(role=Role.VERIFIER))


@pytest.mark.asyncio
async def test_apply_transition_records_actor_and_date():
    actor = make_user(role=Role.VERIFIER)
    loan = make_loan(status="pending")
    now = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
    updated = make_loan(
        id=loan.id, status="verified", verified_by_id=actor.id, verification_date=now
    )
    db = FakeAsyncSession()
    db.on_execute(
        sequence_handler([FakeResult(scalar=loan), FakeResult(rowcount=1), FakeResult(scalar=updated)])
    )

    result, transition = await apply_transition(
        db, loan.id, LoanStage.VERIFICATION, actor, action="verify", now=now
    )

    assert result.status == "verified"
    assert transition.target == LoanStatus.VERIFIED
    assert db.committed is True
    update_stmt = db.executed[1]
    params = update_stmt.compile().params
    assert params["status"] == "verified"
    assert params["verified_by_id"] == actor.id
    assert params["verification_date"] == now


@pytest.mark.asyncio
async def test_apply_transition_stores_trimmed_reason():
    actor = make_user(role=Role.ADMIN)
    loan = make_loan(status="verified")
    db = FakeAsyncSession()
    db.on_execute(
        sequence_handler([FakeResult(scalar=loan), FakeResult(rowcount=1), FakeResult(scalar=loan)])
    )

    await apply_transition(
        db, loan.id, LoanStage.APPROVAL, actor, action="reject", rejection_reason="  Low income  "
    )

    params = db.executed[1].compile().params
    assert params["status"] == "rejected"
    assert params["rejection_reason"] == "Low income"
    assert params["approved_by_id"] == actor.id


@pytest.mark.asyncio
async def test_concurrent_decision_raises_conflict():
    actor = make_user(role=Role.ADMIN)
    loan = make_loan(status="verified")
    db = FakeAsyncSession()
    db.on_execute(update_handler(rowcount=0))
    db.on_execute_return(FakeResult(scalar=loan))

    with pytest.raises(Conflict):
        await apply_transition(db, loan.id, LoanStage.APPROVAL, actor, action="approve")
    assert db.rolled_back is True
    assert db.committed is False


@pytest.mark.asyncio
async def test_missing_loan_raises_not_found():
    db = FakeAsyncSession()
    with pytest.raises(NotFound):
        await apply_transition(
            db, make_loan().id, LoanStage.VERIFICATION, make_user(role=Role.VERIFIER), action="verify"
        )


@pytest.mark.asyncio
async def test_action_is_validated_before_lookup():
    db = FakeAsyncSession()
    with pytest.raises(ValidationError):
        await apply_transition(
            db, make_loan().id, LoanStage.VERIFICATION, make_user(role=Role.VERIFIER), action="approve"
        )
    assert db.executed == []
