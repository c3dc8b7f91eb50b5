import pytest

from app.core.permissions import Role
from app.core.security import verify_password
from app.db import init_db as init_db_module
from app.models.loan import Loan
from app.models.user import User

from conftest import FakeAsyncSession, FakeResult, make_user


class _SessionFactory:
    def __init__(self, session: FakeAsyncSession) -> None:
        self.session = session

    def __call__(self):
        return self

    async def __aenter__(self) -> FakeAsyncSession:
        return self.session

    async def __aexit__(self, *exc) -> None:
        return None


@pytest.mark.asyncio
async def test_init_db_creates_missing_admin(monkeypatch):
    session = FakeAsyncSession()
    monkeypatch.setattr(init_db_module, "AsyncSessionLocal", _SessionFactory(session))

    admin = await init_db_module.init_db()

    assert session.added == [admin]
    assert admin.role == Role.ADMIN.value
    assert admin.email == init_db_module.settings.seed_admin_email.lower()
    assert verify_password(init_db_module.settings.seed_admin_password, admin.hashed_password)


@pytest.mark.asyncio
async def test_init_db_is_idempotent(monkeypatch):
    existing = make_user(role=Role.ADMIN)
    session = FakeAsyncSession().on_execute_return(FakeResult(scalar=existing))
    monkeypatch.setattr(init_db_module, "AsyncSessionLocal", _SessionFactory(session))

    assert await init_db_module.init_db() is existing
    assert session.added == []
    assert session.committed is False


@pytest.mark.asyncio
async def test_demo_seed_covers_every_status(monkeypatch):
    session = FakeAsyncSession()
    session.on_execute(lambda stmt: FakeResult(scalar=0) if "count" in str(stmt) else None)
    monkeypatch.setattr(init_db_module, "AsyncSessionLocal", _SessionFactory(session))

    await init_db_module.seed_demo_data()

    loans = [obj for obj in session.added if isinstance(obj, Loan)]
    users = [obj for obj in session.added if isinstance(obj, User)]
    assert {loan.status for loan in loans} == {"pending", "verified", "approved", "rejected"}
    assert {user.role for user in users} == {"admin", "verifier"}
    rejected = next(loan for loan in loans if loan.status == "rejected")
    assert rejected.rejection_reason


def test_seed_emails_are_login_compatible():
    assert init_db_module.validate_seed_email(" Admin@LoanDesk.com ") == "admin@loandesk.com"
    assert init_db_module.validate_seed_email(init_db_module.DEMO_VERIFIER_EMAIL)


@pytest.mark.asyncio
async def test_init_db_rejects_reserved_seed_email(monkeypatch):
    session = FakeAsyncSession()
    monkeypatch.setattr(init_db_module, "AsyncSessionLocal", _SessionFactory(session))
    monkeypatch.setattr(init_db_module.settings, "seed_admin_email", "admin@loandesk.local")

    with pytest.raises(ValueError):
        await init_db_module.init_db()
    assert session.added == []
