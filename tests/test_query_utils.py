import pytest
from fastapi import HTTPException

from app.core.settings import settings
from app.utils.query import clamp_limit, contains_pattern, page_offset
from app.utils.rate_limit import check_login_lockout, register_login_attempt, reset_login_attempts


def test_contains_pattern_escapes_wildcards():
    assert contains_pattern("50%_off") == "%50\\%\\_off%"
    assert contains_pattern("asha") == "%asha%"


def test_clamp_limit():
    assert clamp_limit(0) == 1
    assert clamp_limit(25) == 25
    assert clamp_limit(settings.max_page_size + 1) == settings.max_page_size


def test_page_offset():
    assert page_offset(1, 10) == 0
    assert page_offset(3, 10) == 20
    assert page_offset(0, 10) == 0


def test_successful_login_resets_failures():
    reset_login_attempts()
    for _ in range(settings.login_attempt_limit - 1):
        register_login_attempt("a@example.com", success=False)
    register_login_attempt("a@example.com", success=True)
    register_login_attempt("a@example.com", success=False)
    check_login_lockout("a@example.com")


def test_lockout_after_limit():
    reset_login_attempts()
    for _ in range(settings.login_attempt_limit):
        register_login_attempt("b@example.com", success=False)
    with pytest.raises(HTTPException) as exc:
        check_login_lockout("b@example.com")
    assert exc.value.status_code == 429
    check_login_lockout("c@example.com")
