from app.utils.rate_limit import check_login_lockout, register_login_attempt, reset_login_attempts

__all__ = [
    "check_login_lockout",
    "register_login_attempt",
    "reset_login_attempts",
]
