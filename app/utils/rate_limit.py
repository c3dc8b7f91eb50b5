"""Per-account login lockout.

Complements the per-IP slowapi limit on the login route: after
``LOGIN_ATTEMPT_LIMIT`` failures inside ``LOGIN_LOCKOUT_MINUTES`` the account
is refused for the same number of minutes. State is process-local.
"""

from collections import defaultdict, deque
from datetime import datetime, timedelta, timezone

from fastapi import HTTPException, status

from app.core.settings import settings


class LoginAttemptTracker:
    def __init__(self) -> None:
        self._failures: dict[str, deque[datetime]] = defaultdict(deque)
        self._locked_until: dict[str, datetime] = {}

    @property
    def window(self) -> timedelta:
        return timedelta(minutes=settings.login_lockout_minutes)

    def is_locked(self, identifier: str, now: datetime) -> bool:
        until = self._locked_until.get(identifier)
        if until is None:
            return False
        if until <= now:
            del self._locked_until[identifier]
            return False
        return True

    def record(self, identifier: str, success: bool, now: datetime) -> None:
        if success:
            self._failures.pop(identifier, None)
            self._locked_until.pop(identifier, None)
            return
        failures = self._failures[identifier]
        while failures and now - failures[0] > self.window:
            failures.popleft()
        failures.append(now)
        if len(failures) >= settings.login_attempt_limit:
            self._locked_until[identifier] = now + self.window
            failures.clear()

    def reset(self) -> None:
        self._failures.clear()
        self._locked_until.clear()


_tracker = LoginAttemptTracker()


def check_login_lockout(identifier: str) -> None:
    if _tracker.is_locked(identifier, datetime.now(timezone.utc)):
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many login attempts, please try again later",
        )


def register_login_attempt(identifier: str, success: bool) -> None:
    _tracker.record(identifier, success, datetime.now(timezone.utc))


def reset_login_attempts() -> None:
    _tracker.reset()
