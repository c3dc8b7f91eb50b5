from enum import Enum


class Role(str, Enum):
    ADMIN = "admin"
    VERIFIER = "verifier"


class Operation(str, Enum):
    # Loans
    LOAN_LIST = "loan.list"
    LOAN_VIEW = "loan.view"
    LOAN_VERIFY = "loan.verify"
    LOAN_APPROVE = "loan.approve"

    # Users
    USER_LIST = "user.list"
    USER_CREATE = "user.create"
    USER_DEACTIVATE = "user.deactivate"
    USER_ACTIVATE = "user.activate"

    # Dashboard
    DASHBOARD_VIEW = "dashboard.view"


ADMIN_ONLY: frozenset[Role] = frozenset({Role.ADMIN})
VERIFIER_OR_ADMIN: frozenset[Role] = frozenset({Role.VERIFIER, Role.ADMIN})

POLICY: dict[Operation, frozenset[Role]] = {
    Operation.LOAN_LIST: VERIFIER_OR_ADMIN,
    Operation.LOAN_VIEW: VERIFIER_OR_ADMIN,
    Operation.LOAN_VERIFY: VERIFIER_OR_ADMIN,
    Operation.LOAN_APPROVE: ADMIN_ONLY,
    Operation.USER_LIST: ADMIN_ONLY,
    Operation.USER_CREATE: ADMIN_ONLY,
    Operation.USER_DEACTIVATE: ADMIN_ONLY,
    Operation.USER_ACTIVATE: ADMIN_ONLY,
    Operation.DASHBOARD_VIEW: VERIFIER_OR_ADMIN,
}


def permitted_roles(operation: Operation | str) -> frozenset[Role]:
    """Roles allowed to perform *operation*; unknown operations allow nobody."""
    try:
        return POLICY[Operation(operation)]
    except (KeyError, ValueError):
        return frozenset()
