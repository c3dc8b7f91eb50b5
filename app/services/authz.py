from app.core.permissions import Operation, Role, permitted_roles
from app.models.user import User


def role_of(user: User) -> Role | None:
    try:
        return Role(user.role)
    except ValueError:
        return None


def check_permission(user: User, operation: Operation | str) -> bool:
    """Check *user* against the role policy for *operation*."""
    if not user.is_active:
        return False
    role = role_of(user)
    return role is not None and role in permitted_roles(operation)
