from sqlalchemy.exc import IntegrityError


def violates(exc: IntegrityError, constraint: str) -> bool:
    """True when *exc* was raised by the named constraint or unique index."""
    return constraint in str(exc.orig)
