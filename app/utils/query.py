from app.core.settings import settings


def contains_pattern(term: str) -> str:
    """ILIKE pattern matching *term* anywhere, with wildcards escaped by ``\\``."""
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def clamp_limit(limit: int) -> int:
    return max(1, min(limit, settings.max_page_size))


def page_offset(page: int, limit: int) -> int:
    return (max(page, 1) - 1) * limit
