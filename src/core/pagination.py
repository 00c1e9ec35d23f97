"""Query-string pagination helpers shared by list endpoints."""

from math import ceil

DEFAULT_SKIP = 0
DEFAULT_TAKE = 10
MAX_TAKE = 100


def _to_int(value, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def parse_skip_take(skip=None, take=None) -> tuple[int, int]:
    """Clamp ``skip``/``take`` query values; invalid input falls back to defaults."""
    parsed_skip = max(DEFAULT_SKIP, _to_int(skip, DEFAULT_SKIP))
    raw_take = _to_int(take, DEFAULT_TAKE) or DEFAULT_TAKE
    parsed_take = max(1, min(MAX_TAKE, raw_take))
    return parsed_skip, parsed_take


def page_meta(page: int, limit: int, total: int) -> dict[str, int]:
    """Pagination block returned next to a page of results."""
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "total_pages": ceil(total / limit) if limit else 0,
    }


__all__ = ["parse_skip_take", "page_meta", "DEFAULT_TAKE", "MAX_TAKE"]
