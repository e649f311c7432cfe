"""
Pagination helpers shared by the listing services.
"""

import math
from dataclasses import dataclass
from typing import Any, Optional

from core.exceptions import InvalidArgumentError
from core.models import Pagination

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10
# Larger page sizes are served as pages of this size
MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class PageWindow:
    """Offset and neighbour flags for one page of a result set"""

    skip: int
    page_count: int
    has_next: bool
    has_prev: bool


def require_positive_int(name: str, value: Any) -> int:
    """Return value if it is a positive integer, else raise InvalidArgumentError"""
    # bool is an int subclass; True must not pass as page 1
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArgumentError(name, value, "must be a positive integer")
    if value < 1:
        raise InvalidArgumentError(name, value, "must be a positive integer")
    return value


def parse_positive_int(name: str, raw: Optional[str], default: int) -> int:
    """Convert a raw query-string value, raising InvalidArgumentError when it is not a positive integer"""
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        raise InvalidArgumentError(name, raw, "must be a positive integer")
    return require_positive_int(name, value)


def clamp_page_size(page_size: int) -> int:
    return min(require_positive_int("limit", page_size), MAX_PAGE_SIZE)


def paginate(total_count: int, page: int, page_size: int) -> PageWindow:
    """
    Compute the window for `page` (1-indexed) of `total_count` rows.

    `paginate(0, 1, 10)` gives skip 0, no pages, and neither neighbour.
    """
    page = require_positive_int("page", page)
    page_size = require_positive_int("limit", page_size)
    if total_count < 0:
        raise InvalidArgumentError("total_count", total_count, "must not be negative")

    page_count = math.ceil(total_count / page_size)
    return PageWindow(
        skip=(page - 1) * page_size,
        page_count=page_count,
        has_next=page < page_count,
        has_prev=page > 1,
    )


def build_pagination(total_count: int, page: int, page_size: int) -> Pagination:
    window = paginate(total_count, page, page_size)
    return Pagination(
        current_page=page,
        page_size=page_size,
        total_pages=window.page_count,
        total_count=total_count,
        has_next=window.has_next,
        has_prev=window.has_prev,
    )
