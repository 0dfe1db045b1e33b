"""
Page slicing for list endpoints.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Generic, Sequence, TypeVar

T = TypeVar("T")


@dataclass
class Page(Generic[T]):
    items: list[T]
    page: int
    page_size: int
    total: int
    total_pages: int

    def headers(self) -> dict[str, str]:
        return {
            "X-Total-Count": str(self.total),
            "X-Total-Pages": str(self.total_pages),
            "X-Page": str(self.page),
        }


def paginate(items: Sequence[T], page: int, page_size: int) -> Page[T]:
    """
    Slice ``items`` for a 1-based page number.

    There is always at least one page, and out-of-range page numbers are
    clamped to the nearest valid page rather than returning an empty slice.
    """
    if page_size < 1:
        raise ValueError("page_size must be positive")
    total = len(items)
    total_pages = max(1, math.ceil(total / page_size))
    page = min(max(1, page), total_pages)
    start = (page - 1) * page_size
    return Page(
        items=list(items[start : start + page_size]),
        page=page,
        page_size=page_size,
        total=total,
        total_pages=total_pages,
    )
