# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple, TypeVar

T = TypeVar("T")

PAGE_SIZE = 3


@dataclass(frozen=True)
class PaginationInfo:
    current: int
    total_pages: int
    prev: Optional[int] = None
    next: Optional[int] = None
    pages: List[int] = field(default_factory=list)

    def to_context(self) -> Dict[str, Any]:
        return {
            "prev": self.prev,
            "next": self.next,
            "current": self.current,
            "pages": list(self.pages),
        }


def total_pages(total_items: int, page_size: int = PAGE_SIZE) -> int:
    if page_size < 1:
        raise ValueError(f"page_size must be >= 1, got {page_size}")
    return -(-max(total_items, 0) // page_size)


def paginate(
    items: Sequence[T],
    page_size: int = PAGE_SIZE,
    requested_page: int = 1,
) -> Tuple[List[T], PaginationInfo]:
    """Slice one page out of items and compute its navigation.

    Pages are 1-based. A requested page below 1 is treated as page 1. Pages
    past the end give an empty slice, never an error; prev/next follow the
    same rules as for in-range pages.
    """
    pages_count = total_pages(len(items), page_size)
    page = max(int(requested_page), 1)
    offset = (page - 1) * page_size

    visible = list(items[offset : offset + page_size])
    info = PaginationInfo(
        current=page,
        total_pages=pages_count,
        prev=page - 1 if page > 1 else None,
        next=page + 1 if page < pages_count else None,
        pages=list(range(1, pages_count + 1)),
    )
    return visible, info
