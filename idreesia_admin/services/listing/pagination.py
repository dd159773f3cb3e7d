from __future__ import annotations

import math
from dataclasses import dataclass

MAX_PAGE_BUTTONS = 10


@dataclass(frozen=True, slots=True)
class PageSummary:
    total: int
    page: int
    page_size: int
    total_pages: int
    start_record: int
    end_record: int

    @classmethod
    def compute(cls, total: int, page: int, page_size: int) -> "PageSummary":
        if page_size <= 0:
            raise ValueError("page_size must be > 0")
        total = max(0, total)
        page = max(1, page)
        start = (page - 1) * page_size + 1
        return cls(
            total=total,
            page=page,
            page_size=page_size,
            total_pages=math.ceil(total / page_size),
            start_record=start,
            end_record=min(start + page_size - 1, total),
        )

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages


@dataclass(frozen=True, slots=True)
class PageWindow:
    pages: tuple[int, ...]
    leading_gap: bool
    trailing_gap: bool


def page_window(current: int, total_pages: int, limit: int = MAX_PAGE_BUTTONS) -> PageWindow:
    """Page-number buttons around ``current``, at most ``limit`` of them.

    The gap flags tell the caller where to draw an ellipsis.
    """
    if total_pages <= 0:
        return PageWindow(pages=(), leading_gap=False, trailing_gap=False)
    current = min(max(1, current), total_pages)
    if total_pages <= limit:
        first = 1
    else:
        half = limit // 2
        if current <= half:
            first = 1
        elif current >= total_pages - (limit - half - 1):
            first = total_pages - limit + 1
        else:
            first = current - (half - 1)
    pages = tuple(range(first, min(first + limit, total_pages + 1)))
    return PageWindow(
        pages=pages,
        leading_gap=pages[0] > 1,
        trailing_gap=pages[-1] < total_pages,
    )
