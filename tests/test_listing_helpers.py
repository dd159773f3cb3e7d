from __future__ import annotations

import asyncio
import math
from datetime import datetime

import pytest

from idreesia_admin.services.listing.debounce import Debouncer
from idreesia_admin.services.listing.pagination import PageSummary, page_window
from idreesia_admin.services.listing.sorting import SortState, sort_rows


@pytest.mark.parametrize(
    ("total", "page", "page_size"),
    [(0, 1, 10), (1, 1, 5), (10, 1, 10), (11, 2, 10), (99, 4, 25), (100, 1, 100)],
)
def test_page_summary_invariant(total: int, page: int, page_size: int) -> None:
    summary = PageSummary.compute(total, page, page_size)
    assert summary.total_pages == math.ceil(total / page_size)
    assert summary.start_record == (page - 1) * page_size + 1
    assert summary.end_record == min(summary.start_record + page_size - 1, total)
    assert summary.end_record >= summary.start_record - 1 or total < summary.start_record


def test_page_summary_navigation_flags() -> None:
    summary = PageSummary.compute(45, 2, 10)
    assert summary.total_pages == 5
    assert (summary.start_record, summary.end_record) == (11, 20)
    assert summary.has_previous and summary.has_next
    assert not PageSummary.compute(45, 5, 10).has_next
    with pytest.raises(ValueError):
        PageSummary.compute(10, 1, 0)


def test_page_window_small_total_shows_all() -> None:
    window = page_window(3, 7)
    assert window.pages == tuple(range(1, 8))
    assert not window.leading_gap and not window.trailing_gap


def test_page_window_slides_with_current_page() -> None:
    assert page_window(2, 50).pages == tuple(range(1, 11))
    middle = page_window(20, 50)
    assert middle.pages == tuple(range(16, 26))
    assert middle.leading_gap and middle.trailing_gap
    end = page_window(48, 50)
    assert end.pages == tuple(range(41, 51))
    assert end.leading_gap and not end.trailing_gap
    assert page_window(1, 0).pages == ()


def test_sort_toggle_cycles_and_resets() -> None:
    state = SortState("title_en", "asc")
    state = state.toggle("title_en")
    assert state.direction == "desc"
    state = state.toggle("title_en")
    assert state.direction == "asc"
    assert state.toggle("created_at") == SortState("created_at", "asc")


def test_sort_rows_by_numbers_dates_and_text() -> None:
    rows = [
        {"id": "10", "title_en": "beta", "created_at": datetime(2024, 1, 3)},
        {"id": "9", "title_en": "Alpha", "created_at": datetime(2024, 1, 1)},
        {"id": "11", "title_en": None, "created_at": datetime(2024, 1, 2)},
    ]
    assert [row["id"] for row in sort_rows(rows, "id")] == ["9", "10", "11"]
    assert [row["id"] for row in sort_rows(rows, "created_at", "desc")] == ["10", "11", "9"]
    assert [row["id"] for row in sort_rows(rows, "title_en")] == ["9", "10", "11"]
    assert [row["id"] for row in sort_rows(rows, "title_en", "desc")] == ["10", "9", "11"]


@pytest.mark.asyncio
async def test_debounce_fires_once_with_last_value() -> None:
    received: list[str] = []

    async def search(text: str) -> None:
        received.append(text)

    debouncer: Debouncer[str] = Debouncer(0.02, search)
    for text in ("l", "la", "lah", "lahore"):
        debouncer.push(text)
        await asyncio.sleep(0)
    await debouncer.wait()

    assert received == ["lahore"]
    assert not debouncer.pending


@pytest.mark.asyncio
async def test_debounce_cancel_drops_pending_value() -> None:
    received: list[str] = []
    debouncer: Debouncer[str] = Debouncer(0.01, received.append)
    debouncer.push("x")
    debouncer.cancel()
    await asyncio.sleep(0.03)
    assert received == []
