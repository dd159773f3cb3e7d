from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Literal, Mapping, Optional, Sequence, TypeVar

SortDirection = Literal["asc", "desc"]

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class SortState:
    field: str = "id"
    direction: SortDirection = "asc"

    def toggle(self, field: str) -> "SortState":
        """Same column reverses the direction, a new column starts ascending."""
        if field == self.field:
            return SortState(field, "desc" if self.direction == "asc" else "asc")
        return SortState(field, "asc")


def field_value(row: Any, field: str) -> Any:
    if isinstance(row, Mapping):
        return row.get(field)
    return getattr(row, field, None)


def _sort_key(value: Any) -> tuple[int, Any]:
    if isinstance(value, bool):
        return 0, int(value)
    if isinstance(value, (int, float)):
        return 0, value
    if isinstance(value, datetime):
        return 1, value.isoformat()
    if isinstance(value, date):
        return 1, value.isoformat()
    text = str(value).strip()
    try:
        return 0, float(text)
    except ValueError:
        return 2, text.casefold()


def sort_rows(rows: Sequence[T], field: Optional[str], direction: SortDirection = "asc") -> list[T]:
    """Sort the rows of the fetched page only; empty values always go last."""
    if not field:
        return list(rows)
    present = [row for row in rows if field_value(row, field) not in (None, "")]
    missing = [row for row in rows if field_value(row, field) in (None, "")]
    present.sort(key=lambda row: _sort_key(field_value(row, field)), reverse=direction == "desc")
    return present + missing
