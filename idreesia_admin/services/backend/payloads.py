from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Generic, Literal, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Envelope = Literal["data", "bare"]


def parse_int(value: Any, default: Optional[int] = None) -> Optional[int]:
    if value is None or value == "" or isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def parse_flag(value: Any) -> bool:
    """Backend flags arrive as booleans, 0/1 or "0"/"1"/"true"."""
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


def parse_iso_date(value: Any) -> Optional[date]:
    if not value:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


def parse_iso_datetime(value: Any) -> Optional[datetime]:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    text = str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


@dataclass(slots=True)
class PageMeta:
    total: int = 0
    current_page: int = 1
    per_page: int = 0
    last_page: int = 1
    from_: Optional[int] = None
    to: Optional[int] = None


@dataclass
class Page(Generic[T]):
    data: list[T] = field(default_factory=list)
    meta: PageMeta = field(default_factory=PageMeta)


def _last_page(total: int, per_page: int) -> int:
    if per_page <= 0:
        return 1
    return max(1, math.ceil(total / per_page))


def normalize_list_payload(payload: Any, *, page: int = 1, size: int = 0) -> Page[Any]:
    """Coerce the drifting list envelopes into ``Page``.

    A bare array becomes ``{data: array, meta: {total: len(array)}}`` and a
    missing or null ``data`` becomes an empty page.
    """
    if isinstance(payload, list):
        total = len(payload)
        per_page = size or total
        return Page(
            data=list(payload),
            meta=PageMeta(
                total=total,
                current_page=page,
                per_page=per_page,
                last_page=_last_page(total, per_page),
            ),
        )

    if not isinstance(payload, dict) or payload.get("data") is None:
        return Page(data=[], meta=PageMeta(total=0, current_page=page, per_page=size))

    items = payload["data"]
    if not isinstance(items, list):
        logger.warning("List payload carried non-list data: %r", type(items).__name__)
        items = []

    raw_meta = payload.get("meta") if isinstance(payload.get("meta"), dict) else {}
    total = parse_int(raw_meta.get("total"), None)
    if total is None:
        total = parse_int(payload.get("total"), len(items))
    per_page = parse_int(raw_meta.get("per_page"), None) or parse_int(payload.get("size"), None) or size
    last_page = parse_int(raw_meta.get("last_page"), None) or _last_page(total, per_page)
    return Page(
        data=list(items),
        meta=PageMeta(
            total=total,
            current_page=parse_int(raw_meta.get("current_page"), page) or page,
            per_page=per_page,
            last_page=last_page,
            from_=parse_int(raw_meta.get("from")),
            to=parse_int(raw_meta.get("to")),
        ),
    )


def normalize_entity_payload(payload: Any, envelope: Envelope = "data") -> Optional[dict[str, Any]]:
    if not isinstance(payload, dict) or not payload:
        return None
    if envelope == "bare":
        return payload
    if "data" in payload:
        inner = payload["data"]
        return inner if isinstance(inner, dict) and inner else None
    # Some endpoints declared as wrapped still answer with the bare entity.
    return payload
