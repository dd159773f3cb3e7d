from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Optional

from .payloads import parse_flag, parse_int, parse_iso_date, parse_iso_datetime

MAX_MESSAGE_LINKS = 4


def _text(value: Any) -> str:
    return str(value) if value is not None else ""


def _optional_text(value: Any) -> Optional[str]:
    return str(value) if value else None


def split_tags(value: Any) -> frozenset[str]:
    if not value:
        return frozenset()
    if isinstance(value, (list, tuple, set, frozenset)):
        parts = [str(item) for item in value]
    else:
        parts = str(value).split(",")
    return frozenset(part.strip() for part in parts if part.strip())


def join_tags(tags: Any) -> str:
    return ", ".join(sorted(split_tags(tags)))


@dataclass(slots=True)
class Zone:
    id: int
    title_en: str
    title_ur: str
    country_en: str = ""
    country_ur: str = ""
    city_en: str = ""
    city_ur: str = ""
    ceo: str = ""
    primary_phone_number: str = ""
    secondary_phone_number: str = ""
    description: str = ""
    created_at: Optional[datetime] = None

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "Zone":
        return cls(
            id=int(data["id"]),
            title_en=_text(data.get("title_en")),
            title_ur=_text(data.get("title_ur")),
            country_en=_text(data.get("country_en")),
            country_ur=_text(data.get("country_ur")),
            city_en=_text(data.get("city_en")),
            city_ur=_text(data.get("city_ur")),
            ceo=_text(data.get("ceo") or data.get("co")),
            primary_phone_number=_text(data.get("primary_phone_number")),
            secondary_phone_number=_text(data.get("secondary_phone_number")),
            description=_text(data.get("description")),
            created_at=parse_iso_datetime(data.get("created_at")),
        )


@dataclass(slots=True)
class Mehfil:
    id: int
    title_en: str
    title_ur: str
    date: Optional[date] = None
    time: str = ""
    type: str = ""
    filepath: Optional[str] = None
    is_published: bool = False
    created_at: Optional[datetime] = None

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "Mehfil":
        return cls(
            id=int(data["id"]),
            title_en=_text(data.get("title_en")),
            title_ur=_text(data.get("title_ur")),
            date=parse_iso_date(data.get("date")),
            time=_text(data.get("time")),
            type=_text(data.get("type")),
            filepath=_optional_text(data.get("filepath")),
            is_published=parse_flag(data.get("is_published")),
            created_at=parse_iso_datetime(data.get("created_at")),
        )


@dataclass(slots=True)
class NaatShareef:
    id: int
    title_en: str
    title_ur: str
    slug: str = ""
    category_id: Optional[int] = None
    track: str = ""
    tags: frozenset[str] = field(default_factory=frozenset)
    filepath: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "NaatShareef":
        return cls(
            id=int(data["id"]),
            title_en=_text(data.get("title_en") or data.get("title")),
            title_ur=_text(data.get("title_ur")),
            slug=_text(data.get("slug")),
            category_id=parse_int(data.get("category_id")),
            track=_text(data.get("track")),
            tags=split_tags(data.get("tags")),
            filepath=_optional_text(data.get("filepath")),
            created_at=parse_iso_datetime(data.get("created_at") or data.get("createdAt")),
        )


@dataclass(frozen=True, slots=True)
class MessageLink:
    category_id: int
    link_id: int


def read_link_slots(data: dict[str, Any]) -> tuple[MessageLink, ...]:
    links: list[MessageLink] = []
    for slot in range(1, MAX_MESSAGE_LINKS + 1):
        link_id = parse_int(data.get(f"link_{slot}_id"))
        category_id = parse_int(data.get(f"link_{slot}_category_id"))
        if link_id is None or category_id is None:
            continue
        links.append(MessageLink(category_id=category_id, link_id=link_id))
    return tuple(links)


@dataclass(slots=True)
class Message:
    id: int
    title_en: str
    title_ur: str
    description_en: str = ""
    description_ur: str = ""
    is_published: bool = False
    at_top: bool = False
    show_notice: bool = False
    send_notification: bool = False
    links: tuple[MessageLink, ...] = ()
    created_at: Optional[datetime] = None

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "Message":
        return cls(
            id=int(data["id"]),
            title_en=_text(data.get("title_en")),
            title_ur=_text(data.get("title_ur")),
            description_en=_text(data.get("description_en")),
            description_ur=_text(data.get("description_ur")),
            is_published=parse_flag(data.get("is_published")),
            at_top=parse_flag(data.get("at_top")),
            show_notice=parse_flag(data.get("show_notice")),
            send_notification=parse_flag(data.get("send_notification")),
            links=read_link_slots(data),
            created_at=parse_iso_datetime(data.get("created_at")),
        )


@dataclass(slots=True)
class KarkunJoinRequest:
    id: int
    first_name: str
    last_name: str
    email: str = ""
    phone_number: str = ""
    user_type: str = ""
    birth_year: str = ""
    ehad_year: str = ""
    zone_id: Optional[int] = None
    city: str = ""
    country: str = ""
    is_approved: bool = False
    created_at: Optional[datetime] = None

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "KarkunJoinRequest":
        return cls(
            id=int(data["id"]),
            first_name=_text(data.get("first_name")),
            last_name=_text(data.get("last_name")),
            email=_text(data.get("email")),
            phone_number=_text(data.get("phone_number")),
            user_type=_text(data.get("user_type")),
            birth_year=_text(data.get("birth_year")),
            ehad_year=_text(data.get("ehad_year")),
            zone_id=parse_int(data.get("zone_id")),
            city=_text(data.get("city")),
            country=_text(data.get("country")),
            is_approved=parse_flag(data.get("is_approved")),
            created_at=parse_iso_datetime(data.get("created_at")),
        )


@dataclass(slots=True)
class TarteebRequest:
    """Flat record; the form-level fields live in ``TarteebRequestForm``."""

    id: int
    full_name: str
    father_name: str = ""
    email: str = ""
    phone_number: str = ""
    zone_id: Optional[int] = None
    mehfil_directory_id: Optional[int] = None
    status: str = "pending"
    consistent_in_prayers: bool = False
    missed_prayers: tuple[str, ...] = ()
    fields: dict[str, Any] = field(default_factory=dict)
    created_at: Optional[datetime] = None

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "TarteebRequest":
        consistent = parse_flag(data.get("consistent_in_prayers"))
        missed = data.get("missed_prayers") or []
        if isinstance(missed, str):
            missed = [part.strip() for part in missed.split(",") if part.strip()]
        return cls(
            id=int(data["id"]),
            full_name=_text(data.get("full_name")),
            father_name=_text(data.get("father_name")),
            email=_text(data.get("email")),
            phone_number=_text(data.get("phone_number")),
            zone_id=parse_int(data.get("zone_id")),
            mehfil_directory_id=parse_int(data.get("mehfil_directory_id")),
            status=_text(data.get("status")) or "pending",
            consistent_in_prayers=consistent,
            missed_prayers=() if consistent else tuple(str(item) for item in missed),
            fields=dict(data),
            created_at=parse_iso_datetime(data.get("created_at")),
        )


@dataclass(slots=True)
class KhatQuestion:
    id: int
    question: str
    answer: Optional[str] = None
    asked_by: Optional[str] = None
    created_at: Optional[datetime] = None
    answered_at: Optional[datetime] = None

    @property
    def is_answered(self) -> bool:
        return self.answered_at is not None or bool(self.answer)

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "KhatQuestion":
        return cls(
            id=int(data["id"]),
            question=_text(data.get("question")),
            answer=_optional_text(data.get("answer")),
            asked_by=_optional_text(data.get("asked_by")),
            created_at=parse_iso_datetime(data.get("created_at")),
            answered_at=parse_iso_datetime(data.get("answered_at")),
        )


@dataclass(slots=True)
class Khat:
    id: int
    full_name: str
    phone_number: str = ""
    status: str = "pending"
    type: str = "khat"
    zone_id: Optional[int] = None
    questions: list[KhatQuestion] = field(default_factory=list)
    created_at: Optional[datetime] = None

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "Khat":
        return cls(
            id=int(data["id"]),
            full_name=_text(data.get("full_name")),
            phone_number=_text(data.get("phone_number")),
            status=_text(data.get("status")) or "pending",
            type=_text(data.get("type")) or "khat",
            zone_id=parse_int(data.get("zone_id")),
            questions=[
                KhatQuestion.from_payload(item)
                for item in data.get("questions") or []
                if isinstance(item, dict) and item.get("id") is not None
            ],
            created_at=parse_iso_datetime(data.get("created_at")),
        )
