from __future__ import annotations

import re
import datetime as dt
from typing import Any, Literal, Mapping, Optional

from pydantic import (
    AnyHttpUrl,
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    ValidationError,
    field_validator,
)
from pydantic.alias_generators import to_camel

from idreesia_admin.services.backend.entities import (
    MAX_MESSAGE_LINKS,
    MessageLink,
    join_tags,
    split_tags,
)

PHONE_DIGITS = 11
_PHONE_RE = re.compile(rf"\d{{{PHONE_DIGITS}}}")
_YEAR_RE = re.compile(r"\d{4}")

MEHFIL_TIMES = ("تہجد", "فجر", "ظہر", "عصر", "مغرب", "عشا", "اشراق")
MEHFIL_TYPES = (
    "محفل",
    "عيد الاضحی محفل",
    "معراج شریف محفل",
    "شب قدر محفل",
    "۲۷ رمضان محفل",
    "عیدالفطر محفل",
    "دسویں محرم محفل",
    "عید میلادالنبیؐ محفل",
    "۲۱ جمادی الاول محفل",
    "۳ جولائی محفل",
    "شروع کی محفل",
)

KarkunUserType = Literal["student", "teacher", "admin"]


def check_phone(value: str) -> str:
    if value and not _PHONE_RE.fullmatch(value):
        raise ValueError(f"Phone number must be exactly {PHONE_DIGITS} digits")
    return value


def camelize(data: Mapping[str, Any], overrides: Optional[Mapping[str, str]] = None) -> dict[str, Any]:
    renamed = dict(overrides or {})
    return {renamed.get(key, to_camel(key)): value for key, value in data.items()}


def validation_messages(exc: ValidationError) -> dict[str, str]:
    """Flatten a pydantic error into ``{field: message}`` for inline display."""
    messages: dict[str, str] = {}
    for error in exc.errors():
        field = ".".join(str(part) for part in error.get("loc", ())) or "__root__"
        message = str(error.get("msg") or "Invalid value")
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        messages.setdefault(field, message)
    return messages


class FormModel(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")


class ZoneForm(FormModel):
    title_en: str = Field(..., min_length=1)
    title_ur: str = Field(..., min_length=1)
    country_en: str = Field(..., min_length=1)
    country_ur: str = Field(..., min_length=1)
    city_en: str = Field(..., min_length=1)
    city_ur: str = Field(..., min_length=1)
    ceo: str = ""
    primary_phone_number: str = ""
    secondary_phone_number: str = ""
    description: str = ""

    @field_validator("primary_phone_number", "secondary_phone_number")
    @classmethod
    def _eleven_digit_phones(cls, value: str) -> str:
        return check_phone(value)

    def to_payload(self) -> dict[str, Any]:
        # The zone endpoints take camelCase bodies; the CEO column is "co".
        return camelize(self.model_dump(), {"ceo": "co"})


class MehfilForm(FormModel):
    title_en: str = Field(..., min_length=1)
    title_ur: str = Field(..., min_length=1)
    date: dt.date
    time: str
    type: str
    filepath: Optional[AnyHttpUrl] = None
    is_published: bool = False

    @field_validator("time")
    @classmethod
    def _known_time(cls, value: str) -> str:
        if value not in MEHFIL_TIMES:
            raise ValueError("Select a prayer time")
        return value

    @field_validator("type")
    @classmethod
    def _known_type(cls, value: str) -> str:
        if value not in MEHFIL_TYPES:
            raise ValueError("Select a mehfil type")
        return value

    def to_payload(self) -> dict[str, Any]:
        return {
            "title_en": self.title_en,
            "title_ur": self.title_ur,
            "date": self.date.isoformat(),
            "time": self.time,
            "type": self.type,
            "filepath": str(self.filepath) if self.filepath else None,
            "is_published": self.is_published,
        }


class NaatShareefForm(FormModel):
    title_en: str = Field(..., min_length=1)
    title_ur: str = Field(..., min_length=1)
    slug: str = ""
    description_en: str = ""
    description_ur: str = ""
    category_id: int = Field(..., ge=1)
    track: str = ""
    tags: frozenset[str] = frozenset()
    filepath: Optional[AnyHttpUrl] = None

    @field_validator("tags", mode="before")
    @classmethod
    def _split_tags(cls, value: Any) -> frozenset[str]:
        return split_tags(value)

    def to_payload(self) -> dict[str, Any]:
        payload = self.model_dump(exclude={"tags", "filepath"})
        payload["tags"] = join_tags(self.tags)
        payload["filepath"] = str(self.filepath) if self.filepath else None
        return payload


class MessageForm(FormModel):
    title_en: str = Field(..., min_length=1)
    title_ur: str = Field(..., min_length=1)
    description_en: str = ""
    description_ur: str = ""
    is_published: bool = False
    at_top: bool = False
    show_notice: bool = False
    send_notification: bool = False
    wazaif_id: Optional[int] = None
    links: list[MessageLink] = Field(default_factory=list, max_length=MAX_MESSAGE_LINKS)

    @field_validator("links", mode="before")
    @classmethod
    def _coerce_links(cls, value: Any) -> list[Any]:
        links: list[Any] = []
        for item in value or []:
            if isinstance(item, (tuple, list)) and len(item) == 2:
                links.append(MessageLink(category_id=int(item[0]), link_id=int(item[1])))
            else:
                links.append(item)
        return links

    def to_payload(self, *, updated_by: Optional[int] = None) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "title_en": self.title_en,
            "title_ur": self.title_ur,
            "description_en": self.description_en or None,
            "description_ur": self.description_ur or None,
            "is_published": int(self.is_published),
            "at_top": int(self.at_top),
            "show_notice": int(self.show_notice),
            "send_notification": int(self.send_notification),
            "wazaif_id": self.wazaif_id,
        }
        for slot in range(1, MAX_MESSAGE_LINKS + 1):
            link = self.links[slot - 1] if slot <= len(self.links) else None
            payload[f"link_{slot}_id"] = link.link_id if link else None
            payload[f"link_{slot}_category_id"] = link.category_id if link else None
        if updated_by is not None:
            payload["updated_by"] = str(updated_by)
        return payload


class KarkunJoinRequestForm(FormModel):
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    email: EmailStr
    phone_number: str = Field(..., min_length=1)
    user_type: KarkunUserType
    birth_year: str
    ehad_year: str
    zone_id: int = Field(..., ge=1)
    city: str = Field(..., min_length=1)
    country: str = Field(..., min_length=1)
    is_approved: bool = False

    @field_validator("phone_number")
    @classmethod
    def _eleven_digit_phone(cls, value: str) -> str:
        return check_phone(value)

    @field_validator("birth_year", "ehad_year", mode="before")
    @classmethod
    def _four_digit_year(cls, value: Any) -> str:
        text = str(value or "").strip()
        if not _YEAR_RE.fullmatch(text):
            raise ValueError("Enter a four digit year")
        return text

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump()
