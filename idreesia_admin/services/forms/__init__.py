"""Validated form models and their wire payloads."""

from .schemas import (
    MEHFIL_TIMES,
    MEHFIL_TYPES,
    KarkunJoinRequestForm,
    MehfilForm,
    MessageForm,
    NaatShareefForm,
    ZoneForm,
    validation_messages,
)
from .tarteeb import PRAYERS, TarteebDraft, TarteebRequestForm

__all__ = [
    "MEHFIL_TIMES",
    "MEHFIL_TYPES",
    "KarkunJoinRequestForm",
    "MehfilForm",
    "MessageForm",
    "NaatShareefForm",
    "ZoneForm",
    "validation_messages",
    "PRAYERS",
    "TarteebDraft",
    "TarteebRequestForm",
]
