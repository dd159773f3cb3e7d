from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Literal, Mapping, Optional

from pydantic import EmailStr, Field, field_validator, model_validator

from .schemas import FormModel, check_phone

logger = logging.getLogger(__name__)

PRAYERS = ("Fajr", "Zuhr", "Asr", "Maghrib", "Isha")

Prayer = Literal["Fajr", "Zuhr", "Asr", "Maghrib", "Isha"]
Gender = Literal["male", "female"]
MaritalStatus = Literal["single", "married", "divorced", "widowed"]

WAZAIF_COUNTERS = (
    "kalimah_quantity",
    "allah_quantity",
    "laa_ilaaha_illallah_quantity",
    "sallallahu_alayhi_wasallam_quantity",
    "astagfirullah_quantity",
    "ayat_ul_kursi_quantity",
    "dua_e_talluq_quantity",
    "subhanallah_quantity",
    "dua_e_waswasey_quantity",
)


class TarteebRequestForm(FormModel):
    zone_id: int = Field(..., ge=1)
    mehfil_directory_id: int = Field(..., ge=1)
    email: EmailStr
    phone_number: str = Field(..., min_length=1)
    full_name: str = Field(..., min_length=1)
    father_name: str = Field(..., min_length=1)
    age: int = Field(..., ge=1, le=120)
    gender: Gender = "male"
    city: str = Field(..., min_length=1)
    country: str = Field(..., min_length=1)
    introducer_name: str = ""
    ehad_duration: str = Field(..., min_length=1)
    source_of_income: str = ""
    education: str = ""
    marital_status: MaritalStatus = "single"

    consistent_in_wazaif: bool = False
    consistent_in_prayers: bool = False
    missed_prayers: list[Prayer] = Field(default_factory=list)
    makes_up_missed_prayers: bool = False
    nawafil: int = Field(0, ge=0)
    can_read_quran: bool = False
    consistent_in_ishraq: bool = False
    consistent_in_tahajjud: bool = False
    amount_of_durood: int = Field(0, ge=0)
    listens_taleem_daily: bool = False
    last_wazaif_tarteeb: str = ""
    multan_visit_frequency: str = ""
    mehfil_attendance_frequency: str = ""
    household_members_in_ehad: int = Field(0, ge=0)
    reads_current_wazaif_with_ease: bool = False
    able_to_read_additional_wazaif: bool = False
    wazaif_consistency_duration: str = ""
    does_dum_taweez: bool = False

    kalimah_quantity: int = Field(0, ge=0)
    allah_quantity: int = Field(0, ge=0)
    laa_ilaaha_illallah_quantity: int = Field(0, ge=0)
    sallallahu_alayhi_wasallam_quantity: int = Field(0, ge=0)
    astagfirullah_quantity: int = Field(0, ge=0)
    ayat_ul_kursi_quantity: int = Field(0, ge=0)
    dua_e_talluq_quantity: int = Field(0, ge=0)
    subhanallah_quantity: int = Field(0, ge=0)
    dua_e_waswasey_quantity: int = Field(0, ge=0)

    other_wazaif: str = ""
    wazaif_not_reading: str = ""
    additional_wazaif_reading: str = ""
    issues_facing: str = ""

    @field_validator("phone_number")
    @classmethod
    def _eleven_digit_phone(cls, value: str) -> str:
        return check_phone(value)

    @field_validator(
        "nawafil",
        "amount_of_durood",
        "household_members_in_ehad",
        *WAZAIF_COUNTERS,
        mode="before",
    )
    @classmethod
    def _blank_counter_is_zero(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return 0
        return value

    @model_validator(mode="after")
    def _drop_missed_prayers_when_consistent(self) -> "TarteebRequestForm":
        if self.consistent_in_prayers and self.missed_prayers:
            self.missed_prayers = []
        else:
            # Keep selection order stable and unique.
            self.missed_prayers = [prayer for prayer in PRAYERS if prayer in self.missed_prayers]
        return self

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


@dataclass
class TarteebDraft:
    """Mutable state behind the new/edit tarteeb request screens.

    The missed-prayers collector is only visible while the applicant is not
    consistent in prayers. Becoming consistent clears the selection and
    switching back starts from an empty selection.
    """

    values: dict[str, Any] = field(default_factory=dict)
    consistent_in_prayers: bool = False
    missed_prayers: list[str] = field(default_factory=list)

    @classmethod
    def blank(cls, *, zone_id: Optional[int] = None, mehfil_directory_id: Optional[int] = None) -> "TarteebDraft":
        values: dict[str, Any] = {"gender": "male", "marital_status": "single"}
        for counter in (*WAZAIF_COUNTERS, "nawafil", "amount_of_durood", "household_members_in_ehad"):
            values[counter] = 0
        if zone_id:
            values["zone_id"] = zone_id
        if mehfil_directory_id:
            values["mehfil_directory_id"] = mehfil_directory_id
        return cls(values=values)

    @classmethod
    def from_existing(cls, data: Mapping[str, Any]) -> "TarteebDraft":
        values = {key: value for key, value in data.items() if key not in {"id", "missed_prayers"}}
        consistent = bool(values.pop("consistent_in_prayers", False))
        draft = cls(values=values, consistent_in_prayers=consistent)
        if not consistent:
            for prayer in data.get("missed_prayers") or []:
                draft.toggle_missed_prayer(str(prayer), True)
        return draft

    @property
    def collector_visible(self) -> bool:
        return not self.consistent_in_prayers

    def set_value(self, name: str, value: Any) -> None:
        if name == "consistent_in_prayers":
            self.set_consistent_in_prayers(bool(value))
        elif name == "missed_prayers":
            raise ValueError("Use toggle_missed_prayer to change missed prayers")
        else:
            self.values[name] = value

    def set_consistent_in_prayers(self, consistent: bool) -> None:
        self.consistent_in_prayers = consistent
        if consistent:
            self.missed_prayers.clear()

    def toggle_missed_prayer(self, prayer: str, checked: bool) -> bool:
        """Add or remove ``prayer``; returns whether the selection changed."""
        if prayer not in PRAYERS:
            raise ValueError(f"Unknown prayer: {prayer!r}")
        if not self.collector_visible:
            logger.debug("Ignoring missed prayer %s while consistent in prayers", prayer)
            return False
        if checked and prayer not in self.missed_prayers:
            self.missed_prayers.append(prayer)
            return True
        if not checked and prayer in self.missed_prayers:
            self.missed_prayers.remove(prayer)
            return True
        return False

    def to_form(self) -> TarteebRequestForm:
        return TarteebRequestForm.model_validate(
            {
                **self.values,
                "consistent_in_prayers": self.consistent_in_prayers,
                "missed_prayers": [] if self.consistent_in_prayers else list(self.missed_prayers),
            }
        )
