from __future__ import annotations

from typing import Dict, Optional

DEFAULT_LANGUAGE = "en"


# Unknown keys fall back to English, then to the key itself.
TEXTS_EN: Dict[str, str] = {
    "toast.created": "{item} created successfully.",
    "toast.updated": "{item} updated successfully.",
    "toast.deleted": "{item} deleted successfully.",
    "toast.approved": "{item} approved successfully.",
    "toast.unapproved": "{item} approval revoked.",
    "toast.status": "{item} marked as {status}.",
    "error.load": "Failed to load {items}. Please try again.",
    "error.save": "Operation failed. Please try again.",
    "error.delete": "Failed to delete {item}. Please try again.",
    "error.permission.view": "You don't have permission to view {items}.",
    "error.permission.create": "You don't have permission to create {items}.",
    "error.permission.edit": "You don't have permission to edit {items}.",
    "error.permission.delete": "You don't have permission to delete {items}.",
    "error.validation": "Please fix the highlighted fields.",
    "confirm.delete": 'Are you sure you want to delete "{name}"? This action cannot be undone.',
    "pagination.summary": "Showing {start} to {end} of {total} results",
    "sort.within_page": "Sorted by {field} ({direction}) within this page",
    "duplicate.suffix": "(Copy)",
    # Resource labels
    "resource.zones": "Zone",
    "resource.zones.plural": "zones",
    "resource.mehfils": "Mehfil",
    "resource.mehfils.plural": "mehfils",
    "resource.naat_shareefs": "Naat Shareef",
    "resource.naat_shareefs.plural": "naat shareefs",
    "resource.messages": "Message",
    "resource.messages.plural": "messages",
    "resource.karkun_join_requests": "Join request",
    "resource.karkun_join_requests.plural": "join requests",
    "resource.tarteeb_requests": "Tarteeb request",
    "resource.tarteeb_requests.plural": "tarteeb requests",
    "resource.khatoot": "Khat",
    "resource.khatoot.plural": "khatoot",
    "resource.feedback": "Feedback",
    "resource.feedback.plural": "feedback",
    "resource.mehfil_directory": "Mehfil directory entry",
    "resource.mehfil_directory.plural": "mehfil directory",
    "resource.karkunan": "Karkun",
    "resource.karkunan.plural": "karkunan",
    "resource.message_schedules": "Message schedule",
    "resource.message_schedules.plural": "message schedules",
    "resource.taleemat": "Taleem",
    "resource.taleemat.plural": "taleemat",
}

TEXTS_UR: Dict[str, str] = {
    "toast.created": "{item} کامیابی سے بن گیا۔",
    "toast.updated": "{item} کامیابی سے اپ ڈیٹ ہو گیا۔",
    "toast.deleted": "{item} کامیابی سے حذف ہو گیا۔",
    "toast.approved": "{item} منظور ہو گیا۔",
    "error.load": "{items} لوڈ نہیں ہو سکے۔ دوبارہ کوشش کریں۔",
    "error.save": "کارروائی ناکام ہو گئی۔ دوبارہ کوشش کریں۔",
    "error.delete": "{item} حذف نہیں ہو سکا۔ دوبارہ کوشش کریں۔",
    "error.validation": "براہ کرم نشان زدہ خانے درست کریں۔",
    "pagination.summary": "{total} میں سے {start} تا {end}",
    "resource.zones": "زون",
    "resource.mehfils": "محفل",
    "resource.naat_shareefs": "نعت شریف",
    "resource.messages": "پیغام",
    "resource.karkunan": "کارکن",
}

TEXTS: Dict[str, Dict[str, str]] = {
    "en": TEXTS_EN,
    "ur": TEXTS_UR,
}


def resolve_language(*codes: Optional[str]) -> str:
    """Return the first supported language among ``codes``."""
    for code in codes:
        if code and code.lower() in TEXTS:
            return code.lower()
    return DEFAULT_LANGUAGE


def get_text(key: str, lang_code: str, **kwargs) -> str:
    table = TEXTS.get((lang_code or DEFAULT_LANGUAGE).lower(), {})
    text = table.get(key) or TEXTS[DEFAULT_LANGUAGE].get(key) or key
    try:
        return text.format(**kwargs) if kwargs else text
    except (KeyError, IndexError, ValueError):
        return text


def resource_label(resource: str, lang_code: str, *, plural: bool = False) -> str:
    key = f"resource.{resource}.plural" if plural else f"resource.{resource}"
    text = get_text(key, lang_code)
    if text == key:
        return resource.replace("_", " ")
    return text
