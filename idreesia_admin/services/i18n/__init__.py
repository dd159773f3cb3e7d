from .localization import get_text, resolve_language, resource_label

__all__ = ["get_text", "resolve_language", "resource_label"]
