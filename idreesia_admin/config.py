from typing import Any, List, Optional
import os

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_API_URL = "http://localhost:3000/api"
DEFAULT_PAGE_SIZE_OPTIONS = [5, 10, 25, 50, 100]


def _strip_wrapping_quotes(value: str) -> str:
    text = value.strip()
    if len(text) >= 2 and text[0] == text[-1] and text[0] in {'"', "'"}:
        return text[1:-1].strip()
    return text


def _parse_int_list(value: Any) -> List[int]:
    """Accept a list or a ``"5, 10; 25"`` / ``"[5, 10]"`` string, skipping junk."""
    if isinstance(value, str):
        value = value.strip().strip("[]").replace(";", ",").split(",")
    result: list[int] = []
    for item in value or ():
        text = _strip_wrapping_quotes(str(item))
        if text.isdigit():
            result.append(int(text))
    return result


def normalize_api_url(value: Optional[str]) -> str:
    """Strip the trailing slash and make sure the URL points at ``/api``."""
    text = _strip_wrapping_quotes(value or "") or DEFAULT_API_URL
    if "/api" not in text:
        return f"{text.rstrip('/')}/api"
    return text.rstrip("/")


class Settings(BaseSettings):
    api_url: Optional[str] = Field(default=None, validate_default=True)
    api_token: Optional[str] = Field(default=None, validate_default=True)
    request_timeout: float = 30.0
    search_debounce_seconds: float = 0.5
    default_page_size: int = 10
    # Keep Any here so env parser doesn't force JSON for list fields.
    page_size_options: Any = DEFAULT_PAGE_SIZE_OPTIONS
    default_language: str = "en"
    state_path: str = ".idreesia_admin_state.json"
    upload_path: str = "file-uploader/upload"
    log_level: str = "INFO"
    log_format: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"

    @field_validator("api_url", mode="before")
    @classmethod
    def _normalize_api_url(cls, v: Any) -> str:
        # Fallback to generic API_URL (without IDREESIA_ prefix).
        return normalize_api_url(v or os.getenv("API_URL"))

    @field_validator("api_token", mode="before")
    @classmethod
    def _fallback_api_token(cls, v: Any) -> Optional[str]:
        token = v or os.getenv("API_TOKEN")
        return _strip_wrapping_quotes(str(token)) if token else None

    @field_validator("page_size_options", mode="before")
    @classmethod
    def _split_page_sizes(cls, value: Any) -> List[int]:
        sizes = sorted({size for size in _parse_int_list(value) if size > 0})
        return sizes or list(DEFAULT_PAGE_SIZE_OPTIONS)

    @field_validator("default_language", mode="before")
    @classmethod
    def _normalize_default_language(cls, value: Any) -> str:
        if value is None:
            return "en"
        text = _strip_wrapping_quotes(str(value)).lower()
        return text or "en"

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: Any) -> str:
        return (str(value or "INFO")).strip().upper()

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="IDREESIA_",
        extra="ignore",
    )


settings = Settings()
