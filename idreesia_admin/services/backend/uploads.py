from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

import aiohttp

from ...config import settings
from .client import Transport

logger = logging.getLogger(__name__)

AUDIO_CONTENT_PREFIX = "audio/"


class UploadError(RuntimeError):
    """Raised when the upload endpoint does not report where the file lives."""


@dataclass(frozen=True, slots=True)
class UploadedFile:
    url: str
    filename: str


def _extract_url(payload: Any) -> Optional[str]:
    if not isinstance(payload, dict):
        return None
    for key in ("url", "filepath", "path"):
        value = payload.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    nested = payload.get("data")
    if isinstance(nested, dict):
        return _extract_url(nested)
    return None


class FileUploader:
    """Uploads media to the backend and returns the URL it is served from."""

    def __init__(self, transport: Transport, *, upload_path: Optional[str] = None) -> None:
        self._transport = transport
        self._upload_path = upload_path or settings.upload_path

    async def upload(
        self,
        *,
        filename: str,
        content: bytes,
        content_type: str,
        folder: Optional[str] = None,
    ) -> UploadedFile:
        if not content:
            raise UploadError(f"Refusing to upload empty file {filename!r}")
        form = aiohttp.FormData()
        form.add_field(
            "file",
            content,
            filename=filename,
            content_type=content_type or "application/octet-stream",
        )
        if folder:
            form.add_field("folder", folder)
        payload = await self._transport.request("POST", self._upload_path, data=form)
        url = _extract_url(payload)
        if not url:
            logger.warning("Upload of %s returned no URL: %r", filename, payload)
            raise UploadError(f"Upload of {filename!r} returned no file URL")
        stored_name = payload.get("filename") if isinstance(payload, dict) else None
        return UploadedFile(url=url, filename=str(stored_name or filename))

    async def upload_audio(self, *, filename: str, content: bytes, content_type: str) -> UploadedFile:
        if not (content_type or "").startswith(AUDIO_CONTENT_PREFIX):
            raise UploadError(f"{filename!r} is not an audio file ({content_type})")
        return await self.upload(filename=filename, content=content, content_type=content_type, folder="audio")
