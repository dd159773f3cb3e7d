from __future__ import annotations

import aiohttp
import pytest

from conftest import FakeTransport
from idreesia_admin.config import settings
from idreesia_admin.services.backend.uploads import FileUploader, UploadError


@pytest.mark.asyncio
async def test_upload_posts_multipart_and_returns_url(transport: FakeTransport) -> None:
    transport.on("POST", "file-uploader/upload", {"data": {"url": "https://cdn.example.com/audio/naat.mp3"}})
    uploader = FileUploader(transport)

    uploaded = await uploader.upload_audio(filename="naat.mp3", content=b"ID3", content_type="audio/mpeg")

    assert uploaded.url == "https://cdn.example.com/audio/naat.mp3"
    assert uploaded.filename == "naat.mp3"
    assert isinstance(transport.last("POST", "file-uploader/upload")["data"], aiohttp.FormData)


@pytest.mark.asyncio
async def test_upload_without_url_fails(transport: FakeTransport) -> None:
    transport.on("POST", "media/upload", {"success": True})
    uploader = FileUploader(transport, upload_path="media/upload")

    with pytest.raises(UploadError):
        await uploader.upload(filename="a.pdf", content=b"%PDF", content_type="application/pdf")


@pytest.mark.asyncio
async def test_upload_rejects_empty_and_non_audio(transport: FakeTransport) -> None:
    uploader = FileUploader(transport)
    with pytest.raises(UploadError):
        await uploader.upload(filename="a.mp3", content=b"", content_type="audio/mpeg")
    with pytest.raises(UploadError):
        await uploader.upload_audio(filename="a.png", content=b"x", content_type="image/png")
    assert transport.calls == []


@pytest.mark.asyncio
async def test_default_upload_path_comes_from_settings(
    transport: FakeTransport, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(settings, "upload_path", "media/v2/upload")
    transport.on("POST", "media/v2/upload", {"url": "https://cdn.example.com/a.pdf"})

    uploaded = await FileUploader(transport).upload(filename="a.pdf", content=b"%PDF", content_type="application/pdf")

    assert uploaded.url == "https://cdn.example.com/a.pdf"
    assert transport.count("POST", "file-uploader/upload") == 0
