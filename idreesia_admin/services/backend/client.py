from __future__ import annotations

import json
import logging
from typing import Any, Callable, Mapping, Optional, Protocol

import aiohttp

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], Optional[str]]


class BackendRequestError(RuntimeError):
    """Raised when the backend returns an error status."""

    def __init__(self, status: int, message: str, body: Optional[str] = None) -> None:
        super().__init__(message)
        self.status = status
        self.body = body or message
        self.data = _decode_json(body)


class Transport(Protocol):
    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        json: Any = None,
        data: Any = None,
    ) -> Any: ...


def _decode_json(text: Optional[str]) -> Any:
    if not text:
        return None
    try:
        return json.loads(text)
    except ValueError:
        return None


def encode_params(params: Optional[Mapping[str, Any]]) -> dict[str, str]:
    encoded: dict[str, str] = {}
    for key, value in (params or {}).items():
        if value is None:
            continue
        if isinstance(value, bool):
            encoded[key] = "true" if value else "false"
        else:
            encoded[key] = str(value)
    return encoded


class BackendClient:
    """Thin JSON transport for the admin REST API."""

    def __init__(
        self,
        *,
        base_url: str,
        token_provider: Optional[TokenProvider] = None,
        request_timeout: float = 30.0,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        if not base_url:
            raise ValueError("Backend base URL is required")
        self._base_url = base_url.rstrip("/")
        self._token_provider = token_provider
        self._request_timeout = request_timeout
        self._session = session
        self._owns_session = session is None

    @property
    def base_url(self) -> str:
        return self._base_url

    async def __aenter__(self) -> "BackendClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def close(self) -> None:
        if self._session is not None and self._owns_session:
            await self._session.close()
        self._session = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._request_timeout)
            )
            self._owns_session = True
        return self._session

    def prepare_headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
        token = self._token_provider() if self._token_provider else None
        if token:
            headers["Authorization"] = f"Bearer {token}"
        else:
            logger.debug("No auth token available, sending request without Authorization")
        return headers

    def build_url(self, path: str) -> str:
        return f"{self._base_url}/{path.lstrip('/')}"

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        json: Any = None,
        data: Any = None,
    ) -> Any:
        url = self.build_url(path)
        headers = self.prepare_headers()
        if data is not None:
            # Multipart bodies set their own boundary header.
            headers.pop("Content-Type", None)
        session = self._get_session()
        logger.debug("%s %s params=%s", method, url, params)
        async with session.request(
            method,
            url,
            params=encode_params(params) or None,
            headers=headers,
            json=json,
            data=data,
        ) as response:
            text = await response.text()
            if response.status >= 400:
                raise BackendRequestError(
                    response.status,
                    f"Backend request {method} {url} failed with {response.status}: {text}",
                    text,
                )
        if response.status == 204 or not text:
            return None
        payload = _decode_json(text)
        if payload is None:
            logger.warning("Non-JSON response from %s %s", method, url)
            return text
        return payload
