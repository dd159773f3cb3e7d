from __future__ import annotations

from typing import Any, Mapping, Optional

import pytest

Route = Any


class FakeTransport:
    """Records requests and answers from a ``(method, path) -> response`` table.

    A response may be a value, an exception instance to raise, or a callable
    taking the recorded call and returning either of those.
    """

    def __init__(self, routes: Optional[dict[tuple[str, str], Route]] = None) -> None:
        self.routes: dict[tuple[str, str], Route] = dict(routes or {})
        self.calls: list[dict[str, Any]] = []

    def on(self, method: str, path: str, response: Route) -> None:
        self.routes[(method, path)] = response

    def count(self, method: str, path: str) -> int:
        return sum(1 for call in self.calls if call["method"] == method and call["path"] == path)

    def last(self, method: str, path: str) -> dict[str, Any]:
        matching = [call for call in self.calls if call["method"] == method and call["path"] == path]
        assert matching, f"no {method} {path} request was made"
        return matching[-1]

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        json: Any = None,
        data: Any = None,
    ) -> Any:
        call = {"method": method, "path": path, "params": dict(params or {}), "json": json, "data": data}
        self.calls.append(call)
        response = self.routes.get((method, path))
        if callable(response):
            response = response(call)
            if hasattr(response, "__await__"):
                response = await response
        if isinstance(response, BaseException):
            raise response
        return response


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


def zone_row(zone_id: int, title: str = "Lahore Zone") -> dict[str, Any]:
    return {
        "id": zone_id,
        "title_en": title,
        "title_ur": "لاہور زون",
        "country_en": "Pakistan",
        "country_ur": "پاکستان",
        "city_en": "Lahore",
        "city_ur": "لاہور",
        "co": "Ahmed",
        "primary_phone_number": "03001234567",
        "created_at": "2024-05-01T10:00:00Z",
    }
