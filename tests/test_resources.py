from __future__ import annotations

import asyncio

import pytest

from conftest import FakeTransport, zone_row
from idreesia_admin.services.backend.client import BackendRequestError
from idreesia_admin.services.backend.entities import KarkunJoinRequest, Zone
from idreesia_admin.services.backend.resources import ResourceRegistry
from idreesia_admin.services.forms.schemas import ZoneForm


def _zone_list(total: int = 1) -> dict:
    return {"data": [zone_row(1)], "meta": {"total": total, "current_page": 1, "per_page": 10, "last_page": 1}}


@pytest.mark.asyncio
async def test_list_parses_entities_and_caches(transport: FakeTransport) -> None:
    transport.on("GET", "zone", _zone_list())
    registry = ResourceRegistry(transport)

    page = await registry.zones.list(1, 10, "  ")
    again = await registry.zones.list(1, 10)

    assert isinstance(page.data[0], Zone)
    assert page.data[0].ceo == "Ahmed"
    assert again is page
    assert transport.count("GET", "zone") == 1
    assert transport.last("GET", "zone")["params"] == {"page": 1, "size": 10}


@pytest.mark.asyncio
async def test_create_invalidates_list_and_next_list_refetches(transport: FakeTransport) -> None:
    transport.on("GET", "zone", _zone_list())
    transport.on("POST", "zone/add", {"data": zone_row(2, "Karachi Zone")})
    registry = ResourceRegistry(transport)
    await registry.zones.list()

    form = ZoneForm(
        title_en="Lahore Zone",
        title_ur="لاہور زون",
        country_en="Pakistan",
        country_ur="پاکستان",
        city_en="Lahore",
        city_ur="لاہور",
        primary_phone_number="03001234567",
    )
    created = await registry.zones.create(form.to_payload())
    assert registry.cache.is_stale(registry.zones.list_key())
    await registry.zones.list()

    body = transport.last("POST", "zone/add")["json"]
    assert body["titleEn"] == "Lahore Zone"
    assert body["primaryPhoneNumber"] == "03001234567"
    assert "co" in body
    assert created.title_en == "Karachi Zone"
    assert transport.count("GET", "zone") == 2


@pytest.mark.asyncio
async def test_update_and_delete_invalidate(transport: FakeTransport) -> None:
    transport.on("GET", "zone", _zone_list())
    transport.on("GET", "zone/1", {"data": zone_row(1)})
    transport.on("PUT", "zone/update/1", {"data": zone_row(1, "Renamed")})
    transport.on("DELETE", "zone/1", {"success": True})
    registry = ResourceRegistry(transport)
    await registry.zones.list()
    await registry.zones.get(1)

    updated = await registry.zones.update(1, {"id": 1, "titleEn": "Renamed"})
    assert updated.title_en == "Renamed"
    assert transport.last("PUT", "zone/update/1")["json"] == {"titleEn": "Renamed"}
    assert registry.cache.is_stale(registry.zones.detail_key(1))
    assert registry.cache.is_stale(registry.zones.list_key())

    await registry.zones.list()
    assert await registry.zones.delete(1) is True
    assert registry.cache.is_stale(registry.zones.list_key())


@pytest.mark.asyncio
async def test_delete_invalidates_cached_detail(transport: FakeTransport) -> None:
    transport.on("GET", "zone/1", {"data": zone_row(1)})
    transport.on("DELETE", "zone/1", {"success": True})
    registry = ResourceRegistry(transport)
    await registry.zones.get(1)

    assert await registry.zones.delete(1) is True
    assert registry.cache.is_stale(registry.zones.detail_key(1))

    transport.on("GET", "zone/1", {"data": None})
    assert await registry.zones.get(1) is None
    assert transport.count("GET", "zone/1") == 2


@pytest.mark.asyncio
async def test_list_fetched_before_create_is_refetched(transport: FakeTransport) -> None:
    rows = [zone_row(1)]
    release = asyncio.Event()

    async def slow_list(call: dict) -> dict:
        snapshot = {"data": list(rows), "meta": {"total": len(rows)}}
        if transport.count("GET", "zone") == 2:
            await release.wait()
        return snapshot

    def create(call: dict) -> dict:
        rows.append(zone_row(2, "Karachi Zone"))
        return {"data": rows[-1]}

    transport.on("GET", "zone", slow_list)
    transport.on("POST", "zone/add", create)
    registry = ResourceRegistry(transport)
    await registry.zones.list()
    await registry.cache.invalidate([registry.zones.list_tag])

    pending = asyncio.create_task(registry.zones.list())
    await asyncio.sleep(0)
    await registry.zones.create({"title_en": "Karachi Zone"})
    release.set()

    assert [zone.id for zone in (await pending).data] == [1]
    page = await registry.zones.list()
    assert [zone.id for zone in page.data] == [1, 2]
    assert transport.count("GET", "zone") == 3


@pytest.mark.asyncio
async def test_failed_mutation_keeps_cache_fresh(transport: FakeTransport) -> None:
    transport.on("GET", "zone", _zone_list())
    transport.on("DELETE", "zone/1", BackendRequestError(500, "boom", '{"message": "In use"}'))
    registry = ResourceRegistry(transport)
    await registry.zones.list()

    with pytest.raises(BackendRequestError) as excinfo:
        await registry.zones.delete(1)

    assert excinfo.value.data == {"message": "In use"}
    assert not registry.cache.is_stale(registry.zones.list_key())


@pytest.mark.asyncio
async def test_delete_reports_backend_failure_flag(transport: FakeTransport) -> None:
    transport.on("DELETE", "messages-data/4", {"success": False})
    registry = ResourceRegistry(transport)
    assert await registry.messages.delete(4) is False


@pytest.mark.asyncio
async def test_filters_fall_back_to_allowed_values(transport: FakeTransport) -> None:
    transport.on("GET", "karkun-join-requests", [])
    transport.on("GET", "messages-data", {"data": []})
    registry = ResourceRegistry(transport)

    await registry.karkun_join_requests.list(user_type="guest")
    await registry.messages.list(category="3")

    assert transport.last("GET", "karkun-join-requests")["params"] == {
        "page": 1,
        "size": 10,
        "search": "",
        "user_type": "all",
    }
    assert transport.last("GET", "messages-data")["params"]["category"] == "3"


def test_wazaif_uses_limit_and_list_params_validate() -> None:
    registry = ResourceRegistry(FakeTransport())
    assert registry.wazaif.list_params(2, 25) == {"page": 2, "limit": 25}
    with pytest.raises(ValueError):
        registry.zones.list_params(0, 10)
    with pytest.raises(ValueError):
        registry.zones.list_params(1, 0)


@pytest.mark.asyncio
async def test_parhaiyan_detail_scans_large_page(transport: FakeTransport) -> None:
    transport.on("GET", "parhaiyan", {"data": [{"id": 1, "title": "A"}, {"id": 2, "title": "B"}]})
    registry = ResourceRegistry(transport)

    item = await registry.parhaiyan.get("2")

    assert item == {"id": 2, "title": "B"}
    assert transport.last("GET", "parhaiyan")["params"] == {"page": 1, "size": 1000}


@pytest.mark.asyncio
async def test_bare_detail_envelope(transport: FakeTransport) -> None:
    row = {"id": 5, "first_name": "Ali", "last_name": "Raza", "email": "ali@example.com", "is_approved": 0}
    transport.on("GET", "karkun-join-requests/5", row)
    transport.on("PUT", "karkun-join-requests/update/5", {**row, "is_approved": 1})
    registry = ResourceRegistry(transport)

    item = await registry.karkun_join_requests.get(5)
    approved = await registry.karkun_join_requests.approve(5)

    assert isinstance(item, KarkunJoinRequest)
    assert approved.is_approved is True
    assert transport.last("PUT", "karkun-join-requests/update/5")["json"] == {"is_approved": True}


@pytest.mark.asyncio
async def test_malformed_list_items_are_skipped(transport: FakeTransport) -> None:
    transport.on("GET", "zone", {"data": [zone_row(1), {"title_en": "no id"}, "junk"], "meta": {"total": 3}})
    registry = ResourceRegistry(transport)

    page = await registry.zones.list()

    assert [zone.id for zone in page.data] == [1]
    assert page.meta.total == 3


@pytest.mark.asyncio
async def test_status_updates_validate_and_patch(transport: FakeTransport) -> None:
    transport.on("PATCH", "tarteeb-requests/3/status", {"data": {"id": 3, "full_name": "Bilal", "status": "approved"}})
    registry = ResourceRegistry(transport)

    with pytest.raises(ValueError):
        await registry.tarteeb_requests.update_status(3, "archived")
    saved = await registry.tarteeb_requests.update_status(3, "approved")

    assert saved.status == "approved"
    assert transport.last("PATCH", "tarteeb-requests/3/status")["json"] == {"status": "approved"}


@pytest.mark.asyncio
async def test_khat_questions(transport: FakeTransport) -> None:
    transport.on("GET", "khat/9/questions", {"data": [{"id": 1, "question": "Q?", "answer": "A"}]})
    transport.on("POST", "khat/9/questions", {"data": {"id": 2, "question": "Next?"}})
    registry = ResourceRegistry(transport)

    questions = await registry.khatoot.list_questions(9)
    added = await registry.khatoot.add_question(9, "  Next?  ")
    await registry.khatoot.list_questions(9)

    assert questions[0].is_answered
    assert added.question == "Next?"
    assert transport.last("POST", "khat/9/questions")["json"] == {"question": "Next?"}
    assert transport.count("GET", "khat/9/questions") == 2
    with pytest.raises(ValueError):
        await registry.khatoot.add_question(9, " ")


def test_registry_lookup() -> None:
    registry = ResourceRegistry(FakeTransport())
    assert registry.get("naat-shareefs") is registry.naat_shareefs
    assert "feedback" in registry.names()
    assert registry.get("mehfil-directory") is registry.mehfil_directory
    assert {"karkunan", "message_schedules", "taleemat"} <= set(registry.names())
    with pytest.raises(KeyError):
        registry.get("users")


@pytest.mark.asyncio
async def test_directory_karkunan_schedules_and_taleemat_endpoints(transport: FakeTransport) -> None:
    transport.on("GET", "mehfil-directory", {"data": [{"id": 5, "mehfil_number": "12"}], "meta": {"total": 1}})
    transport.on("POST", "message-schedules", {"data": {"id": 3, "message_id": 8}})
    transport.on("PUT", "karkun/update/2", {"data": {"id": 2, "name": "Ali"}})
    transport.on("GET", "taleemat-data", {"data": [], "meta": {"total": 0}})
    registry = ResourceRegistry(transport)

    page = await registry.mehfil_directory.list(1, 8, zoneId=4)
    assert page.data == [{"id": 5, "mehfil_number": "12"}]
    assert transport.last("GET", "mehfil-directory")["params"] == {"page": 1, "size": 8, "zoneId": 4}

    schedule = await registry.message_schedules.create({"message_id": 8, "repeat": "daily"})
    assert schedule == {"id": 3, "message_id": 8}
    assert transport.count("POST", "message-schedules/add") == 0

    assert await registry.karkunan.update(2, {"id": 2, "name": "Ali"}) == {"id": 2, "name": "Ali"}
    assert transport.last("PUT", "karkun/update/2")["json"] == {"name": "Ali"}

    await registry.taleemat.list()
    assert transport.last("GET", "taleemat-data")["params"] == {
        "page": 1,
        "size": 10,
        "search": "",
        "category": "all",
    }
