from __future__ import annotations

import asyncio

import pytest

from idreesia_admin.infrastructure.cache.query_cache import LIST, QueryCache, Tag, make_key


class _Counter:
    def __init__(self, result: object = "rows") -> None:
        self.calls = 0
        self.result = result

    async def __call__(self) -> object:
        self.calls += 1
        await asyncio.sleep(0)
        return self.result


def _tags(_: object) -> list[Tag]:
    return [Tag("Zone", 1), Tag("Zone", LIST)]


def test_make_key_ignores_param_order() -> None:
    assert make_key("zones.list", {"page": 1, "size": 10}) == make_key("zones.list", {"size": 10, "page": 1})
    assert make_key("zones.list", {"page": 1}) != make_key("zones.list", {"page": 2})


def test_type_only_tag_matches_any_id() -> None:
    assert Tag("Zone").matches(Tag("Zone", 7))
    assert Tag("Zone", "7").matches(Tag("Zone", 7))
    assert not Tag("Zone", 7).matches(Tag("Zone", 8))
    assert not Tag("Zone").matches(Tag("Mehfil", 7))


@pytest.mark.asyncio
async def test_concurrent_queries_share_one_fetch() -> None:
    cache = QueryCache()
    fetch = _Counter()
    key = make_key("zones.list", {"page": 1})

    first, second = await asyncio.gather(cache.query(key, fetch, _tags), cache.query(key, fetch, _tags))

    assert first == second == "rows"
    assert fetch.calls == 1


@pytest.mark.asyncio
async def test_fresh_entry_is_served_from_cache_until_invalidated() -> None:
    cache = QueryCache()
    fetch = _Counter()
    key = make_key("zones.list", {"page": 1})

    await cache.query(key, fetch, _tags)
    await cache.query(key, fetch, _tags)
    assert fetch.calls == 1

    invalidated = await cache.invalidate([Tag("Zone", LIST)])
    assert invalidated == [key]
    assert cache.is_stale(key)

    await cache.query(key, fetch, _tags)
    assert fetch.calls == 2
    assert cache.entry(key).fulfilled_count == 2


@pytest.mark.asyncio
async def test_unrelated_tags_leave_entry_fresh() -> None:
    cache = QueryCache()
    fetch = _Counter()
    key = make_key("zones.list", {"page": 1})
    await cache.query(key, fetch, _tags)

    assert await cache.invalidate([Tag("Mehfil", LIST), Tag("Zone", 99)]) == []
    assert not cache.is_stale(key)


@pytest.mark.asyncio
async def test_subscribed_entries_refetch_on_invalidate() -> None:
    cache = QueryCache()
    fetch = _Counter()
    key = make_key("zones.detail", {"id": "1"})
    await cache.query(key, fetch, _tags)
    cache.subscribe(key)

    await cache.invalidate([Tag("Zone", 1)])

    assert fetch.calls == 2
    assert not cache.is_stale(key)


def test_subscribe_requires_known_query() -> None:
    with pytest.raises(KeyError):
        QueryCache().subscribe(make_key("missing"))


@pytest.mark.asyncio
async def test_failed_fetch_is_not_cached() -> None:
    cache = QueryCache()
    key = make_key("zones.list")
    attempts = 0

    async def flaky() -> str:
        nonlocal attempts
        attempts += 1
        if attempts == 1:
            raise RuntimeError("boom")
        return "ok"

    with pytest.raises(RuntimeError):
        await cache.query(key, flaky, _tags)
    assert cache.is_stale(key)

    assert await cache.query(key, flaky, _tags) == "ok"
    assert attempts == 2


@pytest.mark.asyncio
async def test_invalidation_during_fetch_keeps_entry_stale() -> None:
    cache = QueryCache()
    key = make_key("zones.list", {"page": 1})
    release = asyncio.Event()
    calls = 0

    async def slow() -> str:
        nonlocal calls
        calls += 1
        snapshot = f"rows-{calls}"
        if calls == 2:
            await release.wait()
        return snapshot

    await cache.query(key, slow, _tags)
    await cache.invalidate([Tag("Zone", LIST)])
    pending = asyncio.create_task(cache.query(key, slow, _tags))
    await asyncio.sleep(0)

    # A mutation lands while the refetch still holds its pre-mutation snapshot.
    await cache.invalidate([Tag("Zone", LIST)])
    release.set()

    assert await pending == "rows-2"
    assert cache.is_stale(key)
    assert await cache.query(key, slow, _tags) == "rows-3"
    assert calls == 3


@pytest.mark.asyncio
async def test_first_fetch_invalidated_mid_flight_is_stale() -> None:
    cache = QueryCache()
    key = make_key("zones.detail", {"id": "1"})
    release = asyncio.Event()

    async def slow() -> str:
        await release.wait()
        return "zone"

    pending = asyncio.create_task(cache.query(key, slow, _tags))
    await asyncio.sleep(0)
    await cache.invalidate([Tag("Zone", 1)])
    release.set()

    assert await pending == "zone"
    assert cache.is_stale(key)


@pytest.mark.asyncio
async def test_subscribed_refetch_waits_out_stale_fetch() -> None:
    cache = QueryCache()
    key = make_key("zones.list", {"page": 1})
    release = asyncio.Event()
    calls = 0

    async def slow() -> str:
        nonlocal calls
        calls += 1
        snapshot = f"rows-{calls}"
        if calls == 2:
            await release.wait()
        return snapshot

    await cache.query(key, slow, _tags)
    await cache.invalidate([Tag("Zone", LIST)])
    stale_fetch = asyncio.create_task(cache.query(key, slow, _tags))
    await asyncio.sleep(0)
    seen: list[object] = []
    cache.subscribe(key, seen.append)

    invalidation = asyncio.create_task(cache.invalidate([Tag("Zone", LIST)]))
    await asyncio.sleep(0)
    release.set()
    await invalidation

    assert await stale_fetch == "rows-2"
    assert seen == ["rows-3"]
    assert calls == 3
    assert not cache.is_stale(key)


@pytest.mark.asyncio
async def test_listeners_receive_refetched_data_until_unsubscribed() -> None:
    cache = QueryCache()
    fetch = _Counter("rows")
    key = make_key("zones.list", {"page": 1})
    await cache.query(key, fetch, _tags)
    seen: list[object] = []
    cache.subscribe(key, seen.append)

    fetch.result = "new rows"
    await cache.invalidate([Tag("Zone", LIST)])
    assert seen == ["new rows"]
    assert not cache.is_stale(key)

    cache.unsubscribe(key, seen.append)
    await cache.invalidate([Tag("Zone", LIST)])
    assert seen == ["new rows"]
    assert cache.is_stale(key)
    assert fetch.calls == 2
