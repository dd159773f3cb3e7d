from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Hashable, Iterable, Mapping, Optional

logger = logging.getLogger(__name__)

LIST = "LIST"

Fetcher = Callable[[], Awaitable[Any]]
TagsFor = Callable[[Any], Iterable["Tag"]]
Listener = Callable[[Any], None]
QueryKey = tuple[str, tuple[tuple[str, Hashable], ...]]


@dataclass(frozen=True, slots=True)
class Tag:
    type: str
    id: Optional[Hashable] = None

    def matches(self, provided: "Tag") -> bool:
        """A type-only tag matches every tag of that type."""
        if self.type != provided.type:
            return False
        if self.id is None:
            return True
        return str(self.id) == str(provided.id)


def make_key(endpoint: str, params: Optional[Mapping[str, Any]] = None) -> QueryKey:
    items = tuple(sorted((str(k), _freeze(v)) for k, v in (params or {}).items()))
    return endpoint, items


def _freeze(value: Any) -> Hashable:
    if isinstance(value, (list, tuple, set, frozenset)):
        return tuple(_freeze(item) for item in value)
    if isinstance(value, dict):
        return tuple(sorted((str(k), _freeze(v)) for k, v in value.items()))
    return value


@dataclass(slots=True)
class CacheEntry:
    fetch: Fetcher
    tags_for: TagsFor
    data: Any = None
    tags: frozenset[Tag] = frozenset()
    has_data: bool = False
    stale: bool = False
    subscribers: int = 0
    listeners: Optional[list[Listener]] = None
    in_flight: Optional[asyncio.Future] = None
    fulfilled_count: int = 0
    # Bumped by every matching invalidation; a fetch that started before
    # the bump must not clear ``stale``.
    invalidations: int = 0
    fetch_epoch: int = 0
    # Tags invalidated while a fetch was in flight, checked against the
    # tags the fetch ends up providing.
    pending: Optional[list[tuple[Tag, ...]]] = None

    def provides_any(self, tags: Iterable[Tag]) -> bool:
        return any(wanted.matches(provided) for wanted in tags for provided in self.tags)


class QueryCache:
    """In-memory query results keyed by endpoint + params, invalidated by tags.

    Subscribed entries are refetched as soon as one of their tags is
    invalidated, and their listeners receive the fresh data.
    """

    def __init__(self) -> None:
        self._entries: dict[QueryKey, CacheEntry] = {}

    def __contains__(self, key: QueryKey) -> bool:
        return key in self._entries

    def entry(self, key: QueryKey) -> Optional[CacheEntry]:
        return self._entries.get(key)

    def is_stale(self, key: QueryKey) -> bool:
        entry = self._entries.get(key)
        return entry is None or entry.stale or not entry.has_data

    async def query(self, key: QueryKey, fetch: Fetcher, tags_for: TagsFor) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            entry = CacheEntry(fetch=fetch, tags_for=tags_for)
            self._entries[key] = entry
        else:
            entry.fetch = fetch
            entry.tags_for = tags_for
        if entry.has_data and not entry.stale:
            return entry.data
        return await self._run(key, entry)

    async def _run(self, key: QueryKey, entry: CacheEntry) -> Any:
        while entry.in_flight is not None:
            if entry.invalidations == entry.fetch_epoch:
                return await asyncio.shield(entry.in_flight)
            # The running fetch predates an invalidation; its outcome
            # belongs to whoever started it.
            with contextlib.suppress(Exception):
                await asyncio.shield(entry.in_flight)

        loop = asyncio.get_running_loop()
        future: asyncio.Future = loop.create_future()
        entry.in_flight = future
        entry.pending = []
        entry.fetch_epoch = started = entry.invalidations
        try:
            data = await entry.fetch()
        except asyncio.CancelledError:
            entry.in_flight = None
            future.cancel()
            raise
        except Exception as exc:
            entry.in_flight = None
            future.set_exception(exc)
            # Mark retrieved so a failure nobody else awaited is not reported twice.
            future.exception()
            raise
        entry.in_flight = None
        entry.data = data
        entry.tags = frozenset(entry.tags_for(data))
        entry.has_data = True
        missed = entry.pending or []
        entry.pending = None
        entry.stale = entry.invalidations != started or any(entry.provides_any(tags) for tags in missed)
        entry.fulfilled_count += 1
        future.set_result(data)
        if entry.stale:
            logger.debug("Cached %s but it was invalidated mid-flight", key[0])
        else:
            logger.debug("Cached %s with %d tags", key[0], len(entry.tags))
        return data

    async def _refresh(self, key: QueryKey, entry: CacheEntry) -> Any:
        data = await self._run(key, entry)
        for listener in list(entry.listeners or ()):
            listener(data)
        return data

    def subscribe(self, key: QueryKey, listener: Optional[Listener] = None) -> None:
        entry = self._entries.get(key)
        if entry is None:
            raise KeyError(f"Cannot subscribe to unknown query {key!r}")
        entry.subscribers += 1
        if listener is not None:
            entry.listeners = [*(entry.listeners or ()), listener]

    def unsubscribe(self, key: QueryKey, listener: Optional[Listener] = None) -> None:
        entry = self._entries.get(key)
        if entry is None:
            return
        if entry.subscribers > 0:
            entry.subscribers -= 1
        if listener is not None and entry.listeners:
            entry.listeners = [item for item in entry.listeners if item != listener]

    async def invalidate(self, tags: Iterable[Tag]) -> list[QueryKey]:
        """Mark every entry providing one of ``tags`` stale and refetch active ones.

        An entry whose fetch is in flight keeps the invalidation and is
        refetched again once that fetch settles.

        Returns the keys that were invalidated.
        """
        wanted = tuple(tags)
        if not wanted:
            return []
        invalidated: list[QueryKey] = []
        refetches: list[Awaitable[Any]] = []
        for key, entry in list(self._entries.items()):
            if entry.in_flight is not None and entry.pending is not None:
                entry.pending.append(wanted)
            if not entry.provides_any(wanted):
                continue
            entry.stale = True
            entry.invalidations += 1
            invalidated.append(key)
            if entry.subscribers > 0:
                refetches.append(self._refresh(key, entry))
        logger.debug(
            "Invalidated %d queries for tags %s (%d active)",
            len(invalidated),
            ", ".join(f"{tag.type}:{tag.id}" for tag in wanted),
            len(refetches),
        )
        if refetches:
            results = await asyncio.gather(*refetches, return_exceptions=True)
            for result in results:
                if isinstance(result, BaseException):
                    logger.warning("Refetch after invalidation failed: %s", result)
        return invalidated

    def clear(self) -> None:
        self._entries.clear()
