from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence

from idreesia_admin.infrastructure.cache.query_cache import (
    LIST,
    QueryCache,
    QueryKey,
    Tag,
    make_key,
)

from .client import Transport
from .entities import (
    KarkunJoinRequest,
    Khat,
    KhatQuestion,
    Mehfil,
    Message,
    NaatShareef,
    TarteebRequest,
    Zone,
)
from .payloads import Envelope, Page, normalize_entity_payload, normalize_list_payload

logger = logging.getLogger(__name__)

EntityFactory = Callable[[dict[str, Any]], Any]

DETAIL_SCAN_SIZE = 1000
KARKUN_USER_TYPES = ("student", "teacher", "admin", "all")
MESSAGE_CATEGORIES = ("all", "2", "3")
FEEDBACK_TYPES = ("all", "bug", "feature", "improvement", "other")
TARTEEB_STATUSES = ("pending", "approved", "rejected")
KHAT_STATUSES = ("pending", "in-review", "awaiting-response", "closed")


@dataclass(frozen=True, slots=True)
class FilterSpec:
    """A list filter the backend validates against a fixed set of values."""

    name: str
    allowed: tuple[str, ...] = ()
    fallback: Optional[str] = None

    def resolve(self, value: Any) -> Any:
        if value is None or value == "":
            return self.fallback
        if self.allowed and str(value) not in self.allowed:
            logger.debug("Filter %s=%r not allowed, using %r", self.name, value, self.fallback)
            return self.fallback
        return value


@dataclass(frozen=True, slots=True)
class ResourceDefinition:
    name: str
    path: str
    tag_type: str
    entity: Optional[EntityFactory] = None
    detail_envelope: Envelope = "data"
    size_param: str = "size"
    always_send_search: bool = False
    filters: tuple[FilterSpec, ...] = ()
    # Backend has no detail endpoint; the item is looked up in a large list page.
    detail_via_list: bool = False
    # Creation endpoint when it is not "<path>/add".
    create_path: Optional[str] = None


def entity_id(item: Any) -> Any:
    if isinstance(item, Mapping):
        return item.get("id")
    return getattr(item, "id", None)


class ResourceClient:
    """Declarative query/mutation operations for one backend resource."""

    def __init__(self, definition: ResourceDefinition, transport: Transport, cache: QueryCache) -> None:
        self.definition = definition
        self._transport = transport
        self._cache = cache

    @property
    def name(self) -> str:
        return self.definition.name

    @property
    def cache(self) -> QueryCache:
        return self._cache

    @property
    def list_tag(self) -> Tag:
        return Tag(self.definition.tag_type, LIST)

    def item_tag(self, item_id: Any) -> Tag:
        return Tag(self.definition.tag_type, item_id)

    def list_params(self, page: int = 1, size: int = 10, search: str = "", **filters: Any) -> dict[str, Any]:
        if page < 1:
            raise ValueError("page must be >= 1")
        if size <= 0:
            raise ValueError("size must be > 0")
        definition = self.definition
        params: dict[str, Any] = {"page": page, definition.size_param: size}
        text = (search or "").strip()
        if text or definition.always_send_search:
            params["search"] = text
        declared = {spec.name for spec in definition.filters}
        for spec in definition.filters:
            value = spec.resolve(filters.get(spec.name))
            if value is not None:
                params[spec.name] = value
        for key, value in filters.items():
            if key not in declared and value is not None:
                params[key] = value
        return params

    def list_key(self, page: int = 1, size: int = 10, search: str = "", **filters: Any) -> QueryKey:
        return make_key(f"{self.definition.name}.list", self.list_params(page, size, search, **filters))

    def detail_key(self, item_id: Any) -> QueryKey:
        return make_key(f"{self.definition.name}.detail", {"id": str(item_id)})

    def _list_tags(self, result: Page[Any]) -> Iterable[Tag]:
        tags = [self.item_tag(entity_id(item)) for item in result.data if entity_id(item) is not None]
        tags.append(self.list_tag)
        return tags

    def parse_item(self, item: dict[str, Any]) -> Any:
        factory = self.definition.entity
        if factory is None:
            return item
        return factory(item)

    def _parse_items(self, items: Sequence[Any]) -> list[Any]:
        parsed: list[Any] = []
        for item in items:
            if not isinstance(item, dict):
                logger.warning("Skipping non-object %s list item: %r", self.name, item)
                continue
            try:
                parsed.append(self.parse_item(item))
            except (KeyError, TypeError, ValueError):
                logger.exception("Failed to parse %s list item.", self.name)
        return parsed

    def _coerce_entity(self, payload: Any) -> Any:
        entity = normalize_entity_payload(payload, self.definition.detail_envelope)
        if entity is None:
            return None
        if self.definition.entity is None or entity.get("id") is None:
            return entity
        try:
            return self.parse_item(entity)
        except (KeyError, TypeError, ValueError):
            logger.exception("Failed to parse %s entity.", self.name)
            return entity

    async def list(self, page: int = 1, size: int = 10, search: str = "", **filters: Any) -> Page[Any]:
        params = self.list_params(page, size, search, **filters)
        key = make_key(f"{self.definition.name}.list", params)

        async def fetch() -> Page[Any]:
            payload = await self._transport.request("GET", self.definition.path, params=params)
            result = normalize_list_payload(payload, page=page, size=size)
            result.data = self._parse_items(result.data)
            return result

        return await self._cache.query(key, fetch, self._list_tags)

    async def get(self, item_id: Any) -> Any:
        key = self.detail_key(item_id)

        async def fetch() -> Any:
            if self.definition.detail_via_list:
                return await self._scan_for(item_id)
            payload = await self._transport.request("GET", f"{self.definition.path}/{item_id}")
            return self._coerce_entity(payload)

        return await self._cache.query(key, fetch, lambda _: [self.item_tag(item_id)])

    async def _scan_for(self, item_id: Any) -> Any:
        payload = await self._transport.request(
            "GET",
            self.definition.path,
            params={"page": 1, self.definition.size_param: DETAIL_SCAN_SIZE},
        )
        result = normalize_list_payload(payload, page=1, size=DETAIL_SCAN_SIZE)
        for item in self._parse_items(result.data):
            if str(entity_id(item)) == str(item_id):
                return item
        return None

    async def _mutate(
        self,
        method: str,
        path: str,
        *,
        invalidates: Sequence[Tag],
        json: Any = None,
    ) -> Any:
        response = await self._transport.request(method, path, json=json)
        await self._cache.invalidate(invalidates)
        return response

    async def create(self, payload: Mapping[str, Any]) -> Any:
        response = await self._mutate(
            "POST",
            self.definition.create_path or f"{self.definition.path}/add",
            json=dict(payload),
            invalidates=[self.list_tag],
        )
        return self._coerce_entity(response)

    async def update(self, item_id: Any, payload: Mapping[str, Any]) -> Any:
        body = {key: value for key, value in payload.items() if key != "id"}
        response = await self._mutate(
            "PUT",
            f"{self.definition.path}/update/{item_id}",
            json=body,
            invalidates=[self.item_tag(item_id), self.list_tag],
        )
        return self._coerce_entity(response)

    async def delete(self, item_id: Any) -> bool:
        response = await self._mutate(
            "DELETE",
            f"{self.definition.path}/{item_id}",
            invalidates=[self.item_tag(item_id), self.list_tag],
        )
        if isinstance(response, dict) and "success" in response:
            return bool(response["success"])
        return True


class KarkunJoinRequestsClient(ResourceClient):
    async def approve(self, item_id: Any, is_approved: bool = True) -> Any:
        response = await self._mutate(
            "PUT",
            f"{self.definition.path}/update/{item_id}",
            json={"is_approved": bool(is_approved)},
            invalidates=[self.item_tag(item_id), self.list_tag],
        )
        return self._coerce_entity(response)


class StatusResourceClient(ResourceClient):
    """Resources whose workflow status is patched through ``/<id>/status``."""

    statuses: tuple[str, ...] = ()

    async def update_status(self, item_id: Any, status: str) -> Any:
        if self.statuses and status not in self.statuses:
            raise ValueError(f"Unknown {self.name} status: {status!r}")
        response = await self._mutate(
            "PATCH",
            f"{self.definition.path}/{item_id}/status",
            json={"status": status},
            invalidates=[self.item_tag(item_id), self.list_tag],
        )
        return self._coerce_entity(response)


class TarteebRequestsClient(StatusResourceClient):
    statuses = TARTEEB_STATUSES


class KhatClient(StatusResourceClient):
    statuses = KHAT_STATUSES
    question_tag_type = "KhatQuestion"

    async def list_questions(self, khat_id: Any) -> list[KhatQuestion]:
        key = make_key(f"{self.definition.name}.questions", {"khat_id": str(khat_id)})

        async def fetch() -> list[KhatQuestion]:
            payload = await self._transport.request("GET", f"{self.definition.path}/{khat_id}/questions")
            items = payload.get("data") if isinstance(payload, dict) else payload
            questions: list[KhatQuestion] = []
            for item in items or []:
                try:
                    questions.append(KhatQuestion.from_payload(item))
                except (KeyError, TypeError, ValueError):
                    logger.exception("Failed to parse khat question payload.")
            return questions

        return await self._cache.query(key, fetch, lambda _: [Tag(self.question_tag_type, khat_id)])

    async def add_question(self, khat_id: Any, question: str) -> Optional[KhatQuestion]:
        text = (question or "").strip()
        if not text:
            raise ValueError("Question text is required")
        response = await self._mutate(
            "POST",
            f"{self.definition.path}/{khat_id}/questions",
            json={"question": text},
            invalidates=[Tag(self.question_tag_type, khat_id), self.item_tag(khat_id)],
        )
        entity = normalize_entity_payload(response, "data")
        if entity is None or entity.get("id") is None:
            return None
        return KhatQuestion.from_payload(entity)

    async def send_questions(self, khat_id: Any, question_ids: Optional[Sequence[int]] = None) -> None:
        await self._mutate(
            "POST",
            f"{self.definition.path}/{khat_id}/questions/send",
            json={"question_ids": list(question_ids) if question_ids else None},
            invalidates=[Tag(self.question_tag_type, khat_id), self.item_tag(khat_id)],
        )

    async def delete_question(self, question_id: Any) -> None:
        await self._mutate(
            "DELETE",
            f"{self.definition.path}/questions/{question_id}",
            invalidates=[Tag(self.question_tag_type)],
        )


ZONES = ResourceDefinition(name="zones", path="zone", tag_type="Zone", entity=Zone.from_payload)
MEHFILS = ResourceDefinition(
    name="mehfils",
    path="mehfils-data",
    tag_type="Mehfil",
    entity=Mehfil.from_payload,
    filters=(FilterSpec("category", allowed=("all",), fallback="all"),),
)
NAAT_SHAREEFS = ResourceDefinition(
    name="naat_shareefs",
    path="naatshareefs-data",
    tag_type="NaatShareef",
    entity=NaatShareef.from_payload,
    always_send_search=True,
    filters=(FilterSpec("category", fallback=""),),
)
MESSAGES = ResourceDefinition(
    name="messages",
    path="messages-data",
    tag_type="Message",
    entity=Message.from_payload,
    always_send_search=True,
    filters=(FilterSpec("category", allowed=MESSAGE_CATEGORIES, fallback="all"),),
)
KARKUN_JOIN_REQUESTS = ResourceDefinition(
    name="karkun_join_requests",
    path="karkun-join-requests",
    tag_type="KarkunJoinRequest",
    entity=KarkunJoinRequest.from_payload,
    detail_envelope="bare",
    always_send_search=True,
    filters=(FilterSpec("user_type", allowed=KARKUN_USER_TYPES, fallback="all"),),
)
TARTEEB_REQUESTS = ResourceDefinition(
    name="tarteeb_requests",
    path="tarteeb-requests",
    tag_type="TarteebRequest",
    entity=TarteebRequest.from_payload,
    filters=(FilterSpec("status", allowed=TARTEEB_STATUSES),),
)
KHATOOT = ResourceDefinition(
    name="khatoot",
    path="khat",
    tag_type="Khat",
    entity=Khat.from_payload,
    filters=(FilterSpec("status", allowed=KHAT_STATUSES), FilterSpec("type", allowed=("khat", "masail"))),
)
TAGS = ResourceDefinition(name="tags", path="tags", tag_type="Tags", always_send_search=True)
CATEGORIES = ResourceDefinition(name="categories", path="categories", tag_type="Categories", always_send_search=True)
WAZAIF = ResourceDefinition(name="wazaif", path="wazaifs-data", tag_type="Wazaif", size_param="limit")
PARHAIYAN = ResourceDefinition(
    name="parhaiyan",
    path="parhaiyan",
    tag_type="Parhaiyan",
    always_send_search=True,
    detail_via_list=True,
)
NAMAZ = ResourceDefinition(name="namaz", path="namaz", tag_type="Namaz", always_send_search=True)
FEEDBACK = ResourceDefinition(
    name="feedback",
    path="feedback",
    tag_type="Feedback",
    detail_envelope="bare",
    always_send_search=True,
    filters=(FilterSpec("type", allowed=FEEDBACK_TYPES, fallback="all"),),
)

MEHFIL_DIRECTORY = ResourceDefinition(
    name="mehfil_directory",
    path="mehfil-directory",
    tag_type="MehfilDirectory",
    filters=(FilterSpec("zoneId"),),
)
KARKUNAN = ResourceDefinition(name="karkunan", path="karkun", tag_type="Karkunan")
MESSAGE_SCHEDULES = ResourceDefinition(
    name="message_schedules",
    path="message-schedules",
    tag_type="MessageSchedule",
    create_path="message-schedules",
    filters=(FilterSpec("message_id"),),
)
TALEEMAT = ResourceDefinition(
    name="taleemat",
    path="taleemat-data",
    tag_type="Taleemat",
    always_send_search=True,
    filters=(FilterSpec("category", fallback="all"),),
)

DEFINITIONS: dict[str, ResourceDefinition] = {
    definition.name: definition
    for definition in (
        ZONES,
        MEHFILS,
        NAAT_SHAREEFS,
        MESSAGES,
        KARKUN_JOIN_REQUESTS,
        TARTEEB_REQUESTS,
        KHATOOT,
        TAGS,
        CATEGORIES,
        WAZAIF,
        PARHAIYAN,
        NAMAZ,
        FEEDBACK,
        MEHFIL_DIRECTORY,
        KARKUNAN,
        MESSAGE_SCHEDULES,
        TALEEMAT,
    )
}


class ResourceRegistry:
    """One client per backend resource, sharing a transport and a cache."""

    def __init__(self, transport: Transport, cache: Optional[QueryCache] = None) -> None:
        self.cache = cache or QueryCache()
        self.zones = ResourceClient(ZONES, transport, self.cache)
        self.mehfils = ResourceClient(MEHFILS, transport, self.cache)
        self.naat_shareefs = ResourceClient(NAAT_SHAREEFS, transport, self.cache)
        self.messages = ResourceClient(MESSAGES, transport, self.cache)
        self.karkun_join_requests = KarkunJoinRequestsClient(KARKUN_JOIN_REQUESTS, transport, self.cache)
        self.tarteeb_requests = TarteebRequestsClient(TARTEEB_REQUESTS, transport, self.cache)
        self.khatoot = KhatClient(KHATOOT, transport, self.cache)
        self.tags = ResourceClient(TAGS, transport, self.cache)
        self.categories = ResourceClient(CATEGORIES, transport, self.cache)
        self.wazaif = ResourceClient(WAZAIF, transport, self.cache)
        self.parhaiyan = ResourceClient(PARHAIYAN, transport, self.cache)
        self.namaz = ResourceClient(NAMAZ, transport, self.cache)
        self.feedback = ResourceClient(FEEDBACK, transport, self.cache)
        self.mehfil_directory = ResourceClient(MEHFIL_DIRECTORY, transport, self.cache)
        self.karkunan = ResourceClient(KARKUNAN, transport, self.cache)
        self.message_schedules = ResourceClient(MESSAGE_SCHEDULES, transport, self.cache)
        self.taleemat = ResourceClient(TALEEMAT, transport, self.cache)

    def names(self) -> list[str]:
        return list(DEFINITIONS)

    def get(self, name: str) -> ResourceClient:
        normalized = (name or "").strip().lower().replace("-", "_")
        if normalized not in DEFINITIONS:
            raise KeyError(f"Unknown resource: {name!r}")
        return getattr(self, normalized)
