from __future__ import annotations

import asyncio
import dataclasses
import logging
from dataclasses import dataclass
from typing import Any, Literal, Mapping, Optional, Sequence

import aiohttp
from pydantic import BaseModel, ValidationError

from ...config import settings
from ...infrastructure.cache.query_cache import QueryKey
from ..backend.client import BackendRequestError
from ..backend.payloads import Page
from ..backend.resources import ResourceClient, entity_id
from ..forms.schemas import validation_messages
from ..i18n.localization import get_text, resource_label
from ..notifications.toasts import LoggingNotifier, Notifier, error_message
from ..permissions.service import Capabilities, PermissionDeniedError, can, require
from .debounce import Debouncer
from .pagination import PageSummary, PageWindow, page_window
from .sorting import SortState, sort_rows

logger = logging.getLogger(__name__)

ModalState = Literal["closed", "form", "delete"]
FormMode = Literal["create", "edit"]

REQUEST_ERRORS = (BackendRequestError, aiohttp.ClientError, asyncio.TimeoutError)

# Fields never carried into a duplicated draft.
_SERVER_FIELDS = ("id", "created_at", "updated_at")


@dataclass(frozen=True, slots=True)
class DuplicateRule:
    suffix_fields: tuple[str, ...] = ("title_en", "title_ur", "title", "name")
    email_fields: tuple[str, ...] = ()


DUPLICATE_RULES: dict[str, DuplicateRule] = {
    "karkun_join_requests": DuplicateRule(suffix_fields=("first_name", "last_name"), email_fields=("email",)),
    "tarteeb_requests": DuplicateRule(suffix_fields=("full_name",), email_fields=("email",)),
    "khatoot": DuplicateRule(suffix_fields=("full_name",)),
}


def entity_to_dict(entity: Any) -> dict[str, Any]:
    if entity is None:
        return {}
    if dataclasses.is_dataclass(entity) and not isinstance(entity, type):
        return dataclasses.asdict(entity)
    if isinstance(entity, BaseModel):
        return entity.model_dump()
    if isinstance(entity, Mapping):
        return dict(entity)
    raise TypeError(f"Cannot build a draft from {type(entity).__name__}")


def duplicate_draft(entity: Any, rule: DuplicateRule, suffix: str = "(Copy)") -> dict[str, Any]:
    """Copy of ``entity`` ready for the create form: no id, marked names."""
    draft = entity_to_dict(entity)
    for name in _SERVER_FIELDS:
        draft.pop(name, None)
    for name in rule.suffix_fields:
        value = draft.get(name)
        if isinstance(value, str) and value:
            draft[name] = f"{value} {suffix}"
    for name in rule.email_fields:
        value = draft.get(name)
        if isinstance(value, str) and value:
            draft[name] = f"copy_{value}"
    return draft


def display_name(entity: Any) -> str:
    data = entity_to_dict(entity)
    for name in ("title_en", "title", "name", "full_name"):
        value = data.get(name)
        if value:
            return str(value)
    first, last = data.get("first_name"), data.get("last_name")
    if first or last:
        return " ".join(part for part in (first, last) if part)
    return str(data.get("id", ""))


class ListViewController:
    """Transient state and handlers for one admin table screen.

    Every handler re-checks the permission gate before touching the backend,
    and reports failures through the notifier instead of raising. The list
    query on screen stays subscribed in the cache, so mutations made anywhere
    through the same registry refresh ``rows``.
    """

    def __init__(
        self,
        client: ResourceClient,
        *,
        capabilities: Optional[Capabilities] = None,
        notifier: Optional[Notifier] = None,
        language: str = "en",
        page_size: Optional[int] = None,
        page_size_options: Optional[Sequence[int]] = None,
        debounce_delay: Optional[float] = None,
        filters: Optional[Mapping[str, Any]] = None,
        sort: Optional[SortState] = None,
        form_model: Optional[type[BaseModel]] = None,
        duplicate_rule: Optional[DuplicateRule] = None,
    ) -> None:
        self.page_size_options = tuple(page_size_options or settings.page_size_options)
        if page_size is None:
            page_size = settings.default_page_size
        if page_size not in self.page_size_options:
            raise ValueError(f"page_size must be one of {self.page_size_options}")
        if debounce_delay is None:
            debounce_delay = settings.search_debounce_seconds
        self.client = client
        self.resource = client.name
        self.capabilities = capabilities or Capabilities.anonymous()
        self.notifier: Notifier = notifier or LoggingNotifier()
        self.language = language
        self.form_model = form_model
        self.duplicate_rule = duplicate_rule or DUPLICATE_RULES.get(self.resource, DuplicateRule())

        self.page = 1
        self.page_size = page_size
        self.search_text = ""
        self.debounced_search = ""
        self.sort = sort or SortState()
        self.filters: dict[str, Any] = dict(filters or {})

        self.rows: list[Any] = []
        self.total = 0
        self.loading = False
        self.submitting = False
        self.error: Optional[str] = None

        self.modal: ModalState = "closed"
        self.mode: FormMode = "create"
        self.selected: Any = None
        self.draft: Optional[dict[str, Any]] = None
        self.field_errors: dict[str, str] = {}

        self._generation = 0
        self._subscription: Optional[QueryKey] = None
        self._debouncer: Debouncer[str] = Debouncer(debounce_delay, self._apply_search)

    # Permission gates

    @property
    def can_view(self) -> bool:
        return can(self.capabilities, "view", self.resource)

    @property
    def can_create(self) -> bool:
        return can(self.capabilities, "create", self.resource)

    @property
    def can_edit(self) -> bool:
        return can(self.capabilities, "edit", self.resource)

    @property
    def can_delete(self) -> bool:
        return can(self.capabilities, "delete", self.resource)

    def _text(self, key: str, **kwargs: Any) -> str:
        return get_text(key, self.language, **kwargs)

    @property
    def item_label(self) -> str:
        return resource_label(self.resource, self.language)

    @property
    def items_label(self) -> str:
        return resource_label(self.resource, self.language, plural=True)

    def _denied(self, action: str) -> bool:
        try:
            require(self.capabilities, action, self.resource)
        except PermissionDeniedError:
            self.notifier.error(self._text(f"error.permission.{action}", items=self.items_label))
            return True
        return False

    # Derived values

    @property
    def summary(self) -> PageSummary:
        return PageSummary.compute(self.total, self.page, self.page_size)

    @property
    def page_numbers(self) -> PageWindow:
        return page_window(self.page, self.summary.total_pages)

    @property
    def summary_text(self) -> str:
        summary = self.summary
        return self._text(
            "pagination.summary",
            start=summary.start_record if summary.total else 0,
            end=summary.end_record,
            total=summary.total,
        )

    @property
    def delete_prompt(self) -> str:
        return self._text("confirm.delete", name=display_name(self.selected))

    @property
    def sort_caption(self) -> str:
        """Sorting only reorders the rows of the current page."""
        return self._text("sort.within_page", field=self.sort.field, direction=self.sort.direction)

    # Loading

    async def refresh(self) -> Optional[Page[Any]]:
        if not self.can_view:
            self.rows, self.total = [], 0
            self._unwatch()
            self.error = self._text("error.permission.view", items=self.items_label)
            return None
        self._generation += 1
        generation = self._generation
        self.loading = True
        args = (self.page, self.page_size, self.debounced_search)
        filters = dict(self.filters)
        try:
            result = await self.client.list(*args, **filters)
        except REQUEST_ERRORS as exc:
            if generation != self._generation:
                return None
            logger.warning("Failed to load %s: %s", self.resource, exc)
            self.error = error_message(exc, self._text("error.load", items=self.items_label))
            return None
        finally:
            if generation == self._generation:
                self.loading = False
        if generation != self._generation:
            logger.debug("Discarding superseded %s response", self.resource)
            return None
        self._show(result)
        self._watch(self.client.list_key(*args, **filters))
        return result

    def _show(self, result: Page[Any]) -> None:
        self.error = None
        self.total = result.meta.total
        self.rows = sort_rows(result.data, self.sort.field, self.sort.direction)

    def _watch(self, key: QueryKey) -> None:
        if key == self._subscription:
            return
        self._unwatch()
        self.client.cache.subscribe(key, self._show)
        self._subscription = key

    def _unwatch(self) -> None:
        if self._subscription is not None:
            self.client.cache.unsubscribe(self._subscription, self._show)
            self._subscription = None

    # Search, sort, paging, filters

    def on_search_change(self, text: str) -> None:
        self.search_text = text
        self._debouncer.push(text)

    async def _apply_search(self, text: str) -> None:
        if text == self.debounced_search:
            return
        self.debounced_search = text
        self.page = 1
        await self.refresh()

    async def settle(self) -> None:
        """Wait for a pending debounced search to run."""
        await self._debouncer.wait()

    def on_sort_change(self, field: str) -> SortState:
        self.sort = self.sort.toggle(field)
        self.rows = sort_rows(self.rows, self.sort.field, self.sort.direction)
        return self.sort

    async def on_page_change(self, page: int) -> None:
        total_pages = self.summary.total_pages
        page = max(1, page)
        if total_pages:
            page = min(page, total_pages)
        self.page = page
        await self.refresh()

    async def on_page_size_change(self, size: int) -> None:
        if size not in self.page_size_options:
            raise ValueError(f"page size must be one of {self.page_size_options}")
        self.page_size = size
        self.page = 1
        await self.refresh()

    async def on_filter_change(self, name: str, value: Any) -> None:
        if value is None:
            self.filters.pop(name, None)
        else:
            self.filters[name] = value
        self.page = 1
        await self.refresh()

    # Modals

    def _open_form(self, mode: FormMode, selected: Any, draft: dict[str, Any]) -> None:
        self.mode = mode
        self.selected = selected
        self.draft = draft
        self.field_errors = {}
        self.modal = "form"

    def on_add(self) -> bool:
        if self._denied("create"):
            return False
        self._open_form("create", None, {})
        return True

    def on_edit(self, entity: Any) -> bool:
        if self._denied("edit"):
            return False
        self._open_form("edit", entity, entity_to_dict(entity))
        return True

    def on_duplicate(self, entity: Any) -> bool:
        if self._denied("create"):
            return False
        draft = duplicate_draft(entity, self.duplicate_rule, self._text("duplicate.suffix"))
        self._open_form("create", None, draft)
        return True

    def on_delete(self, entity: Any) -> bool:
        if self._denied("delete"):
            return False
        self.selected = entity
        self.draft = None
        self.modal = "delete"
        return True

    def close_modal(self) -> None:
        self.modal = "closed"
        self.selected = None
        self.draft = None
        self.field_errors = {}

    # Mutations

    async def on_confirm_delete(self) -> bool:
        if self.modal != "delete" or self.selected is None or self.submitting:
            return False
        if self._denied("delete"):
            return False
        fallback = self._text("error.delete", item=self.item_label)
        self.submitting = True
        try:
            deleted = await self.client.delete(entity_id(self.selected))
        except REQUEST_ERRORS as exc:
            logger.warning("Failed to delete %s: %s", self.resource, exc)
            self.notifier.error(error_message(exc, fallback))
            return False
        finally:
            self.submitting = False
        if not deleted:
            self.notifier.error(fallback)
            return False
        self.notifier.success(self._text("toast.deleted", item=self.item_label))
        self.close_modal()
        await self.refresh()
        return True

    def _build_payload(self, form: Any) -> Optional[dict[str, Any]]:
        if isinstance(form, Mapping) and self.form_model is not None:
            try:
                form = self.form_model.model_validate(dict(form))
            except ValidationError as exc:
                self.field_errors = validation_messages(exc)
                self.notifier.error(self._text("error.validation"))
                return None
        self.field_errors = {}
        to_payload = getattr(form, "to_payload", None)
        if callable(to_payload):
            return to_payload()
        if isinstance(form, BaseModel):
            return form.model_dump(mode="json")
        return dict(form)

    async def on_submit(self, form: Any) -> Any:
        """Create or update from the open form; returns the saved entity or None."""
        if self.modal != "form" or self.submitting:
            return None
        action = "edit" if self.mode == "edit" else "create"
        if self._denied(action):
            return None
        payload = self._build_payload(form)
        if payload is None:
            return None
        self.submitting = True
        try:
            if action == "edit":
                saved = await self.client.update(entity_id(self.selected), payload)
            else:
                saved = await self.client.create(payload)
        except REQUEST_ERRORS as exc:
            logger.warning("Failed to save %s: %s", self.resource, exc)
            self.notifier.error(error_message(exc, self._text("error.save")))
            return None
        finally:
            self.submitting = False
        key = "toast.updated" if action == "edit" else "toast.created"
        self.notifier.success(self._text(key, item=self.item_label))
        self.close_modal()
        await self.refresh()
        return saved

    async def on_approve(self, entity: Any, approved: bool = True) -> Any:
        approve = getattr(self.client, "approve", None)
        if approve is None:
            raise TypeError(f"{self.resource} does not support approval")
        if self._denied("edit"):
            return None
        try:
            saved = await approve(entity_id(entity), approved)
        except REQUEST_ERRORS as exc:
            logger.warning("Failed to approve %s: %s", self.resource, exc)
            self.notifier.error(error_message(exc, self._text("error.save")))
            return None
        key = "toast.approved" if approved else "toast.unapproved"
        self.notifier.success(self._text(key, item=self.item_label))
        await self.refresh()
        return saved

    async def on_status_change(self, entity: Any, status: str) -> Any:
        update_status = getattr(self.client, "update_status", None)
        if update_status is None:
            raise TypeError(f"{self.resource} has no workflow status")
        if self._denied("edit"):
            return None
        try:
            saved = await update_status(entity_id(entity), status)
        except REQUEST_ERRORS as exc:
            logger.warning("Failed to update %s status: %s", self.resource, exc)
            self.notifier.error(error_message(exc, self._text("error.save")))
            return None
        self.notifier.success(self._text("toast.status", item=self.item_label, status=status))
        await self.refresh()
        return saved

    def dispose(self) -> None:
        self._debouncer.cancel()
        self._unwatch()
