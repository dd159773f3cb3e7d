from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Callable, Optional, Union

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from idreesia_admin.services.i18n.localization import resolve_language

logger = logging.getLogger(__name__)


class PersistedState(BaseModel):
    """Preferences and session data kept across runs.

    Loading flags, list rows and errors never belong here.
    """

    model_config = ConfigDict(extra="ignore")

    language: str = "en"
    auth_token: Optional[str] = None
    auth_user: Optional[dict[str, Any]] = None

    @field_validator("language", mode="before")
    @classmethod
    def _known_language(cls, value: Any) -> str:
        return resolve_language(value if isinstance(value, str) else None)

    @property
    def is_authenticated(self) -> bool:
        return bool(self.auth_token)


class StateStore:
    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    def load(self) -> PersistedState:
        if not self.path.exists():
            return PersistedState()
        try:
            raw = self.path.read_text(encoding="utf-8")
            return PersistedState.model_validate_json(raw)
        except (OSError, ValidationError) as exc:
            logger.warning("Ignoring unreadable state file %s: %s", self.path, exc)
            return PersistedState()

    def save(self, state: PersistedState) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        tmp_path.write_text(state.model_dump_json(indent=2), encoding="utf-8")
        os.replace(tmp_path, self.path)

    def update(self, **changes: Any) -> PersistedState:
        state = self.load().model_copy(update=changes)
        state = PersistedState.model_validate(state.model_dump())
        self.save(state)
        return state

    def clear_auth(self) -> PersistedState:
        return self.update(auth_token=None, auth_user=None)

    def token_provider(self, fallback: Optional[str] = None) -> Callable[[], Optional[str]]:
        """Callable for ``BackendClient`` that re-reads the stored token on each request."""

        def provide() -> Optional[str]:
            return self.load().auth_token or fallback

        return provide
