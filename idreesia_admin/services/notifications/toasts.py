from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Literal, Mapping, Protocol

logger = logging.getLogger(__name__)

ToastLevel = Literal["success", "error"]


class Notifier(Protocol):
    def success(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...


@dataclass(frozen=True, slots=True)
class Toast:
    level: ToastLevel
    message: str


@dataclass
class LoggingNotifier:
    """Records transient notifications and mirrors them to the log."""

    history: list[Toast] = field(default_factory=list)
    limit: int = 50

    def _push(self, toast: Toast) -> None:
        self.history.append(toast)
        if len(self.history) > self.limit:
            del self.history[: len(self.history) - self.limit]

    def success(self, message: str) -> None:
        logger.info("%s", message)
        self._push(Toast("success", message))

    def error(self, message: str) -> None:
        logger.warning("%s", message)
        self._push(Toast("error", message))

    @property
    def last(self) -> Toast | None:
        return self.history[-1] if self.history else None


def error_message(exc: BaseException, fallback: str) -> str:
    """One-line user-facing text: the server's ``message`` when it sent one."""
    data: Any = getattr(exc, "data", None)
    if isinstance(data, Mapping):
        message = data.get("message")
        if isinstance(message, str) and message.strip():
            return message.strip()
        error = data.get("error")
        if isinstance(error, str) and error.strip():
            return error.strip()
    return fallback
