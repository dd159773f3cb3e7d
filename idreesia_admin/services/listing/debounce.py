from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar, Union

logger = logging.getLogger(__name__)

T = TypeVar("T")

DebounceCallback = Callable[[T], Union[Awaitable[Any], Any]]


class Debouncer(Generic[T]):
    """Delay ``callback`` until ``delay`` seconds pass without a new value.

    Only the last pushed value reaches the callback.
    """

    def __init__(self, delay: float, callback: DebounceCallback) -> None:
        if delay < 0:
            raise ValueError("delay must be >= 0")
        self.delay = delay
        self._callback = callback
        self._task: Optional[asyncio.Task] = None
        self.pending_value: Optional[T] = None

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def push(self, value: T) -> None:
        self._cancel_task()
        self.pending_value = value
        self._task = asyncio.get_running_loop().create_task(self._fire(value))

    async def _fire(self, value: T) -> None:
        await asyncio.sleep(self.delay)
        self.pending_value = None
        logger.debug("Debounced value released after %.2fs", self.delay)
        result = self._callback(value)
        if inspect.isawaitable(result):
            await result

    async def wait(self) -> None:
        """Block until the pending call, if any, has run."""
        while self._task is not None and not self._task.done():
            task = self._task
            await asyncio.wait({task})
            if task is self._task and not task.cancelled():
                exc = task.exception()
                if exc is not None:
                    raise exc

    def _cancel_task(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    def cancel(self) -> None:
        self._cancel_task()
        self.pending_value = None
