"""
Timer plumbing for the single-threaded engine.

Every delayed action in the engine (view tracking, re-sorting, location writes)
goes through a ``Scheduler``. The production scheduler wraps the running asyncio
event loop; tests drive a manual one. ``DebounceTable`` keeps one cancellable
handle per key so "cancel and restart" is a table operation.
"""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Callable, Hashable, Protocol

logger = logging.getLogger(__name__)


class Handle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> Handle: ...

    def now(self) -> datetime: ...


class AsyncioScheduler:
    """Schedule callbacks on an asyncio event loop, reading local wall-clock time."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return self.loop.call_later(delay, callback)

    def now(self) -> datetime:
        return datetime.now().astimezone()


class DebounceTable:
    """Single-flight debounce: at most one pending callback per key."""

    def __init__(self, scheduler: Scheduler) -> None:
        self._scheduler = scheduler
        self._pending: dict[Hashable, Handle] = {}

    def schedule(self, key: Hashable, delay: float, callback: Callable[[], None]) -> None:
        self.cancel(key)

        def _fire() -> None:
            self._pending.pop(key, None)
            callback()

        self._pending[key] = self._scheduler.call_later(delay, _fire)

    def cancel(self, key: Hashable) -> bool:
        handle = self._pending.pop(key, None)
        if handle is None:
            return False
        handle.cancel()
        logger.debug("Cancelled pending callback for %r", key)
        return True

    def is_pending(self, key: Hashable) -> bool:
        return key in self._pending

    def keys(self) -> set[Hashable]:
        return set(self._pending)
