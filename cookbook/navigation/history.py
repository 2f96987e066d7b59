from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Protocol

from .models import HistoryEntry

logger = logging.getLogger(__name__)

PopListener = Callable[[HistoryEntry | None, str], None]


class History(Protocol):
    @property
    def state(self) -> HistoryEntry | None: ...

    @property
    def location(self) -> str: ...

    def push_state(self, state: HistoryEntry, location: str) -> None: ...

    def replace_state(self, state: HistoryEntry, location: str) -> None: ...


@dataclass
class _Step:
    state: HistoryEntry | None
    location: str


class InMemoryHistory:
    """Browser-style session history: a cursor over a list of steps.

    Pushing drops any forward steps. ``back`` and ``forward`` move the cursor
    and notify pop listeners with the step's payload, which is ``None`` for
    the initial step until something replaces it.
    """

    def __init__(self, location: str = "") -> None:
        self._steps: list[_Step] = [_Step(state=None, location=location)]
        self._index = 0
        self._listeners: list[PopListener] = []

    @property
    def state(self) -> HistoryEntry | None:
        return self._steps[self._index].state

    @property
    def location(self) -> str:
        return self._steps[self._index].location

    @property
    def entries(self) -> list[tuple[HistoryEntry | None, str]]:
        return [(step.state, step.location) for step in self._steps]

    @property
    def index(self) -> int:
        return self._index

    def add_pop_listener(self, listener: PopListener) -> None:
        self._listeners.append(listener)

    def push_state(self, state: HistoryEntry, location: str) -> None:
        del self._steps[self._index + 1:]
        self._steps.append(_Step(state=state, location=location))
        self._index += 1
        logger.debug("History push %s (length=%d)", location, len(self._steps))

    def replace_state(self, state: HistoryEntry, location: str) -> None:
        self._steps[self._index] = _Step(state=state, location=location)
        logger.debug("History replace %s", location)

    def can_go_back(self) -> bool:
        return self._index > 0

    def can_go_forward(self) -> bool:
        return self._index < len(self._steps) - 1

    def back(self) -> bool:
        if not self.can_go_back():
            return False
        self._index -= 1
        self._pop()
        return True

    def forward(self) -> bool:
        if not self.can_go_forward():
            return False
        self._index += 1
        self._pop()
        return True

    def _pop(self) -> None:
        step = self._steps[self._index]
        for listener in self._listeners:
            listener(step.state, step.location)
