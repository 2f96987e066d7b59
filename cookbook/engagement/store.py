from __future__ import annotations

import json
import logging
from typing import Any, Callable

from pydantic import ValidationError

from ..catalog.models import Recipe
from ..scheduling import DebounceTable, Scheduler
from .models import EngagementRecord, MadeTodayResult
from .storage import KeyValueStore

logger = logging.getLogger(__name__)

STORE_KEY = "userData"
VIEW_DEBOUNCE_SECONDS = 10.0


class EngagementStore:
    """
    Mutable per-recipe user data.

    The whole map is read once on construction and written back after every
    mutation. Persistence failures are logged; the in-memory copy stays
    authoritative for the session.
    """

    def __init__(
        self,
        storage: KeyValueStore,
        scheduler: Scheduler,
        view_debounce_seconds: float = VIEW_DEBOUNCE_SECONDS,
    ) -> None:
        self._storage = storage
        self._scheduler = scheduler
        self._view_debounce_seconds = view_debounce_seconds
        self._view_timers = DebounceTable(scheduler)
        self._view_listeners: list[Callable[[str], None]] = []
        self._records: dict[str, EngagementRecord] = {}
        self._unreadable: dict[str, Any] = {}
        self.load()

    # ── Persistence ──────────────────────────────────────────────────────

    def load(self) -> None:
        self._records = {}
        self._unreadable = {}
        try:
            raw = self._storage.get(STORE_KEY)
            data = json.loads(raw) if raw else {}
            if not isinstance(data, dict):
                raise ValueError("stored user data is not an object")
        except (OSError, ValueError):
            logger.warning("Could not read stored user data, starting empty", exc_info=True)
            return

        for recipe_id, value in data.items():
            try:
                self._records[recipe_id] = EngagementRecord.model_validate(value)
            except ValidationError:
                # Written back unchanged on save
                logger.warning("Skipping invalid user data for recipe %s", recipe_id, exc_info=True)
                self._unreadable[recipe_id] = value

    def save(self) -> None:
        data = dict(self._unreadable)
        data.update({recipe_id: record.to_store() for recipe_id, record in self._records.items()})
        payload = json.dumps(data)
        try:
            self._storage.set(STORE_KEY, payload)
        except (OSError, TypeError, ValueError):
            logger.warning("Could not persist user data; keeping in-memory copy", exc_info=True)

    # ── Reads ────────────────────────────────────────────────────────────

    def get_or_default(self, recipe_id: str) -> EngagementRecord:
        record = self._records.get(recipe_id)
        return record if record is not None else EngagementRecord()

    def get_recipe_with_user_data(self, recipe: Recipe) -> dict[str, Any]:
        merged = recipe.model_dump(by_alias=True)
        merged.update(self.get_or_default(recipe.id).to_store())
        return merged

    def all_records(self) -> dict[str, EngagementRecord]:
        return dict(self._records)

    def _initialize(self, recipe_id: str) -> EngagementRecord:
        if recipe_id not in self._records:
            self._records[recipe_id] = EngagementRecord()
        return self._records[recipe_id]

    # ── Mutations ────────────────────────────────────────────────────────

    def set_rating(self, recipe_id: str, rating: int) -> None:
        if not 1 <= rating <= 5:
            raise ValueError(f"Rating must be between 1 and 5, got {rating}")
        self._initialize(recipe_id).user_rating = rating
        self.save()

    def clear_rating(self, recipe_id: str) -> None:
        record = self._records.get(recipe_id)
        if record is not None:
            record.user_rating = None
            self.save()

    def toggle_tag(self, recipe_id: str) -> bool:
        record = self._initialize(recipe_id)
        is_tagged = not record.tagged
        record.tagged = is_tagged
        record.tagged_at = self._scheduler.now() if is_tagged else None
        self.save()
        return is_tagged

    def toggle_made_today(self, recipe_id: str) -> MadeTodayResult:
        record = self._initialize(recipe_id)
        today = self._scheduler.now().date()
        made_dates = list(record.made_dates)
        if today in made_dates:
            made_dates.remove(today)
        else:
            made_dates.append(today)
        record.made_dates = made_dates
        self.save()
        return MadeTodayResult(made_today=today in made_dates, made_count=len(made_dates))

    # ── View tracking ────────────────────────────────────────────────────

    def add_view_listener(self, listener: Callable[[str], None]) -> None:
        """Register a callback run after a debounced view has been recorded."""
        self._view_listeners.append(listener)

    def track_view(self, recipe_id: str) -> None:
        # One recorded view per quiet window
        self._view_timers.schedule(
            recipe_id,
            self._view_debounce_seconds,
            lambda: self._flush_view(recipe_id),
        )

    def pending_views(self) -> set[str]:
        return {str(key) for key in self._view_timers.keys()}

    def _flush_view(self, recipe_id: str) -> None:
        record = self._initialize(recipe_id)
        record.last_viewed = self._scheduler.now()
        record.view_count += 1
        self.save()
        logger.debug("Recorded view of %s (count=%d)", recipe_id, record.view_count)
        for listener in self._view_listeners:
            listener(recipe_id)
