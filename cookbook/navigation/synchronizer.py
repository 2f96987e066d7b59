from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Callable, Iterator

from ..catalog.database import RecipeCatalog
from ..config import DEFAULT_APP_CONFIG, AppConfig
from ..engagement.viewer import RecipeViewer
from ..ranking.filtering import FilterEngine
from ..scheduling import DebounceTable, Scheduler
from .history import History
from .location import build_query, parse_query
from .models import HistoryEntry, SyncMode

logger = logging.getLogger(__name__)

_WRITE_KEY = "location-write"


class LocationSynchronizer:
    """
    Keep application state and the navigable location in step.

    Outbound: state changes schedule a location write on the next tick, so a
    burst of synchronous mutations produces one history entry. Inbound: a page
    load or a back/forward step replays state into the engines while ``mode``
    is ``replaying``, during which outbound writes are suppressed.
    """

    def __init__(
        self,
        catalog: RecipeCatalog,
        filters: FilterEngine,
        viewer: RecipeViewer,
        history: History,
        scheduler: Scheduler,
        config: AppConfig = DEFAULT_APP_CONFIG,
    ) -> None:
        self._catalog = catalog
        self._filters = filters
        self._viewer = viewer
        self._history = history
        self._config = config
        self._timers = DebounceTable(scheduler)
        self.mode = SyncMode.idle

    @property
    def is_applying_from_location(self) -> bool:
        return self.mode is SyncMode.replaying

    @contextmanager
    def _replaying(self) -> Iterator[None]:
        self._timers.cancel(_WRITE_KEY)
        self.mode = SyncMode.replaying
        try:
            yield
        finally:
            self.mode = SyncMode.idle

    # ── Outbound: state → location ───────────────────────────────────────

    def current_entry(self) -> HistoryEntry:
        return HistoryEntry(
            filters=list(self._filters.active_filters.items()),
            search=self._filters.search_query,
            recipe_id=self._viewer.current_recipe_id,
        )

    def current_query(self) -> str:
        return build_query(
            language=self._catalog.language,
            default_language=self._config.default_language,
            filters=self._filters.active_filters.items(),
            search=self._filters.search_query,
            recipe_id=self._viewer.current_recipe_id,
            taxonomy=self._catalog.taxonomy,
        )

    def update_location(self, use_replace: bool = False) -> None:
        if self.is_applying_from_location:
            return
        self._timers.schedule(_WRITE_KEY, 0, lambda: self.perform_location_update(use_replace))

    def has_pending_write(self) -> bool:
        return self._timers.is_pending(_WRITE_KEY)

    def perform_location_update(self, use_replace: bool = False) -> None:
        if self.is_applying_from_location:
            return
        location = self.current_query()
        entry = self.current_entry()
        if use_replace:
            self._history.replace_state(entry, location)
        else:
            self._history.push_state(entry, location)
        logger.debug("Location %s: %s", "replaced" if use_replace else "pushed", location)

    # ── Inbound: location → state ────────────────────────────────────────

    def initialize_from_location(self, location: str) -> None:
        with self._replaying():
            parsed = parse_query(
                location, self._catalog.taxonomy, self._config.supported_languages
            )
            self._filters.replace_state(parsed.filters, parsed.search)

            recipe = None
            if parsed.recipe_id:
                recipe = self._catalog.find_by_id(parsed.recipe_id) or self._catalog.find_by_title(
                    parsed.recipe_id
                )
                if recipe is None:
                    logger.info("Location names unknown recipe %s", parsed.recipe_id)
            if recipe is not None:
                self._viewer.show_recipe(recipe.id, skip_location_update=True)
            elif self._viewer.current_recipe_id:
                self._viewer.close_recipe(skip_location_update=True)

            self._filters.apply_filters()

            if self._history.state is None:
                # Baseline entry so the first back navigation has something to restore
                self._history.replace_state(
                    HistoryEntry(
                        filters=list(self._filters.active_filters.items()),
                        search=self._filters.search_query,
                        recipe_id=None,
                    ),
                    location,
                )
            else:
                self._history.replace_state(self.current_entry(), self.current_query())

    def on_history_pop(self, state: HistoryEntry | None, location: str) -> None:
        with self._replaying():
            if state is not None:
                self._filters.replace_state(state.filters, state.search)
                self._filters.apply_filters()
                if state.recipe_id:
                    self._viewer.show_recipe(state.recipe_id, skip_location_update=True)
                elif self._viewer.current_recipe_id:
                    self._viewer.close_recipe(skip_location_update=True)
            else:
                self._filters.replace_state([], "")
                self._filters.apply_filters()
                if self._viewer.current_recipe_id:
                    self._viewer.close_recipe(skip_location_update=True)

    # ── Sharing ──────────────────────────────────────────────────────────

    def get_shareable_url(self) -> str:
        query = self.current_query()
        return f"{self._config.base_url}{query}"

    def get_recipe_url(self, recipe_id: str) -> str:
        if self._catalog.language != self._config.default_language:
            return f"{self._config.base_url}?lang={self._catalog.language}&recipe={recipe_id}"
        return f"{self._config.base_url}?recipe={recipe_id}"

    def copy_to_clipboard(self, url: str, clipboard: Callable[[str], None]) -> bool:
        try:
            clipboard(url)
        except Exception:
            logger.warning("Failed to copy URL %s", url, exc_info=True)
            return False
        return True
