from __future__ import annotations

import logging
from typing import Callable

from ..catalog.database import RecipeCatalog
from ..ranking.engine import RecommendationEngine
from ..ranking.filtering import FilterEngine, SortOrder
from ..scheduling import DebounceTable, Scheduler
from .models import MadeTodayResult, StepState
from .store import EngagementStore

logger = logging.getLogger(__name__)

_APPLY_KEY = "apply-filters"


class RecipeViewer:
    """
    The open-recipe detail view, minus any markup.

    Opening a recipe tracks a view and refreshes its score; rating, tagging
    and "made today" mutate the engagement store and then re-rank: under the
    recommendation order the re-sort is debounced, under the order the change
    affects the list is re-applied on the next tick.
    """

    def __init__(
        self,
        catalog: RecipeCatalog,
        engagement: EngagementStore,
        recommendations: RecommendationEngine,
        filters: FilterEngine,
        scheduler: Scheduler,
    ) -> None:
        self._catalog = catalog
        self._engagement = engagement
        self._recommendations = recommendations
        self._filters = filters
        self._timers = DebounceTable(scheduler)
        self._change_listeners: list[Callable[[], None]] = []
        self.current_recipe_id: str | None = None
        self.completed_steps: set[tuple[str, int]] = set()
        self.active_step: tuple[str, int] | None = None

    def add_change_listener(self, listener: Callable[[], None]) -> None:
        self._change_listeners.append(listener)

    def _notify(self) -> None:
        for listener in self._change_listeners:
            listener()

    # ── Open / close ─────────────────────────────────────────────────────

    def show_recipe(self, recipe_id: str, skip_location_update: bool = False) -> bool:
        if self._catalog.find_by_id(recipe_id) is None:
            logger.info("Ignoring request to open unknown recipe %s", recipe_id)
            return False

        self.clear_steps_for_recipe(recipe_id)
        self.current_recipe_id = recipe_id
        self._engagement.track_view(recipe_id)
        self._recommendations.update_score_for_recipe(recipe_id)
        if not skip_location_update:
            self._notify()
        return True

    def close_recipe(self, skip_location_update: bool = False) -> None:
        self._timers.cancel(_APPLY_KEY)
        self.current_recipe_id = None
        if not skip_location_update:
            self._notify()

    # ── Engagement actions ───────────────────────────────────────────────

    def _apply_soon(self) -> None:
        self._timers.schedule(_APPLY_KEY, 0, self._filters.apply_filters)

    def _rerank(self, affected_order: SortOrder | None) -> None:
        order = self._filters.sort_order
        if order is SortOrder.recommendation:
            self._filters.schedule_recommendation_update()
        elif affected_order is None or order is affected_order:
            self._apply_soon()

    def rate_recipe(self, recipe_id: str, rating: int) -> None:
        self._engagement.set_rating(recipe_id, rating)
        self._recommendations.update_score_for_recipe(recipe_id)
        self._rerank(SortOrder.rating)

    def clear_rating(self, recipe_id: str) -> None:
        self._engagement.clear_rating(recipe_id)
        self._recommendations.update_score_for_recipe(recipe_id)
        self._rerank(SortOrder.rating)

    def toggle_made_today(self, recipe_id: str) -> MadeTodayResult:
        result = self._engagement.toggle_made_today(recipe_id)
        self._recommendations.update_score_for_recipe(recipe_id)
        self._rerank(SortOrder.madecount)
        return result

    def toggle_tag(self, recipe_id: str) -> bool:
        is_tagged = self._engagement.toggle_tag(recipe_id)
        # Tags move recipes between partitions under every order
        self._rerank(None)
        return is_tagged

    # ── Cooking steps ────────────────────────────────────────────────────

    def step_state(self, recipe_id: str, step_index: int) -> StepState:
        key = (recipe_id, step_index)
        if key in self.completed_steps:
            return StepState.completed
        if self.active_step == key:
            return StepState.active
        return StepState.untouched

    def toggle_instruction_step(self, recipe_id: str, step_index: int) -> StepState:
        """Advance a step: untouched -> active -> completed -> active.

        Only one step is active at a time; activating another step leaves the
        previous one untouched unless it was completed.
        """
        key = (recipe_id, step_index)
        if key in self.completed_steps:
            self.completed_steps.discard(key)
            self.active_step = key
        elif self.active_step == key:
            self.completed_steps.add(key)
            self.active_step = None
        else:
            self.active_step = key
        return self.step_state(recipe_id, step_index)

    def clear_steps_for_recipe(self, recipe_id: str) -> None:
        self.completed_steps = {key for key in self.completed_steps if key[0] != recipe_id}
        if self.active_step is not None and self.active_step[0] == recipe_id:
            self.active_step = None
