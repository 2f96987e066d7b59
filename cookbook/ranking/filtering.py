from __future__ import annotations

import locale
import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable

from ..catalog.database import RecipeCatalog
from ..catalog.models import Recipe
from ..catalog.taxonomy import FILTER_DIMENSIONS
from ..engagement.store import EngagementStore
from ..scheduling import DebounceTable, Scheduler
from .engine import RecommendationEngine

logger = logging.getLogger(__name__)

RECOMMENDATION_DEBOUNCE_SECONDS = 10.0
_RESORT_KEY = "recommendation-update"
_collation_keys: dict[str, Callable[[str], object]] = {}


class SortOrder(str, Enum):
    recommendation = "recommendation"
    recipebook = "recipebook"
    alphabetical = "alphabetical"
    madecount = "madecount"
    rating = "rating"


@dataclass(frozen=True)
class _RankingData:
    """Derived fields for one recipe, computed once per ``apply_filters`` call."""

    recipe: Recipe
    score: float
    rating: int
    made_count: int
    page_number: float

    def recipebook_key(self) -> tuple:
        return (self.page_number, self.recipe.id)

    def recommendation_key(self) -> tuple:
        return (-self.score, *self.recipebook_key())


def split_filter_key(key: str) -> tuple[str, str]:
    dimension, _, value = key.partition(":")
    return dimension, value


def make_collation_key(locale_name: str | None) -> Callable[[str], object]:
    """Return a sort key collating titles under *locale_name*.

    Setting ``LC_COLLATE`` is process-wide, so each locale is resolved once and
    the result cached for every later ``FilterEngine``. Falls back to
    case-folded comparison when the locale is not installed.
    """
    if not locale_name:
        return str.casefold
    if locale_name not in _collation_keys:
        try:
            locale.setlocale(locale.LC_COLLATE, locale_name)
            _collation_keys[locale_name] = locale.strxfrm
        except locale.Error:
            logger.warning("Collation locale %s unavailable, using case-folded titles", locale_name)
            _collation_keys[locale_name] = str.casefold
    return _collation_keys[locale_name]


class FilterEngine:
    """
    Filter and order the catalog for display.

    Holds the active filters (``"dimension:value" -> enabled`` in pill order),
    the search query and the sort order, and turns them into an ordered list of
    recipe ids for the renderer.
    """

    def __init__(
        self,
        catalog: RecipeCatalog,
        engagement: EngagementStore,
        recommendations: RecommendationEngine,
        scheduler: Scheduler,
        renderer: Callable[[list[str]], None] | None = None,
        recommendation_debounce_seconds: float = RECOMMENDATION_DEBOUNCE_SECONDS,
        collation_locale: str | None = None,
    ) -> None:
        self._catalog = catalog
        self._engagement = engagement
        self._recommendations = recommendations
        self._renderer = renderer
        self._debounce_seconds = recommendation_debounce_seconds
        self._timers = DebounceTable(scheduler)
        self._collation_key = make_collation_key(collation_locale)
        self._change_listeners: list[Callable[[], None]] = []
        self.active_filters: dict[str, bool] = {}
        self.search_query: str = ""
        self.sort_order: SortOrder = SortOrder.recommendation

    # ── Listeners ────────────────────────────────────────────────────────

    def set_renderer(self, renderer: Callable[[list[str]], None]) -> None:
        self._renderer = renderer

    def add_change_listener(self, listener: Callable[[], None]) -> None:
        """Register a callback run after filters or search change."""
        self._change_listeners.append(listener)

    def _notify(self) -> None:
        for listener in self._change_listeners:
            listener()

    # ── State changes ────────────────────────────────────────────────────

    def has_active_search_or_filters(self) -> bool:
        return bool(self.search_query) or bool(self.active_filters)

    def change_sort_order(self, new_order: SortOrder | str) -> list[str]:
        new_order = SortOrder(new_order)
        previous = self.sort_order
        self.sort_order = new_order
        if new_order is SortOrder.recommendation and previous is not SortOrder.recommendation:
            # Other orders leave the cache stale
            self._recommendations.calculate_all_scores()
        return self.apply_filters()

    def activate_filter(self, dimension: str, value: str) -> bool:
        key = f"{dimension}:{value}"
        if key in self.active_filters:
            return False
        self.active_filters[key] = True
        self._notify()
        self.apply_filters()
        return True

    def toggle_filter(self, key: str) -> None:
        if key in self.active_filters:
            del self.active_filters[key]
        else:
            self.active_filters[key] = True
        self.apply_filters()
        self._notify()

    def remove_filter(self, key: str) -> None:
        self.active_filters.pop(key, None)
        self.apply_filters()
        self._notify()

    def clear_all_filters(self) -> None:
        self.active_filters.clear()
        self.apply_filters()
        self._notify()

    def set_search(self, query: str) -> None:
        self.search_query = query.strip().casefold()
        self.apply_filters()
        self._notify()

    def clear_search(self) -> None:
        self.set_search("")

    def replace_state(self, filters: Iterable[tuple[str, bool]], search: str) -> None:
        """Overwrite filters and search without notifying listeners."""
        self.active_filters = {key: bool(enabled) for key, enabled in filters}
        self.search_query = (search or "").strip().casefold()

    # ── Debounced re-sort ────────────────────────────────────────────────

    def schedule_recommendation_update(self) -> None:
        self._timers.schedule(_RESORT_KEY, self._debounce_seconds, self._run_recommendation_update)

    def has_pending_recommendation_update(self) -> bool:
        return self._timers.is_pending(_RESORT_KEY)

    def _run_recommendation_update(self) -> None:
        if self.sort_order is SortOrder.recommendation:
            self.apply_filters()

    # ── Pipeline ─────────────────────────────────────────────────────────

    def _enabled_values(self) -> dict[str, set[str]]:
        enabled: dict[str, set[str]] = {dimension: set() for dimension in FILTER_DIMENSIONS}
        for key, is_active in self.active_filters.items():
            if not is_active:
                continue
            dimension, value = split_filter_key(key)
            if dimension in enabled:
                enabled[dimension].add(value)
        return enabled

    def _matches_search(self, recipe: Recipe) -> bool:
        query = self.search_query
        if query in recipe.title.casefold():
            return True
        return any(query in line.casefold() for line in recipe.ingredient_lines())

    def filter_recipes(self) -> list[Recipe]:
        recipes = self._catalog.get_all()
        for dimension, values in self._enabled_values().items():
            if values:
                recipes = [r for r in recipes if getattr(r, dimension) in values]
        if self.search_query:
            recipes = [r for r in recipes if self._matches_search(r)]
        return recipes

    def _sort_untagged(self, ranked: list[_RankingData]) -> list[_RankingData]:
        order = self.sort_order
        if order is SortOrder.recommendation:
            return sorted(ranked, key=_RankingData.recommendation_key)
        if order is SortOrder.recipebook:
            return sorted(ranked, key=_RankingData.recipebook_key)
        if order is SortOrder.alphabetical:
            return sorted(ranked, key=lambda d: self._collation_key(d.recipe.title))
        if order is SortOrder.madecount:
            return sorted(ranked, key=lambda d: (-d.made_count, *d.recommendation_key()))
        if order is SortOrder.rating:
            return sorted(ranked, key=lambda d: (-d.rating, *d.recommendation_key()))
        raise ValueError(f"Unknown sort order: {order}")

    def apply_filters(self) -> list[str]:
        filtered = self.filter_recipes()

        tagged: list[tuple[Recipe, float]] = []
        untagged: list[Recipe] = []
        for recipe in filtered:
            record = self._engagement.get_or_default(recipe.id)
            if record.tagged:
                stamp = record.tagged_at.timestamp() if record.tagged_at else -math.inf
                tagged.append((recipe, stamp))
            else:
                untagged.append(recipe)

        # Most recently tagged first
        tagged.sort(key=lambda item: item[1], reverse=True)

        cache: dict[str, _RankingData] = {}

        def ranking_data(recipe: Recipe) -> _RankingData:
            if recipe.id not in cache:
                record = self._engagement.get_or_default(recipe.id)
                cache[recipe.id] = _RankingData(
                    recipe=recipe,
                    score=self._recommendations.get_score(recipe.id),
                    rating=record.user_rating or 0,
                    made_count=record.made_count,
                    page_number=recipe.page_number if recipe.page_number else math.inf,
                )
            return cache[recipe.id]

        ordered = self._sort_untagged([ranking_data(r) for r in untagged])

        ids = [recipe.id for recipe, _ in tagged] + [d.recipe.id for d in ordered]
        if self._renderer is not None:
            self._renderer(ids)
        return ids
