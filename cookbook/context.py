from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .catalog.database import RecipeCatalog
from .catalog.loader import load_catalog
from .catalog.models import LoadedCatalog
from .config import DEFAULT_APP_CONFIG, AppConfig
from .engagement.storage import JsonFileStore, KeyValueStore
from .engagement.store import EngagementStore
from .engagement.viewer import RecipeViewer
from .navigation.history import InMemoryHistory
from .navigation.location import detect_language
from .navigation.synchronizer import LocationSynchronizer
from .ranking.engine import RecommendationEngine
from .ranking.filtering import FilterEngine, SortOrder
from .ranking.scoring import SeasonalRules
from .scheduling import AsyncioScheduler, Scheduler

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    """Every engine component, wired once and passed explicitly."""

    config: AppConfig
    scheduler: Scheduler
    catalog: RecipeCatalog
    engagement: EngagementStore
    recommendations: RecommendationEngine
    filters: FilterEngine
    viewer: RecipeViewer
    history: InMemoryHistory
    sync: LocationSynchronizer
    rendered_ids: list[str] = field(default_factory=list)

    @property
    def language(self) -> str:
        return self.catalog.language

    def render(self, ids: list[str]) -> None:
        self.rendered_ids = list(ids)

    def activate_filter(self, dimension: str, value: str) -> bool:
        # Picking a filter from inside a recipe closes it first
        if self.viewer.current_recipe_id:
            self.viewer.close_recipe()
        return self.filters.activate_filter(dimension, value)

    def _on_view_flushed(self, recipe_id: str) -> None:
        self.recommendations.update_score_for_recipe(recipe_id)
        if self.filters.sort_order is SortOrder.recommendation:
            self.filters.apply_filters()


def build_context(
    config: AppConfig = DEFAULT_APP_CONFIG,
    scheduler: Scheduler | None = None,
    storage: KeyValueStore | None = None,
    location: str = "",
    catalog: LoadedCatalog | None = None,
) -> AppContext:
    """
    Construct and wire the engine for one client session.

    The catalog is loaded for the language named in *location* (falling back
    to the default language), scores are computed, and the initial location
    is replayed into state.
    """
    scheduler = scheduler or AsyncioScheduler()
    storage = storage if storage is not None else JsonFileStore(config.store_path)
    if catalog is None:
        language = detect_language(location, config.supported_languages, config.default_language)
        catalog = load_catalog(language, config)

    recipe_catalog = RecipeCatalog(catalog)
    engagement = EngagementStore(storage, scheduler, config.view_debounce_seconds)
    recommendations = RecommendationEngine(
        recipe_catalog,
        engagement,
        scheduler,
        rules=SeasonalRules(
            holiday_category_key=config.holiday_category_key,
            butchery_category_key=config.butchery_category_key,
        ),
    )
    filters = FilterEngine(
        recipe_catalog,
        engagement,
        recommendations,
        scheduler,
        recommendation_debounce_seconds=config.recommendation_debounce_seconds,
        collation_locale=config.collation_locale,
    )
    viewer = RecipeViewer(recipe_catalog, engagement, recommendations, filters, scheduler)
    history = InMemoryHistory(location)
    sync = LocationSynchronizer(recipe_catalog, filters, viewer, history, scheduler, config)

    context = AppContext(
        config=config,
        scheduler=scheduler,
        catalog=recipe_catalog,
        engagement=engagement,
        recommendations=recommendations,
        filters=filters,
        viewer=viewer,
        history=history,
        sync=sync,
    )

    filters.set_renderer(context.render)
    engagement.add_view_listener(context._on_view_flushed)
    filters.add_change_listener(sync.update_location)
    viewer.add_change_listener(sync.update_location)
    history.add_pop_listener(sync.on_history_pop)

    recommendations.calculate_all_scores()
    sync.initialize_from_location(location)
    logger.info(
        "Cookbook ready: %d recipes, language %s", len(recipe_catalog.get_all_ids()), context.language
    )
    return context
