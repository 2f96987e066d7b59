from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Mapping

from ..catalog.database import RecipeCatalog
from ..engagement.store import EngagementStore
from ..scheduling import Scheduler
from .scoring import DEFAULT_RULES, DEFAULT_WEIGHTS, ScoringWeights, SeasonalRules, score_recipe

logger = logging.getLogger(__name__)


class RecommendationEngine:
    """Score cache in front of ``score_recipe``; invalidated per recipe."""

    def __init__(
        self,
        catalog: RecipeCatalog,
        engagement: EngagementStore,
        scheduler: Scheduler,
        rules: SeasonalRules = DEFAULT_RULES,
        weights: ScoringWeights = DEFAULT_WEIGHTS,
    ) -> None:
        self._catalog = catalog
        self._engagement = engagement
        self._scheduler = scheduler
        self._rules = rules
        self._weights = weights
        self._scores: dict[str, float] = {}

    @property
    def scores(self) -> Mapping[str, float]:
        return MappingProxyType(self._scores)

    def calculate_recipe_score(self, recipe_id: str) -> float:
        recipe = self._catalog.find_by_id(recipe_id)
        category_key = None
        if recipe is not None and recipe.category:
            category_key = self._catalog.get_category_key(recipe.category)
        return score_recipe(
            self._engagement.get_or_default(recipe_id),
            self._scheduler.now(),
            category_key=category_key,
            rules=self._rules,
            weights=self._weights,
        )

    def calculate_all_scores(self) -> None:
        self._scores.clear()
        for recipe_id in self._catalog.get_all_ids():
            self._scores[recipe_id] = self.calculate_recipe_score(recipe_id)
        logger.debug("Recalculated %d recommendation scores", len(self._scores))

    def get_score(self, recipe_id: str) -> float:
        if recipe_id not in self._scores:
            self._scores[recipe_id] = self.calculate_recipe_score(recipe_id)
        return self._scores[recipe_id]

    def update_score_for_recipe(self, recipe_id: str) -> float:
        score = self.calculate_recipe_score(recipe_id)
        self._scores[recipe_id] = score
        return score
