from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from ..engagement.models import EngagementRecord

_SECONDS_PER_DAY = 24 * 60 * 60


@dataclass(frozen=True)
class ScoringWeights:
    base: float = 20.0
    user_rating: float = 10.0
    never_viewed: float = 30.0
    made_count: float = 5.0
    made_count_cap: int = 10
    nostalgia_bonus: float = 10.0
    nostalgia_after_days: float = 30.0

    recency_today: float = 0.5   # viewed within a day
    recency_recent: float = 0.7  # within 3 days
    recency_week: float = 0.85   # within a week
    recency_normal: float = 1.0

    holiday_season: float = 1.5      # November-December
    holiday_january: float = 1.2
    holiday_off_season: float = 0.05
    butchery: float = 0.01


@dataclass(frozen=True)
class SeasonalRules:
    holiday_category_key: str = "julekaker"
    butchery_category_key: str = "slakteveiledning"


DEFAULT_WEIGHTS = ScoringWeights()
DEFAULT_RULES = SeasonalRules()


def days_since(then: datetime, now: datetime) -> float:
    return (now - then).total_seconds() / _SECONDS_PER_DAY


def recency_multiplier(days_since_view: float, weights: ScoringWeights = DEFAULT_WEIGHTS) -> float:
    if days_since_view < 1:
        return weights.recency_today
    if days_since_view < 3:
        return weights.recency_recent
    if days_since_view < 7:
        return weights.recency_week
    return weights.recency_normal


def seasonal_multiplier(
    category_key: str | None,
    month: int,
    rules: SeasonalRules = DEFAULT_RULES,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
) -> float:
    multiplier = 1.0
    if category_key == rules.holiday_category_key:
        if month in (11, 12):
            multiplier *= weights.holiday_season
        elif month == 1:
            multiplier *= weights.holiday_january
        else:
            multiplier *= weights.holiday_off_season
    if category_key == rules.butchery_category_key:
        multiplier *= weights.butchery
    return multiplier


def score_recipe(
    engagement: EngagementRecord,
    now: datetime,
    category_key: str | None = None,
    rules: SeasonalRules = DEFAULT_RULES,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
) -> float:
    """
    Blend explicit and implicit signal into a recommendation score.

    Recently viewed recipes are softly suppressed, unseen and well-rated ones
    are promoted, and seasonal or reference categories sink except during
    their window. The recency multiplier only scales the base, rating and
    never-viewed terms; nostalgia and made-count bonuses are added after it.
    """
    score = weights.base

    if engagement.user_rating:
        score += engagement.user_rating * weights.user_rating

    elapsed: float | None = None
    if engagement.last_viewed is None:
        score += weights.never_viewed
    else:
        elapsed = days_since(engagement.last_viewed, now)
        score *= recency_multiplier(elapsed, weights)

    if elapsed is not None and elapsed > weights.nostalgia_after_days:
        score += weights.nostalgia_bonus

    if engagement.made_count:
        per_cook = weights.made_count / weights.made_count_cap
        score += min(engagement.made_count, weights.made_count_cap) * per_cook

    score *= seasonal_multiplier(category_key, now.month, rules, weights)

    return max(score, 0.0)
