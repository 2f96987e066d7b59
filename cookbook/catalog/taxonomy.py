from __future__ import annotations

import re
from typing import Iterable

from .models import Recipe, Taxonomy

FILTER_DIMENSIONS: tuple[str, ...] = ("category", "meal", "cuisine")

_SEPARATOR_RE = re.compile(r"[\s-]+")


def canonical_key(display_value: str) -> str:
    """Lower-case a display string and strip whitespace and hyphens.

    ``"Middag - Fisk"`` becomes ``"middagfisk"``. The key is what travels in
    shareable links so they survive a change of language.
    """
    return _SEPARATOR_RE.sub("", display_value.lower())


def extract_taxonomy(recipes: Iterable[Recipe]) -> Taxonomy:
    taxonomy = Taxonomy()
    for recipe in recipes:
        if recipe.category:
            taxonomy.categories[canonical_key(recipe.category)] = recipe.category
        if recipe.meal:
            taxonomy.meals[canonical_key(recipe.meal)] = recipe.meal
        if recipe.cuisine:
            taxonomy.cuisines[canonical_key(recipe.cuisine)] = recipe.cuisine
        if recipe.reference:
            taxonomy.sources[canonical_key(recipe.reference)] = recipe.reference
    return taxonomy


def find_key(mapping: dict[str, str], display_value: str) -> str | None:
    """Reverse lookup: first canonical key whose display string matches."""
    for key, value in mapping.items():
        if value == display_value:
            return key
    return None
