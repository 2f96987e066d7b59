"""
Location query-string codec.

Parameters are written in a fixed order (``lang``, ``filter``, ``search``,
``recipe``) and read in any order. Filter values travel as canonical taxonomy
keys so a link made in one language opens the same filters in another.
"""
from __future__ import annotations

from typing import Iterable
from urllib.parse import parse_qsl, quote

from ..catalog.models import Taxonomy
from ..catalog.taxonomy import find_key
from .models import LocationState


def query_part(location: str) -> str:
    """Return the query portion of a URL, path or bare query string."""
    if "?" in location:
        location = location.split("?", 1)[1]
    return location.split("#", 1)[0]


def canonical_filter_key(key: str, taxonomy: Taxonomy) -> str:
    """``"category:Kaker"`` -> ``"category:kaker"``; unknown values pass through."""
    dimension, _, value = key.partition(":")
    canonical = find_key(taxonomy.for_dimension(dimension), value)
    return f"{dimension}:{canonical or value}"


def localized_filter_key(key: str, taxonomy: Taxonomy) -> str:
    """``"category:kaker"`` -> ``"category:Kaker"``; unknown keys are used literally."""
    dimension, _, canonical = key.partition(":")
    localized = taxonomy.for_dimension(dimension).get(canonical, canonical)
    return f"{dimension}:{localized}"


def build_query(
    language: str,
    default_language: str,
    filters: Iterable[tuple[str, bool]],
    search: str,
    recipe_id: str | None,
    taxonomy: Taxonomy,
) -> str:
    parts: list[str] = []

    if language != default_language:
        parts.append(f"lang={language}")

    active = [canonical_filter_key(key, taxonomy) for key, enabled in filters if enabled]
    if active:
        parts.append("filter=" + ",".join(active))

    if search:
        parts.append("search=" + quote(search, safe=""))

    if recipe_id:
        parts.append(f"recipe={recipe_id}")

    return "?" + "&".join(parts) if parts else ""


def detect_language(location: str, supported: Iterable[str], default: str) -> str:
    params = dict(parse_qsl(query_part(location)))
    lang = params.get("lang")
    if lang and lang in tuple(supported):
        return lang
    return default


def parse_query(
    location: str,
    taxonomy: Taxonomy,
    supported_languages: Iterable[str] = (),
) -> LocationState:
    params = dict(parse_qsl(query_part(location)))
    state = LocationState()

    lang = params.get("lang")
    if lang and lang in tuple(supported_languages):
        state.language = lang

    filter_param = params.get("filter")
    if filter_param:
        for item in filter_param.split(","):
            if ":" not in item:
                continue
            state.filters.append((localized_filter_key(item, taxonomy), True))

    search = params.get("search")
    if search:
        state.search = search.strip().casefold()

    recipe = params.get("recipe")
    if recipe:
        state.recipe_id = recipe

    return state
