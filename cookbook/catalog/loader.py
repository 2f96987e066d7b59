from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import ValidationError

from ..config import DEFAULT_APP_CONFIG, AppConfig
from .models import LoadedCatalog, RecipesDocument
from .taxonomy import extract_taxonomy

logger = logging.getLogger(__name__)


class CatalogLoadError(RuntimeError):
    """Raised when neither the requested nor the default language can be loaded."""


def _read_json(path) -> Any:
    with open(path, encoding="utf-8") as fh:
        return json.load(fh)


def _load_language(language: str, config: AppConfig) -> LoadedCatalog:
    ui_text = _read_json(config.ui_path(language))
    if not isinstance(ui_text, dict):
        raise ValueError(f"UI text document for {language!r} is not an object")
    document = RecipesDocument.model_validate(_read_json(config.recipes_path(language)))
    return LoadedCatalog(
        language=language,
        ui_text=ui_text,
        recipes=document.recipes,
        taxonomy=extract_taxonomy(document.recipes),
    )


def load_catalog(
    language: str | None = None,
    config: AppConfig = DEFAULT_APP_CONFIG,
) -> LoadedCatalog:
    """
    Load UI text and recipes for *language*.

    Unsupported languages resolve to the default. A missing or malformed
    document triggers one retry with the default language; if that fails too
    a ``CatalogLoadError`` is raised and no partial catalog is returned.
    """
    if not language or language not in config.supported_languages:
        language = config.default_language

    try:
        catalog = _load_language(language, config)
    except (OSError, ValueError, ValidationError) as exc:
        logger.warning("Failed to load catalog for language %s", language, exc_info=True)
        if language == config.default_language:
            raise CatalogLoadError(
                f"Could not load catalog for default language {language!r}"
            ) from exc
        logger.info("Falling back to default language: %s", config.default_language)
        return load_catalog(config.default_language, config)

    logger.info("Loaded %d recipes for language %s", len(catalog.recipes), language)
    return catalog
