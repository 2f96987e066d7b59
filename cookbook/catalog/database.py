from __future__ import annotations

from .models import LoadedCatalog, Recipe, Taxonomy
from .taxonomy import find_key


class RecipeCatalog:
    """In-memory recipe lookup over the currently loaded language."""

    def __init__(self, loaded: LoadedCatalog) -> None:
        self.replace(loaded)

    def replace(self, loaded: LoadedCatalog) -> None:
        self._loaded = loaded
        self._by_id: dict[str, Recipe] = {r.id: r for r in loaded.recipes}

    @property
    def language(self) -> str:
        return self._loaded.language

    @property
    def taxonomy(self) -> Taxonomy:
        return self._loaded.taxonomy

    @property
    def ui_text(self) -> dict:
        return self._loaded.ui_text

    def find_by_id(self, recipe_id: str) -> Recipe | None:
        return self._by_id.get(recipe_id)

    def find_by_title(self, title: str) -> Recipe | None:
        wanted = title.lower()
        for recipe in self._loaded.recipes:
            if recipe.title.lower() == wanted:
                return recipe
        return None

    def get_all_ids(self) -> list[str]:
        return [r.id for r in self._loaded.recipes]

    def get_all(self) -> list[Recipe]:
        return list(self._loaded.recipes)

    def get_filters(self) -> dict[str, list[str]]:
        return {
            "categories": sorted(self.taxonomy.categories.values()),
            "meals": sorted(self.taxonomy.meals.values()),
            "cuisines": sorted(self.taxonomy.cuisines.values()),
        }

    def get_category_key(self, value: str) -> str | None:
        return find_key(self.taxonomy.categories, value)

    def get_meal_key(self, value: str) -> str | None:
        return find_key(self.taxonomy.meals, value)

    def get_cuisine_key(self, value: str) -> str | None:
        return find_key(self.taxonomy.cuisines, value)
