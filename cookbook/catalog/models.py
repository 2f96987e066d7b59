from __future__ import annotations

from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field


class IngredientGroup(BaseModel):
    model_config = ConfigDict(extra="allow")

    title: str | None = None
    items: list[str] = Field(default_factory=list)


class InstructionGroup(BaseModel):
    model_config = ConfigDict(extra="allow")

    group: str | None = None
    items: list[Any] = Field(default_factory=list)


class Recipe(BaseModel):
    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)

    id: str = Field(..., min_length=1)
    title: str
    description: str | None = None
    category: str | None = None
    meal: str | None = None
    cuisine: str | None = None
    reference: str | None = None
    provider: str | None = None
    page_number: int | None = Field(default=None, alias="pageNumber")
    image: str | None = None
    servings: Any = None
    tip: str | None = None
    ingredients: list[Union[str, IngredientGroup]] = Field(default_factory=list)
    instructions: list[Union[str, InstructionGroup]] = Field(default_factory=list)

    def ingredient_lines(self) -> list[str]:
        """Flatten plain and grouped ingredient lines in display order."""
        lines: list[str] = []
        for item in self.ingredients:
            if isinstance(item, str):
                lines.append(item)
            else:
                lines.extend(item.items)
        return lines


class RecipesDocument(BaseModel):
    recipes: list[Recipe] = Field(default_factory=list)


class Taxonomy(BaseModel):
    categories: dict[str, str] = Field(default_factory=dict)
    meals: dict[str, str] = Field(default_factory=dict)
    cuisines: dict[str, str] = Field(default_factory=dict)
    sources: dict[str, str] = Field(default_factory=dict)

    def for_dimension(self, dimension: str) -> dict[str, str]:
        """Return the canonical-key map backing a filter dimension."""
        return {
            "category": self.categories,
            "meal": self.meals,
            "cuisine": self.cuisines,
        }.get(dimension, {})


class LoadedCatalog(BaseModel):
    language: str
    ui_text: dict[str, Any] = Field(default_factory=dict)
    recipes: list[Recipe] = Field(default_factory=list)
    taxonomy: Taxonomy = Field(default_factory=Taxonomy)
