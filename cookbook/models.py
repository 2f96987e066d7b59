from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from .engagement.models import StepState
from .ranking.filtering import SortOrder


class SortRequest(BaseModel):
    order: SortOrder


class FilterRequest(BaseModel):
    dimension: str = Field(..., pattern=r"^(category|meal|cuisine)$")
    value: str = Field(..., min_length=1)


class FilterKeyRequest(BaseModel):
    key: str = Field(..., min_length=3, description='Filter key, e.g. "category:Kaker"')


class SearchRequest(BaseModel):
    query: str = Field(default="", max_length=200)


class RatingRequest(BaseModel):
    rating: int = Field(..., ge=1, le=5)


class LocationRequest(BaseModel):
    location: str = Field(default="", description="Query string or URL to replay")


class RecipeListResponse(BaseModel):
    ids: list[str]
    total: int
    sort_order: SortOrder
    active_filters: list[tuple[str, bool]] = Field(default_factory=list)
    search: str = ""
    open_recipe_id: str | None = None


class RecipeDetailResponse(BaseModel):
    recipe: dict[str, Any]
    score: float


class TagResponse(BaseModel):
    recipe_id: str
    tagged: bool


class MadeTodayResponse(BaseModel):
    recipe_id: str
    made_today: bool
    made_count: int


class LocationResponse(BaseModel):
    location: str
    share_url: str
    mode: str
    can_go_back: bool
    can_go_forward: bool


class ShareLinkResponse(BaseModel):
    url: str


class StepResponse(BaseModel):
    recipe_id: str
    step_index: int
    state: StepState
