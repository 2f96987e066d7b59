from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class SyncMode(str, Enum):
    idle = "idle"
    replaying = "replaying-external-state"


class HistoryEntry(BaseModel):
    """Payload stored with each history step; authoritative on back/forward."""

    model_config = ConfigDict(populate_by_name=True)

    filters: list[tuple[str, bool]] = Field(default_factory=list)
    search: str = ""
    recipe_id: str | None = Field(default=None, alias="recipeId")


class LocationState(BaseModel):
    """State decoded from a location query string."""

    language: str | None = None
    filters: list[tuple[str, bool]] = Field(default_factory=list)
    search: str = ""
    recipe_id: str | None = None
