from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import NamedTuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


class EngagementRecord(BaseModel):
    """Per-recipe user data, persisted with the camelCase keys of the store schema."""

    model_config = ConfigDict(populate_by_name=True, validate_assignment=True)

    user_rating: int | None = Field(default=None, alias="userRating", ge=1, le=5)
    made_dates: list[date] = Field(default_factory=list, alias="madeDates")
    last_viewed: datetime | None = Field(default=None, alias="lastViewed")
    view_count: int = Field(default=0, alias="viewCount", ge=0)
    favorite: bool = False
    tagged: bool = False
    tagged_at: datetime | None = Field(default=None, alias="taggedAt")

    @field_validator("last_viewed", "tagged_at")
    @classmethod
    def _assume_local_time(cls, value: datetime | None) -> datetime | None:
        # Naive timestamps are read as local time so they compare with the clock.
        if value is not None and value.tzinfo is None:
            return value.astimezone()
        return value

    @field_validator("made_dates")
    @classmethod
    def _unique_dates(cls, value: list[date]) -> list[date]:
        return list(dict.fromkeys(value))

    @property
    def made_count(self) -> int:
        return len(self.made_dates)

    def to_store(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


class MadeTodayResult(NamedTuple):
    made_today: bool
    made_count: int


class StepState(str, Enum):
    untouched = "untouched"
    active = "active"
    completed = "completed"
