"""Pydantic data models shared by the stores, the service and the server.

The stores persist these models as JSON and the scoring service and MCP
server exchange them with callers.
"""

from __future__ import annotations

import datetime
from enum import Enum
from typing import NamedTuple, Optional

from pydantic import BaseModel, Field, field_validator


class Metric(str, Enum):
    """The four livability metrics tracked per city."""

    QUALITY_OF_LIFE = "quality_of_life"
    SAFETY = "safety"
    ECONOMY = "economy"
    CULTURE = "culture"


class TagDelta(NamedTuple):
    """Signed adjustment applied to each metric when a tag is ingested."""

    quality_of_life: int = 0
    safety: int = 0
    economy: int = 0
    culture: int = 0


def normalize_tags(tags: Optional[list[str]]) -> list[str]:
    """Lowercase, strip and de-duplicate tags, keeping first-seen order.

    Raises ValueError for anything but a list of strings; a bare string would
    otherwise be read as one tag per character.
    """
    if tags is None:
        return []
    if not isinstance(tags, (list, tuple)):
        raise ValueError(f"tags must be a list of strings, got {type(tags).__name__}")
    seen: list[str] = []
    for tag in tags:
        if not isinstance(tag, str):
            raise ValueError(f"tag must be a string, got {type(tag).__name__}")
        cleaned = tag.strip().lower()
        if cleaned and cleaned not in seen:
            seen.append(cleaned)
    return seen


class NewsItem(BaseModel):
    """A tagged news event about a city. Never mutated once stored."""

    id: str = Field(description="Opaque unique identifier")
    headline: str
    source: str = ""
    date: datetime.date = Field(description="Publication date (no time of day)")
    tags: list[str] = Field(default_factory=list, description="Ordered set of lowercase tags")
    city: str
    country: str = ""

    @field_validator("tags", mode="before")
    @classmethod
    def _normalize_tags(cls, value):
        return normalize_tags(value)


class NewsCandidate(BaseModel):
    """Caller-supplied news before the service assigns an id and a date."""

    id: Optional[str] = None
    headline: str = ""
    source: str = ""
    date: Optional[datetime.date] = None
    tags: list[str] = Field(default_factory=list)
    city: str = ""
    country: str = ""

    @field_validator("id", "date", mode="before")
    @classmethod
    def _blank_is_missing(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("tags", mode="before")
    @classmethod
    def _normalize_tags(cls, value):
        return normalize_tags(value)


class CityScore(BaseModel):
    """Livability metrics for one city.

    Metrics start at 1000 and never drop below 0. The city name is the
    identity (compared case-insensitively); country is set once at creation.
    """

    city: str
    country: str = ""
    updated_at: datetime.date
    quality_of_life: int = Field(ge=0)
    safety: int = Field(ge=0)
    economy: int = Field(ge=0)
    culture: int = Field(ge=0)

    @property
    def key(self) -> str:
        return self.city.strip().lower()

    @property
    def total_score(self) -> int:
        return self.quality_of_life + self.safety + self.economy + self.culture

    def metrics(self) -> dict[Metric, int]:
        return {metric: getattr(self, metric.value) for metric in Metric}
