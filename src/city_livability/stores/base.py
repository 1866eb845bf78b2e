"""Store contracts shared by the in-memory and SQL backends.

Both backends implement the same coroutines with identical inputs and
outputs; they differ only in persistence and latency. City keys are derived
here so every backend normalises case the same way.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date, datetime, time, timezone
from typing import Iterable, Union

from ..core.models import CityScore, NewsItem

GLOBAL_SCOPE = "all"


def city_key(city: str) -> str:
    """Case-insensitive identity of a city."""
    return city.strip().lower()


def city_scope(city: str) -> str:
    """Name of the per-city recency index."""
    return f"city:{city_key(city)}"


def recency_score(published: Union[date, str, None]) -> float:
    """Seconds since the Unix epoch at midnight UTC of the publication date.

    Unparsable or missing dates score 0 so they sort as the oldest items.
    """
    if isinstance(published, datetime):
        published = published.date()
    if isinstance(published, str):
        try:
            published = date.fromisoformat(published.strip())
        except ValueError:
            return 0.0
    if not isinstance(published, date):
        return 0.0
    return datetime.combine(published, time.min, tzinfo=timezone.utc).timestamp()


class NewsStore(ABC):
    """Append-and-query store of news items ordered by recency."""

    @abstractmethod
    async def save(self, news: NewsItem) -> NewsItem:
        """Persist ``news``; re-saving an id overwrites it in every index."""

    @abstractmethod
    async def get(self, news_id: str) -> NewsItem:
        """Fetch one item by id or raise ``NotFound``."""

    @abstractmethod
    async def get_latest(self, limit: int) -> list[NewsItem]:
        """At most ``limit`` items, newest first."""

    @abstractmethod
    async def get_latest_in_city(self, city: str, limit: int) -> list[NewsItem]:
        """At most ``limit`` items for ``city`` (any casing), newest first."""


class CityScoreStore(ABC):
    """Per-city scores with a worst-first ranking."""

    @abstractmethod
    async def get_or_create(self, city: str, country: str) -> CityScore:
        """Return the stored score, creating it at base values when absent.

        ``country`` is only used on creation.
        """

    @abstractmethod
    async def save(self, score: CityScore) -> CityScore:
        """Upsert ``score`` under its city key and refresh the ranking."""

    @abstractmethod
    async def get_top_cities(self, limit: int) -> list[CityScore]:
        """At most ``limit`` scores in ascending total score (lowest first)."""

    @abstractmethod
    async def accumulate(self, city: str, country: str, tags: Iterable[str]) -> CityScore:
        """Atomically get-or-create the city's score, apply ``tags`` and save it."""
