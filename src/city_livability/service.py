"""Scoring service: ingests news and serves news and city rankings.

Stateless across calls: everything lives in the two injected stores. News
persistence and score accumulation are separate store calls with no shared
transaction: if the score update fails the news item stays stored and the
error reaches the caller.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import date
from typing import Any, Awaitable, Mapping, Optional, TypeVar, Union

from pydantic import ValidationError as PydanticValidationError

from .core.errors import InfrastructureError, InvalidArgument, LivabilityError, ValidationError
from .core.models import CityScore, NewsCandidate, NewsItem
from .stores.base import CityScoreStore, NewsStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ScoringService:
    """Orchestrates the news store and the city score store."""

    def __init__(
        self,
        news_store: NewsStore,
        city_scores: CityScoreStore,
        *,
        timeout: Optional[float] = None,
    ):
        self._news = news_store
        self._scores = city_scores
        self._timeout = timeout

    async def ingest_news(self, candidate: Union[NewsCandidate, Mapping[str, Any]]) -> NewsItem:
        """Store a news item and fold its tags into its city's score.

        Assigns an id and today's date when missing. Raises ValidationError
        before any store write if the headline or city is blank.
        """
        news = self._build_news(candidate)
        stored = await self._call("save news", self._news.save(news))

        if stored.tags:
            try:
                score = await self._call(
                    "update city score",
                    self._scores.accumulate(stored.city, stored.country, stored.tags),
                )
            except LivabilityError:
                logger.error(
                    "News %s was stored but the score update for %s failed",
                    stored.id, stored.city, exc_info=True,
                )
                raise
            logger.info("Ingested news %s; %s total score is now %d", stored.id, score.city, score.total_score)
        else:
            logger.info("Ingested untagged news %s for %s", stored.id, stored.city)

        return stored

    async def latest_news(self, limit: int, city: Optional[str] = None) -> list[NewsItem]:
        """Newest news first, globally or for one city."""
        _check_limit(limit)
        if city is None:
            return await self._call("load latest news", self._news.get_latest(limit))
        return await self._call(
            "load latest city news",
            self._news.get_latest_in_city(_require_city(city), limit),
        )

    async def get_news(self, news_id: str) -> NewsItem:
        if not news_id or not news_id.strip():
            raise InvalidArgument("news id is required")
        return await self._call("load news", self._news.get(news_id.strip()))

    async def city_score(self, city: str, country: str = "") -> CityScore:
        """The city's current score, created at base values if never seen."""
        return await self._call(
            "load city score",
            self._scores.get_or_create(_require_city(city), country),
        )

    async def top_cities(self, limit: int) -> list[CityScore]:
        """Lowest total scores first (worst-first ranking)."""
        _check_limit(limit)
        return await self._call("load city ranking", self._scores.get_top_cities(limit))

    def _build_news(self, candidate: Union[NewsCandidate, Mapping[str, Any]]) -> NewsItem:
        if not isinstance(candidate, NewsCandidate):
            try:
                candidate = NewsCandidate.model_validate(candidate)
            except PydanticValidationError as exc:
                raise ValidationError(f"Invalid news: {exc}") from exc

        headline = candidate.headline.strip()
        city = candidate.city.strip()
        if not headline or not city:
            raise ValidationError("headline and city are required")

        return NewsItem(
            id=candidate.id or str(uuid.uuid4()),
            headline=headline,
            source=candidate.source,
            date=candidate.date or date.today(),
            tags=candidate.tags,
            city=city,
            country=candidate.country.strip(),
        )

    async def _call(self, action: str, operation: Awaitable[T]) -> T:
        """Await a store call, bounded by the configured timeout.

        A timed-out call is cancelled; stores leave no partial writes behind,
        so the resulting InfrastructureError is marked retryable.
        """
        if self._timeout is None:
            return await operation
        try:
            return await asyncio.wait_for(operation, self._timeout)
        except asyncio.TimeoutError as exc:
            logger.error("Timed out after %.1fs trying to %s", self._timeout, action)
            raise InfrastructureError(f"Timed out trying to {action}", retryable=True) from exc


def _require_city(city: Optional[str]) -> str:
    if not city or not city.strip():
        raise InvalidArgument("city is required")
    return city.strip()


def _check_limit(limit: int) -> None:
    if limit < 0:
        raise InvalidArgument(f"limit must be non-negative, got {limit}")
