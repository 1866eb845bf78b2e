"""In-process store backends.

Each store keeps its records in a plain dict guarded by a single lock. The
lock is held only for synchronous work, so it never spans an ``await`` and
readers and writers simply take turns. Suitable for small working sets and
tests.
"""

from __future__ import annotations

import heapq
import itertools
import logging
import threading
from typing import Iterable, Optional

from ..core.errors import NotFound
from ..core.models import CityScore, NewsItem
from ..core.scoring import apply_tags, new_score
from .base import CityScoreStore, NewsStore, city_key, recency_score

logger = logging.getLogger(__name__)


class _NewsEntry:
    __slots__ = ("news", "city", "recency", "seq")

    def __init__(self, news: NewsItem, seq: int):
        self.news = news
        self.city = city_key(news.city)
        self.recency = recency_score(news.date)
        self.seq = seq


class InMemoryNewsStore(NewsStore):
    """News items in a dict keyed by id, ordered on read by recency."""

    def __init__(self, initial: Optional[Iterable[NewsItem]] = None):
        self._lock = threading.Lock()
        self._entries: dict[str, _NewsEntry] = {}
        self._seq = itertools.count()
        for news in initial or ():
            self._put(news)

    def _put(self, news: NewsItem) -> None:
        # Overwrite by id; a fresh sequence number makes the re-save the newest tie.
        self._entries[news.id] = _NewsEntry(news.model_copy(deep=True), next(self._seq))

    def _top(self, entries: Iterable[_NewsEntry], limit: int) -> list[NewsItem]:
        if limit <= 0:
            return []
        newest = heapq.nlargest(limit, entries, key=lambda e: (e.recency, e.seq))
        return [e.news.model_copy(deep=True) for e in newest]

    async def save(self, news: NewsItem) -> NewsItem:
        with self._lock:
            self._put(news)
        logger.debug("Stored news %s for %s", news.id, news.city)
        return news

    async def get(self, news_id: str) -> NewsItem:
        with self._lock:
            entry = self._entries.get(news_id)
            if entry is None:
                raise NotFound(f"News {news_id!r} not found")
            return entry.news.model_copy(deep=True)

    async def get_latest(self, limit: int) -> list[NewsItem]:
        with self._lock:
            return self._top(self._entries.values(), limit)

    async def get_latest_in_city(self, city: str, limit: int) -> list[NewsItem]:
        key = city_key(city)
        with self._lock:
            return self._top((e for e in self._entries.values() if e.city == key), limit)


class InMemoryCityScoreStore(CityScoreStore):
    """City scores in a dict keyed by lowercased city name."""

    def __init__(self):
        self._lock = threading.Lock()
        self._scores: dict[str, CityScore] = {}

    def _get_or_create(self, city: str, country: str) -> CityScore:
        key = city_key(city)
        score = self._scores.get(key)
        if score is None:
            score = new_score(city, country)
            self._scores[key] = score
            logger.info("Created score for %s (%s)", city, country or "unknown country")
        return score

    async def get_or_create(self, city: str, country: str) -> CityScore:
        with self._lock:
            return self._get_or_create(city, country).model_copy()

    async def save(self, score: CityScore) -> CityScore:
        with self._lock:
            self._scores[city_key(score.city)] = score.model_copy()
        return score

    async def get_top_cities(self, limit: int) -> list[CityScore]:
        if limit <= 0:
            return []
        with self._lock:
            snapshot = [s.model_copy() for s in self._scores.values()]
        snapshot.sort(key=lambda s: (s.total_score, s.key))
        return snapshot[:limit]

    async def accumulate(self, city: str, country: str, tags: Iterable[str]) -> CityScore:
        with self._lock:
            score = self._get_or_create(city, country)
            apply_tags(score, tags)
            return score.model_copy()
