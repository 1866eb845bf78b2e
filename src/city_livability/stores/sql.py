"""SQLAlchemy-backed store backends.

Records live in key-value tables as JSON payloads; the ``news_index`` and
``city_ranking`` tables are the ordered secondary indexes. Every store call
runs in its own session and commits at most once, so a failed or abandoned
call leaves the database as it was.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Iterable, Optional, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..core.errors import InfrastructureError, NotFound
from ..core.models import CityScore, NewsItem
from ..core.scoring import apply_tags, new_score
from ..sqlmodels import CityRankingEntry, CityScoreRecord, NewsIndexEntry, NewsRecord
from .base import GLOBAL_SCOPE, CityScoreStore, NewsStore, city_key, city_scope, recency_score

logger = logging.getLogger(__name__)

MAX_UPDATE_ATTEMPTS = 10

ModelT = TypeVar("ModelT", bound=BaseModel)


class _SqlStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    @asynccontextmanager
    async def _session(self, action: str) -> AsyncIterator[AsyncSession]:
        """Open a session, translating driver failures into InfrastructureError."""
        try:
            async with self._session_factory() as session:
                yield session
        except SQLAlchemyError as exc:
            logger.error("Failed to %s: %s", action, exc, exc_info=True)
            raise InfrastructureError(
                f"Failed to {action}",
                retryable=isinstance(exc, OperationalError),
            ) from exc

    @staticmethod
    def _decode(model: type[ModelT], payload: str) -> ModelT:
        try:
            return model.model_validate_json(payload)
        except PydanticValidationError as exc:
            raise InfrastructureError(f"Corrupt {model.__name__} record: {exc}") from exc


class SqlNewsStore(_SqlStore, NewsStore):
    """News records plus a global and a per-city recency index."""

    async def save(self, news: NewsItem) -> NewsItem:
        payload = news.model_dump_json()
        recency = recency_score(news.date)

        async with self._session("save news") as session:
            record = await session.get(NewsRecord, news.id)
            if record:
                record.payload = payload
            else:
                session.add(NewsRecord(id=news.id, payload=payload))

            # Drop previous entries so a re-save (possibly for another city) never duplicates.
            await session.execute(delete(NewsIndexEntry).where(NewsIndexEntry.news_id == news.id))
            session.add_all([
                NewsIndexEntry(scope=GLOBAL_SCOPE, news_id=news.id, recency=recency),
                NewsIndexEntry(scope=city_scope(news.city), news_id=news.id, recency=recency),
            ])
            await session.commit()

        logger.debug("Stored news %s for %s", news.id, news.city)
        return news

    async def get(self, news_id: str) -> NewsItem:
        async with self._session("load news") as session:
            record = await session.get(NewsRecord, news_id)
            payload = record.payload if record else None

        if payload is None:
            raise NotFound(f"News {news_id!r} not found")
        return self._decode(NewsItem, payload)

    async def get_latest(self, limit: int) -> list[NewsItem]:
        return await self._latest(GLOBAL_SCOPE, limit)

    async def get_latest_in_city(self, city: str, limit: int) -> list[NewsItem]:
        return await self._latest(city_scope(city), limit)

    async def _latest(self, scope: str, limit: int) -> list[NewsItem]:
        if limit <= 0:
            return []

        async with self._session("load latest news") as session:
            result = await session.execute(
                select(NewsIndexEntry.news_id)
                .where(NewsIndexEntry.scope == scope)
                .order_by(NewsIndexEntry.recency.desc(), NewsIndexEntry.seq.desc())
                .limit(limit)
            )
            ids = list(result.scalars().all())
            if not ids:
                return []

            records = await session.execute(select(NewsRecord).where(NewsRecord.id.in_(ids)))
            payloads = {r.id: r.payload for r in records.scalars().all()}

        return [self._decode(NewsItem, payloads[i]) for i in ids if i in payloads]


class SqlCityScoreStore(_SqlStore, CityScoreStore):
    """City score records plus a ranking index on total score."""

    async def get_or_create(self, city: str, country: str) -> CityScore:
        key = city_key(city)

        async with self._session("load city score") as session:
            record = await session.get(CityScoreRecord, key)
            if record:
                return self._decode(CityScore, record.payload)

            score = new_score(city, country)
            session.add(CityScoreRecord(key=key, payload=score.model_dump_json(), version=1))
            try:
                await self._rank(session, score)
                await session.commit()
            except IntegrityError:
                # Created concurrently; the committed row wins.
                await session.rollback()
                record = await session.get(CityScoreRecord, key)
                if record is None:
                    raise
                return self._decode(CityScore, record.payload)

        logger.info("Created score for %s (%s)", city, country or "unknown country")
        return score

    async def save(self, score: CityScore) -> CityScore:
        payload = score.model_dump_json()

        async with self._session("save city score") as session:
            record = await session.get(CityScoreRecord, score.key)
            if record:
                record.payload = payload
                record.version += 1
                await self._rank(session, score)
                await session.commit()
                return score

            session.add(CityScoreRecord(key=score.key, payload=payload, version=1))
            try:
                await self._rank(session, score)
                await session.commit()
            except IntegrityError:
                # Created concurrently; overwrite the committed row.
                await session.rollback()
                record = await session.get(CityScoreRecord, score.key)
                if record is None:
                    raise
                record.payload = payload
                record.version += 1
                await self._rank(session, score)
                await session.commit()
        return score

    async def get_top_cities(self, limit: int) -> list[CityScore]:
        if limit <= 0:
            return []

        async with self._session("load city ranking") as session:
            result = await session.execute(
                select(CityRankingEntry.key)
                .order_by(CityRankingEntry.total_score.asc(), CityRankingEntry.key.asc())
                .limit(limit)
            )
            keys = list(result.scalars().all())
            if not keys:
                return []

            records = await session.execute(select(CityScoreRecord).where(CityScoreRecord.key.in_(keys)))
            payloads = {r.key: r.payload for r in records.scalars().all()}

        return [self._decode(CityScore, payloads[k]) for k in keys if k in payloads]

    async def accumulate(self, city: str, country: str, tags: Iterable[str]) -> CityScore:
        """Optimistic read-modify-write keyed on the record version.

        The update only lands if nobody else wrote the city since it was read;
        otherwise the whole cycle is retried from a fresh read.
        """
        tags = list(tags)
        key = city_key(city)

        for attempt in range(1, MAX_UPDATE_ATTEMPTS + 1):
            score = await self._try_accumulate(key, city, country, tags)
            if score is not None:
                return score
            logger.warning("Concurrent update on %s, retrying (attempt %d/%d)", key, attempt, MAX_UPDATE_ATTEMPTS)

        raise InfrastructureError(
            f"Gave up updating score for {city!r} after {MAX_UPDATE_ATTEMPTS} conflicting writes",
            retryable=True,
        )

    async def _try_accumulate(self, key: str, city: str, country: str, tags: list[str]) -> Optional[CityScore]:
        async with self._session("update city score") as session:
            record = await session.get(CityScoreRecord, key)

            if record is None:
                score = new_score(city, country)
                apply_tags(score, tags)
                session.add(CityScoreRecord(key=key, payload=score.model_dump_json(), version=1))
                try:
                    await self._rank(session, score)
                    await session.commit()
                except IntegrityError:
                    await session.rollback()
                    return None
                return score

            score = self._decode(CityScore, record.payload)
            version = record.version
            apply_tags(score, tags)

            result = await session.execute(
                update(CityScoreRecord)
                .where(CityScoreRecord.key == key, CityScoreRecord.version == version)
                .values(payload=score.model_dump_json(), version=version + 1)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                await session.rollback()
                return None

            await self._rank(session, score)
            await session.commit()
            return score

    @staticmethod
    async def _rank(session: AsyncSession, score: CityScore) -> None:
        entry = await session.get(CityRankingEntry, score.key)
        if entry:
            entry.total_score = score.total_score
        else:
            session.add(CityRankingEntry(key=score.key, total_score=score.total_score))
