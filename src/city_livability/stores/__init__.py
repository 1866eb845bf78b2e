"""News and city-score stores.

Backends are picked once at startup by ``build_stores`` and injected into
the scoring service, which only sees the abstract contracts.
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..config import Settings
from ..demo import demo_news
from .base import CityScoreStore, NewsStore, city_key, recency_score
from .memory import InMemoryCityScoreStore, InMemoryNewsStore
from .sql import SqlCityScoreStore, SqlNewsStore

logger = logging.getLogger(__name__)

__all__ = [
    "CityScoreStore",
    "InMemoryCityScoreStore",
    "InMemoryNewsStore",
    "NewsStore",
    "SqlCityScoreStore",
    "SqlNewsStore",
    "build_stores",
    "city_key",
    "recency_score",
]


def build_stores(
    settings: Settings,
    session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
) -> tuple[NewsStore, CityScoreStore]:
    """Construct the (news store, city score store) pair for ``settings.backend``.

    The SQL backend needs a session factory; the caller owns its engine.
    """
    if settings.backend == "sqlite":
        if session_factory is None:
            raise ValueError("The sqlite backend requires a session factory")
        logger.info("Using SQL stores")
        return SqlNewsStore(session_factory), SqlCityScoreStore(session_factory)

    initial = demo_news() if settings.seed_demo_news else None
    logger.info("Using in-memory stores (%d seeded news items)", len(initial or []))
    return InMemoryNewsStore(initial), InMemoryCityScoreStore()
