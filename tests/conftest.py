"""Shared test fixtures.

Async code is driven with ``asyncio.run`` from plain test functions. Each
``open_*`` fixture returns an async context manager so the SQL engine is
created and disposed inside the same event loop as the test body.
"""

from contextlib import asynccontextmanager
from datetime import date

import pytest

from city_livability.core.models import NewsItem
from city_livability.db import close_db, create_engine, create_session_factory, init_db
from city_livability.stores import (
    InMemoryCityScoreStore,
    InMemoryNewsStore,
    SqlCityScoreStore,
    SqlNewsStore,
)


@pytest.fixture
def make_news():
    """Build a NewsItem with sensible defaults."""
    def _make(id="n1", headline="Headline", city="Paris", country="France", day=date(2026, 2, 20), tags=None, source="Wire"):
        return NewsItem(
            id=id,
            headline=headline,
            source=source,
            date=day,
            tags=tags or [],
            city=city,
            country=country,
        )
    return _make


@pytest.fixture
def sqlite_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'livability.db'}"


@pytest.fixture
def open_sql_factory(sqlite_url):
    """Async context manager yielding a session factory on a fresh database."""
    @asynccontextmanager
    async def _open():
        engine = create_engine(sqlite_url)
        await init_db(engine)
        try:
            yield create_session_factory(engine)
        finally:
            await close_db(engine)
    return _open


@pytest.fixture(params=["memory", "sqlite"])
def open_stores(request, open_sql_factory):
    """Async context manager yielding (news store, city score store) for each backend."""
    @asynccontextmanager
    async def _open():
        if request.param == "memory":
            yield InMemoryNewsStore(), InMemoryCityScoreStore()
            return
        async with open_sql_factory() as factory:
            yield SqlNewsStore(factory), SqlCityScoreStore(factory)
    return _open
