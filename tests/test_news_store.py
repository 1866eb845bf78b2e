"""News store contract tests, run against both backends."""

import asyncio
from datetime import date, datetime, timezone

import pytest
from sqlalchemy import func, select

from city_livability.core.errors import InfrastructureError, NotFound
from city_livability.sqlmodels import NewsIndexEntry, NewsRecord
from city_livability.stores import InMemoryNewsStore, SqlNewsStore, recency_score


class TestRecencyScore:

    def test_epoch_seconds_at_midnight_utc(self):
        expected = datetime(2026, 2, 20, tzinfo=timezone.utc).timestamp()
        assert recency_score(date(2026, 2, 20)) == expected
        assert recency_score("2026-02-20") == expected

    def test_unparsable_scores_zero(self):
        assert recency_score("not a date") == 0.0
        assert recency_score("") == 0.0
        assert recency_score(None) == 0.0

    def test_later_dates_score_higher(self):
        assert recency_score(date(2026, 2, 21)) > recency_score(date(2026, 2, 20))


def test_save_returns_item_unchanged(open_stores, make_news):
    async def scenario():
        async with open_stores() as (news_store, _):
            news = make_news(tags=["innovation"])
            assert await news_store.save(news) == news
            assert await news_store.get("n1") == news

    asyncio.run(scenario())


def test_get_missing_raises_not_found(open_stores):
    async def scenario():
        async with open_stores() as (news_store, _):
            with pytest.raises(NotFound):
                await news_store.get("missing")

    asyncio.run(scenario())


def test_latest_is_newest_first_and_limited(open_stores, make_news):
    async def scenario():
        async with open_stores() as (news_store, _):
            for i, day in enumerate([date(2026, 2, 17), date(2026, 2, 20), date(2026, 2, 18), date(2026, 2, 19)]):
                await news_store.save(make_news(id=f"n{i}", day=day))

            latest = await news_store.get_latest(3)
            assert [n.date for n in latest] == [date(2026, 2, 20), date(2026, 2, 19), date(2026, 2, 18)]
            assert len(await news_store.get_latest(10)) == 4
            assert await news_store.get_latest(0) == []

    asyncio.run(scenario())


def test_ties_are_latest_save_first(open_stores, make_news):
    async def scenario():
        async with open_stores() as (news_store, _):
            for news_id in ("a", "b", "c"):
                await news_store.save(make_news(id=news_id))
            assert [n.id for n in await news_store.get_latest(3)] == ["c", "b", "a"]

    asyncio.run(scenario())


def test_latest_in_city_filters_case_insensitively(open_stores, make_news):
    async def scenario():
        async with open_stores() as (news_store, _):
            await news_store.save(make_news(id="p1", city="Paris", day=date(2026, 2, 18)))
            await news_store.save(make_news(id="b1", city="Berlin", day=date(2026, 2, 21)))
            await news_store.save(make_news(id="p2", city="PARIS", day=date(2026, 2, 20)))

            paris = await news_store.get_latest_in_city("paris", 10)
            assert [n.id for n in paris] == ["p2", "p1"]
            assert all(n.city.lower() == "paris" for n in paris)
            assert [n.id for n in await news_store.get_latest_in_city("Paris", 1)] == ["p2"]
            assert await news_store.get_latest_in_city("Madrid", 10) == []

    asyncio.run(scenario())


def test_resave_overwrites_by_id(open_stores, make_news):
    async def scenario():
        async with open_stores() as (news_store, _):
            await news_store.save(make_news(id="n1", city="Paris", headline="First"))
            await news_store.save(make_news(id="n1", city="Berlin", headline="Second"))

            latest = await news_store.get_latest(10)
            assert [(n.id, n.headline) for n in latest] == [("n1", "Second")]
            assert await news_store.get_latest_in_city("Paris", 10) == []
            assert [n.id for n in await news_store.get_latest_in_city("berlin", 10)] == ["n1"]

    asyncio.run(scenario())


def test_concurrent_saves_are_all_indexed(open_stores, make_news):
    async def scenario():
        async with open_stores() as (news_store, _):
            await asyncio.gather(*(news_store.save(make_news(id=f"n{i}")) for i in range(20)))
            assert len(await news_store.get_latest(50)) == 20

    asyncio.run(scenario())


def test_memory_store_seeded_items(make_news):
    async def scenario():
        store = InMemoryNewsStore([make_news(id="old", day=date(2026, 1, 1))])
        await store.save(make_news(id="new", day=date(2026, 3, 1)))
        assert [n.id for n in await store.get_latest(5)] == ["new", "old"]

    asyncio.run(scenario())


def test_memory_store_returns_copies(make_news):
    async def scenario():
        store = InMemoryNewsStore()
        await store.save(make_news(tags=["crime"]))
        fetched = await store.get("n1")
        fetched.tags.append("festival")
        assert (await store.get("n1")).tags == ["crime"]

    asyncio.run(scenario())


def test_sql_layout(open_sql_factory, make_news):
    async def scenario():
        async with open_sql_factory() as factory:
            store = SqlNewsStore(factory)
            await store.save(make_news(id="n1", city="Paris"))
            await store.save(make_news(id="n1", city="Paris"))
            await store.save(make_news(id="n2", city="Berlin"))

            async with factory() as session:
                records = (await session.execute(select(func.count()).select_from(NewsRecord))).scalar_one()
                scopes = (await session.execute(
                    select(NewsIndexEntry.scope, func.count()).group_by(NewsIndexEntry.scope)
                )).all()

            assert records == 2
            assert dict(scopes) == {"all": 2, "city:paris": 1, "city:berlin": 1}

    asyncio.run(scenario())


def test_sql_skips_index_entries_without_record(open_sql_factory, make_news):
    async def scenario():
        async with open_sql_factory() as factory:
            store = SqlNewsStore(factory)
            await store.save(make_news(id="n1"))
            async with factory() as session:
                session.add(NewsIndexEntry(scope="all", news_id="ghost", recency=1e12))
                await session.commit()

            assert [n.id for n in await store.get_latest(5)] == ["n1"]

    asyncio.run(scenario())


def test_sql_corrupt_payload_is_infrastructure_error(open_sql_factory):
    async def scenario():
        async with open_sql_factory() as factory:
            async with factory() as session:
                session.add(NewsRecord(id="bad", payload="{not json"))
                await session.commit()

            with pytest.raises(InfrastructureError):
                await SqlNewsStore(factory).get("bad")

    asyncio.run(scenario())


def test_sql_unreachable_database_is_infrastructure_error(tmp_path, make_news):
    from city_livability.db import close_db, create_engine, create_session_factory

    async def scenario():
        # Tables were never created.
        engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'empty.db'}")
        try:
            store = SqlNewsStore(create_session_factory(engine))
            with pytest.raises(InfrastructureError):
                await store.save(make_news())
        finally:
            await close_db(engine)

    asyncio.run(scenario())
