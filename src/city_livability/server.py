"""City Livability MCP Server.

FastMCP server exposing news ingestion, latest news, and city rankings.
Run: city-livability-mcp
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Optional, TypeVar

from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ToolError
from mcp.types import ToolAnnotations

from .config import Settings, load_settings
from .core.errors import InfrastructureError, NotFound, ValidationError
from .core.models import CityScore, NewsItem
from .db import close_db, create_engine, create_session_factory, init_db
from .service import ScoringService
from .stores import build_stores

logger = logging.getLogger(__name__)

READ_ONLY = ToolAnnotations(readOnlyHint=True, destructiveHint=False, idempotentHint=True, openWorldHint=False)
WRITE = ToolAnnotations(readOnlyHint=False, destructiveHint=False, idempotentHint=False, openWorldHint=False)

T = TypeVar("T")

_settings: Optional[Settings] = None
_service: Optional[ScoringService] = None


@asynccontextmanager
async def lifespan(server: FastMCP) -> AsyncIterator[None]:
    """Load settings, open the database when configured, and build the service."""
    global _settings, _service
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")

    _settings = load_settings()
    engine = None
    session_factory = None
    if _settings.backend == "sqlite":
        engine = create_engine(_settings.resolved_database_url())
        await init_db(engine)
        session_factory = create_session_factory(engine)

    news_store, city_scores = build_stores(_settings, session_factory)
    _service = ScoringService(news_store, city_scores, timeout=_settings.store_timeout_seconds)
    try:
        yield
    finally:
        _service = None
        if engine is not None:
            await close_db(engine)


mcp = FastMCP(
    "City Livability",
    instructions="Submit tagged city news and ask which cities are doing worst on quality of life, safety, economy, and culture.",
    lifespan=lifespan,
)


def _get_service() -> ScoringService:
    if _service is None:
        raise ToolError("Service is not initialized")
    return _service


def _limit(limit: int) -> int:
    if limit == 0:
        return _settings.default_limit if _settings else 10
    return limit


async def _run(action: str, operation: Awaitable[T]) -> T:
    """Map domain errors to tool errors without leaking infrastructure detail."""
    try:
        return await operation
    except NotFound as exc:
        raise ToolError(f"Not found: {exc}") from exc
    except ValidationError as exc:
        raise ToolError(f"Invalid argument: {exc}") from exc
    except InfrastructureError as exc:
        logger.error("%s failed: %s", action, exc, exc_info=True)
        hint = " Please retry." if exc.retryable else ""
        raise ToolError(f"Internal error while trying to {action}.{hint}") from exc


def _news_to_dict(news: NewsItem) -> dict:
    return {
        "id": news.id,
        "headline": news.headline,
        "source": news.source,
        "date": news.date.isoformat(),
        "tags": list(news.tags),
        "city": news.city,
        "country": news.country,
    }


def _score_to_dict(score: CityScore) -> dict:
    return {
        "city": score.city,
        "country": score.country,
        "updated_at": score.updated_at.isoformat(),
        "quality_of_life": score.quality_of_life,
        "safety": score.safety,
        "economy": score.economy,
        "culture": score.culture,
        "total_score": score.total_score,
    }


# ─── Tool 1: Create News ─────────────────────────────────────────────────────


@mcp.tool(annotations=WRITE)
async def livability_create_news(
    headline: str,
    city: str,
    country: str = "",
    source: str = "",
    date: str = "",
    tags: Optional[list[str]] = None,
) -> dict:
    """Record a news item and apply its tags to the city's livability score.

    Args:
        headline: News headline. Required.
        city: City the news is about. Required.
        country: Country of the city.
        source: Publisher name.
        date: Publication date as YYYY-MM-DD. Defaults to today.
        tags: Tags such as 'innovation', 'crime', 'festival', 'pollution'.
    """
    service = _get_service()
    candidate = {
        "headline": headline,
        "city": city,
        "country": country,
        "source": source,
        "date": date,
        "tags": tags or [],
    }
    news = await _run("create news", service.ingest_news(candidate))
    return {
        "title": "News Created",
        "news": _news_to_dict(news),
        "summary": f"Stored '{news.headline}' for {news.city}"
        + (f" with tags {', '.join(news.tags)}." if news.tags else " (no tags, score unchanged)."),
    }


# ─── Tool 2: Latest News ─────────────────────────────────────────────────────


@mcp.tool(annotations=READ_ONLY)
async def livability_latest_news(limit: int = 10, city: str = "") -> dict:
    """Most recent news, newest first, globally or for one city.

    Args:
        limit: Maximum number of items. 0 means the default (10).
        city: Restrict to this city (case-insensitive). Leave empty for all cities.
    """
    service = _get_service()
    news = await _run(
        "load latest news",
        service.latest_news(_limit(limit), city=city if city else None),
    )
    scope = city if city else "all cities"
    return {
        "title": "Latest News",
        "city": city or None,
        "news": [_news_to_dict(n) for n in news],
        "count": len(news),
        "summary": f"{len(news)} news item(s) for {scope}.",
    }


# ─── Tool 3: Get News ────────────────────────────────────────────────────────


@mcp.tool(annotations=READ_ONLY)
async def livability_get_news(news_id: str) -> dict:
    """Fetch one news item by id.

    Args:
        news_id: Identifier returned by livability_create_news.
    """
    service = _get_service()
    news = await _run("load news", service.get_news(news_id))
    return {"title": "News", "news": _news_to_dict(news)}


# ─── Tool 4: City Score ──────────────────────────────────────────────────────


@mcp.tool(annotations=READ_ONLY)
async def livability_city_score(city: str) -> dict:
    """Current livability metrics for a city. Unknown cities start at 1000 per metric.

    Args:
        city: City name (case-insensitive).
    """
    service = _get_service()
    score = await _run("load city score", service.city_score(city))
    return {
        "title": f"Livability: {score.city}",
        "score": _score_to_dict(score),
        "summary": f"{score.city} totals {score.total_score} "
        f"(quality of life {score.quality_of_life}, safety {score.safety}, "
        f"economy {score.economy}, culture {score.culture}).",
    }


# ─── Tool 5: Top Cities ──────────────────────────────────────────────────────


@mcp.tool(annotations=READ_ONLY)
async def livability_top_cities(limit: int = 10) -> dict:
    """City ranking by total score, lowest first (worst-first).

    Args:
        limit: Maximum number of cities. 0 means the default (10).
    """
    service = _get_service()
    scores = await _run("load city ranking", service.top_cities(_limit(limit)))
    return {
        "title": "City Ranking (lowest total first)",
        "cities": [_score_to_dict(s) for s in scores],
        "count": len(scores),
        "summary": f"{len(scores)} cities ranked."
        + (f" Lowest: {scores[0].city} ({scores[0].total_score})." if scores else ""),
    }


def main():
    """Entry point for the CLI command."""
    mcp.run()


if __name__ == "__main__":
    main()
