"""SQLite database connection and schema management.

Data is stored in ~/.city-livability/livability.db by default.
WAL mode is enabled so news reads don't block concurrent ingestion.
The caller that builds the engine owns it and must dispose of it.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR = os.path.expanduser("~/.city-livability")
DB_FILENAME = "livability.db"


def get_data_dir(data_dir: Optional[str] = None) -> Path:
    """Get the data directory, creating it if needed."""
    path = Path(data_dir or os.environ.get("DATA_DIR", DEFAULT_DATA_DIR))
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_db_url(data_dir: Optional[str] = None) -> str:
    """Get the SQLite database URL."""
    db_path = get_data_dir(data_dir) / DB_FILENAME
    return f"sqlite+aiosqlite:///{db_path}"


def _set_wal_mode(dbapi_connection, connection_record):
    """Enable WAL mode for concurrent reads during writes."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA synchronous=NORMAL")
    cursor.execute("PRAGMA busy_timeout=5000")
    cursor.close()


def create_engine(url: Optional[str] = None) -> AsyncEngine:
    """Create an async engine; SQLite connections get WAL pragmas."""
    url = url or get_db_url()
    engine = create_async_engine(url, echo=False)
    if engine.dialect.name == "sqlite":
        event.listen(engine.sync_engine, "connect", _set_wal_mode)
    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)


async def init_db(engine: AsyncEngine) -> None:
    """Create all tables if they don't exist."""
    from .sqlmodels import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database initialized at %s", engine.url.render_as_string(hide_password=True))


async def close_db(engine: AsyncEngine) -> None:
    """Dispose the engine and its pooled connections."""
    await engine.dispose()
    logger.info("Database connections closed")
