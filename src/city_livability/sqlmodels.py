"""SQLAlchemy models for the persistent store backends.

Laid out as a key-value store with ordered secondary indexes: records hold
the JSON-serialized domain object under its key, and the index tables hold
(key, sort value) pairs that reads walk before fetching records by key.
"""

from __future__ import annotations

from sqlalchemy import Float, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class NewsRecord(Base):
    """One serialized news item keyed by its id."""

    __tablename__ = "news_records"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    payload: Mapped[str] = mapped_column(Text, nullable=False)


class NewsIndexEntry(Base):
    """Recency index entry. ``scope`` is ``all`` or ``city:<lowercased city>``.

    ``seq`` grows with every insert and breaks ties between equal recency
    scores (latest save first).
    """

    __tablename__ = "news_index"

    seq: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    scope: Mapped[str] = mapped_column(String(255), nullable=False)
    news_id: Mapped[str] = mapped_column(String(64), nullable=False)
    recency: Mapped[float] = mapped_column(Float, nullable=False)

    __table_args__ = (
        UniqueConstraint("scope", "news_id", name="uq_news_index_scope_news"),
        Index("ix_news_index_scope_recency", "scope", "recency", "seq"),
        Index("ix_news_index_news_id", "news_id"),
    )


class CityScoreRecord(Base):
    """One serialized city score keyed by the lowercased city name."""

    __tablename__ = "city_scores"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    payload: Mapped[str] = mapped_column(Text, nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)


class CityRankingEntry(Base):
    """Ranking index entry: city key and its current total score."""

    __tablename__ = "city_ranking"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    total_score: Mapped[int] = mapped_column(Integer, nullable=False)

    __table_args__ = (
        Index("ix_city_ranking_total", "total_score", "key"),
    )
