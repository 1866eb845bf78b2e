"""Sample news used to seed the in-memory store for demos and local runs.

Seeded items only populate the news store; they do not touch city scores.
"""

from __future__ import annotations

from datetime import date

from .core.models import NewsItem

DEMO_NEWS: list[NewsItem] = [
    NewsItem(
        id="1",
        headline="Tech Innovation Hub Opens in Paris",
        source="TechNews",
        date=date(2026, 2, 20),
        tags=["innovation", "economy"],
        city="Paris",
        country="France",
    ),
    NewsItem(
        id="2",
        headline="Berlin Festival of Lights",
        source="CultureDaily",
        date=date(2026, 2, 19),
        tags=["festival", "tourism", "culture"],
        city="Berlin",
        country="Germany",
    ),
    NewsItem(
        id="3",
        headline="New University Campus in Barcelona",
        source="EduWorld",
        date=date(2026, 2, 18),
        tags=["education", "innovation"],
        city="Barcelona",
        country="Spain",
    ),
    NewsItem(
        id="4",
        headline="Paris Air Quality Concerns Rise",
        source="EnvReport",
        date=date(2026, 2, 17),
        tags=["pollution", "health"],
        city="Paris",
        country="France",
    ),
    NewsItem(
        id="5",
        headline="Berlin Sports Championship",
        source="SportsMag",
        date=date(2026, 2, 16),
        tags=["sports", "tourism"],
        city="Berlin",
        country="Germany",
    ),
]


def demo_news() -> list[NewsItem]:
    """Fresh copies of the demo items."""
    return [item.model_copy(deep=True) for item in DEMO_NEWS]
