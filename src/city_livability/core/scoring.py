"""City livability scoring model.

Each news tag nudges a city's four metrics by a fixed delta. Metrics start at
1000, are clamped at 0 after every single tag, and have no upper bound.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Iterable

from .models import CityScore, Metric, TagDelta

logger = logging.getLogger(__name__)

BASE_METRIC_VALUE = 1000

ZERO_DELTA = TagDelta(0, 0, 0, 0)

# (quality_of_life, safety, economy, culture)
TAG_DELTAS: dict[str, TagDelta] = {
    "innovation": TagDelta(30, 20, 60, 5),
    "crime": TagDelta(-40, -80, -20, -10),
    "festival": TagDelta(20, 0, 10, 60),
    "economy": TagDelta(10, 0, 50, 0),
    "pollution": TagDelta(-50, -10, -5, -5),
    "tourism": TagDelta(20, 5, 30, 40),
    "education": TagDelta(30, 10, 20, 30),
    "health": TagDelta(40, 20, 10, 0),
    "sports": TagDelta(20, 5, 15, 30),
    "politics": TagDelta(0, -10, 10, 0),
}


def new_score(city: str, country: str) -> CityScore:
    """Return a fresh score with every metric at the base value."""
    return CityScore(
        city=city.strip(),
        country=country.strip(),
        updated_at=date.today(),
        quality_of_life=BASE_METRIC_VALUE,
        safety=BASE_METRIC_VALUE,
        economy=BASE_METRIC_VALUE,
        culture=BASE_METRIC_VALUE,
    )


def tag_delta(tag: str) -> TagDelta:
    """Look up a tag's delta. Unknown tags have no impact."""
    return TAG_DELTAS.get(tag.strip().lower(), ZERO_DELTA)


def apply_tag(score: CityScore, tag: str) -> None:
    """Apply one tag's delta to ``score`` in place, clamping each metric at 0."""
    delta = tag_delta(tag)
    if delta is ZERO_DELTA:
        logger.debug("Tag %r has no delta for %s", tag, score.city)

    for metric in Metric:
        current = getattr(score, metric.value)
        setattr(score, metric.value, max(0, current + getattr(delta, metric.value)))
    score.updated_at = date.today()


def apply_tags(score: CityScore, tags: Iterable[str]) -> None:
    """Apply tags one at a time in input order.

    Clamping happens after each tag, so a run of negative tags can pin a
    metric at 0 before a later positive tag raises it again. Summing the
    deltas first would give a different result.
    """
    for tag in tags:
        apply_tag(score, tag)


def total_score(score: CityScore) -> int:
    """Sum of the four metrics. Used for ranking only, never persisted."""
    return score.total_score
