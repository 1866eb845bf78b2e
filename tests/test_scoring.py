"""Scoring model tests."""

from datetime import date

import pytest

from city_livability.core.models import CityScore, Metric
from city_livability.core.scoring import (
    TAG_DELTAS,
    ZERO_DELTA,
    apply_tag,
    apply_tags,
    new_score,
    tag_delta,
    total_score,
)


def _metrics(score: CityScore) -> tuple:
    return (score.quality_of_life, score.safety, score.economy, score.culture)


class TestNewScore:

    @pytest.mark.parametrize("city,country", [("Paris", "France"), ("tokyo", ""), ("São Paulo", "Brazil")])
    def test_starts_at_1000(self, city, country):
        score = new_score(city, country)
        assert _metrics(score) == (1000, 1000, 1000, 1000)
        assert total_score(score) == 4000
        assert score.city == city
        assert score.country == country
        assert score.updated_at == date.today()

    def test_strips_names(self):
        score = new_score("  Paris ", " France ")
        assert (score.city, score.country, score.key) == ("Paris", "France", "paris")


class TestApplyTag:

    def test_innovation(self):
        score = new_score("Paris", "France")
        apply_tag(score, "innovation")
        assert _metrics(score) == (1030, 1020, 1060, 1005)

    def test_tag_is_case_insensitive(self):
        score = new_score("Paris", "France")
        apply_tag(score, "  Festival ")
        assert _metrics(score) == (1020, 1000, 1010, 1060)

    def test_unknown_tag_is_noop(self):
        score = new_score("Paris", "France")
        apply_tag(score, "culture")
        assert _metrics(score) == (1000, 1000, 1000, 1000)
        assert tag_delta("culture") is ZERO_DELTA

    def test_refreshes_updated_at(self):
        score = new_score("Paris", "France")
        score.updated_at = date(2020, 1, 1)
        apply_tag(score, "sports")
        assert score.updated_at == date.today()

    def test_crime_clamps_every_metric_at_zero(self):
        score = new_score("Gotham", "USA")
        for _ in range(13):
            apply_tag(score, "crime")
        assert score.safety == 0
        for _ in range(100):
            apply_tag(score, "crime")
            assert min(_metrics(score)) >= 0
        assert _metrics(score) == (0, 0, 0, 0)
        assert total_score(score) == 0

    def test_no_upper_bound(self):
        score = new_score("Paris", "France")
        for _ in range(100):
            apply_tag(score, "economy")
        assert score.economy == 1000 + 100 * 50


class TestApplyTags:

    def test_sums_known_deltas(self):
        score = new_score("Paris", "France")
        apply_tags(score, ["innovation", "pollution"])
        assert _metrics(score) == (980, 1010, 1115, 1005)
        assert total_score(score) == 4110

    def test_clamps_after_each_tag(self):
        score = new_score("Gotham", "USA")
        apply_tags(score, ["crime"] * 13)
        assert score.safety == 0
        apply_tags(score, ["crime", "health"])
        # Clamped at 0 by crime, then raised by health; a pre-summed batch would stay at 0.
        assert score.safety == 20
        assert score.quality_of_life == 480

    def test_empty_tags(self):
        score = new_score("Paris", "France")
        apply_tags(score, [])
        assert total_score(score) == 4000


def test_delta_table_is_complete():
    assert set(TAG_DELTAS) == {
        "innovation", "crime", "festival", "economy", "pollution",
        "tourism", "education", "health", "sports", "politics",
    }
    assert tag_delta("politics") == (0, -10, 10, 0)
    assert tag_delta("TOURISM").culture == 40


def test_metrics_follow_enum():
    score = new_score("Paris", "France")
    apply_tag(score, "education")
    assert score.metrics() == {
        Metric.QUALITY_OF_LIFE: 1030,
        Metric.SAFETY: 1010,
        Metric.ECONOMY: 1020,
        Metric.CULTURE: 1030,
    }
