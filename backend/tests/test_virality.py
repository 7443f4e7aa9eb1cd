"""
Tests for the viral score calculator.
"""
import math
from datetime import datetime, timedelta, timezone

import pytest

from contentlab.services.virality import (
    GRADES,
    GRADE_THRESHOLDS,
    SUBSCRIBER_BASELINE,
    calculate_viral_score,
    grade_distribution,
    grade_for,
    time_weight_for,
)

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)


def score(views, subs, age, fmt="long"):
    return calculate_viral_score(views, subs, NOW - age, fmt, now=NOW)


class TestScenarios:

    def test_breakout_long_video_is_grade_s(self):
        result = score(1_000_000, 10_000, timedelta(days=2), "long")
        assert result.score == 150.0
        assert result.grade == "S"
        assert result.time_weight == 1.5

    def test_underperforming_short_is_grade_d(self):
        result = score(500, 50_000, timedelta(days=30), "short")
        assert result.score < 0.5
        assert result.grade == "D"

    def test_zero_subscribers_is_finite_and_lowest_grade(self):
        result = calculate_viral_score(100, 0, None, "long", now=NOW)
        assert math.isfinite(result.score)
        assert result.score == round(100 / SUBSCRIBER_BASELINE * 1.5, 2)
        assert result.grade == "D"


class TestProperties:

    def test_deterministic(self):
        published = NOW - timedelta(days=12, hours=3)
        first = calculate_viral_score(42_000, 3_100, published, "short", now=NOW)
        second = calculate_viral_score(42_000, 3_100, published, "short", now=NOW)
        assert first == second

    @pytest.mark.parametrize("fmt", ["short", "long"])
    def test_monotonic_in_views(self, fmt):
        age = timedelta(days=5)
        scores = [score(views, 20_000, age, fmt).score for views in range(0, 2_000_001, 50_000)]
        assert scores == sorted(scores)

    @pytest.mark.parametrize("fmt", ["short", "long"])
    def test_monotonic_in_ratio_when_subscribers_shrink(self, fmt):
        age = timedelta(days=40)
        scores = [
            score(100_000, subs, age, fmt).score
            for subs in (500_000, 100_000, 20_000, 5_000, 1_000, 999, 500, 50, 1)
        ]
        assert scores == sorted(scores)

    def test_small_channel_ratio_beats_larger_ratio(self):
        age = timedelta(days=40)
        modest = score(300, 1000, age)
        small_channel = score(100, 10, age)
        assert small_channel.score > modest.score
        assert small_channel.score == 10.0
        assert small_channel.grade == "S"

    def test_zero_age_and_future_publish_are_floored(self):
        just_now = calculate_viral_score(10_000, 0, NOW, "short", now=NOW)
        future = calculate_viral_score(10_000, 0, NOW + timedelta(hours=5), "short", now=NOW)
        assert math.isfinite(just_now.score)
        assert just_now == future
        assert just_now.age_days == 0

    def test_negative_and_missing_counts_score_zero(self):
        result = calculate_viral_score(None, None, None, "long", now=NOW)
        assert result.score == 0.0
        assert result.grade == "D"
        assert calculate_viral_score(-5, 100, None, "long", now=NOW).score == 0.0

    def test_old_video_not_rewarded_for_age(self):
        fresh = score(50_000, 10_000, timedelta(days=1))
        old = score(50_000, 10_000, timedelta(days=400))
        assert old.score < fresh.score

    def test_naive_datetimes_are_treated_as_utc(self):
        naive_now = NOW.replace(tzinfo=None)
        naive_pub = (NOW - timedelta(days=2)).replace(tzinfo=None)
        assert calculate_viral_score(1000, 1000, naive_pub, "long", now=naive_now) == score(1000, 1000, timedelta(days=2))


class TestTimeWeights:

    @pytest.mark.parametrize("days,expected", [(0, 1.5), (3, 1.5), (4, 1.2), (14, 1.0), (30, 0.8), (31, 0.5)])
    def test_short_table(self, days, expected):
        assert time_weight_for(days, "short") == expected

    @pytest.mark.parametrize("days,expected", [(7, 1.5), (8, 1.2), (90, 1.0), (180, 0.8), (181, 0.6)])
    def test_long_table(self, days, expected):
        assert time_weight_for(days, "long") == expected

    def test_unknown_format_rejected(self):
        with pytest.raises(ValueError):
            time_weight_for(1, "vertical")


class TestGrades:

    @pytest.mark.parametrize("value,expected", [
        (0.0, "D"), (0.49, "D"), (0.5, "C"), (1.99, "C"), (2.0, "B"),
        (4.99, "B"), (5.0, "A"), (9.99, "A"), (10.0, "S"), (1e12, "S"),
    ])
    def test_bucket_boundaries(self, value, expected):
        assert grade_for(value) == expected

    def test_buckets_ordered_and_cover_zero(self):
        thresholds = [t for t, _ in GRADE_THRESHOLDS]
        assert thresholds == sorted(thresholds, reverse=True)
        assert thresholds[-1] == 0.0
        assert GRADES == ("S", "A", "B", "C", "D")

    def test_grade_matches_rounded_score(self):
        # 499 / 1000 * 1.0 = 0.499 rounds to 0.5
        result = score(499, 1000, timedelta(days=60), "long")
        assert result.score == 0.5
        assert result.grade == "C"

    def test_distribution_counts_every_grade(self):
        assert grade_distribution(["S", "D", "D", "X"]) == {"S": 1, "A": 0, "B": 0, "C": 0, "D": 2}
