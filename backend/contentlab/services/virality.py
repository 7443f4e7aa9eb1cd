"""
Viral Score Calculator

Scores a video by how far it outperforms its channel's normal reach:
- Reach ratio: views / subscribers (a missing or zero count uses a baseline)
- Time weight: stepped by age in days, table chosen by content format
- Grade: fixed buckets S > A > B > C > D covering [0, inf)

score = (views / (subscribers or SUBSCRIBER_BASELINE)) * time_weight
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable

# Channels with no (or an unknown) subscriber count are scored against this.
SUBSCRIBER_BASELINE = 1000

MIN_AGE_SECONDS = 3600

# (max age in whole days, weight); last entry applies to anything older
TIME_WEIGHTS: dict[str, tuple[tuple[int | None, float], ...]] = {
    "short": ((3, 1.5), (7, 1.2), (14, 1.0), (30, 0.8), (None, 0.5)),
    "long": ((7, 1.5), (30, 1.2), (90, 1.0), (180, 0.8), (None, 0.6)),
}

# (min score, grade), highest first
GRADE_THRESHOLDS: tuple[tuple[float, str], ...] = (
    (10.0, "S"),
    (5.0, "A"),
    (2.0, "B"),
    (0.5, "C"),
    (0.0, "D"),
)

GRADES = tuple(grade for _, grade in GRADE_THRESHOLDS)


@dataclass(frozen=True)
class ViralScore:
    score: float
    grade: str
    time_weight: float
    age_days: int


def _age_seconds(published_at: datetime | None, now: datetime) -> float:
    if published_at is None:
        return MIN_AGE_SECONDS
    if published_at.tzinfo is None:
        published_at = published_at.replace(tzinfo=timezone.utc)
    return max((now - published_at).total_seconds(), MIN_AGE_SECONDS)


def time_weight_for(age_days: int, fmt: str) -> float:
    table = TIME_WEIGHTS.get(fmt)
    if table is None:
        raise ValueError(f"Unknown content format: {fmt!r}")
    for max_days, weight in table:
        if max_days is None or age_days <= max_days:
            return weight
    return table[-1][1]


def grade_for(score: float) -> str:
    """Map a non-negative score to its grade bucket."""
    for threshold, grade in GRADE_THRESHOLDS:
        if score >= threshold:
            return grade
    return GRADE_THRESHOLDS[-1][1]


def calculate_viral_score(
    view_count: int | None,
    subscriber_count: int | None,
    published_at: datetime | None,
    fmt: str = "long",
    *,
    now: datetime | None = None,
) -> ViralScore:
    """Calculate the viral score and grade of a video.

    Pure for a fixed ``now``; never divides by zero and always returns a
    finite, non-negative score.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    views = max(view_count or 0, 0)
    subscribers = subscriber_count if subscriber_count and subscriber_count > 0 else SUBSCRIBER_BASELINE

    age_days = int(_age_seconds(published_at, now) // 86400)
    weight = time_weight_for(age_days, fmt)

    score = round((views / subscribers) * weight, 2)
    return ViralScore(
        score=score,
        grade=grade_for(score),
        time_weight=weight,
        age_days=age_days,
    )


def grade_distribution(grades: Iterable[str]) -> dict[str, int]:
    counts = {grade: 0 for grade in GRADES}
    for grade in grades:
        if grade in counts:
            counts[grade] += 1
    return counts
