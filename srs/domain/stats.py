"""
Statistics derived from the review history.

Pure computations over plain values; callers fetch the rows. Days are always
UTC calendar days.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable

from .enums import PASSING_RATING
from ..utils.time import day_string, to_utc, utc_day


@dataclass(frozen=True)
class HistoryEntry:
    date: str
    reviewed: int
    correct: int
    incorrect: int


@dataclass(frozen=True)
class Streak:
    current: int
    longest: int
    last_review_date: str | None


@dataclass(frozen=True)
class OverdueInfo:
    is_overdue: bool
    overdue_by: int


def calculate_retention_rate(correct_reviews: int, total_reviews: int) -> float:
    """Percentage of correct reviews, two decimals; 0 when there is no history."""
    if total_reviews == 0:
        return 0.0
    return round(correct_reviews / total_reviews * 100, 2)


def build_review_history(reviews: Iterable, days: int, today: datetime) -> list[HistoryEntry]:
    """
    One entry per UTC day in ``[today - days + 1, today]``, zero days included.

    ``reviews`` yields ``(reviewed_at, rating)`` pairs; reviews outside the
    window are ignored.
    """
    last = utc_day(today)
    first = last - timedelta(days=days - 1)
    buckets = {first + timedelta(days=i): [0, 0] for i in range(days)}

    for reviewed_at, rating in reviews:
        bucket = buckets.get(utc_day(reviewed_at))
        if bucket is None:
            continue
        if rating >= PASSING_RATING:
            bucket[0] += 1
        else:
            bucket[1] += 1

    return [
        HistoryEntry(
            date=day_string(day),
            reviewed=correct + incorrect,
            correct=correct,
            incorrect=incorrect,
        )
        for day, (correct, incorrect) in sorted(buckets.items())
    ]


def calculate_streak(review_dates: Iterable[datetime], today: datetime) -> Streak:
    days = sorted({utc_day(d) for d in review_dates}, reverse=True)
    if not days:
        return Streak(current=0, longest=0, last_review_date=None)

    last = days[0]
    anchor = utc_day(today)

    current = 0
    if last in (anchor, anchor - timedelta(days=1)):
        expected = last
        for day in days:
            if day != expected:
                break
            current += 1
            expected -= timedelta(days=1)

    longest = run = 0
    prev = None
    for day in reversed(days):
        run = run + 1 if prev is not None and (day - prev).days == 1 else 1
        longest = max(longest, run)
        prev = day

    return Streak(current=current, longest=longest, last_review_date=day_string(last))


def overdue_info(due_date: datetime, now: datetime) -> OverdueInfo:
    due, now = to_utc(due_date), to_utc(now)
    if due >= now:
        return OverdueInfo(is_overdue=False, overdue_by=0)
    return OverdueInfo(
        is_overdue=True,
        overdue_by=math.floor((now - due).total_seconds() / 86400),
    )
