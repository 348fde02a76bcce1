from dataclasses import dataclass
from datetime import timedelta

import structlog
from django.utils import timezone

from ..config import (
    DEFAULT_EASE_FACTOR,
    MAX_HISTORY_DAYS,
    MIN_HISTORY_DAYS,
    get_setting,
)
from ..data.repos import card_aggregates, review_rows, status_counts
from ..domain.enums import PASSING_RATING
from ..domain.stats import (
    HistoryEntry,
    Streak,
    build_review_history,
    calculate_retention_rate,
    calculate_streak,
)
from ..utils.time import start_of_day_utc, to_utc

logger = structlog.get_logger()


@dataclass(frozen=True)
class StatusCounts:
    new: int
    learning: int
    review: int
    suspended: int

    @property
    def total(self):
        return self.new + self.learning + self.review + self.suspended


@dataclass(frozen=True)
class Statistics:
    retention_rate: float
    status_counts: StatusCounts
    review_history: list[HistoryEntry]
    streak: Streak
    total_reviews: int
    average_ease_factor: float
    average_interval: float
    mastered_count: int
    due_count: int
    overdue_count: int


def clamp_window(days):
    if days is None:
        days = get_setting("DEFAULT_HISTORY_DAYS")
    return max(MIN_HISTORY_DAYS, min(MAX_HISTORY_DAYS, int(days)))


def compute_statistics(user_id, window_days=None, book_id=None, now=None):
    now = to_utc(now) if now is not None else timezone.now()
    days = clamp_window(window_days)

    counts = status_counts(user_id, book_id)
    aggregates = card_aggregates(user_id, now, start_of_day_utc(now), book_id)

    # The window covers whole UTC days, today included
    window_start = start_of_day_utc(now) - timedelta(days=days - 1)
    reviews = list(
        review_rows(user_id, since=window_start, until=now, book_id=book_id)
        .values_list("reviewed_at", "rating")
    )
    correct = sum(1 for _, rating in reviews if rating >= PASSING_RATING)

    # Streaks look at the whole history up to now
    all_dates = (review_rows(user_id, until=now, book_id=book_id)
                 .values_list("reviewed_at", flat=True))
    streak = calculate_streak(all_dates, now)

    stats = Statistics(
        retention_rate=calculate_retention_rate(correct, len(reviews)),
        status_counts=StatusCounts(
            new=counts["NEW"],
            learning=counts["LEARNING"],
            review=counts["REVIEW"],
            suspended=counts["SUSPENDED"],
        ),
        review_history=build_review_history(reviews, days, now),
        streak=streak,
        total_reviews=len(reviews),
        average_ease_factor=aggregates["avg_ease"] or DEFAULT_EASE_FACTOR,
        average_interval=aggregates["avg_interval"] or 0,
        mastered_count=aggregates["mastered"],
        due_count=aggregates["due"],
        overdue_count=aggregates["overdue"],
    )

    logger.info("statistics_computed",
        user_id=str(user_id),
        book_id=str(book_id) if book_id else None,
        days=days,
        total_cards=stats.status_counts.total,
        retention_rate=stats.retention_rate,
        current_streak=streak.current,
    )
    return stats
