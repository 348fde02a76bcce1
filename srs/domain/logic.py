"""SM-2 scheduling and card lifecycle transitions.

Everything here is pure: the caller passes ``now`` and gets back new values,
nothing is read from the clock or the database.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timedelta

from .enums import CardStatus, PASSING_RATING, Rating
from ..config import (
    EASE_DECIMALS,
    INITIAL_INTERVAL,
    MIN_EASE_FACTOR,
    QUALITY,
    SECOND_INTERVAL,
)
from ..utils.time import to_utc


@dataclass(frozen=True)
class CardSnapshot:
    ease_factor: float
    interval: int
    repetitions: int


@dataclass(frozen=True)
class ScheduleResult:
    ease_factor: float
    interval: int
    repetitions: int
    next_due_date: datetime
    is_lapse: bool


def is_valid_rating(rating) -> bool:
    return isinstance(rating, int) and not isinstance(rating, bool) and 1 <= rating <= 4


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def ease_delta(rating: int) -> float:
    q = QUALITY[int(rating)]
    return 0.1 - (5 - q) * (0.08 + (5 - q) * 0.02)


def next_ease_factor(ease_factor: float, rating: int) -> float:
    return round(max(MIN_EASE_FACTOR, ease_factor + ease_delta(rating)), EASE_DECIMALS)


def schedule_next(current: CardSnapshot, rating: int, now: datetime) -> ScheduleResult:
    # rating is validated earlier
    rating = Rating(rating)
    ease = next_ease_factor(current.ease_factor, rating)

    if rating < PASSING_RATING:
        repetitions = 0
        interval = INITIAL_INTERVAL
        is_lapse = True
    else:
        repetitions = current.repetitions + 1
        is_lapse = False
        if repetitions == 1:
            interval = INITIAL_INTERVAL
        elif repetitions == 2:
            interval = SECOND_INTERVAL
        else:
            interval = max(INITIAL_INTERVAL, _round_half_up(current.interval * ease))

    return ScheduleResult(
        ease_factor=ease,
        interval=interval,
        repetitions=repetitions,
        next_due_date=to_utc(now) + timedelta(days=interval),
        is_lapse=is_lapse,
    )


def next_status(current, new_repetitions: int, new_interval: int, is_lapse: bool) -> CardStatus:
    current = CardStatus(current)
    if current is CardStatus.SUSPENDED:
        raise ValueError("suspended cards must be rejected before scheduling")

    if is_lapse:
        return CardStatus.LEARNING
    if current is CardStatus.NEW:
        return CardStatus.LEARNING
    if current is CardStatus.LEARNING and new_repetitions >= 2 and new_interval >= 1:
        return CardStatus.REVIEW
    return current


def predict_next_intervals(current: CardSnapshot, now: datetime) -> dict:
    """Interval each rating would produce, for showing on the answer buttons."""
    return {int(r): schedule_next(current, r, now).interval for r in Rating}


def format_interval(days: int) -> str:
    if days < 1:
        return "< 1 day"
    if days == 1:
        return "1 day"
    if days < 7:
        return f"{days} days"
    if days < 14:
        return "1 week"
    if days < 30:
        return f"{_round_half_up(days / 7)} weeks"
    if days < 60:
        return "1 month"
    if days < 365:
        return f"{_round_half_up(days / 30)} months"
    if days < 730:
        return "1 year"
    return f"{_round_half_up(days / 365)} years"
