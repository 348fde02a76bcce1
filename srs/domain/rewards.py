import math
from dataclasses import dataclass

from .enums import Rating
from ..config import (
    GRAND_MASTER_TITLE,
    LEVEL_THRESHOLDS,
    MASTERY_INTERVAL_DAYS,
    MASTERY_REPETITIONS,
    XP_PER_LEVEL_AFTER_10,
)


@dataclass(frozen=True)
class LevelInfo:
    level: int
    title: str
    current_level_xp: int
    next_level_xp: int
    progress_percent: float


def xp_table(base: int) -> dict:
    return {
        Rating.AGAIN: 0,
        Rating.HARD: base // 2,
        Rating.GOOD: base,
        Rating.EASY: math.floor(base * 1.5),
    }


def xp_for_rating(rating: int, base: int) -> int:
    return xp_table(base)[Rating(rating)]


def is_mastered(repetitions: int, interval: int) -> bool:
    return repetitions >= MASTERY_REPETITIONS and interval >= MASTERY_INTERVAL_DAYS


def newly_mastered(before, after) -> bool:
    """``before``/``after`` are anything with ``repetitions`` and ``interval``."""
    return not is_mastered(before.repetitions, before.interval) and is_mastered(
        after.repetitions, after.interval
    )


def level_info(total_experience: int) -> LevelInfo:
    total = max(0, int(total_experience))

    for idx in range(len(LEVEL_THRESHOLDS) - 1, -1, -1):
        level, required, title = LEVEL_THRESHOLDS[idx]
        if total < required:
            continue

        if idx == len(LEVEL_THRESHOLDS) - 1:
            extra = (total - required) // XP_PER_LEVEL_AFTER_10
            current = required + extra * XP_PER_LEVEL_AFTER_10
            progress = (total - current) / XP_PER_LEVEL_AFTER_10 * 100
            return LevelInfo(
                level=level + extra,
                title=GRAND_MASTER_TITLE if extra > 0 else title,
                current_level_xp=current,
                next_level_xp=current + XP_PER_LEVEL_AFTER_10,
                progress_percent=min(100.0, max(0.0, progress)),
            )

        next_required = LEVEL_THRESHOLDS[idx + 1][1]
        progress = (total - required) / (next_required - required) * 100
        return LevelInfo(
            level=level,
            title=title,
            current_level_xp=required,
            next_level_xp=next_required,
            progress_percent=min(100.0, max(0.0, progress)),
        )

    # unreachable: the first threshold is 0
    raise AssertionError("level table must start at 0 XP")


def level_from_experience(total_experience: int) -> int:
    return level_info(total_experience).level
