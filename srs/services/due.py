from dataclasses import dataclass, field

import structlog
from django.utils import timezone

from ..config import MIN_LIMIT, get_setting
from ..data.repos import count_reviews_since, due_cards, get_daily_card_limit
from ..domain.logic import CardSnapshot, predict_next_intervals
from ..domain.stats import overdue_info
from ..utils.time import start_of_day_utc, to_utc

logger = structlog.get_logger()


@dataclass(frozen=True)
class DueCard:
    card: object
    is_overdue: bool
    overdue_by: int
    next_intervals: dict = field(default_factory=dict)


@dataclass(frozen=True)
class DueCards:
    cards: list = field(default_factory=list)
    total_due: int = 0
    daily_limit: int = 0
    overdue_count: int = 0
    reviewed_today: int = 0
    remaining_today: int = 0

    @property
    def returned(self):
        return len(self.cards)


def effective_limit(limit, daily_limit):
    max_limit = get_setting("MAX_LIMIT")
    wanted = daily_limit if limit is None else limit
    return max(MIN_LIMIT, min(max_limit, int(wanted)))


def daily_review_count(user_id, now=None):
    """Reviews the learner has done since UTC midnight."""
    now = to_utc(now) if now is not None else timezone.now()
    return count_reviews_since(user_id, start_of_day_utc(now))


def list_due_cards(user_id, now=None, limit=None, book_id=None):
    now = to_utc(now) if now is not None else timezone.now()

    daily_limit = get_daily_card_limit(user_id)
    take = effective_limit(limit, daily_limit)

    qs = due_cards(user_id, now, book_id)
    total_due = qs.count()
    rows = []
    for card in qs[:take]:
        info = overdue_info(card.due_date, now)
        snapshot = CardSnapshot(card.ease_factor, card.interval, card.repetitions)
        rows.append(DueCard(
            card=card,
            is_overdue=info.is_overdue,
            overdue_by=info.overdue_by,
            next_intervals=predict_next_intervals(snapshot, now),
        ))

    reviewed_today = daily_review_count(user_id, now)
    result = DueCards(
        cards=rows,
        total_due=total_due,
        daily_limit=daily_limit,
        overdue_count=sum(1 for r in rows if r.is_overdue),
        reviewed_today=reviewed_today,
        remaining_today=max(0, daily_limit - reviewed_today),
    )

    logger.info("due_cards_selected",
        user_id=str(user_id),
        book_id=str(book_id) if book_id else None,
        total_due=total_due,
        returned=result.returned,
        overdue_count=result.overdue_count,
        reviewed_today=reviewed_today,
        daily_limit=daily_limit,
        effective_limit=take,
    )
    return result
