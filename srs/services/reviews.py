import uuid
from dataclasses import dataclass
from datetime import datetime

import structlog
from django.db import DatabaseError, IntegrityError, transaction
from django.utils import timezone

from ..config import get_setting
from ..data.repos import (
    add_experience,
    append_review,
    get_card_for_update,
    get_existing_idempotent,
    get_or_create_progress_for_update,
    get_progress,
    save_card_state,
)
from ..domain.enums import CardStatus, PASSING_RATING
from ..domain.logic import CardSnapshot, is_valid_rating, next_status, schedule_next
from ..domain.rewards import is_mastered, level_from_experience, newly_mastered, xp_for_rating
from ..errors import Conflict, Forbidden, InvalidState, NotFound, StorageFailure
from ..utils.time import to_utc

logger = structlog.get_logger()


@dataclass(frozen=True)
class CardState:
    ease_factor: float
    interval: int
    repetitions: int
    status: str
    due_date: datetime | None = None


@dataclass(frozen=True)
class ReviewResult:
    card_id: uuid.UUID
    rating: int
    previous: CardState
    new: CardState
    xp_awarded: int
    total_experience: int
    level: int
    level_changed: bool
    is_lapse: bool
    is_mastered: bool
    newly_mastered: bool
    reviewed_at: datetime
    idempotent: bool = False


def _as_uuid(value, what):
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        raise InvalidState(f"{what} is not a valid identifier.") from None


def _validate(rating, response_time_ms):
    if not is_valid_rating(rating):
        raise InvalidState("Rating must be an integer between 1 and 4.")
    if response_time_ms is not None and (
        isinstance(response_time_ms, bool)
        or not isinstance(response_time_ms, int)
        or response_time_ms <= 0
    ):
        raise InvalidState("Response time must be a positive integer.")


def _replay(record, user_id, rating):
    """Rebuild the result of an already-applied review from its record."""
    if record.user_id != user_id:
        raise Forbidden()
    if record.rating != rating:
        raise InvalidState("Idempotency key was already used with a different rating.")
    progress = get_progress(user_id)
    before = CardState(
        ease_factor=record.previous_ease_factor,
        interval=record.previous_interval,
        repetitions=record.previous_repetitions,
        status=record.previous_status,
    )
    after = CardState(
        ease_factor=record.new_ease_factor,
        interval=record.new_interval,
        repetitions=record.new_repetitions,
        status=record.new_status,
        due_date=record.next_due_date,
    )
    return ReviewResult(
        card_id=record.flashcard_id,
        rating=record.rating,
        previous=before,
        new=after,
        xp_awarded=record.xp_awarded,
        total_experience=progress.total_experience if progress else 0,
        level=progress.level if progress else 1,
        level_changed=False,
        is_lapse=record.rating < PASSING_RATING,
        is_mastered=is_mastered(after.repetitions, after.interval),
        newly_mastered=newly_mastered(before, after),
        reviewed_at=record.reviewed_at,
        idempotent=True,
    )


def _apply(card_id, user_id, rating, response_time_ms, now, idem_key):
    card = get_card_for_update(card_id)
    if card is None:
        raise NotFound()
    if card.user_id != user_id:
        raise Forbidden()
    if card.status == CardStatus.SUSPENDED.value:
        raise InvalidState("Cannot review a suspended flashcard.")

    before = CardState(
        ease_factor=card.ease_factor,
        interval=card.interval,
        repetitions=card.repetitions,
        status=card.status,
        due_date=card.due_date,
    )
    sched = schedule_next(
        CardSnapshot(card.ease_factor, card.interval, card.repetitions), rating, now
    )
    status = next_status(card.status, sched.repetitions, sched.interval, sched.is_lapse)
    xp = xp_for_rating(rating, get_setting("XP_BASE"))

    save_card_state(
        card,
        ease_factor=sched.ease_factor,
        interval=sched.interval,
        repetitions=sched.repetitions,
        due_date=sched.next_due_date,
        status=status.value,
        correct=rating >= PASSING_RATING,
        now=now,
    )
    append_review(
        card,
        user_id=user_id,
        rating=rating,
        response_time_ms=response_time_ms,
        reviewed_at=now,
        before=before,
        after=sched,
        before_status=before.status,
        after_status=status.value,
        xp_awarded=xp,
        idem_key=idem_key,
    )
    progress = get_or_create_progress_for_update(user_id)
    progress, level_changed = add_experience(progress, xp, level_from_experience, now)

    after = CardState(
        ease_factor=sched.ease_factor,
        interval=sched.interval,
        repetitions=sched.repetitions,
        status=status.value,
        due_date=sched.next_due_date,
    )
    return ReviewResult(
        card_id=card.pk,
        rating=int(rating),
        previous=before,
        new=after,
        xp_awarded=xp,
        total_experience=progress.total_experience,
        level=progress.level,
        level_changed=level_changed,
        is_lapse=sched.is_lapse,
        is_mastered=is_mastered(after.repetitions, after.interval),
        newly_mastered=newly_mastered(before, after),
        reviewed_at=now,
    )


def submit_review(card_id, user_id, rating, response_time_ms=None, now=None,
                  idempotency_key=None):
    """
    Apply one review: card state, review record and learner progress are
    written in a single transaction or not at all.
    """
    logger.info("review_received",
        user_id=str(user_id),
        card_id=str(card_id),
        rating=rating,
        idempotency_key=idempotency_key,
    )

    _validate(rating, response_time_ms)
    card_id = _as_uuid(card_id, "Flashcard id")
    user_id = _as_uuid(user_id, "User id")
    now = to_utc(now) if now is not None else timezone.now()

    # Fast path: return previous result if same idempotency_key
    existing = get_existing_idempotent(card_id, idempotency_key)
    if existing:
        logger.info("idempotent_reuse",
            user_id=str(user_id),
            card_id=str(card_id),
            review_id=existing.pk,
        )
        return _replay(existing, user_id, rating)

    try:
        with transaction.atomic():
            result = _apply(card_id, user_id, rating, response_time_ms, now, idempotency_key)
    except Conflict:
        logger.warning("review_conflict", user_id=str(user_id), card_id=str(card_id))
        raise
    except IntegrityError as exc:
        # A concurrent request with the same key committed first
        existing = get_existing_idempotent(card_id, idempotency_key)
        if existing:
            logger.info("idempotent_reuse",
                user_id=str(user_id),
                card_id=str(card_id),
                review_id=existing.pk,
            )
            return _replay(existing, user_id, rating)
        logger.error("review_storage_failure",
            user_id=str(user_id), card_id=str(card_id), error=str(exc))
        raise StorageFailure() from exc
    except DatabaseError as exc:
        logger.error("review_storage_failure",
            user_id=str(user_id), card_id=str(card_id), error=str(exc))
        raise StorageFailure() from exc

    logger.info("review_scheduled",
        user_id=str(user_id),
        card_id=str(card_id),
        rating=result.rating,
        previous_interval=result.previous.interval,
        interval_days=result.new.interval,
        next_review_utc=result.new.due_date.isoformat(),
        status=result.new.status,
        is_lapse=result.is_lapse,
        xp_awarded=result.xp_awarded,
        newly_mastered=result.newly_mastered,
    )
    return result
