from django.db import IntegrityError, transaction
from django.db.models import Avg, Count, F, Q
from django.utils import timezone

from ..config import (
    DAILY_LIMIT_MAX,
    DAILY_LIMIT_MIN,
    DEFAULT_DAILY_LIMIT,
    MASTERY_INTERVAL_DAYS,
    MASTERY_REPETITIONS,
)
from ..domain.enums import CardStatus
from ..errors import Conflict
from .models import Flashcard, FlashcardReview, LearnerProgress, StudyPreferences


def create_card(user_id, book_id=None, front="", back="", now=None):
    """Insert a card in its initial NEW state, due immediately."""
    now = now or timezone.now()
    return Flashcard.objects.create(
        user_id=user_id, book_id=book_id, front=front, back=back,
        status=CardStatus.NEW.value, due_date=now,
    )


def active_cards(user_id, book_id=None):
    qs = Flashcard.objects.filter(user_id=user_id, deleted_at__isnull=True)
    if book_id is not None:
        qs = qs.filter(book_id=book_id)
    return qs


def get_card_for_update(card_id):
    """
    Fetch a live card and lock its row until the surrounding transaction ends.
    Must be called inside ``transaction.atomic()``.
    """
    return (Flashcard.objects
            .select_for_update()
            .filter(pk=card_id, deleted_at__isnull=True)
            .first())


def save_card_state(card, *, ease_factor, interval, repetitions, due_date,
                    status, correct, now):
    """
    Compare-and-swap on ``version``: the write only lands if nobody else
    committed a review since ``card`` was read.
    """
    updates = dict(
        ease_factor=ease_factor,
        interval=interval,
        repetitions=repetitions,
        due_date=due_date,
        status=status,
        total_reviews=F("total_reviews") + 1,
        version=F("version") + 1,
        updated_at=now,
    )
    if correct:
        updates["correct_reviews"] = F("correct_reviews") + 1

    rows = (Flashcard.objects
            .filter(pk=card.pk, version=card.version)
            .update(**updates))
    if rows != 1:
        raise Conflict()
    return rows


def get_existing_idempotent(card_id, idem_key):
    if not idem_key:
        return None
    return (FlashcardReview.objects
            .select_related("flashcard")
            .filter(flashcard_id=card_id, idempotency_key=idem_key)
            .first())


def append_review(card, *, user_id, rating, response_time_ms, reviewed_at,
                  before, after, before_status, after_status, xp_awarded,
                  idem_key=None):
    return FlashcardReview.objects.create(
        flashcard=card, user_id=user_id, rating=rating,
        response_time_ms=response_time_ms, reviewed_at=reviewed_at,
        previous_ease_factor=before.ease_factor,
        previous_interval=before.interval,
        previous_repetitions=before.repetitions,
        new_ease_factor=after.ease_factor,
        new_interval=after.interval,
        new_repetitions=after.repetitions,
        previous_status=before_status,
        new_status=after_status,
        next_due_date=after.next_due_date,
        xp_awarded=xp_awarded,
        idempotency_key=idem_key or None,
    )


def get_or_create_progress_for_update(user_id):
    """
    Fetch the learner's progress row and lock it for update.
    Create if missing.
    """
    progress = (LearnerProgress.objects
                .select_for_update()
                .filter(user_id=user_id)
                .first())
    if progress is not None:
        return progress

    try:
        # Savepoint so a concurrent insert doesn't poison the outer transaction
        with transaction.atomic():
            LearnerProgress.objects.create(user_id=user_id)
    except IntegrityError:
        pass
    return LearnerProgress.objects.select_for_update().get(user_id=user_id)


def add_experience(progress, xp, level, now):
    """Increment XP atomically; the level column is only written when it moved."""
    LearnerProgress.objects.filter(pk=progress.pk).update(
        total_experience=F("total_experience") + xp,
        total_cards_reviewed=F("total_cards_reviewed") + 1,
        last_activity=now,
    )
    progress.refresh_from_db()
    level_changed = level(progress.total_experience) != progress.level
    if level_changed:
        progress.level = level(progress.total_experience)
        progress.save(update_fields=["level"])
    return progress, level_changed


def get_progress(user_id):
    return LearnerProgress.objects.filter(user_id=user_id).first()


def get_daily_card_limit(user_id):
    prefs = StudyPreferences.objects.filter(user_id=user_id).first()
    limit = prefs.daily_card_limit if prefs else DEFAULT_DAILY_LIMIT
    return max(DAILY_LIMIT_MIN, min(DAILY_LIMIT_MAX, limit))


def due_cards(user_id, now, book_id=None):
    # card id breaks ties between identical due dates
    return (active_cards(user_id, book_id)
            .exclude(status=CardStatus.SUSPENDED.value)
            .filter(due_date__lte=now)
            .order_by("due_date", "id"))


def count_reviews_since(user_id, since):
    return FlashcardReview.objects.filter(user_id=user_id, reviewed_at__gte=since).count()


def review_rows(user_id, since=None, until=None, book_id=None):
    qs = FlashcardReview.objects.filter(user_id=user_id)
    if since is not None:
        qs = qs.filter(reviewed_at__gte=since)
    if until is not None:
        qs = qs.filter(reviewed_at__lte=until)
    if book_id is not None:
        qs = qs.filter(flashcard__book_id=book_id)
    return qs


def status_counts(user_id, book_id=None):
    rows = (active_cards(user_id, book_id)
            .values("status")
            .annotate(n=Count("id")))
    counts = {s.value: 0 for s in CardStatus}
    for row in rows:
        counts[row["status"]] = row["n"]
    return counts


def card_aggregates(user_id, now, start_of_today, book_id=None):
    live = active_cards(user_id, book_id).exclude(status=CardStatus.SUSPENDED.value)
    return live.aggregate(
        avg_ease=Avg("ease_factor"),
        avg_interval=Avg("interval"),
        mastered=Count("id", filter=Q(repetitions__gte=MASTERY_REPETITIONS,
                                      interval__gte=MASTERY_INTERVAL_DAYS)),
        due=Count("id", filter=Q(due_date__lte=now)),
        overdue=Count("id", filter=Q(due_date__lt=start_of_today)),
    )
