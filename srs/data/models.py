import uuid

from django.db import models
from django.utils import timezone

from ..config import DEFAULT_DAILY_LIMIT, DEFAULT_EASE_FACTOR, MIN_EASE_FACTOR
from ..domain.enums import CardStatus
from ..errors import ImmutableRecordError


class Flashcard(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user_id = models.UUIDField()
    book_id = models.UUIDField(null=True, blank=True)
    front = models.CharField(max_length=1000, blank=True, default="")
    back = models.TextField(blank=True, default="")
    status = models.CharField(
        max_length=16, choices=CardStatus.choices(), default=CardStatus.NEW.value
    )
    ease_factor = models.FloatField(default=DEFAULT_EASE_FACTOR)
    interval = models.PositiveIntegerField(default=0)  # days
    repetitions = models.PositiveIntegerField(default=0)
    due_date = models.DateTimeField(default=timezone.now)  # UTC
    total_reviews = models.PositiveIntegerField(default=0)
    correct_reviews = models.PositiveIntegerField(default=0)
    version = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    deleted_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        indexes = [
            models.Index(fields=["user_id", "status", "due_date"]),
            models.Index(fields=["user_id", "book_id"]),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(ease_factor__gte=MIN_EASE_FACTOR),
                name="flashcard_ease_floor",
            ),
            models.CheckConstraint(
                condition=models.Q(correct_reviews__lte=models.F("total_reviews")),
                name="flashcard_correct_le_total",
            ),
        ]


class FlashcardReview(models.Model):
    """Append-only review log; the system of record for statistics."""

    flashcard = models.ForeignKey(
        Flashcard, on_delete=models.PROTECT, related_name="reviews"
    )
    user_id = models.UUIDField()
    rating = models.PositiveSmallIntegerField()
    response_time_ms = models.PositiveIntegerField(null=True, blank=True)
    reviewed_at = models.DateTimeField(default=timezone.now)
    previous_ease_factor = models.FloatField()
    previous_interval = models.PositiveIntegerField()
    previous_repetitions = models.PositiveIntegerField()
    new_ease_factor = models.FloatField()
    new_interval = models.PositiveIntegerField()
    new_repetitions = models.PositiveIntegerField()
    previous_status = models.CharField(max_length=16, choices=CardStatus.choices())
    new_status = models.CharField(max_length=16, choices=CardStatus.choices())
    next_due_date = models.DateTimeField()
    xp_awarded = models.PositiveIntegerField(default=0)
    idempotency_key = models.CharField(max_length=64, null=True, blank=True)

    class Meta:
        indexes = [
            models.Index(fields=["user_id", "reviewed_at"]),
            models.Index(fields=["flashcard", "reviewed_at"]),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["flashcard", "idempotency_key"],
                name="review_idempotency_key_unique",
            ),
            models.CheckConstraint(
                condition=models.Q(rating__gte=1, rating__lte=4),
                name="review_rating_range",
            ),
        ]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ImmutableRecordError("review records cannot be updated")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ImmutableRecordError("review records cannot be deleted")


class LearnerProgress(models.Model):
    user_id = models.UUIDField(unique=True)
    total_experience = models.PositiveIntegerField(default=0)
    level = models.PositiveIntegerField(default=1)
    total_cards_reviewed = models.PositiveIntegerField(default=0)
    last_activity = models.DateTimeField(null=True, blank=True)


class StudyPreferences(models.Model):
    user_id = models.UUIDField(unique=True)
    daily_card_limit = models.IntegerField(default=DEFAULT_DAILY_LIMIT)
