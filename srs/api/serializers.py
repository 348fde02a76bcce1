from rest_framework import serializers

from ..config import MAX_HISTORY_DAYS, MIN_HISTORY_DAYS
from ..domain.enums import RATING_LABELS, Rating
from ..domain.logic import format_interval


class ReviewInSerializer(serializers.Serializer):
    user_id = serializers.UUIDField()
    card_id = serializers.UUIDField()
    rating = serializers.IntegerField(min_value=1, max_value=4)
    response_time_ms = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    idempotency_key = serializers.CharField(max_length=64, required=False, allow_blank=True)


class DueQuerySerializer(serializers.Serializer):
    # out-of-range values are clamped by the selector rather than rejected
    limit = serializers.IntegerField(required=False)
    book_id = serializers.UUIDField(required=False)


class StatsQuerySerializer(serializers.Serializer):
    days = serializers.IntegerField(
        required=False, min_value=MIN_HISTORY_DAYS, max_value=MAX_HISTORY_DAYS
    )
    book_id = serializers.UUIDField(required=False)


class CardStateSerializer(serializers.Serializer):
    ease_factor = serializers.FloatField()
    interval = serializers.IntegerField()
    repetitions = serializers.IntegerField()
    status = serializers.CharField()
    due_date = serializers.DateTimeField(allow_null=True)


class ReviewOutSerializer(serializers.Serializer):
    card_id = serializers.UUIDField()
    rating = serializers.IntegerField()
    rating_label = serializers.SerializerMethodField()
    previous = CardStateSerializer()
    new = CardStateSerializer()
    xp_awarded = serializers.IntegerField()
    total_experience = serializers.IntegerField()
    level = serializers.IntegerField()
    level_changed = serializers.BooleanField()
    is_lapse = serializers.BooleanField()
    is_mastered = serializers.BooleanField()
    newly_mastered = serializers.BooleanField()
    next_interval_label = serializers.SerializerMethodField()
    reviewed_at = serializers.DateTimeField()
    idempotent = serializers.BooleanField()

    def get_rating_label(self, obj):
        return RATING_LABELS[Rating(obj.rating)]

    def get_next_interval_label(self, obj):
        return format_interval(obj.new.interval)


class DueCardSerializer(serializers.Serializer):
    id = serializers.UUIDField(source="card.id")
    book_id = serializers.UUIDField(source="card.book_id", allow_null=True)
    front = serializers.CharField(source="card.front")
    back = serializers.CharField(source="card.back")
    status = serializers.CharField(source="card.status")
    ease_factor = serializers.FloatField(source="card.ease_factor")
    interval = serializers.IntegerField(source="card.interval")
    repetitions = serializers.IntegerField(source="card.repetitions")
    due_date = serializers.DateTimeField(source="card.due_date")
    total_reviews = serializers.IntegerField(source="card.total_reviews")
    correct_reviews = serializers.IntegerField(source="card.correct_reviews")
    is_overdue = serializers.BooleanField()
    overdue_by = serializers.IntegerField()
    next_intervals = serializers.DictField(child=serializers.IntegerField())


class HistoryEntrySerializer(serializers.Serializer):
    date = serializers.CharField()
    reviewed = serializers.IntegerField()
    correct = serializers.IntegerField()
    incorrect = serializers.IntegerField()


class StreakSerializer(serializers.Serializer):
    current = serializers.IntegerField()
    longest = serializers.IntegerField()
    last_review_date = serializers.CharField(allow_null=True)


class StatusCountsSerializer(serializers.Serializer):
    new = serializers.IntegerField()
    learning = serializers.IntegerField()
    review = serializers.IntegerField()
    suspended = serializers.IntegerField()
    total = serializers.IntegerField()


class StatisticsSerializer(serializers.Serializer):
    retention_rate = serializers.FloatField()
    status_counts = StatusCountsSerializer()
    review_history = HistoryEntrySerializer(many=True)
    streak = StreakSerializer()
    total_reviews = serializers.IntegerField()
    average_ease_factor = serializers.FloatField()
    average_interval = serializers.FloatField()
    mastered_count = serializers.IntegerField()
    due_count = serializers.IntegerField()
    overdue_count = serializers.IntegerField()
