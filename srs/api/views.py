from rest_framework import views, status
from rest_framework.response import Response
import structlog
import uuid
from ..services.reviews import submit_review
from ..services.due import list_due_cards
from ..services.stats import compute_statistics
from .serializers import (
    DueCardSerializer,
    DueQuerySerializer,
    ReviewInSerializer,
    ReviewOutSerializer,
    StatisticsSerializer,
    StatsQuerySerializer,
)

base_logger = structlog.get_logger()


class ReviewView(views.APIView):
    def post(self, request):
        # Create a unique request_id
        request_id = str(uuid.uuid4())
        logger = base_logger.bind(request_id=request_id)

        s = ReviewInSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        result = submit_review(
            data["card_id"],
            data["user_id"],
            data["rating"],
            response_time_ms=data.get("response_time_ms"),
            idempotency_key=data.get("idempotency_key") or None,
        )
        status_code = status.HTTP_200_OK if result.idempotent else status.HTTP_201_CREATED

        logger.info(
            "review_api_response",
            user_id=str(data["user_id"]),
            card_id=str(data["card_id"]),
            rating=result.rating,
            idempotent=result.idempotent,
            interval_days=result.new.interval,
            status=status_code,
        )

        return Response(ReviewOutSerializer(result).data, status=status_code)


class DueCardsView(views.APIView):
    def get(self, request, user_id):
        request_id = str(uuid.uuid4())
        logger = base_logger.bind(request_id=request_id)

        qs = DueQuerySerializer(data=request.query_params)
        qs.is_valid(raise_exception=True)

        due = list_due_cards(
            user_id,
            limit=qs.validated_data.get("limit"),
            book_id=qs.validated_data.get("book_id"),
        )

        logger.info(
            "due_cards_api_response",
            user_id=str(user_id),
            card_count=due.returned,
        )

        return Response(
            {
                "user_id": str(user_id),
                "flashcards": DueCardSerializer(due.cards, many=True).data,
                "meta": {
                    "total_due": due.total_due,
                    "returned": due.returned,
                    "daily_limit": due.daily_limit,
                    "overdue_count": due.overdue_count,
                    "reviewed_today": due.reviewed_today,
                    "remaining_today": due.remaining_today,
                },
            }
        )


class StatsView(views.APIView):
    def get(self, request, user_id):
        request_id = str(uuid.uuid4())
        logger = base_logger.bind(request_id=request_id)

        qs = StatsQuerySerializer(data=request.query_params)
        qs.is_valid(raise_exception=True)

        stats = compute_statistics(
            user_id,
            window_days=qs.validated_data.get("days"),
            book_id=qs.validated_data.get("book_id"),
        )

        logger.info("stats_api_response", user_id=str(user_id))
        return Response(StatisticsSerializer(stats).data)
