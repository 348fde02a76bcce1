import pytest
import logging
from django.urls import reverse
import uuid

from srs.data.models import StudyPreferences

logger = logging.getLogger(__name__)

# Helpers

def make_review(client, user_id, card_id, rating, idem_key=None, **extra):
    url = reverse("review")
    payload = {
        "user_id": str(user_id),
        "card_id": str(card_id),
        "rating": rating,
        **extra,
    }
    if idem_key:
        payload["idempotency_key"] = idem_key
    resp = client.post(url, data=payload, content_type="application/json")
    logger.info("POST /reviews rating=%s → status=%s", rating, resp.status_code)
    return resp


def get_due_cards(client, user_id, **params):
    url = reverse("due-cards", kwargs={"user_id": str(user_id)})
    resp = client.get(url, params)
    logger.info("GET /due-cards → status=%s", resp.status_code)
    return resp


# Tests

@pytest.mark.django_db
def test_review_created(client, make_card, user_id):
    card = make_card()

    resp = make_review(client, user_id, card.id, 3, response_time_ms=1800)
    data = resp.json()

    assert resp.status_code == 201
    assert data["rating_label"] == "Good"
    assert data["new"]["status"] == "LEARNING"
    assert data["new"]["interval"] == 1
    assert data["next_interval_label"] == "1 day"
    assert data["xp_awarded"] == 5
    assert data["idempotent"] is False


@pytest.mark.django_db
def test_idempotency_true_and_false(client, make_card, user_id):
    card = make_card()

    first = make_review(client, user_id, card.id, 4, "idem-same")
    second = make_review(client, user_id, card.id, 4, "idem-same")

    assert first.status_code == 201
    assert first.json()["idempotent"] is False
    assert second.status_code == 200
    assert second.json()["idempotent"] is True
    assert first.json()["new"]["due_date"] == second.json()["new"]["due_date"]


@pytest.mark.django_db
@pytest.mark.parametrize("rating", [0, 5])
def test_rating_out_of_range(client, make_card, user_id, rating):
    card = make_card()

    resp = make_review(client, user_id, card.id, rating)

    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "VALIDATION_ERROR"


@pytest.mark.django_db
def test_error_codes(client, make_card, user_id):
    card = make_card()
    suspended = make_card(status="SUSPENDED")

    missing = make_review(client, user_id, uuid.uuid4(), 3)
    assert missing.status_code == 404
    assert missing.json()["error"]["code"] == "NOT_FOUND"

    forbidden = make_review(client, uuid.uuid4(), card.id, 3)
    assert forbidden.status_code == 403
    assert forbidden.json()["error"]["code"] == "FORBIDDEN"

    rejected = make_review(client, user_id, suspended.id, 3)
    assert rejected.status_code == 400
    assert rejected.json()["error"] == {
        "code": "INVALID_STATE",
        "message": "Cannot review a suspended flashcard.",
    }


@pytest.mark.django_db
def test_due_cards_includes_and_excludes(client, make_card, user_id):
    due = make_card(due_in_days=-400)
    make_card(due_in_days=36500)
    StudyPreferences.objects.create(user_id=user_id, daily_card_limit=20)

    resp = get_due_cards(client, user_id)
    data = resp.json()

    assert resp.status_code == 200
    assert [c["id"] for c in data["flashcards"]] == [str(due.id)]
    assert data["flashcards"][0]["is_overdue"] is True
    assert data["meta"]["daily_limit"] == 20
    assert data["meta"]["remaining_today"] == 20


@pytest.mark.django_db
def test_due_cards_bad_limit(client, user_id):
    resp = get_due_cards(client, user_id, limit="lots")
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "VALIDATION_ERROR"


@pytest.mark.django_db
def test_stats_endpoint(client, make_card, user_id):
    card = make_card(due_in_days=-400)
    make_review(client, user_id, card.id, 3)

    url = reverse("stats", kwargs={"user_id": str(user_id)})
    resp = client.get(url, {"days": 7})
    data = resp.json()

    assert resp.status_code == 200
    assert data["retention_rate"] == 100
    assert len(data["review_history"]) == 7
    assert data["review_history"][-1]["reviewed"] == 1
    assert data["streak"]["current"] == 1
    assert data["status_counts"]["learning"] == 1
    assert data["status_counts"]["total"] == 1


@pytest.mark.django_db
def test_due_cards_show_next_intervals(client, make_card, user_id):
    make_card(due_in_days=-1, status="REVIEW", repetitions=2, interval=6, ease_factor=2.5)

    data = get_due_cards(client, user_id).json()

    assert data["flashcards"][0]["next_intervals"] == {"1": 1, "2": 1, "3": 15, "4": 16}


@pytest.mark.django_db
@pytest.mark.parametrize("limit", [0, -3])
def test_due_cards_small_limit_is_clamped(client, make_card, user_id, limit):
    make_card(due_in_days=-2)
    make_card(due_in_days=-1)

    resp = get_due_cards(client, user_id, limit=limit)

    assert resp.status_code == 200
    assert len(resp.json()["flashcards"]) == 1
    assert resp.json()["meta"]["total_due"] == 2
