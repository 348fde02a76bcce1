import os
import uuid
import logging

import pytest
import requests

BASE_URL = os.environ.get("SRS_LIVE_URL", "")
logger = logging.getLogger(__name__)

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(not BASE_URL, reason="set SRS_LIVE_URL to run against a live server"),
]


def post_review(user_id, card_id, rating, idem=None):
    """Helper for POST /reviews"""
    payload = {
        "user_id": str(user_id),
        "card_id": str(card_id),
        "rating": rating,
    }
    if idem:
        payload["idempotency_key"] = idem
    r = requests.post(f"{BASE_URL}/reviews", json=payload, timeout=10)
    logger.info("POST /reviews rating=%s → status=%s", rating, r.status_code)
    return r


def test_unknown_card_live():
    r = post_review(uuid.uuid4(), uuid.uuid4(), 3)
    assert r.status_code == 404
    assert r.json()["error"]["code"] == "NOT_FOUND"


def test_invalid_rating_live():
    r = post_review(uuid.uuid4(), uuid.uuid4(), 9)
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "VALIDATION_ERROR"


def test_due_and_stats_for_fresh_user_live():
    user_id = uuid.uuid4()

    due = requests.get(f"{BASE_URL}/users/{user_id}/due-cards", timeout=10)
    assert due.status_code == 200
    assert due.json()["flashcards"] == []
    assert due.json()["meta"]["remaining_today"] == due.json()["meta"]["daily_limit"]

    stats = requests.get(f"{BASE_URL}/users/{user_id}/stats", params={"days": 3}, timeout=10)
    assert stats.status_code == 200
    assert len(stats.json()["review_history"]) == 3
    assert stats.json()["retention_rate"] == 0
