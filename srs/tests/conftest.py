import uuid
from datetime import datetime, timedelta, timezone

import pytest

from srs.data.models import Flashcard
from srs.data.repos import create_card


@pytest.fixture
def now():
    return datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def user_id():
    return uuid.uuid4()


@pytest.fixture
def make_card(user_id, now):
    """Create a card for ``user_id``; keyword overrides are written as-is."""

    def _make(owner=None, due_in_days=0, **fields):
        card = create_card(owner or user_id, book_id=fields.pop("book_id", None), now=now)
        fields.setdefault("due_date", now + timedelta(days=due_in_days))
        Flashcard.objects.filter(pk=card.pk).update(**fields)
        card.refresh_from_db()
        return card

    return _make
