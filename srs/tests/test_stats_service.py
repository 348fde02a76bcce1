import uuid
from datetime import timedelta

import pytest

from srs.services.reviews import submit_review
from srs.services.stats import clamp_window, compute_statistics


@pytest.mark.django_db
def test_empty_statistics(user_id, now):
    stats = compute_statistics(user_id, window_days=7, now=now)

    assert stats.retention_rate == 0
    assert stats.total_reviews == 0
    assert len(stats.review_history) == 7
    assert stats.review_history[-1].date == "2024-03-15"
    assert (stats.streak.current, stats.streak.longest, stats.streak.last_review_date) == (0, 0, None)
    assert stats.average_ease_factor == 2.5
    assert stats.average_interval == 0
    assert stats.status_counts.total == 0


@pytest.mark.django_db
def test_statistics_from_review_history(make_card, user_id, now):
    a = make_card(due_in_days=-5)
    b = make_card(due_in_days=-5)
    make_card(due_in_days=-1, status="SUSPENDED")
    make_card(due_in_days=3)

    submit_review(a.id, user_id, 3, now=now - timedelta(days=2))
    submit_review(a.id, user_id, 4, now=now - timedelta(days=1))
    submit_review(b.id, user_id, 1, now=now - timedelta(hours=3))

    stats = compute_statistics(user_id, window_days=3, now=now)

    assert stats.total_reviews == 3
    assert stats.retention_rate == 66.67
    assert [(h.date, h.reviewed, h.correct, h.incorrect) for h in stats.review_history] == [
        ("2024-03-13", 1, 1, 0),
        ("2024-03-14", 1, 1, 0),
        ("2024-03-15", 1, 0, 1),
    ]
    assert (stats.streak.current, stats.streak.longest) == (3, 3)
    assert stats.streak.last_review_date == "2024-03-15"

    counts = stats.status_counts
    assert (counts.new, counts.learning, counts.review, counts.suspended) == (1, 1, 1, 1)
    assert counts.total == 4
    # b lapsed today and is due tomorrow, a in 5 days, the new card in 3
    assert stats.due_count == 0
    assert stats.overdue_count == 0


@pytest.mark.django_db
def test_window_limits_retention_but_not_streak(make_card, user_id, now):
    card = make_card(due_in_days=-30)
    for offset in (20, 19, 18):
        submit_review(card.id, user_id, 1, now=now - timedelta(days=offset))
    submit_review(card.id, user_id, 3, now=now)

    stats = compute_statistics(user_id, window_days=1, now=now)

    assert stats.total_reviews == 1
    assert stats.retention_rate == 100
    assert (stats.streak.current, stats.streak.longest) == (1, 3)


@pytest.mark.django_db
def test_due_overdue_and_mastered_counts(make_card, user_id, now):
    make_card(due_in_days=-2, status="REVIEW", repetitions=6, interval=30)
    make_card(due_in_days=0)
    make_card(due_in_days=-4, status="SUSPENDED", repetitions=6, interval=30)

    stats = compute_statistics(user_id, now=now)

    assert stats.due_count == 2
    assert stats.overdue_count == 1
    assert stats.mastered_count == 1


@pytest.mark.django_db
def test_book_filter_on_statistics(make_card, user_id, now):
    book = uuid.uuid4()
    in_book = make_card(due_in_days=-1, book_id=book)
    other = make_card(due_in_days=-1)
    submit_review(in_book.id, user_id, 4, now=now)
    submit_review(other.id, user_id, 1, now=now)

    stats = compute_statistics(user_id, window_days=1, book_id=book, now=now)

    assert stats.total_reviews == 1
    assert stats.retention_rate == 100
    assert stats.status_counts.total == 1


def test_window_is_clamped():
    assert clamp_window(None) == 30
    assert clamp_window(0) == 1
    assert clamp_window(1000) == 365


@pytest.mark.django_db
def test_reviews_after_now_are_ignored(make_card, user_id, now):
    card = make_card(due_in_days=-5)
    submit_review(card.id, user_id, 3, now=now - timedelta(days=1))
    submit_review(card.id, user_id, 1, now=now + timedelta(days=1))

    stats = compute_statistics(user_id, window_days=3, now=now)

    assert stats.total_reviews == 1
    assert stats.retention_rate == 100
    assert sum(h.reviewed for h in stats.review_history) == 1
    assert stats.streak.current == 1
    assert stats.streak.last_review_date == "2024-03-14"
