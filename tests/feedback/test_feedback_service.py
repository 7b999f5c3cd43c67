from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from tests.fakes import InMemoryFeedback
from virtual_queue.core.enums import EntryStatus, Role
from virtual_queue.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from virtual_queue.feedback.service import FeedbackService


@pytest.fixture
def feedback_repo(counters):
    return InMemoryFeedback(counters)


@pytest.fixture
def feedback_service(feedback_repo, queue):
    return FeedbackService(feedback_repo, queue)


@pytest.fixture
def served_entry(queue, fixed_now):
    return queue.add(
        counter_id=1,
        position_in_queue=0,
        status=EntryStatus.SERVED,
        customer_name="An",
        customer_phone="0901234567",
        served_at=fixed_now,
    )


def test_submit_feedback_for_served_visit(feedback_service, feedback_repo, served_entry, fixed_now):
    feedback_id = feedback_service.submit(entry_id=served_entry.entry_id, rating="5", comments="  Quick  ", now=fixed_now)

    [fb] = feedback_repo.items
    assert fb.feedback_id == feedback_id
    assert fb.rating == 5
    assert fb.comments == "Quick"
    assert fb.counter_id == 1
    assert fb.customer_name == "An"
    assert fb.customer_phone == "0901234567"
    assert fb.to_dict()["counter"] == {"name": "Counter 1", "counter_number": 1}


@pytest.mark.parametrize("rating", [0, 6, "abc", None])
def test_rating_must_be_one_to_five(feedback_service, served_entry, rating):
    with pytest.raises(ValidationError, match="Rating"):
        feedback_service.submit(entry_id=served_entry.entry_id, rating=rating)


def test_entry_must_exist_and_be_served(feedback_service, queue):
    waiting = queue.add(counter_id=1, position_in_queue=1, customer_name="Binh")

    with pytest.raises(NotFoundError):
        feedback_service.submit(entry_id=999, rating=4)
    with pytest.raises(ValidationError, match="after you have been served"):
        feedback_service.submit(entry_id=waiting.entry_id, rating=4)
    with pytest.raises(ValidationError):
        feedback_service.submit(entry_id="x", rating=4)


def test_one_feedback_per_visit(feedback_service, served_entry):
    feedback_service.submit(entry_id=served_entry.entry_id, rating=4)
    with pytest.raises(ValidationError, match="already submitted"):
        feedback_service.submit(entry_id=served_entry.entry_id, rating=2)


def test_counter_feedback_is_newest_first_and_limited(feedback_service, queue, fixed_now):
    for i in range(25):
        entry = queue.add(counter_id=1, position_in_queue=0, status=EntryStatus.SERVED, served_at=fixed_now)
        feedback_service.submit(entry_id=entry.entry_id, rating=3, now=fixed_now + timedelta(minutes=i))

    items = feedback_service.list_for_counter(current_role=Role.STAFF, counter_id=1)

    assert len(items) == 20
    assert items[0].created_at == fixed_now + timedelta(minutes=24)
    with pytest.raises(AuthorizationError):
        feedback_service.list_for_counter(current_role=Role.CUSTOMER, counter_id=1)


def test_recent_feedback_is_admin_only(feedback_service, served_entry):
    feedback_service.submit(entry_id=served_entry.entry_id, rating=5, now=datetime(2026, 3, 2, 10, 0))

    assert len(feedback_service.list_recent(current_role=Role.ADMIN)) == 1
    with pytest.raises(AuthorizationError):
        feedback_service.list_recent(current_role=Role.STAFF)
