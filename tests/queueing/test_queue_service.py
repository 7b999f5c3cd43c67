from __future__ import annotations

from datetime import date, datetime

import pytest

from tests.fakes import FailingPublisher
from virtual_queue.core.enums import EntryStatus, Role
from virtual_queue.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from virtual_queue.notifications.events import EventType
from virtual_queue.queueing.service import QueueService


STAFF_ID = 10


def _join(svc: QueueService, name: str, now: datetime):
    return svc.join(customer_name=name, customer_phone="0901234567", now=now)


@pytest.fixture
def single_counter(counters):
    counters.set_active(2, is_active=False)
    return counters


def test_join_balances_counters_and_issues_sequential_tokens(queue_service, publisher, fixed_now):
    a = _join(queue_service, "An", fixed_now)
    b = _join(queue_service, "Binh", fixed_now)
    c = _join(queue_service, "Chi", fixed_now)

    assert [t.entry.token_number for t in (a, b, c)] == [1, 2, 3]
    assert [t.entry.counter_id for t in (a, b, c)] == [1, 2, 1]
    assert [t.entry.position_in_queue for t in (a, b, c)] == [1, 1, 2]
    assert [t.entry.estimated_wait_minutes for t in (a, b, c)] == [2, 2, 4]
    assert c.people_ahead == 1
    assert c.entry.status == EntryStatus.WAITING
    assert c.entry.joined_at == fixed_now

    joined = publisher.of_type(EventType.ENTRY_JOINED)
    assert [e.counter_id for e in joined] == [1, 2, 1]


def test_join_requires_name_and_phone(queue_service, fixed_now):
    with pytest.raises(ValidationError):
        queue_service.join(customer_name="  ", customer_phone="0901234567", now=fixed_now)
    with pytest.raises(ValidationError):
        queue_service.join(customer_name="An", customer_phone="", now=fixed_now)


def test_join_without_active_counters_fails(queue_service, counters, fixed_now):
    counters.set_active(1, is_active=False)
    counters.set_active(2, is_active=False)

    with pytest.raises(ValidationError, match="No active counters"):
        _join(queue_service, "An", fixed_now)


def test_join_keeps_profile_link(queue_service, fixed_now):
    ticket = queue_service.join(customer_name="An", customer_phone="0901234567", user_id=42, now=fixed_now)
    assert ticket.entry.user_id == 42


def test_tokens_are_not_reused_after_leaving(queue_service, single_counter, fixed_now):
    _join(queue_service, "An", fixed_now)
    b = _join(queue_service, "Binh", fixed_now)
    queue_service.leave(b.entry.entry_id)

    c = _join(queue_service, "Chi", fixed_now)
    assert c.entry.token_number == 3
    assert c.entry.position_in_queue == 2


def test_leave_closes_the_gap_and_notifies(queue_service, queue, publisher, single_counter, fixed_now):
    a = _join(queue_service, "An", fixed_now)
    b = _join(queue_service, "Binh", fixed_now)
    c = _join(queue_service, "Chi", fixed_now)
    publisher.events.clear()

    queue_service.leave(a.entry.entry_id)

    assert queue.get_by_id(a.entry.entry_id) is None
    assert queue.get_by_id(b.entry.entry_id).position_in_queue == 1
    assert queue.get_by_id(c.entry.entry_id).position_in_queue == 2
    assert queue.get_by_id(c.entry.entry_id).estimated_wait_minutes == 4

    removed = publisher.of_type(EventType.ENTRY_REMOVED)
    assert [e.entry_id for e in removed] == [a.entry.entry_id]
    moved = publisher.of_type(EventType.POSITION_CHANGED)
    assert {e.entry_id: e.payload["position_in_queue"] for e in moved} == {
        b.entry.entry_id: 1,
        c.entry.entry_id: 2,
    }
    almost = publisher.of_type(EventType.ALMOST_TURN)
    assert "Only 1 people ahead" in [e for e in almost if e.entry_id == c.entry.entry_id][0].payload["message"]
    assert publisher.of_type(EventType.QUEUE_CHANGED)[0].payload == {"waiting": 2}


def test_only_waiting_customers_can_leave(queue_service, single_counter, fixed_now):
    a = _join(queue_service, "An", fixed_now)
    queue_service.call_next(current_role=Role.STAFF, staff_id=STAFF_ID, counter_id=1, now=fixed_now)

    with pytest.raises(ValidationError):
        queue_service.leave(a.entry.entry_id)


def test_leave_unknown_entry(queue_service):
    with pytest.raises(NotFoundError):
        queue_service.leave(999)


def test_status_reports_people_ahead_and_almost_turn(queue_service, single_counter, fixed_now):
    tickets = [_join(queue_service, f"Customer {i}", fixed_now) for i in range(4)]

    third = queue_service.get_status(tickets[2].entry.entry_id)
    fourth = queue_service.get_status(tickets[3].entry.entry_id)

    assert third.people_ahead == 2
    assert third.almost_turn is True
    assert fourth.people_ahead == 3
    assert fourth.almost_turn is False
    assert third.to_dict()["counter"] == {"counter_number": 1, "name": "Counter 1"}


def test_call_next_moves_first_waiting_to_called(queue_service, queue, publisher, single_counter, fixed_now):
    a = _join(queue_service, "An", fixed_now)
    b = _join(queue_service, "Binh", fixed_now)
    publisher.events.clear()

    called = queue_service.call_next(current_role=Role.STAFF, staff_id=STAFF_ID, counter_id=1, now=fixed_now)

    assert called.entry_id == a.entry.entry_id
    assert called.status == EntryStatus.CALLED
    assert called.called_at == fixed_now
    assert called.position_in_queue == 0
    assert queue.get_by_id(b.entry.entry_id).position_in_queue == 1

    [event] = publisher.of_type(EventType.ENTRY_CALLED)
    assert event.entry_id == a.entry.entry_id
    assert event.payload["counter_number"] == 1
    assert "your turn" in event.payload["message"]


def test_only_one_called_customer_per_counter(queue_service, single_counter, fixed_now):
    _join(queue_service, "An", fixed_now)
    _join(queue_service, "Binh", fixed_now)
    queue_service.call_next(current_role=Role.STAFF, staff_id=STAFF_ID, counter_id=1, now=fixed_now)

    with pytest.raises(ValidationError, match="Finish serving"):
        queue_service.call_next(current_role=Role.STAFF, staff_id=STAFF_ID, counter_id=1, now=fixed_now)


def test_call_next_with_empty_queue(queue_service):
    with pytest.raises(ValidationError, match="No customers waiting"):
        queue_service.call_next(current_role=Role.STAFF, staff_id=STAFF_ID, counter_id=1)


def test_customers_cannot_run_the_counter(queue_service, single_counter, fixed_now):
    _join(queue_service, "An", fixed_now)
    with pytest.raises(AuthorizationError):
        queue_service.call_next(current_role=Role.CUSTOMER, staff_id=STAFF_ID, counter_id=1)
    with pytest.raises(AuthorizationError):
        queue_service.list_waiting(current_role=Role.CUSTOMER, counter_id=1)


def test_counter_claimed_by_someone_else(queue_service, counters, single_counter, fixed_now):
    _join(queue_service, "An", fixed_now)
    counters.set_current_staff(1, 99)

    with pytest.raises(AuthorizationError):
        queue_service.call_next(current_role=Role.STAFF, staff_id=STAFF_ID, counter_id=1, now=fixed_now)

    called = queue_service.call_next(current_role=Role.ADMIN, staff_id=1, counter_id=1, now=fixed_now)
    assert called.status == EntryStatus.CALLED


def test_complete_marks_served_and_requests_feedback(queue_service, publisher, single_counter, fixed_now):
    a = _join(queue_service, "An", fixed_now)
    queue_service.call_next(current_role=Role.STAFF, staff_id=STAFF_ID, counter_id=1, now=fixed_now)

    served = queue_service.complete(current_role=Role.STAFF, staff_id=STAFF_ID, counter_id=1, now=fixed_now)

    assert served.entry_id == a.entry.entry_id
    assert served.status == EntryStatus.SERVED
    assert served.served_at == fixed_now
    [event] = publisher.of_type(EventType.ENTRY_SERVED)
    assert event.payload["feedback_requested"] is True


def test_complete_without_called_customer(queue_service):
    with pytest.raises(ValidationError):
        queue_service.complete(current_role=Role.STAFF, staff_id=STAFF_ID, counter_id=1)


def test_serve_next_walks_through_the_queue(queue_service, single_counter, fixed_now):
    a = _join(queue_service, "An", fixed_now)
    b = _join(queue_service, "Binh", fixed_now)
    kwargs = dict(current_role=Role.STAFF, staff_id=STAFF_ID, counter_id=1, now=fixed_now)

    first = queue_service.serve_next(**kwargs)
    assert first.served is None
    assert first.called.entry_id == a.entry.entry_id

    second = queue_service.serve_next(**kwargs)
    assert second.served.entry_id == a.entry.entry_id
    assert second.called.entry_id == b.entry.entry_id

    third = queue_service.serve_next(**kwargs)
    assert third.served.entry_id == b.entry.entry_id
    assert third.called is None

    with pytest.raises(ValidationError):
        queue_service.serve_next(**kwargs)


def test_reorder_recomputes_positions(queue_service, queue, publisher):
    queue.add(counter_id=1, position_in_queue=3, customer_name="An")
    queue.add(counter_id=1, position_in_queue=7, customer_name="Binh")

    waiting = queue_service.reorder(1)

    assert [e.position_in_queue for e in waiting] == [1, 2]
    assert [e.estimated_wait_minutes for e in waiting] == [2, 4]
    assert len(publisher.of_type(EventType.POSITION_CHANGED)) == 2


def test_reorder_unknown_counter(queue_service):
    with pytest.raises(NotFoundError):
        queue_service.reorder(404)


def test_waiting_list_prefers_profile_then_guest(queue_service, queue, users):
    member = users.add(email="member@example.com", password_hash="x", full_name="Profile Name", phone_number="0911")
    queue.add(counter_id=1, position_in_queue=1, customer_name="Typed Name", customer_phone="0922", user_id=member.user_id)
    queue.add(counter_id=1, position_in_queue=2, customer_name=None, customer_phone=None)

    rows = queue_service.list_waiting(current_role=Role.STAFF, counter_id=1)

    assert [(r["full_name"], r["phone_number"]) for r in rows] == [
        ("Profile Name", "0911"),
        ("Guest Customer", "N/A"),
    ]


def test_waiting_list_unknown_counter(queue_service):
    with pytest.raises(NotFoundError):
        queue_service.list_waiting(current_role=Role.STAFF, counter_id=404)


def test_stats_are_admin_only(queue_service, single_counter, fixed_now):
    _join(queue_service, "An", fixed_now)
    _join(queue_service, "Binh", fixed_now)
    queue_service.call_next(current_role=Role.STAFF, staff_id=STAFF_ID, counter_id=1, now=fixed_now)

    stats = queue_service.stats(current_role=Role.ADMIN)
    assert stats.to_dict() == {"total": 2, "waiting": 1, "called": 1, "served": 0}

    with pytest.raises(AuthorizationError):
        queue_service.stats(current_role=Role.STAFF)


def test_served_report_filters_by_date_and_counter(queue_service, queue):
    queue.add(counter_id=1, position_in_queue=0, status=EntryStatus.SERVED, served_at=datetime(2026, 3, 1, 10, 0))
    queue.add(counter_id=2, position_in_queue=0, status=EntryStatus.SERVED, served_at=datetime(2026, 3, 2, 23, 59))
    queue.add(counter_id=1, position_in_queue=0, status=EntryStatus.SERVED, served_at=datetime(2026, 3, 3, 0, 0))

    rows = queue_service.served_report(current_role=Role.ADMIN, start_date=date(2026, 3, 1), end_date=date(2026, 3, 2))
    assert [r.counter_number for r in rows] == [1, 2]

    rows = queue_service.served_report(
        current_role=Role.ADMIN, start_date=date(2026, 3, 1), end_date=date(2026, 3, 3), counter_id=1
    )
    assert len(rows) == 2


def test_served_report_validates_input(queue_service):
    with pytest.raises(ValidationError):
        queue_service.served_report(current_role=Role.ADMIN, start_date=date(2026, 3, 2), end_date=date(2026, 3, 1))
    with pytest.raises(AuthorizationError):
        queue_service.served_report(current_role=Role.STAFF, start_date=date(2026, 3, 1), end_date=date(2026, 3, 1))


def test_publisher_failure_does_not_undo_the_change(queue, counters, fixed_now):
    svc = QueueService(queue, counters, FailingPublisher())

    ticket = _join(svc, "An", fixed_now)

    assert queue.get_by_id(ticket.entry.entry_id) is not None


def test_leaving_from_the_back_notifies_nobody_else(queue_service, publisher, single_counter, fixed_now):
    _join(queue_service, "An", fixed_now)
    _join(queue_service, "Binh", fixed_now)
    c = _join(queue_service, "Chi", fixed_now)
    publisher.events.clear()

    queue_service.leave(c.entry.entry_id)

    assert publisher.of_type(EventType.POSITION_CHANGED) == []
    assert publisher.of_type(EventType.ALMOST_TURN) == []


def test_only_moved_entries_get_position_events(queue_service, queue, publisher, single_counter, fixed_now):
    a = _join(queue_service, "An", fixed_now)
    b = _join(queue_service, "Binh", fixed_now)
    c = _join(queue_service, "Chi", fixed_now)
    publisher.events.clear()

    queue_service.leave(b.entry.entry_id)

    assert [e.entry_id for e in publisher.of_type(EventType.POSITION_CHANGED)] == [c.entry.entry_id]
    assert [e.entry_id for e in publisher.of_type(EventType.ALMOST_TURN)] == [c.entry.entry_id]
    assert queue.get_by_id(a.entry.entry_id).position_in_queue == 1


def test_reorder_without_gaps_publishes_nothing(queue_service, publisher, single_counter, fixed_now):
    _join(queue_service, "An", fixed_now)
    _join(queue_service, "Binh", fixed_now)
    publisher.events.clear()

    queue_service.reorder(1)

    assert publisher.events == []


def test_serve_next_unknown_counter(queue_service):
    with pytest.raises(NotFoundError):
        queue_service.serve_next(current_role=Role.STAFF, staff_id=STAFF_ID, counter_id=999)


def test_serve_next_on_someone_elses_counter(queue_service, counters):
    counters.set_current_staff(1, 99)

    with pytest.raises(AuthorizationError):
        queue_service.serve_next(current_role=Role.STAFF, staff_id=STAFF_ID, counter_id=1)
