from __future__ import annotations

from datetime import datetime

import pytest

from tests.fakes import InMemoryCounters, InMemoryQueue, InMemoryUsers, RecordingPublisher
from virtual_queue.counters.model import Counter
from virtual_queue.queueing.service import QueueService


@pytest.fixture
def fixed_now():
    return datetime(2026, 3, 2, 9, 30, 0)


@pytest.fixture
def counters():
    return InMemoryCounters(
        [
            Counter(counter_id=1, counter_number=1, name="Counter 1"),
            Counter(counter_id=2, counter_number=2, name="Counter 2"),
        ]
    )


@pytest.fixture
def users():
    return InMemoryUsers()


@pytest.fixture
def queue(counters, users):
    return InMemoryQueue(counters, users)


@pytest.fixture
def publisher():
    return RecordingPublisher()


@pytest.fixture
def queue_service(queue, counters, publisher):
    return QueueService(queue, counters, publisher)
