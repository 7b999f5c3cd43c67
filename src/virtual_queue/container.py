from __future__ import annotations

from dataclasses import dataclass

from .counters.mysql_counter_repository import MySQLCounterRepository
from .counters.repository import CounterRepository
from .counters.service import CounterService
from .database.connection import DBConfig, DatabaseConnection
from .feedback.mysql_feedback_repository import MySQLFeedbackRepository
from .feedback.repository import FeedbackRepository
from .feedback.service import FeedbackService
from .notifications.publisher import EventPublisher, NullPublisher
from .queueing.mysql_queue_repository import MySQLQueueRepository
from .queueing.repository import QueueRepository
from .queueing.service import QueueService
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import AuthService, StaffAccountService


@dataclass(frozen=True)
class Container:
    users_repo: UserRepository
    counters_repo: CounterRepository
    queue_repo: QueueRepository
    feedback_repo: FeedbackRepository

    auth_service: AuthService
    staff_service: StaffAccountService
    counter_service: CounterService
    queue_service: QueueService
    feedback_service: FeedbackService


def wire_container(
    *,
    users_repo: UserRepository,
    counters_repo: CounterRepository,
    queue_repo: QueueRepository,
    feedback_repo: FeedbackRepository,
    publisher: EventPublisher | None = None,
) -> Container:
    """Build services on top of any repository implementations (MySQL or in-memory)."""

    publisher = publisher or NullPublisher()
    return Container(
        users_repo=users_repo,
        counters_repo=counters_repo,
        queue_repo=queue_repo,
        feedback_repo=feedback_repo,
        auth_service=AuthService(users_repo),
        staff_service=StaffAccountService(users_repo),
        counter_service=CounterService(counters_repo),
        queue_service=QueueService(queue_repo, counters_repo, publisher),
        feedback_service=FeedbackService(feedback_repo, queue_repo),
    )


def build_container(*, conn: DatabaseConnection, publisher: EventPublisher | None = None) -> Container:
    return wire_container(
        users_repo=MySQLUserRepository(conn),
        counters_repo=MySQLCounterRepository(conn),
        queue_repo=MySQLQueueRepository(conn),
        feedback_repo=MySQLFeedbackRepository(conn),
        publisher=publisher,
    )


def connection_from_settings(db_config: dict) -> DatabaseConnection:
    return DatabaseConnection.get_instance(DBConfig.from_dict(db_config))
