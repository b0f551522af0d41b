"""Queue manager: drains the pending queue and records outcomes in history.

The manager is driven by an external scheduler.  Each worker identity is a
job named ``queue-observer_<n>`` that calls :meth:`NotificationsQueueManager.handle`
on a fixed delay/interval; a separate ``clean-notifications-schedule`` job
purges old history rows.  The scheduler is anything that implements
:class:`ScheduleRegistrar`.

Usage::

    manager = NotificationsQueueManager(queue, history, handler=refresh_version)
    register_queue_workers(scheduler, settings, manager)
    register_housekeeping(scheduler, settings, manager)

A handler failure never escapes ``handle()``: the event is recorded as
``FAILED`` with the error text and, while retries remain, pushed back as a
child event whose ``parent_event_id`` is the failed event's id.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass, replace
from typing import Protocol

from depot.core.errors import InvalidConfigError
from depot.core.logging import event_context, get_logger
from depot.core.settings import DepotSettings
from depot.domain.notifications import MetadataEventStatus, MetadataNotification
from depot.notifications.history import Notifications
from depot.notifications.queue import NotificationsQueue
from depot.store.repositories._helpers import require_valid_coordinates

logger = get_logger(__name__)

QUEUE_OBSERVER = "queue-observer"
CLEANUP_NOTIFICATIONS_SCHEDULE = "clean-notifications-schedule"

EventHandler = Callable[[MetadataNotification], Iterable[str] | None]


class ScheduleRegistrar(Protocol):
    """The external scheduler that owns timing of queue and housekeeping jobs."""

    def register(self, name: str, delay_seconds: int, interval_seconds: int, callback: Callable[[], object]) -> None:
        ...


@dataclass
class QueueStats:
    """Running totals across ``handle()`` calls."""

    processed: int = 0
    succeeded: int = 0
    failed: int = 0
    requeued: int = 0


class NotificationsQueueManager:
    """Claims pending events, runs the handler on each and records the result.

    Args:
        queue: Pending events.
        notifications: History of processed events.
        handler: Called once per claimed event.  Raising, or returning a
            non-empty collection of error messages, marks the event failed.
    """

    def __init__(self, queue: NotificationsQueue, notifications: Notifications, handler: EventHandler):
        self._queue = queue
        self._notifications = notifications
        self._handler = handler
        self._stats = QueueStats()
        self._stats_lock = threading.Lock()

    @property
    def stats(self) -> QueueStats:
        """Snapshot of the counters shared by every worker identity."""
        with self._stats_lock:
            return replace(self._stats)

    def notify(self, event: MetadataNotification) -> str:
        """Validate and enqueue ``event``; returns its event id."""
        require_valid_coordinates(event.group_id, event.artifact_id, event.version_id)
        event_id = self._queue.push(event)
        logger.info("notification_queued", event_id=event_id, group_id=event.group_id,
                    artifact_id=event.artifact_id, version_id=event.version_id, priority=event.event_priority)
        return event_id

    def handle(self) -> int:
        """Process every event this worker claims; returns how many were processed."""
        events = self._queue.pull_all()
        for event in events:
            self._process(event)
        return len(events)

    def delete_old_notifications(self, days: int) -> int:
        return self._notifications.delete_old_notifications(days)

    def _process(self, event: MetadataNotification) -> None:
        with event_context(event_id=event.event_id, group_id=event.group_id,
                           artifact_id=event.artifact_id, version_id=event.version_id):
            self._record(event, self._run_handler(event))

    def _run_handler(self, event: MetadataNotification) -> list[str]:
        event.status = MetadataEventStatus.IN_PROGRESS
        try:
            return list(self._handler(event) or [])
        except Exception as exc:
            error = f"{type(exc).__name__}: {exc}"
            logger.error("notification_handler_failed", error=error)
            return [error]

    def _record(self, event: MetadataNotification, errors: list[str]) -> None:
        event.errors = errors
        event.status = MetadataEventStatus.FAILED if errors else MetadataEventStatus.SUCCESS
        with self._stats_lock:
            self._stats.processed += 1
            if errors:
                self._stats.failed += 1
            else:
                self._stats.succeeded += 1
        self._notifications.create_or_update(event)
        logger.info("notification_processed", status=event.status.value, attempt=event.attempt, errors=len(errors))

        if errors and event.can_retry:
            self._retry(event)
        elif errors:
            logger.warning("notification_retries_exhausted", attempts=event.attempt)

    def _retry(self, event: MetadataNotification) -> None:
        child = MetadataNotification(
            group_id=event.group_id,
            artifact_id=event.artifact_id,
            version_id=event.version_id,
            parent_event_id=event.event_id,
            event_priority=event.event_priority,
            attempt=event.attempt + 1,
            max_retries=event.max_retries,
            full_update=event.full_update,
        )
        child_id = self._queue.push(child)
        with self._stats_lock:
            self._stats.requeued += 1
        logger.info("notification_requeued", child_event_id=child_id, attempt=child.attempt)


def register_queue_workers(registrar: ScheduleRegistrar, settings: DepotSettings,
                           manager: NotificationsQueueManager) -> list[str]:
    """Register one ``queue-observer_<n>`` job per configured worker.

    Raises:
        InvalidConfigError: ``queue_workers`` is zero or negative.
    """
    workers = settings.queue_workers
    if workers <= 0:
        raise InvalidConfigError(
            "queue_workers", workers, "Number of queue workers must be a positive number"
        )
    names = []
    for worker in range(1, workers + 1):
        name = f"{QUEUE_OBSERVER}_{worker}"
        registrar.register(name, settings.queue_delay_seconds, settings.queue_interval_seconds, manager.handle)
        names.append(name)
    logger.info("queue_workers_registered", workers=workers)
    return names


def register_housekeeping(registrar: ScheduleRegistrar, settings: DepotSettings,
                          manager: NotificationsQueueManager) -> str:
    retention_days = settings.notifications_retention_days
    registrar.register(
        CLEANUP_NOTIFICATIONS_SCHEDULE,
        settings.housekeeping_delay_seconds,
        settings.housekeeping_interval_seconds,
        lambda: manager.delete_old_notifications(retention_days),
    )
    return CLEANUP_NOTIFICATIONS_SCHEDULE
