"""
Notification queue and history.

- :class:`NotificationsQueue` - pending events, claim-by-delete dequeue
- :class:`Notifications` - processed-event history with retention purge
- :class:`NotificationsQueueManager` - drains the queue for the scheduler
"""

from depot.notifications.history import Notifications
from depot.notifications.manager import (
    CLEANUP_NOTIFICATIONS_SCHEDULE,
    QUEUE_OBSERVER,
    NotificationsQueueManager,
    QueueStats,
    ScheduleRegistrar,
    register_housekeeping,
    register_queue_workers,
)
from depot.notifications.queue import NotificationsQueue

__all__ = [
    "CLEANUP_NOTIFICATIONS_SCHEDULE",
    "QUEUE_OBSERVER",
    "Notifications",
    "NotificationsQueue",
    "NotificationsQueueManager",
    "QueueStats",
    "ScheduleRegistrar",
    "register_housekeeping",
    "register_queue_workers",
]
