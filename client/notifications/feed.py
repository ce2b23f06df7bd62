"""
Notification feed.

Most-recent-first list of notifications. Every entry schedules its own
expiry timer on push and is dropped by id when the timer fires.
"""

import logging

from config import NOTIFICATION_TTL
from notifications.models import Notification, NotificationKind
from observers import ChangeNotifier
from scheduler import Scheduler

logger = logging.getLogger(__name__)


class NotificationFeed(ChangeNotifier):
    """Self-expiring feed shared by all notification producers."""

    def __init__(self, scheduler: Scheduler, ttl: float = NOTIFICATION_TTL) -> None:
        super().__init__()
        self._scheduler = scheduler
        self._ttl = ttl
        self._items: tuple[Notification, ...] = ()
        self._timers: dict[str, object] = {}

    @property
    def ttl(self) -> float:
        return self._ttl

    @property
    def items(self) -> list[Notification]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def push(self, notification: Notification) -> None:
        """Insert at the head and arm the expiry timer."""
        self._items = (notification, *self._items)
        self._timers[notification.id] = self._scheduler.call_later(
            self._ttl, self._expire, notification.id
        )
        logger.debug(f"Notification pushed: [{notification.kind.value}] {notification.title}")
        self._notify(self.items)

    def notify(self, kind: NotificationKind, title: str, message: str) -> Notification:
        """Build a notification and push it."""
        notification = Notification(kind=kind, title=title, message=message)
        self.push(notification)
        return notification

    def _expire(self, notification_id: str) -> None:
        self._timers.pop(notification_id, None)
        remaining = tuple(n for n in self._items if n.id != notification_id)
        if len(remaining) == len(self._items):
            # Already gone (feed cleared); nothing to do
            return
        self._items = remaining
        self._notify(self.items)

    def clear(self) -> None:
        """Drop all entries. Their timers stay armed and expire as no-ops."""
        if not self._items:
            return
        self._items = ()
        self._notify([])

    def close(self) -> None:
        """Cancel every pending expiry timer and drop the entries they guarded."""
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()
        self.clear()
