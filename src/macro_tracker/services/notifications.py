"""Dismissible notifications for background failures."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from itertools import count

LEVEL_ERROR = "error"
LEVEL_WARNING = "warning"
LEVEL_INFO = "info"


@dataclass(frozen=True)
class Notification:
    """A message shown to the user without blocking them."""

    id: int
    level: str
    message: str
    created_at: datetime


@dataclass
class NotificationCenter:
    """Keeps the most recent notifications until they are dismissed."""

    max_items: int = 20
    _items: list[Notification] = field(default_factory=list)
    _ids: count = field(default_factory=lambda: count(1))

    def push(self, message: str, level: str = LEVEL_ERROR) -> Notification:
        notification = Notification(
            id=next(self._ids),
            level=level,
            message=message,
            created_at=datetime.now(tz=UTC),
        )
        self._items.append(notification)
        if len(self._items) > self.max_items:
            self._items = self._items[-self.max_items :]
        return notification

    def list_active(self) -> list[Notification]:
        return list(self._items)

    def dismiss(self, notification_id: int) -> bool:
        """Remove a notification; returns False when it is already gone."""
        remaining = [item for item in self._items if item.id != notification_id]
        dismissed = len(remaining) != len(self._items)
        self._items = remaining
        return dismissed
