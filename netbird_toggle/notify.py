"""Notifications the core decides to show; rendering belongs to the host."""

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Deque, List, Optional

from .events import Signal
from .logging_utility import logger

ERROR_TITLE = "Upps! Something went wrong"


class NotificationLevel(Enum):
    ERROR = "critical"
    WARNING = "high"
    INFO = "normal"
    SUCCESS = "low"


@dataclass(frozen=True)
class Notification:
    level: NotificationLevel
    title: str
    body: str
    created: datetime = field(default_factory=datetime.now, compare=False)


class NotificationManager:
    """Keeps the most recent notifications and announces each new one."""

    def __init__(self, history: int = 50):
        self._history: Deque[Notification] = deque(maxlen=history)
        self.notification_sent: Signal[Notification] = Signal("notification-sent")

    def _send(self, level: NotificationLevel, title: str, body: str) -> Notification:
        notification = Notification(level=level, title=title, body=body)
        self._history.append(notification)
        logger.info(f"[NetBird] Notify ({level.name.lower()}): {title}: {body}")
        self.notification_sent.emit(notification)
        return notification

    def notify_error(self, body: str) -> Notification:
        return self._send(NotificationLevel.ERROR, ERROR_TITLE, body)

    def notify_info(self, title: str, body: str) -> Notification:
        return self._send(NotificationLevel.INFO, title, body)

    def notify_success(self, title: str, body: str) -> Notification:
        return self._send(NotificationLevel.SUCCESS, title, body)

    def notify_warning(self, title: str, body: str) -> Notification:
        return self._send(NotificationLevel.WARNING, title, body)

    def recent(self, limit: Optional[int] = None) -> List[Notification]:
        items = list(self._history)
        return items[-limit:] if limit else items

    def clear(self) -> None:
        self._history.clear()
