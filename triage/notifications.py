import collections
import logging
import threading
from datetime import datetime, timezone
from typing import Protocol, runtime_checkable

logger = logging.getLogger(__name__)

SUCCESS = "success"
ERROR = "error"


@runtime_checkable
class NotificationHandler(Protocol):
    def handle(self, notification: dict) -> None: ...


class LoggingNotificationHandler:
    """Mirrors every notification to the application log."""

    def handle(self, notification: dict) -> None:
        level = logging.ERROR if notification.get("level") == ERROR else logging.INFO
        logger.log(level, "[%s] %s", notification.get("title", ""), notification.get("message", ""))


class Notifier:
    """Transient user-facing messages; only the most recent ones are kept."""

    def __init__(self, max_recent=50):
        self._recent = collections.deque(maxlen=max_recent)
        self._handlers = []
        self._lock = threading.Lock()

    def add_handler(self, handler):
        self._handlers.append(handler)

    def _notify(self, level, title, message):
        notification = {
            "level": level,
            "title": title,
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        with self._lock:
            self._recent.append(notification)
        for handler in self._handlers:
            handler.handle(notification)
        return notification

    def success(self, title, message):
        return self._notify(SUCCESS, title, message)

    def error(self, title, message):
        return self._notify(ERROR, title, message)

    def get_recent(self, count=None):
        """Most recent first."""
        with self._lock:
            items = list(reversed(self._recent))
        return items if count is None else items[:count]

    def clear(self):
        with self._lock:
            self._recent.clear()
