import logging
from unittest.mock import MagicMock

from triage.notifications import (
    ERROR,
    SUCCESS,
    LoggingNotificationHandler,
    NotificationHandler,
    Notifier,
)


class TestNotifier:
    def test_recent_is_most_recent_first(self):
        notifier = Notifier()
        notifier.success("Success", "first")
        notifier.error("Error", "second")
        recent = notifier.get_recent()
        assert [n["message"] for n in recent] == ["second", "first"]
        assert [n["level"] for n in recent] == [ERROR, SUCCESS]

    def test_bounded(self):
        notifier = Notifier(max_recent=3)
        for i in range(5):
            notifier.success("t", str(i))
        assert [n["message"] for n in notifier.get_recent()] == ["4", "3", "2"]

    def test_count(self):
        notifier = Notifier()
        for i in range(3):
            notifier.success("t", str(i))
        assert len(notifier.get_recent(2)) == 2

    def test_handler_dispatch(self):
        notifier = Notifier()
        handler = MagicMock()
        notifier.add_handler(handler)
        notifier.error("Error", "boom")
        handler.handle.assert_called_once()
        assert handler.handle.call_args[0][0]["message"] == "boom"

    def test_clear(self):
        notifier = Notifier()
        notifier.success("t", "m")
        notifier.clear()
        assert notifier.get_recent() == []

    def test_logging_handler(self, caplog):
        with caplog.at_level(logging.INFO, logger="triage.notifications"):
            LoggingNotificationHandler().handle({"level": ERROR, "title": "Error", "message": "store down"})
        assert "store down" in caplog.text
        assert caplog.records[-1].levelno == logging.ERROR

    def test_handler_protocol(self):
        assert isinstance(LoggingNotificationHandler(), NotificationHandler)
