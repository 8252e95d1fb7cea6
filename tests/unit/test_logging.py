"""Unit tests for logging filters and the TUI handler."""

import logging
import threading
from unittest.mock import MagicMock

from interrupter.logging import StreamRoutingFilter, TuiLogHandler, TuiLogMessage


def make_record(level: int = logging.INFO) -> logging.LogRecord:
    return logging.LogRecord("interrupter", level, __file__, 1, "hello", None, None)


class TestStreamRoutingFilter:
    def test_info_goes_to_stdout(self) -> None:
        record = make_record(logging.INFO)
        assert StreamRoutingFilter("stdout").filter(record)
        assert not StreamRoutingFilter("stderr").filter(record)

    def test_warning_goes_to_stderr(self) -> None:
        record = make_record(logging.WARNING)
        assert StreamRoutingFilter("stderr").filter(record)
        assert not StreamRoutingFilter("stdout").filter(record)

    def test_debug_goes_to_stdout(self) -> None:
        record = make_record(logging.DEBUG)
        assert StreamRoutingFilter("stdout").filter(record)
        assert not StreamRoutingFilter("stderr").filter(record)

class TestTuiLogHandler:
    def test_writes_directly_on_app_thread(self) -> None:
        app = MagicMock(_running=True, _thread_id=threading.get_ident())
        log_widget = MagicMock()
        handler = TuiLogHandler(app, log_widget)
        handler.setFormatter(logging.Formatter("%(message)s"))

        handler.emit(make_record())

        log_widget.write_line.assert_called_once_with("hello")
        app.post_message.assert_not_called()

    def test_posts_message_from_other_thread(self) -> None:
        app = MagicMock(_running=True, _thread_id=-1)
        handler = TuiLogHandler(app, MagicMock())
        handler.setFormatter(logging.Formatter("%(message)s"))

        handler.emit(make_record())

        message = app.post_message.call_args.args[0]
        assert isinstance(message, TuiLogMessage)
        assert message.text == "hello"

    def test_dropped_when_app_not_running(self) -> None:
        app = MagicMock(_running=False)
        log_widget = MagicMock()
        handler = TuiLogHandler(app, log_widget)

        handler.emit(make_record())

        log_widget.write_line.assert_not_called()
        app.post_message.assert_not_called()
