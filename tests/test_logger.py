"""Tests for logger module."""

import logging
from logging.handlers import RotatingFileHandler
from unittest.mock import patch

from flagkeeper.util.logger import (
    DATE_FORMAT,
    LOG_FORMAT,
    ColorFormatter,
    PromptToolkitHandler,
    get_logger,
    handle_exception,
    should_use_color,
)


class TestShouldUseColor:
    """Tests for should_use_color function."""

    @patch('sys.stderr.isatty')
    def test_should_use_color_tty(self, mock_isatty):
        mock_isatty.return_value = True
        assert should_use_color() is True

    @patch('sys.stderr.isatty')
    def test_should_use_color_no_tty(self, mock_isatty):
        mock_isatty.return_value = False
        assert should_use_color() is False

    @patch('sys.stderr.isatty')
    def test_should_use_color_exception(self, mock_isatty):
        """Color is off when the terminal cannot be queried."""
        mock_isatty.side_effect = Exception("Error")
        assert should_use_color() is False


def _record(level: int, msg: str) -> logging.LogRecord:
    return logging.LogRecord(
        name="test",
        level=level,
        pathname="test.py",
        lineno=10,
        msg=msg,
        args=(),
        exc_info=None,
        func="test_func",
    )


class TestColorFormatter:
    def test_wraps_message_in_level_color(self):
        formatter = ColorFormatter(LOG_FORMAT, datefmt=DATE_FORMAT)

        formatted = formatter.format(_record(logging.ERROR, "Something broke"))

        assert formatted.startswith("\033[31m")
        assert formatted.endswith("\033[0m")
        assert "Something broke" in formatted

    def test_unknown_level_is_left_plain(self):
        formatter = ColorFormatter("%(message)s")
        record = _record(logging.INFO, "plain")
        record.levelname = "CUSTOM"

        assert formatter.format(record) == "plain"


class TestGetLogger:
    def test_logger_has_console_and_file_handlers(self):
        logger = get_logger("flagkeeper_test_handlers")

        handler_types = {type(h) for h in logger.handlers}
        assert PromptToolkitHandler in handler_types
        assert RotatingFileHandler in handler_types
        assert logger.propagate is False

    def test_get_logger_is_idempotent(self):
        first = get_logger("flagkeeper_test_idempotent")
        count = len(first.handlers)
        second = get_logger("flagkeeper_test_idempotent")

        assert first is second
        assert len(second.handlers) == count


class TestHandleException:
    def test_keyboard_interrupt_goes_to_default_hook(self):
        with patch("sys.__excepthook__") as default_hook:
            handle_exception(KeyboardInterrupt, KeyboardInterrupt(), None)
        default_hook.assert_called_once()

    def test_other_exceptions_are_logged(self):
        with patch("logging.error") as log_error:
            error = ValueError("bad")
            handle_exception(ValueError, error, None)
        log_error.assert_called_once()
        assert log_error.call_args.kwargs["exc_info"][1] is error
