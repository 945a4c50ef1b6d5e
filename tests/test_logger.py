"""Tests for logger module."""

import logging
import logging.handlers
from unittest.mock import patch

from sightguard.util.logger import (
    DATE_FORMAT,
    LOG_FORMAT,
    NOISY_LOGGERS,
    ColorFormatter,
    PromptToolkitHandler,
    get_log_filepath,
    get_logger,
    handle_exception,
    setup_logger,
    should_use_color,
)


def test_get_logger_has_console_and_file_handlers():
    logger = get_logger("test_logger")

    assert isinstance(logger, logging.Logger)
    assert any(isinstance(h, PromptToolkitHandler) for h in logger.handlers)
    assert any(isinstance(h, logging.handlers.RotatingFileHandler) for h in logger.handlers)
    assert logger.propagate is False


def test_setup_logger_idempotent():
    logger1 = setup_logger("test_logger_idem")
    logger2 = setup_logger("test_logger_idem")

    assert logger1 is logger2
    assert len(logger1.handlers) == 2


def test_color_formatter_applies_level_color():
    formatter = ColorFormatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    record = logging.LogRecord("test", logging.ERROR, "test.py", 1, "error occurred", None, None)

    formatted = formatter.format(record)

    assert formatted.startswith("\033[31m")
    assert "error occurred" in formatted


@patch("sys.stderr.isatty")
def test_should_use_color_follows_tty(mock_isatty):
    mock_isatty.return_value = False
    assert should_use_color() is False

    mock_isatty.return_value = True
    assert should_use_color() is True


def test_log_filepath_is_stable_for_the_session():
    assert get_log_filepath() == get_log_filepath()
    assert get_log_filepath().parent.exists()


def test_noisy_loggers_are_silenced():
    for name in NOISY_LOGGERS:
        assert logging.getLogger(name).level == logging.ERROR


def test_handle_exception_logs_error(caplog):
    class DummyException(Exception):
        pass

    with caplog.at_level(logging.ERROR):
        try:
            raise DummyException("fail")
        except DummyException as exc:
            handle_exception(DummyException, exc, exc.__traceback__)

    assert any("Uncaught exception" in r.message for r in caplog.records)
