"""Tests for logging_config module."""

import json
import logging
from collections.abc import Generator

import pytest

from ca_trust.lib.logging_config import LOGGER, CustomJsonFormatter, set_log_level


@pytest.fixture
def restore_level() -> Generator[None]:
    level = LOGGER.level
    yield
    LOGGER.setLevel(level)


def test_formatter_keeps_only_focused_fields() -> None:
    """Record is reduced to timestamp, level, message, funcName, lineno."""
    formatter = CustomJsonFormatter(
        fmt="%(timestamp)s %(levelname)s %(funcName)s %(lineno)d %(message)s",
        timestamp=True,
    )
    record = logging.LogRecord("ca_trust", logging.WARNING, __file__, 12, "Detected OS: %s", ("debian",), None)
    record.funcName = "install"

    payload = json.loads(formatter.format(record))

    assert payload["level"] == "WARNING"
    assert payload["message"] == "Detected OS: debian"
    assert payload["funcName"] == "install"
    assert "timestamp" in payload
    assert "name" not in payload
    assert "module" not in payload


@pytest.mark.usefixtures("restore_level")
@pytest.mark.parametrize(("name", "expected"), [("debug", logging.DEBUG), ("WARNING", logging.WARNING)])
def test_set_log_level(name: str, expected: int) -> None:
    """Level names are case-insensitive."""
    set_log_level(name)

    assert LOGGER.level == expected


def test_set_log_level_rejects_unknown() -> None:
    """Unknown level name -> ValueError."""
    with pytest.raises(ValueError, match="chatty"):
        set_log_level("chatty")
