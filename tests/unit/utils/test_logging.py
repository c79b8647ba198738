"""Unit tests for logging utilities."""

import json
import logging
from io import StringIO

import pendulum
import pytest

from boxinit.utils import create_logger, get_timestamp
from boxinit.utils._logging import _get_log_level, _log_level_from_string


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("BOXINIT_DEBUG", raising=False)
    monkeypatch.delenv("BOXINIT_LOG_LEVEL", raising=False)


class TestCreateLogger:
    def test_default_format_is_json(self) -> None:
        stream = StringIO()
        logger = create_logger(file=stream)

        logger.info("test_event", key="value")

        record = json.loads(stream.getvalue())
        assert record["event"] == "test_event"
        assert record["key"] == "value"
        assert record["level"] == "info"
        assert "timestamp" in record

    def test_text_format(self) -> None:
        stream = StringIO()
        logger = create_logger(log_format="text", file=stream)

        logger.info("test_event", key="value")

        output = stream.getvalue()
        assert "test_event" in output
        assert "key=value" in output
        # No ANSI escapes in plain text
        assert "\x1b[" not in output

    def test_binds_initial_values(self) -> None:
        stream = StringIO()
        logger = create_logger(file=stream, component="supervisor")

        logger.info("started")

        assert json.loads(stream.getvalue())["component"] == "supervisor"

    def test_filters_below_level(self) -> None:
        stream = StringIO()
        logger = create_logger(level="warning", file=stream)

        logger.info("hidden")
        logger.warning("shown")

        output = stream.getvalue()
        assert "hidden" not in output
        assert "shown" in output

    def test_debug_env_overrides_level(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("BOXINIT_DEBUG", "1")
        stream = StringIO()
        logger = create_logger(level="error", file=stream)

        logger.debug("detail")

        assert "detail" in stream.getvalue()


class TestLogLevels:
    def test_default_is_info(self) -> None:
        assert _get_log_level() == logging.INFO

    def test_reads_log_level_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("BOXINIT_LOG_LEVEL", "warning")

        assert _get_log_level() == logging.WARNING

    def test_debug_env_wins(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("BOXINIT_LOG_LEVEL", "error")
        monkeypatch.setenv("BOXINIT_DEBUG", "1")

        assert _get_log_level() == logging.DEBUG

    @pytest.mark.parametrize(
        ("level", "expected"),
        [
            ("debug", logging.DEBUG),
            ("WARNING", logging.WARNING),
            ("bogus", logging.INFO),
        ],
    )
    def test_from_string(self, level: str, expected: int) -> None:
        assert _log_level_from_string(level) == expected


class TestGetTimestamp:
    def test_returns_utc_iso8601(self) -> None:
        parsed = pendulum.parse(get_timestamp())

        assert isinstance(parsed, pendulum.DateTime)
        assert parsed.utcoffset() == pendulum.duration(0)
