"""Tests for structured logging helpers."""

from unittest.mock import MagicMock

from marketplace.core.enums import LogLevel
from marketplace.core.logging import LogConfig, SensitiveDataFilter, StructuredLogger


class TestSensitiveDataFilter:
    def test_masks_sensitive_keys(self):
        log_filter = SensitiveDataFilter()

        record = log_filter.filter(
            {
                "username": "alice",
                "password": "secret123",
                "session_token": "abc",
                "api_key": "k",
            }
        )

        assert record["username"] == "alice"
        assert record["password"] == "***[MASKED]"
        assert record["session_token"] == "***[MASKED]"
        assert record["api_key"] == "***[MASKED]"

    def test_walks_nested_structures(self):
        log_filter = SensitiveDataFilter(preserve_length=True)

        record = log_filter.filter(
            {"request": {"cookie": "qid=1234"}, "items": [{"secret": "xy"}, "plain"]}
        )

        assert record["request"]["cookie"] == "********"
        assert record["items"] == [{"secret": "**"}, "plain"]

    def test_none_stays_none(self):
        assert SensitiveDataFilter().filter({"password": None}) == {"password": None}


class TestStructuredLogger:
    def test_drops_records_below_level(self):
        logger = StructuredLogger("test", LogConfig(level=LogLevel.WARNING))
        sink = MagicMock()
        logger._logger = sink

        logger.info("ignored")
        logger.warning("kept", password="secret123")

        sink.info.assert_not_called()
        sink.warning.assert_called_once_with("kept", password="***[MASKED]")
