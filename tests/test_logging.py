"""Tests for structured logging in pagecompare.logging."""

import json
import logging

import pytest

import pagecompare.logging as pagecompare_logging
from pagecompare.logging import (
    JsonFormatter,
    TextFormatter,
    log_extra,
    logger,
    set_verbose,
    timed,
    timed_operation,
)


def _record(**extra: object) -> logging.LogRecord:
    record = logging.LogRecord("pagecompare", logging.INFO, "", 0, "Screenshot saved", (), None)
    record.extra_data = extra  # noqa: B010
    return record


class TestFormatters:
    def test_json_formatter_includes_extra(self) -> None:
        data = json.loads(JsonFormatter().format(_record(viewport="mobile", duration_ms=12.5)))
        assert data["message"] == "Screenshot saved"
        assert data["level"] == "INFO"
        assert data["viewport"] == "mobile"
        assert data["duration_ms"] == 12.5

    def test_text_formatter_appends_fields(self) -> None:
        line = TextFormatter("%(message)s").format(_record(viewport="laptop"))
        assert line == "Screenshot saved [viewport=laptop]"


class TestLogExtra:
    def test_log_extra_attaches_fields(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO, logger="pagecompare"):
            log_extra("Scans compared", new=1)
        record = caplog.records[-1]
        assert record.getMessage() == "Scans compared"
        assert record.extra_data == {"new": 1}  # type: ignore[attr-defined]

    def test_set_verbose(self) -> None:
        set_verbose(True)
        assert logger.level == logging.DEBUG
        set_verbose(False)
        assert logger.level == getattr(logging, pagecompare_logging._log_level, logging.INFO)


class TestTiming:
    @pytest.mark.asyncio
    async def test_timed_operation_failure(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO, logger="pagecompare"):
            with pytest.raises(ValueError):
                async with timed_operation("capture_screenshot", url="https://example.com"):
                    raise ValueError("boom")
        record = caplog.records[-1]
        assert record.getMessage() == "capture_screenshot failed"
        assert record.extra_data["error_type"] == "ValueError"  # type: ignore[attr-defined]
        assert record.extra_data["success"] is False  # type: ignore[attr-defined]

    def test_timed_returns_value(self) -> None:
        @timed
        def add(a: int, b: int) -> int:
            return a + b

        assert add(2, 3) == 5
        assert add.__name__ == "add"
