"""Tests for structured logging and operation timing"""

import asyncio
import json
import logging
import sys

import pytest

from playlist_creator.core.logging import (
    LoggingManager, StructuredFormatter, get_performance_metrics, log_performance,
    reset_performance_metrics
)


@pytest.fixture(autouse=True)
def clean_metrics():
    reset_performance_metrics()
    yield
    reset_performance_metrics()


class TestStructuredFormatter:
    """Test JSON log records"""

    def test_extra_fields_are_nested(self):
        record = logging.LogRecord("playlist", logging.INFO, __file__, 10, "Fetched %d videos", (3,), None)
        record.channel_id = "UC_test"

        data = json.loads(StructuredFormatter().format(record))

        assert data["message"] == "Fetched 3 videos"
        assert data["level"] == "INFO"
        assert data["extra"] == {"channel_id": "UC_test"}

    def test_exception_info(self):
        try:
            raise ValueError("boom")
        except ValueError:
            record = logging.LogRecord("playlist", logging.ERROR, __file__, 10, "failed", (), None)
            record.exc_info = sys.exc_info()

        data = json.loads(StructuredFormatter().format(record))
        assert data["exception"]["type"] == "ValueError"
        assert data["exception"]["message"] == "boom"


class TestLogPerformance:
    """Test the timing decorator"""

    def test_sync_success_and_failure(self):
        @log_performance("parse")
        def parse(value):
            if value < 0:
                raise ValueError("negative")
            return value * 2

        assert parse(2) == 4
        with pytest.raises(ValueError):
            parse(-1)

        metrics = get_performance_metrics("parse")
        assert metrics["total_calls"] == 2
        assert metrics["successful_calls"] == 1
        assert metrics["failed_calls"] == 1
        assert metrics["success_rate"] == 0.5

    @pytest.mark.asyncio
    async def test_async_cancellation_counts_as_failure(self):
        @log_performance("slow_fetch")
        async def slow_fetch():
            await asyncio.sleep(10)

        task = asyncio.ensure_future(slow_fetch())
        await asyncio.sleep(0)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        metrics = get_performance_metrics("slow_fetch")
        assert metrics["failed_calls"] == 1
        assert get_performance_metrics("unknown") == {}


class TestLoggingManager:
    """Test root logger configuration"""

    @pytest.fixture
    def restore_root_logger(self):
        root = logging.getLogger()
        handlers, level = root.handlers[:], root.level
        yield
        for handler in root.handlers[:]:
            root.removeHandler(handler)
            handler.close()
        for handler in handlers:
            root.addHandler(handler)
        root.setLevel(level)

    def test_get_logger_configures_once(self, tmp_path, restore_root_logger):
        manager = LoggingManager()

        logger = manager.get_logger("playlist_creator.test")
        handler_count = len(logging.getLogger().handlers)
        manager.setup_logging()

        assert manager.configured
        assert logger.name == "playlist_creator.test"
        assert len(logging.getLogger().handlers) == handler_count
        assert (tmp_path / "logs" / "application.log").exists()
        assert logging.getLogger("httpx").level == logging.WARNING
