"""Test cases for logging configuration and correlation ID tracking."""

from __future__ import annotations

import asyncio
import logging
import logging.handlers
from collections.abc import Iterator

import pytest

from folder_count.utils.logging import (
    CorrelationIDFilter,
    clear_correlation_id,
    configure_logging,
    get_correlation_id,
    get_logger,
    log_with_context,
    set_correlation_id,
)


@pytest.fixture(autouse=True)
def restore_root_logger() -> Iterator[None]:
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    clear_correlation_id()


def _record(message: str = "message") -> logging.LogRecord:
    return logging.LogRecord("test", logging.INFO, __file__, 1, message, None, None)


@pytest.mark.unit
class TestCorrelationId:
    """Test correlation ID context handling."""

    def test_set_get_clear(self) -> None:
        assert get_correlation_id() is None

        set_correlation_id("abc123")
        assert get_correlation_id() == "abc123"

        clear_correlation_id()
        assert get_correlation_id() is None

    def test_filter_adds_id(self) -> None:
        record = _record()
        set_correlation_id("abc123")

        assert CorrelationIDFilter().filter(record) is True
        assert getattr(record, "correlation_id") == "abc123"

    def test_filter_placeholder_without_id(self) -> None:
        record = _record()

        _ = CorrelationIDFilter().filter(record)

        assert getattr(record, "correlation_id") == "N/A"

    @pytest.mark.asyncio
    async def test_tasks_inherit_context(self) -> None:
        set_correlation_id("parent")

        async def child() -> str | None:
            return get_correlation_id()

        assert await asyncio.create_task(child()) == "parent"

    @pytest.mark.asyncio
    async def test_task_changes_do_not_leak(self) -> None:
        async def child() -> None:
            set_correlation_id("child")

        await asyncio.create_task(child())

        assert get_correlation_id() is None


@pytest.mark.unit
class TestConfigureLogging:
    """Test root handler configuration."""

    def test_console_only(self) -> None:
        configure_logging(log_level="DEBUG")

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0], logging.StreamHandler)

    def test_replaces_existing_handlers(self) -> None:
        configure_logging(log_level="INFO")
        configure_logging(log_level="INFO")

        assert len(logging.getLogger().handlers) == 1

    def test_unknown_level_falls_back_to_info(self) -> None:
        configure_logging(log_level="chatty")

        assert logging.getLogger().level == logging.INFO

    def test_no_handlers(self) -> None:
        configure_logging(enable_console=False)

        assert logging.getLogger().handlers == []

    def test_syslog_connection_failure_is_reported(self, capsys: pytest.CaptureFixture[str]) -> None:
        configure_logging(
            enable_syslog=True,
            syslog_address="/nonexistent/folder-count.sock",
            enable_console=False,
        )

        assert not any(isinstance(h, logging.handlers.SysLogHandler) for h in logging.getLogger().handlers)
        assert "Could not connect to syslog" in capsys.readouterr().err

    def test_console_writes_to_stderr(self, capsys: pytest.CaptureFixture[str]) -> None:
        configure_logging(log_level="INFO")
        set_correlation_id("req-1")

        get_logger("folder_count.test").info("hello")

        captured = capsys.readouterr()
        assert captured.out == ""
        assert "[req-1] - hello" in captured.err


@pytest.mark.unit
class TestLogWithContext:
    """Test structured logging helper."""

    def test_includes_extra_and_correlation_id(self, caplog: pytest.LogCaptureFixture) -> None:
        set_correlation_id("req-2")
        logger = get_logger("folder_count.test")

        with caplog.at_level(logging.INFO, logger="folder_count.test"):
            log_with_context(logger, logging.INFO, "Path refreshed", extra={"path": "/srv"})

        record = caplog.records[-1]
        assert record.getMessage() == "Path refreshed"
        assert getattr(record, "path") == "/srv"
        assert getattr(record, "correlation_id") == "req-2"

    def test_without_extra(self, caplog: pytest.LogCaptureFixture) -> None:
        logger = get_logger("folder_count.test")

        with caplog.at_level(logging.WARNING, logger="folder_count.test"):
            log_with_context(logger, logging.WARNING, "plain")

        assert caplog.records[-1].getMessage() == "plain"
        assert not hasattr(caplog.records[-1], "path")
