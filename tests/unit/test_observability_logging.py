"""Tests for structured logging configuration."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from topictransfer.observability import close_file_logging, configure_logging, get_logger

if TYPE_CHECKING:
    from pathlib import Path


def test_configure_logging_sets_level_warning() -> None:
    """Default verbosity (0) sets WARNING level."""
    configure_logging(verbosity=0)

    root_logger = logging.getLogger()
    assert root_logger.level == logging.WARNING


def test_configure_logging_verbose_sets_debug_root() -> None:
    """verbosity=1 opens the root logger; the console handler filters."""
    configure_logging(verbosity=1)

    root_logger = logging.getLogger()
    assert root_logger.level == logging.DEBUG


def test_get_logger_returns_bound_logger() -> None:
    """get_logger returns a structlog logger with expected methods."""
    logger = get_logger(__name__)

    assert hasattr(logger, "info")
    assert hasattr(logger, "debug")
    assert hasattr(logger, "warning")


def test_get_logger_auto_configures() -> None:
    """get_logger configures logging if not already done."""
    import topictransfer.observability.logging as log_module

    log_module._configured = False

    logger = get_logger("test")

    assert log_module._configured is True
    assert logger is not None


def test_file_logging_creates_parent_dirs(tmp_path: Path) -> None:
    """A log file in a missing directory is created."""
    log_file = tmp_path / "logs" / "debug.jsonl"
    configure_logging(verbosity=0, log_file=log_file)
    close_file_logging()

    assert log_file.parent.exists()


def test_reconfiguration_closes_handler(tmp_path: Path) -> None:
    """Reconfiguring logging closes the previous file handler."""
    import topictransfer.observability.logging as log_module

    configure_logging(verbosity=0, log_file=tmp_path / "a.jsonl")
    first_handler = log_module._file_handler
    assert first_handler is not None

    configure_logging(verbosity=0, log_file=tmp_path / "b.jsonl")

    assert first_handler.stream is None or first_handler.stream.closed
    assert log_module._file_handler is not None
    close_file_logging()
    assert log_module._file_handler is None


def test_jsonl_file_handler_writes_structlog_context(tmp_path: Path) -> None:
    """JSONLFileHandler writes structlog context as JSON fields."""
    log_file = tmp_path / "debug.jsonl"
    configure_logging(verbosity=2, log_file=log_file)

    logger = get_logger("test.context")
    logger.info("topic_created", unique_key="Root:Web", content_type="Container")

    close_file_logging()

    entries = [json.loads(line) for line in log_file.read_text().splitlines()]
    entry = next(e for e in entries if e.get("message") == "topic_created")
    assert entry["unique_key"] == "Root:Web"
    assert entry["content_type"] == "Container"
    assert entry["level"] == "INFO"
