"""Observability module for topictransfer.

Provides structured logging for the export/import engine and the CLI.
"""

from topictransfer.observability.logging import (
    close_file_logging,
    configure_logging,
    get_logger,
)

__all__ = [
    "close_file_logging",
    "configure_logging",
    "get_logger",
]
