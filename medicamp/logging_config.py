"""
Log formatting for the MediCamp services.

Format: 2026-01-06T14:05:52Z [medicamp] LEVEL logger.name: message

The formatter is wired through ``LOGGING`` in ``medicamp.settings``;
modules simply use ``logging.getLogger(__name__)``.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone


class ISO8601Formatter(logging.Formatter):
    """Formatter producing ISO8601 UTC timestamps and a source tag."""

    def __init__(self, source: str = "app", **kwargs):
        self.source = source
        super().__init__(**kwargs)

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created, tz=timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
        message = record.getMessage()
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        return f"{timestamp} [{self.source}] {record.levelname} {record.name}: {message}"
