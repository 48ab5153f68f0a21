"""Logging setup and request telemetry."""

from __future__ import annotations

import json
import logging
import sys
from collections import Counter
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, TextIO

LOG_LEVELS: dict[str, int] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}
ROOT_LOGGER_NAME = "mcp_gateway"


class ContextFormatter(logging.Formatter):
    """Render ``[timestamp] [LEVEL  ] message {context}`` lines."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created, tz=UTC).isoformat()
        timestamp = timestamp.replace("+00:00", "Z")
        level = record.levelname.ljust(7)
        line = f"[{timestamp}] [{level}] {record.getMessage()}"

        context = getattr(record, "context", None)
        if context:
            line += " " + json.dumps(context, default=str, sort_keys=True)
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def configure_logging(level: str = "info", *, stream: TextIO | None = None) -> logging.Logger:
    """Attach a single context-aware handler to the package logger."""
    try:
        numeric_level = LOG_LEVELS[level.lower()]
    except KeyError as error:
        raise ValueError(
            f"Invalid log level '{level}'. Expected one of: {', '.join(LOG_LEVELS)}."
        ) from error

    package_logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)

    # stdout may carry protocol output (the CLI prints payloads there).
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(ContextFormatter())
    package_logger.addHandler(handler)
    package_logger.setLevel(numeric_level)
    package_logger.propagate = False
    return package_logger


@dataclass(slots=True)
class GatewayTelemetry:
    """In-process request counters reported by the health check."""

    requests_total: int = 0
    succeeded: int = 0
    errors: Counter[str] = field(default_factory=Counter)

    def record_success(self) -> None:
        self.requests_total += 1
        self.succeeded += 1

    def record_error(self, code: str) -> None:
        self.requests_total += 1
        self.errors[code] += 1

    def snapshot(self) -> dict[str, Any]:
        return {
            "total": self.requests_total,
            "succeeded": self.succeeded,
            "errors": dict(self.errors),
        }
