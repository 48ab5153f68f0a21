"""Tests for log formatting and request telemetry."""

from __future__ import annotations

import io
import logging

import pytest
from mcp_gateway.observability import (
    ROOT_LOGGER_NAME,
    ContextFormatter,
    GatewayTelemetry,
    configure_logging,
)


def make_record(message: str, **extra: object) -> logging.LogRecord:
    record = logging.LogRecord("mcp_gateway.test", logging.INFO, __file__, 1, message, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.mark.unit
def test_formatter_renders_level_and_context() -> None:
    line = ContextFormatter().format(make_record("Tool registered", context={"toolName": "x"}))

    assert "[INFO   ] Tool registered" in line
    assert line.endswith('{"toolName": "x"}')
    assert line.startswith("[") and "Z]" in line


@pytest.mark.unit
def test_formatter_omits_empty_context() -> None:
    line = ContextFormatter().format(make_record("Health check"))
    assert line.endswith("Health check")


@pytest.mark.unit
def test_configure_logging_filters_by_level() -> None:
    stream = io.StringIO()
    package_logger = logging.getLogger(ROOT_LOGGER_NAME)
    saved = (package_logger.handlers[:], package_logger.level, package_logger.propagate)
    try:
        configure_logging("warning", stream=stream)
        logging.getLogger(f"{ROOT_LOGGER_NAME}.router").info("hidden")
        logging.getLogger(f"{ROOT_LOGGER_NAME}.router").warning("shown")
    finally:
        package_logger.handlers[:] = saved[0]
        package_logger.setLevel(saved[1])
        package_logger.propagate = saved[2]

    output = stream.getvalue()
    assert "shown" in output
    assert "hidden" not in output


@pytest.mark.unit
def test_configure_logging_rejects_unknown_level() -> None:
    with pytest.raises(ValueError, match="Invalid log level"):
        configure_logging("verbose")


@pytest.mark.unit
def test_telemetry_snapshot_counts_by_code() -> None:
    telemetry = GatewayTelemetry()
    telemetry.record_success()
    telemetry.record_error("ValidationError")
    telemetry.record_error("ValidationError")

    assert telemetry.snapshot() == {
        "total": 3,
        "succeeded": 1,
        "errors": {"ValidationError": 2},
    }
