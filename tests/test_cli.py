"""Tests for the gateway CLI commands."""

from __future__ import annotations

import json
import logging
from types import SimpleNamespace
from typing import Any

import pytest
from fastapi import FastAPI
from mcp_gateway import cli
from mcp_gateway.config import ConfigError, GatewaySettings
from mcp_gateway.errors import DuplicateToolError
from mcp_gateway.registry import ToolRegistry
from typer.testing import CliRunner

runner = CliRunner()


@pytest.fixture
def settings(monkeypatch: pytest.MonkeyPatch) -> GatewaySettings:
    configured = GatewaySettings(weather_api_key="test-key")
    monkeypatch.setattr(cli, "load_settings", lambda: configured)
    return configured


@pytest.fixture
def stub_registry(monkeypatch: pytest.MonkeyPatch, registry: ToolRegistry) -> ToolRegistry:
    monkeypatch.setattr(cli, "build_registry", lambda settings, *, log=None: registry)
    return registry


@pytest.mark.unit
def test_tools_lists_builtin_weather_tool(settings: GatewaySettings) -> None:
    result = runner.invoke(cli.app, ["tools"])

    assert result.exit_code == 0
    tools = json.loads(result.stdout)["tools"]
    assert [tool["name"] for tool in tools] == ["get-weather"]
    assert tools[0]["inputSchema"]["required"] == ["location"]


@pytest.mark.unit
def test_call_prints_result(settings: GatewaySettings, stub_registry: ToolRegistry) -> None:
    result = runner.invoke(cli.app, ["call", "get-weather", "-a", '{"location": "Quito"}'])

    assert result.exit_code == 0
    assert json.loads(result.stdout) == {"result": {"echo": "Quito"}}


@pytest.mark.unit
def test_call_exits_nonzero_on_error_response(
    settings: GatewaySettings, stub_registry: ToolRegistry
) -> None:
    result = runner.invoke(cli.app, ["call", "get-weather"])

    assert result.exit_code == 1
    assert json.loads(result.stdout)["error"]["code"] == "ValidationError"


@pytest.mark.unit
def test_call_rejects_invalid_json_arguments(settings: GatewaySettings) -> None:
    result = runner.invoke(cli.app, ["call", "get-weather", "--arguments", "{oops"])

    assert result.exit_code == 2


@pytest.mark.unit
def test_invalid_configuration_exits(monkeypatch: pytest.MonkeyPatch) -> None:
    def _raise_config_error() -> GatewaySettings:
        raise ConfigError(["Invalid PORT: abc. Must be a number between 1 and 65535"])

    monkeypatch.setattr(cli, "load_settings", _raise_config_error)
    result = runner.invoke(cli.app, ["tools"])

    assert result.exit_code == 1
    assert "Invalid PORT" in result.output


@pytest.mark.unit
def test_duplicate_registration_is_fatal(
    monkeypatch: pytest.MonkeyPatch, settings: GatewaySettings
) -> None:
    def _raise_duplicate(settings: GatewaySettings, *, log: Any = None) -> ToolRegistry:
        raise DuplicateToolError("get-weather")

    monkeypatch.setattr(cli, "build_registry", _raise_duplicate)
    result = runner.invoke(cli.app, ["tools"])

    assert result.exit_code == 1
    assert "Startup failed" in result.output
    assert "already registered" in result.output


@pytest.mark.unit
def test_serve_runs_uvicorn_with_overrides(
    monkeypatch: pytest.MonkeyPatch, settings: GatewaySettings, stub_registry: ToolRegistry
) -> None:
    runs: list[dict[str, Any]] = []

    def _fake_run(app: Any, **kwargs: Any) -> None:
        runs.append({"app": app, **kwargs})

    monkeypatch.setattr(cli, "uvicorn", SimpleNamespace(run=_fake_run))
    monkeypatch.setattr(
        cli, "configure_logging", lambda level: logging.getLogger("tests.cli")
    )

    result = runner.invoke(
        cli.app, ["serve", "--host", "127.0.0.1", "--port", "8123", "--log-level", "DEBUG"]
    )

    assert result.exit_code == 0, result.output
    [run] = runs
    assert isinstance(run["app"], FastAPI)
    assert run["host"] == "127.0.0.1"
    assert run["port"] == 8123
    assert run["log_level"] == "debug"
    assert run["timeout_graceful_shutdown"] == settings.weather_timeout_seconds


@pytest.mark.unit
def test_serve_rejects_unknown_log_level(settings: GatewaySettings) -> None:
    result = runner.invoke(cli.app, ["serve", "--log-level", "loud"])

    assert result.exit_code == 2
