"""Shared pytest fixtures and test-run configuration."""

from __future__ import annotations

import os
from typing import Any

import pytest
from mcp_gateway.errors import ToolExecutionError
from mcp_gateway.parameters import object_schema, string_schema
from mcp_gateway.registry import ToolRegistry
from mcp_gateway.router import RequestRouter
from mcp_gateway.tools import Tool


def pytest_addoption(parser: pytest.Parser) -> None:
    """Add custom pytest options for integration test execution."""
    parser.addoption(
        "--run-integration",
        action="store_true",
        default=False,
        help="Run tests marked as integration (external dependencies).",
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Skip integration tests unless explicitly enabled."""
    run_integration = config.getoption("--run-integration")
    env_enabled = os.getenv("RUN_INTEGRATION_TESTS") == "1"
    if run_integration or env_enabled:
        return

    skip_marker = pytest.mark.skip(
        reason=(
            "Integration tests are disabled by default. "
            "Use --run-integration or set RUN_INTEGRATION_TESTS=1."
        )
    )
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_marker)


class EchoWeatherTool(Tool):
    """Stub weather tool that echoes the requested location."""

    name = "get-weather"
    description = "Echo the requested location"
    schema = object_schema({"location": string_schema()}, required=["location"])

    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []

    async def execute(self, arguments: dict[str, Any]) -> dict[str, Any]:
        self.calls.append(arguments)
        return {"echo": arguments["location"]}


class FailingTool(Tool):
    """Stub tool whose upstream always fails with a caller-safe message."""

    name = "always-fails"
    description = "Fails every time"
    schema = object_schema()

    async def execute(self, arguments: dict[str, Any]) -> dict[str, Any]:
        raise ToolExecutionError("Upstream service unavailable")


class CrashingTool(Tool):
    """Stub tool that raises an unexpected exception carrying sensitive detail."""

    name = "crashes"
    description = "Raises an unexpected error"
    schema = object_schema()

    async def execute(self, arguments: dict[str, Any]) -> dict[str, Any]:
        raise KeyError("secret-token-abc123")


@pytest.fixture
def echo_tool() -> EchoWeatherTool:
    return EchoWeatherTool()


@pytest.fixture
def registry(echo_tool: EchoWeatherTool) -> ToolRegistry:
    tools = ToolRegistry()
    tools.register(echo_tool)
    tools.register(FailingTool())
    tools.register(CrashingTool())
    return tools


@pytest.fixture
def router(registry: ToolRegistry) -> RequestRouter:
    return RequestRouter(registry)
