"""Integration tests for the weather tool against the live WeatherAPI.com service."""

from __future__ import annotations

import asyncio
import os

import pytest
from mcp_gateway.config import load_settings
from mcp_gateway.errors import ToolExecutionError
from mcp_gateway.registry import ToolRegistry
from mcp_gateway.router import RequestRouter
from mcp_gateway.weather import WeatherApiTool


def _live_tool() -> WeatherApiTool:
    """Return a weather tool configured from the environment."""
    if not os.getenv("WEATHER_API_KEY"):
        pytest.skip("Set WEATHER_API_KEY to run weather integration tests.")
    return WeatherApiTool.from_settings(load_settings())


@pytest.mark.integration
def test_live_current_weather_for_known_city() -> None:
    tool = _live_tool()

    report = asyncio.run(tool.execute({"location": "London"}))

    assert report["location"] == "London"
    assert report["temperatureUnit"] == "celsius"
    assert isinstance(report["temperature"], float)
    assert report["conditions"]


@pytest.mark.integration
def test_live_unknown_location_is_reported() -> None:
    tool = _live_tool()

    with pytest.raises(ToolExecutionError, match="not found"):
        asyncio.run(tool.execute({"location": "Qxzzyvillenotreal"}))


@pytest.mark.integration
def test_live_call_through_router() -> None:
    registry = ToolRegistry()
    registry.register(_live_tool())
    router = RequestRouter(registry)

    params = {"name": "get-weather", "arguments": {"location": "Paris"}}
    response = asyncio.run(router.handle({"method": "call", "params": params}))

    assert not response.is_error
    assert response.result["location"] == "Paris"
