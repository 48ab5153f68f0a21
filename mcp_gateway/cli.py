"""Typer CLI: serve the gateway, list tools, or call one in-process."""

from __future__ import annotations

import asyncio
import dataclasses
import json
import logging
import platform
from typing import Annotated, Any

import typer
import uvicorn

from mcp_gateway.config import ConfigError, GatewaySettings, load_settings
from mcp_gateway.errors import DuplicateToolError, ToolDefinitionError
from mcp_gateway.observability import LOG_LEVELS, configure_logging
from mcp_gateway.registry import ToolRegistry
from mcp_gateway.router import RequestRouter
from mcp_gateway.transport import SERVICE_NAME, create_app
from mcp_gateway.weather import WeatherApiTool

app = typer.Typer(help="Expose REST APIs as uniformly callable tools.")


def build_registry(settings: GatewaySettings, *, log: logging.Logger | None = None) -> ToolRegistry:
    """Register every built-in tool; collisions are fatal."""
    registry = ToolRegistry(log=log)
    registry.register(WeatherApiTool.from_settings(settings))
    return registry


def _load_settings_or_exit() -> GatewaySettings:
    try:
        return load_settings()
    except ConfigError as error:
        typer.echo(str(error), err=True)
        raise typer.Exit(code=1) from error


def _build_registry_or_exit(settings: GatewaySettings, log: logging.Logger) -> ToolRegistry:
    try:
        return build_registry(settings, log=log)
    except (DuplicateToolError, ToolDefinitionError) as error:
        log.error(f"Failed to start {SERVICE_NAME}", extra={"context": {"error": str(error)}})
        typer.echo(f"Startup failed: {error}", err=True)
        raise typer.Exit(code=1) from error


def _echo_json(payload: Any) -> None:
    typer.echo(json.dumps(payload, indent=2, default=str))


@app.command("serve")
def serve_command(
    host: Annotated[str | None, typer.Option(help="Interface to bind (default: HOST).")] = None,
    port: Annotated[
        int | None, typer.Option(min=1, max=65535, help="Port to listen on (default: PORT).")
    ] = None,
    log_level: Annotated[
        str | None, typer.Option(help="debug|info|warning|error (default: LOG_LEVEL).")
    ] = None,
) -> None:
    """Start the HTTP gateway and serve until interrupted."""
    settings = _load_settings_or_exit()
    if log_level is not None and log_level.lower() not in LOG_LEVELS:
        raise typer.BadParameter(
            f"Must be one of: {', '.join(LOG_LEVELS)}.", param_hint="--log-level"
        )
    settings = dataclasses.replace(
        settings,
        host=host or settings.host,
        port=port or settings.port,
        log_level=(log_level or settings.log_level).lower(),
    )

    log = configure_logging(settings.log_level)
    log.info(
        f"Starting {SERVICE_NAME}",
        extra={
            "context": {
                "logLevel": settings.log_level,
                "pythonVersion": platform.python_version(),
            }
        },
    )
    registry = _build_registry_or_exit(settings, log)
    router = RequestRouter(registry, log=log.getChild("router"))
    fastapi_app = create_app(router, registry, log=log.getChild("transport"))

    log.info(
        f"{SERVICE_NAME} listening",
        extra={
            "context": {
                "serverUrl": settings.server_url,
                "port": settings.port,
                "registeredTools": registry.names(),
                "toolCount": registry.count(),
            }
        },
    )
    # uvicorn owns SIGINT/SIGTERM: it stops accepting connections and drains in-flight requests.
    uvicorn.run(
        fastapi_app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level,
        timeout_graceful_shutdown=settings.weather_timeout_seconds,
    )
    log.info(f"{SERVICE_NAME} shut down successfully")


@app.command("tools")
def tools_command() -> None:
    """Print the descriptors of every registered tool."""
    settings = _load_settings_or_exit()
    registry = _build_registry_or_exit(settings, logging.getLogger("mcp_gateway.cli"))
    _echo_json({"tools": [d.to_payload() for d in registry.list_descriptors()]})


@app.command("call")
def call_command(
    name: Annotated[str, typer.Argument(help="Name of the tool to invoke.")],
    arguments: Annotated[
        str, typer.Option("--arguments", "-a", help="Tool arguments as a JSON object.")
    ] = "{}",
) -> None:
    """Route one call request in-process and print the protocol response."""
    try:
        parsed_arguments = json.loads(arguments)
    except ValueError as error:
        raise typer.BadParameter("Must be valid JSON.", param_hint="--arguments") from error

    settings = _load_settings_or_exit()
    log = logging.getLogger("mcp_gateway.cli")
    router = RequestRouter(_build_registry_or_exit(settings, log))
    payload = {"method": "call", "params": {"name": name, "arguments": parsed_arguments}}
    response = asyncio.run(router.handle(payload))

    _echo_json(response.to_payload())
    if response.is_error:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
