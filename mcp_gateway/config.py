"""Gateway configuration loaded from the environment and an optional .env file."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from mcp_gateway.observability import LOG_LEVELS

PORT_ENV_VAR = "PORT"
HOST_ENV_VAR = "HOST"
LOG_LEVEL_ENV_VAR = "LOG_LEVEL"
WEATHER_API_KEY_ENV_VAR = "WEATHER_API_KEY"
WEATHER_API_URL_ENV_VAR = "WEATHER_API_URL"
WEATHER_API_TIMEOUT_ENV_VAR = "WEATHER_API_TIMEOUT_SECONDS"

DEFAULT_PORT = 3000
DEFAULT_HOST = "0.0.0.0"
DEFAULT_LOG_LEVEL = "info"
DEFAULT_WEATHER_API_URL = "http://api.weatherapi.com/v1/current.json"
DEFAULT_WEATHER_TIMEOUT_SECONDS = 10.0


class ConfigError(RuntimeError):
    """Raised when one or more configuration values are invalid."""

    def __init__(self, problems: list[str]) -> None:
        super().__init__("Configuration validation failed:\n" + "\n".join(problems))
        self.problems = tuple(problems)


@dataclass(frozen=True, slots=True)
class GatewaySettings:
    """Validated settings handed to the gateway at construction time."""

    port: int = DEFAULT_PORT
    host: str = DEFAULT_HOST
    log_level: str = DEFAULT_LOG_LEVEL
    weather_api_key: str | None = None
    weather_api_url: str = DEFAULT_WEATHER_API_URL
    weather_timeout_seconds: float = DEFAULT_WEATHER_TIMEOUT_SECONDS

    @property
    def server_url(self) -> str:
        host = "localhost" if self.host in {"0.0.0.0", "::"} else self.host
        return f"http://{host}:{self.port}"


def load_settings(environ: Mapping[str, str] | None = None) -> GatewaySettings:
    """Read and validate settings, collecting every problem before failing.

    When ``environ`` is omitted, a ``.env`` file in the working directory is
    loaded into the process environment first, without overriding it.
    """
    if environ is None:
        load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
        environ = os.environ

    problems: list[str] = []

    port = DEFAULT_PORT
    raw_port = environ.get(PORT_ENV_VAR)
    if raw_port:
        try:
            port = int(raw_port)
        except ValueError:
            port = -1
        if not 1 <= port <= 65535:
            problems.append(
                f"Invalid {PORT_ENV_VAR}: {raw_port}. Must be a number between 1 and 65535"
            )

    log_level = DEFAULT_LOG_LEVEL
    raw_level = environ.get(LOG_LEVEL_ENV_VAR)
    if raw_level:
        log_level = raw_level.strip().lower()
        if log_level not in LOG_LEVELS:
            problems.append(
                f"Invalid {LOG_LEVEL_ENV_VAR}: {raw_level}. "
                f"Must be one of: {', '.join(LOG_LEVELS)}"
            )

    timeout_seconds = DEFAULT_WEATHER_TIMEOUT_SECONDS
    raw_timeout = environ.get(WEATHER_API_TIMEOUT_ENV_VAR)
    if raw_timeout:
        try:
            timeout_seconds = float(raw_timeout)
        except ValueError:
            timeout_seconds = 0.0
        if timeout_seconds <= 0:
            problems.append(
                f"Invalid {WEATHER_API_TIMEOUT_ENV_VAR}: {raw_timeout}. "
                "Must be a positive number of seconds"
            )

    if problems:
        raise ConfigError(problems)

    return GatewaySettings(
        port=port,
        host=environ.get(HOST_ENV_VAR) or DEFAULT_HOST,
        log_level=log_level,
        weather_api_key=environ.get(WEATHER_API_KEY_ENV_VAR) or None,
        weather_api_url=environ.get(WEATHER_API_URL_ENV_VAR) or DEFAULT_WEATHER_API_URL,
        weather_timeout_seconds=timeout_seconds,
    )
