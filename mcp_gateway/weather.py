"""Weather tool backed by the WeatherAPI.com current-conditions endpoint."""

from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

import httpx

from mcp_gateway.config import (
    DEFAULT_WEATHER_API_URL,
    DEFAULT_WEATHER_TIMEOUT_SECONDS,
    WEATHER_API_KEY_ENV_VAR,
    GatewaySettings,
)
from mcp_gateway.errors import ToolExecutionError
from mcp_gateway.parameters import object_schema, string_schema
from mcp_gateway.schema import WeatherReport
from mcp_gateway.tools import Tool

logger = logging.getLogger(__name__)

WEATHER_TOOL_NAME = "get-weather"
WEATHER_MAX_ATTEMPTS = 3
DEFAULT_RETRY_BACKOFF_SECONDS = 0.5
MAX_RETRY_DELAY_SECONDS = 5.0
# WeatherAPI.com reports unknown locations as HTTP 400 with this error code.
LOCATION_NOT_FOUND_ERROR_CODE = 1006

NETWORK_ERROR_MESSAGE = (
    "Weather API request timeout or network error. Please check your connection."
)
MISSING_KEY_MESSAGE = (
    f"Weather API key not configured. Please set {WEATHER_API_KEY_ENV_VAR} environment variable."
)

ClientFactory = Callable[[], httpx.AsyncClient]


def build_weather_client(
    timeout_seconds: float = DEFAULT_WEATHER_TIMEOUT_SECONDS,
    *,
    trust_env: bool = True,
) -> httpx.AsyncClient:
    """Build the HTTP client used for one weather lookup."""
    return httpx.AsyncClient(
        headers={"Accept": "application/json"},
        timeout=timeout_seconds,
        trust_env=trust_env,
    )


class WeatherApiTool(Tool):
    """Current weather for a location, via WeatherAPI.com."""

    name = WEATHER_TOOL_NAME
    description = "Get current weather information for a specified location"
    schema = object_schema(
        {
            "location": string_schema(
                'City name (e.g., "London", "New York") or city with country code '
                '(e.g., "London,UK")'
            ),
        },
        required=["location"],
    )

    def __init__(
        self,
        *,
        api_key: str | None,
        api_url: str = DEFAULT_WEATHER_API_URL,
        timeout_seconds: float = DEFAULT_WEATHER_TIMEOUT_SECONDS,
        client_factory: ClientFactory | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        self._api_key = api_key
        self._api_url = api_url
        self._timeout_seconds = timeout_seconds
        self._client_factory = client_factory or self._default_client
        self._log = log or logger
        if not api_key:
            self._log.warning(
                f"{WEATHER_API_KEY_ENV_VAR} not set in environment variables. "
                "Weather API calls will fail."
            )

    @classmethod
    def from_settings(cls, settings: GatewaySettings, **kwargs: Any) -> WeatherApiTool:
        return cls(
            api_key=settings.weather_api_key,
            api_url=settings.weather_api_url,
            timeout_seconds=settings.weather_timeout_seconds,
            **kwargs,
        )

    def _default_client(self) -> httpx.AsyncClient:
        return build_weather_client(self._timeout_seconds)

    async def execute(self, arguments: dict[str, Any]) -> dict[str, Any]:
        location = arguments["location"].strip()
        if not location:
            raise ToolExecutionError("Location must be a non-empty string.")
        if not self._api_key:
            self._log.error("Weather API key missing")
            raise ToolExecutionError(MISSING_KEY_MESSAGE)

        self._log.info(
            "Weather API request initiated",
            extra={"context": {"location": location}},
        )
        params = {"q": location, "key": self._api_key, "aqi": "no"}
        try:
            async with self._client_factory() as client:
                response = await _request_with_retries(
                    client,
                    self._api_url,
                    params=params,
                    location=location,
                    log=self._log,
                )
        except httpx.HTTPError as error:
            self._log.error(
                NETWORK_ERROR_MESSAGE,
                extra={"context": {"location": location, "errorName": type(error).__name__}},
            )
            raise ToolExecutionError(NETWORK_ERROR_MESSAGE) from error

        try:
            payload = response.json()
        except ValueError as error:
            raise ToolExecutionError("Weather API returned a non-JSON response.") from error

        report = transform_weather_payload(payload, requested_location=location)
        self._log.info(
            "Weather API request successful",
            extra={
                "context": {
                    "location": report.location,
                    "temperature": report.temperature,
                    "conditions": report.conditions,
                }
            },
        )
        return report.model_dump(by_alias=True, exclude_none=True)


def transform_weather_payload(
    payload: object,
    *,
    requested_location: str,
    now: datetime | None = None,
) -> WeatherReport:
    """Normalize a WeatherAPI.com current-conditions body."""
    if not isinstance(payload, dict):
        raise ToolExecutionError("Weather API returned an unexpected response format.")
    current = payload.get("current")
    if not isinstance(current, dict) or not _is_number(current.get("temp_c")):
        raise ToolExecutionError("Weather API response is missing current conditions.")

    location_block = payload.get("location")
    location_name = location_block.get("name") if isinstance(location_block, dict) else None
    condition = current.get("condition")
    conditions = condition.get("text") if isinstance(condition, dict) else None
    timestamp = (now or datetime.now(tz=UTC)).isoformat().replace("+00:00", "Z")
    if not isinstance(location_name, str) or not location_name:
        location_name = requested_location

    return WeatherReport(
        location=location_name,
        temperature=_round_half_up(current["temp_c"], digits=1),
        temperature_unit="celsius",
        conditions=conditions if isinstance(conditions, str) and conditions else "Unknown",
        humidity=current.get("humidity") if _is_number(current.get("humidity")) else None,
        wind_speed=current.get("wind_kph") if _is_number(current.get("wind_kph")) else None,
        timestamp=timestamp,
    )


def _is_number(value: object) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


def _round_half_up(value: float, *, digits: int) -> float:
    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor


def _is_retryable_status(status_code: int) -> bool:
    """Return whether a status code is retryable under policy."""
    return status_code == 429 or 500 <= status_code < 600


def _parse_retry_after_seconds(response: httpx.Response) -> float | None:
    """Parse Retry-After header as seconds if present and valid."""
    retry_after = response.headers.get("Retry-After")
    if retry_after is None:
        return None
    try:
        parsed_value = float(retry_after)
    except ValueError:
        return None
    if parsed_value < 0:
        return None
    return parsed_value


def _compute_retry_delay_seconds(response: httpx.Response, *, attempt_number: int) -> float:
    """Compute retry delay from Retry-After header or exponential backoff, capped."""
    retry_after_seconds = _parse_retry_after_seconds(response)
    if retry_after_seconds is None:
        retry_after_seconds = DEFAULT_RETRY_BACKOFF_SECONDS * (2 ** (attempt_number - 1))
    return min(retry_after_seconds, MAX_RETRY_DELAY_SECONDS)


async def _sleep_for_retry(seconds: float) -> None:
    """Sleep helper for retry delays (wrapped for deterministic tests)."""
    await asyncio.sleep(seconds)


def _upstream_error_code(response: httpx.Response) -> int | None:
    try:
        body = response.json()
    except ValueError:
        return None
    error = body.get("error") if isinstance(body, dict) else None
    code = error.get("code") if isinstance(error, dict) else None
    return code if isinstance(code, int) else None


def _raise_http_error(response: httpx.Response, *, location: str, log: logging.Logger) -> None:
    """Raise a caller-safe error for a non-success WeatherAPI response."""
    status_code = response.status_code
    if status_code in {401, 403}:
        message = f"Invalid API key. Please check {WEATHER_API_KEY_ENV_VAR} configuration."
    elif status_code == 404 or (
        status_code == 400 and _upstream_error_code(response) == LOCATION_NOT_FOUND_ERROR_CODE
    ):
        message = (
            f'Location "{location}" not found. Please check the location name and try again.'
        )
    elif status_code == 429:
        message = "API rate limit exceeded. Please try again later."
    else:
        message = f"Weather API error: {response.reason_phrase}"

    log.error(message, extra={"context": {"location": location, "status": status_code}})
    raise ToolExecutionError(message)


async def _request_with_retries(
    client: httpx.AsyncClient,
    url: str,
    *,
    params: dict[str, str],
    location: str,
    log: logging.Logger,
    max_attempts: int = WEATHER_MAX_ATTEMPTS,
) -> httpx.Response:
    """Perform a GET request with retry handling for 429/5xx responses."""
    for attempt_number in range(1, max_attempts + 1):
        response = await client.get(url, params=params)
        if response.status_code < 400:
            return response

        should_retry = _is_retryable_status(response.status_code) and attempt_number < max_attempts
        if not should_retry:
            _raise_http_error(response, location=location, log=log)

        delay_seconds = _compute_retry_delay_seconds(response, attempt_number=attempt_number)
        log.warning(
            "Retrying weather request",
            extra={
                "context": {
                    "status": response.status_code,
                    "attempt": attempt_number,
                    "delaySeconds": delay_seconds,
                }
            },
        )
        await _sleep_for_retry(delay_seconds)

    raise RuntimeError("Unexpected retry loop exit without a response.")
