"""Wire contracts for protocol requests, responses and tool results."""

from __future__ import annotations

from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from mcp_gateway.errors import GatewayError


class RequestMethod(StrEnum):
    """Supported protocol methods."""

    LIST = "list"
    CALL = "call"


METHOD_ALIASES: dict[str, RequestMethod] = {
    "list": RequestMethod.LIST,
    "call": RequestMethod.CALL,
    "tools/list": RequestMethod.LIST,
    "tools/call": RequestMethod.CALL,
}


class ToolDescriptor(BaseModel):
    """Discovery-facing projection of a tool."""

    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    name: str = Field(min_length=1)
    description: str
    input_schema: dict[str, Any] = Field(alias="inputSchema")

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class ProtocolRequest(BaseModel):
    """A parsed inbound request."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    method: RequestMethod
    target: str | None = Field(default=None, min_length=1)
    arguments: Any = None

    @model_validator(mode="after")
    def validate_target(self) -> ProtocolRequest:
        """Require a target for calls."""
        if self.method is RequestMethod.CALL and self.target is None:
            raise ValueError("target is required when method is 'call'")
        return self


class ErrorBody(BaseModel):
    """Error arm of a protocol response."""

    model_config = ConfigDict(extra="forbid")

    code: str = Field(min_length=1)
    message: str
    details: dict[str, Any] | None = None


class ProtocolResponse(BaseModel):
    """Tagged response: exactly one of ``result`` or ``error`` is meaningful."""

    model_config = ConfigDict(extra="forbid")

    result: Any = None
    error: ErrorBody | None = None

    @model_validator(mode="after")
    def validate_single_arm(self) -> ProtocolResponse:
        """Reject responses that populate both arms."""
        if self.error is not None and self.result is not None:
            raise ValueError("a response carries either a result or an error, not both")
        return self

    @classmethod
    def success(cls, result: Any) -> ProtocolResponse:
        return cls(result=result)

    @classmethod
    def failure(cls, error: GatewayError) -> ProtocolResponse:
        return cls(
            error=ErrorBody(code=error.code, message=error.message, details=error.details())
        )

    @property
    def is_error(self) -> bool:
        return self.error is not None

    def to_payload(self) -> dict[str, Any]:
        """Render the wire payload, keeping a null result on success."""
        if self.error is not None:
            return {"error": self.error.model_dump(exclude_none=True)}
        return {"result": self.result}


class WeatherReport(BaseModel):
    """Current conditions returned by the weather tool."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    location: str = Field(min_length=1)
    temperature: float
    temperature_unit: Literal["celsius", "fahrenheit"] = Field(
        default="celsius", alias="temperatureUnit"
    )
    conditions: str
    humidity: float | None = None
    wind_speed: float | None = Field(default=None, alias="windSpeed")
    timestamp: str
