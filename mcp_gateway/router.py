"""Request routing: parse, validate, dispatch and report."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel

from mcp_gateway.errors import (
    ArgumentValidationError,
    GatewayError,
    InternalGatewayError,
    ToolExecutionError,
    ToolNotFoundError,
    TransportError,
)
from mcp_gateway.observability import GatewayTelemetry
from mcp_gateway.registry import ToolRegistry
from mcp_gateway.schema import (
    METHOD_ALIASES,
    ProtocolRequest,
    ProtocolResponse,
    RequestMethod,
)
from mcp_gateway.validation import validate

logger = logging.getLogger(__name__)

RawPayload = bytes | bytearray | str | Mapping[str, Any]


def _reject_constant(constant: str) -> Any:
    """Refuse NaN and the infinities, which JSON does not define."""
    raise ValueError(f"Invalid JSON constant: {constant}")


class RequestRouter:
    """Turn raw protocol messages into tool invocations and responses.

    Every per-request failure is converted into an error response here; only
    cancellation of the surrounding task propagates out of ``handle``.
    """

    def __init__(
        self,
        registry: ToolRegistry,
        *,
        log: logging.Logger | None = None,
        telemetry: GatewayTelemetry | None = None,
    ) -> None:
        self._registry = registry
        self._log = log or logger
        self._telemetry = telemetry or GatewayTelemetry()

    @property
    def telemetry(self) -> GatewayTelemetry:
        return self._telemetry

    async def handle(self, payload: RawPayload) -> ProtocolResponse:
        """Route one inbound payload to a response."""
        try:
            request = self.parse(payload)
            self._log.info(
                "Routing request",
                extra={"context": {"method": request.method.value, "toolName": request.target}},
            )
            if request.method is RequestMethod.LIST:
                response = self._list_tools()
            else:
                response = await self._call_tool(request)
        except TransportError as error:
            self._log.warning(
                "Malformed request rejected",
                extra={"context": {"reason": error.message}},
            )
            self._telemetry.record_error(error.code)
            return ProtocolResponse.failure(error)
        except GatewayError as error:
            self._telemetry.record_error(error.code)
            return ProtocolResponse.failure(error)
        except Exception as error:
            self._log.exception(
                "Request handling failed unexpectedly",
                extra={"context": {"errorName": type(error).__name__}},
            )
            internal = InternalGatewayError()
            self._telemetry.record_error(internal.code)
            return ProtocolResponse.failure(internal)

        self._telemetry.record_success()
        return response

    def parse(self, payload: RawPayload) -> ProtocolRequest:
        """Decode a payload and check its protocol shape."""
        if isinstance(payload, bytes | bytearray | str):
            try:
                decoded = json.loads(payload, parse_constant=_reject_constant)
            except (ValueError, RecursionError) as error:
                raise TransportError("Request body must be valid JSON") from error
        else:
            decoded = payload

        if not isinstance(decoded, Mapping):
            raise TransportError("Request body must be a JSON object")

        method = decoded.get("method")
        if method is None:
            raise TransportError("Missing required field: method")
        if not isinstance(method, str) or method not in METHOD_ALIASES:
            raise TransportError(f"Unsupported method: {method}")

        resolved = METHOD_ALIASES[method]
        if resolved is RequestMethod.LIST:
            return ProtocolRequest(method=resolved)

        params = decoded.get("params")
        if params is None:
            params = {}
        if not isinstance(params, Mapping):
            raise TransportError("Field 'params' must be an object")

        name = params.get("name")
        if name is None:
            raise TransportError("Missing required field: params.name for call")
        if not isinstance(name, str) or not name:
            raise TransportError("Field 'params.name' must be a non-empty string")

        return ProtocolRequest(method=resolved, target=name, arguments=params.get("arguments"))

    def _list_tools(self) -> ProtocolResponse:
        tools = [descriptor.to_payload() for descriptor in self._registry.list_descriptors()]
        self._log.info("Tools listed", extra={"context": {"count": len(tools)}})
        return ProtocolResponse.success({"tools": tools})

    async def _call_tool(self, request: ProtocolRequest) -> ProtocolResponse:
        name = request.target or ""
        tool = self._registry.lookup(name)
        if tool is None:
            error = ToolNotFoundError(name, available_tools=self._registry.names())
            self._log.error(
                error.message,
                extra={"context": {"availableTools": list(error.available_tools)}},
            )
            raise error

        arguments = {} if request.arguments is None else request.arguments
        outcome = validate(tool.schema, arguments)
        if not outcome.conformant:
            error = ArgumentValidationError(name, outcome.violations)
            self._log.warning(
                "Argument validation failed",
                extra={"context": {"toolName": name, "violations": error.details()["violations"]}},
            )
            raise error

        self._log.debug(
            "Executing tool",
            extra={"context": {"toolName": name, "arguments": arguments}},
        )
        try:
            result = await tool.execute(arguments)
        except ToolExecutionError as error:
            self._log.error(
                "Tool execution failed",
                extra={"context": {"toolName": name, "errorMessage": error.message}},
            )
            raise
        except Exception as error:
            # The cause may carry upstream detail; log it, return a generic message.
            self._log.exception(
                "Tool raised an unexpected error",
                extra={"context": {"toolName": name, "errorName": type(error).__name__}},
            )
            raise ToolExecutionError(f"Tool execution failed for '{name}'") from error

        self._log.info("Tool execution completed", extra={"context": {"toolName": name}})
        if isinstance(result, BaseModel):
            result = result.model_dump(mode="json", by_alias=True, exclude_none=True)
        return ProtocolResponse.success(result)
