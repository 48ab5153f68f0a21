"""Gateway error taxonomy with stable wire codes."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING, Any, ClassVar

if TYPE_CHECKING:
    from mcp_gateway.validation import Violation


class GatewayError(Exception):
    """Base class for errors surfaced through the protocol."""

    code: ClassVar[str] = "GatewayError"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def details(self) -> dict[str, Any] | None:
        """Return machine-readable diagnostics for the error response."""
        return None


class TransportError(GatewayError):
    """Raised when an inbound payload is not a well-formed protocol request."""

    code = "TransportError"


class ToolNotFoundError(GatewayError):
    """Raised when a call names a tool that is not registered."""

    code = "ToolNotFoundError"

    def __init__(self, name: str, *, available_tools: Iterable[str]) -> None:
        super().__init__(f"Tool '{name}' not found")
        self.name = name
        self.available_tools = tuple(available_tools)

    def details(self) -> dict[str, Any]:
        return {"name": self.name, "available_tools": list(self.available_tools)}


class ArgumentValidationError(GatewayError):
    """Raised when call arguments do not conform to the tool schema."""

    code = "ValidationError"

    def __init__(self, tool_name: str, violations: Sequence[Violation]) -> None:
        summary = "; ".join(violation.message for violation in violations)
        super().__init__(f"Invalid parameters for tool '{tool_name}': {summary}")
        self.tool_name = tool_name
        self.violations = tuple(violations)

    def details(self) -> dict[str, Any]:
        return {
            "tool": self.tool_name,
            "violations": [violation.to_dict() for violation in self.violations],
        }


class ToolExecutionError(GatewayError):
    """Raised by a tool when its underlying operation cannot complete."""

    code = "ExecutionError"


class InternalGatewayError(GatewayError):
    """Reported when request handling fails for a reason callers cannot act on."""

    code = "InternalError"

    def __init__(self, message: str = "An unexpected error occurred") -> None:
        super().__init__(message)


class DuplicateToolError(GatewayError):
    """Raised when registering a tool whose name is already taken."""

    code = "DuplicateNameError"

    def __init__(self, name: str) -> None:
        super().__init__(f"Tool with name '{name}' is already registered")
        self.name = name


class ToolDefinitionError(ValueError):
    """Raised when a tool or parameter schema definition is invalid."""
