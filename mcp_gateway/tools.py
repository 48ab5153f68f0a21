"""Tool contract shared by every API integration."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, ClassVar

from mcp_gateway.parameters import ParameterSchema
from mcp_gateway.schema import ToolDescriptor


class Tool(ABC):
    """A named, schema-described capability the gateway can invoke.

    Subclasses set ``name``, ``description`` and ``schema`` and implement
    ``execute``. One instance serves every request that names it, so
    ``execute`` must keep per-call state local. Failures are reported by
    raising ``ToolExecutionError`` with a message safe to return to callers.
    Each tool bounds its own outbound calls with a timeout; the gateway does
    not retry, cache or cancel on a tool's behalf.
    """

    name: ClassVar[str]
    description: ClassVar[str]
    schema: ClassVar[ParameterSchema]

    @abstractmethod
    async def execute(self, arguments: dict[str, Any]) -> Any:
        """Run the tool with arguments that already conform to ``schema``."""

    def to_descriptor(self) -> ToolDescriptor:
        """Project the tool's identity fields for discovery."""
        return ToolDescriptor(
            name=self.name,
            description=self.description,
            input_schema=self.schema.to_dict(),
        )
