"""Process-lifetime registry of tools keyed by unique name."""

from __future__ import annotations

import logging

from mcp_gateway.errors import DuplicateToolError, ToolDefinitionError
from mcp_gateway.schema import ToolDescriptor
from mcp_gateway.tools import Tool

logger = logging.getLogger(__name__)


class ToolRegistry:
    """Name-to-tool mapping populated at startup and read during requests.

    Registration is not synchronized; every tool must be registered before the
    first request is routed.
    """

    def __init__(self, *, log: logging.Logger | None = None) -> None:
        self._tools: dict[str, Tool] = {}
        self._log = log or logger

    def register(self, tool: Tool) -> None:
        """Add a tool, rejecting empty or already-registered names."""
        name = getattr(tool, "name", None)
        if not isinstance(name, str) or not name:
            raise ToolDefinitionError(
                f"Tool {type(tool).__name__} must define a non-empty string name."
            )
        if name in self._tools:
            error = DuplicateToolError(name)
            self._log.error(error.message, extra={"context": {"toolName": name}})
            raise error

        self._tools[name] = tool
        self._log.info(
            "Tool registered",
            extra={"context": {"toolName": name, "description": tool.description}},
        )

    def lookup(self, name: str) -> Tool | None:
        return self._tools.get(name)

    def list_descriptors(self) -> list[ToolDescriptor]:
        """Return a snapshot of every registered tool's descriptor."""
        return [tool.to_descriptor() for tool in self._tools.values()]

    def count(self) -> int:
        return len(self._tools)

    def names(self) -> list[str]:
        """Return registered names in sorted order for diagnostics."""
        return sorted(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)
