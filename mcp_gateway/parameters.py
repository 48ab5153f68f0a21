"""Declarative parameter schemas attached to tools."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from types import MappingProxyType
from typing import Any

from mcp_gateway.errors import ToolDefinitionError

_STRUCTURAL_KEYS = frozenset({"type", "description", "properties", "required", "items"})


class SchemaKind(StrEnum):
    """Value kinds the validator understands."""

    OBJECT = "object"
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ARRAY = "array"


@dataclass(frozen=True, slots=True)
class ParameterSchema:
    """Recursive, immutable description of an accepted argument shape.

    ``declared_type`` keeps the ``type`` string exactly as declared. Values the
    validator does not recognize (or a missing type) make the schema accept
    anything while still round-tripping through discovery unchanged.

    Schemas compare by value but are unhashable: their mappings are read-only
    views, not hashable containers.
    """

    __hash__ = None  # type: ignore[assignment]

    declared_type: str | None = None
    description: str | None = None
    properties: Mapping[str, ParameterSchema] = field(default_factory=dict)
    required: tuple[str, ...] = ()
    items: ParameterSchema | None = None
    annotations: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "properties", MappingProxyType(dict(self.properties)))
        object.__setattr__(self, "annotations", MappingProxyType(dict(self.annotations)))
        object.__setattr__(self, "required", tuple(dict.fromkeys(self.required)))
        undeclared = [name for name in self.required if name not in self.properties]
        if undeclared:
            raise ToolDefinitionError(
                f"Required fields {undeclared} are not declared in schema properties."
            )

    @property
    def kind(self) -> SchemaKind | None:
        """Return the recognized kind, or None for accept-anything schemas."""
        if self.declared_type is None:
            return None
        try:
            return SchemaKind(self.declared_type)
        except ValueError:
            return None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], *, path: str = "schema") -> ParameterSchema:
        """Build a schema from its JSON-Schema-like dict form."""
        if not isinstance(data, Mapping):
            raise ToolDefinitionError(f"Expected a mapping for '{path}'.")

        declared_type = data.get("type")
        if declared_type is not None and not isinstance(declared_type, str):
            raise ToolDefinitionError(f"Expected string 'type' in '{path}'.")

        description = data.get("description")
        if description is not None and not isinstance(description, str):
            raise ToolDefinitionError(f"Expected string 'description' in '{path}'.")

        raw_properties = data.get("properties") or {}
        if not isinstance(raw_properties, Mapping):
            raise ToolDefinitionError(f"Expected mapping 'properties' in '{path}'.")
        properties = {
            str(name): cls.from_dict(sub_schema, path=f"{path}.{name}")
            for name, sub_schema in raw_properties.items()
        }

        raw_required = data.get("required") or []
        if isinstance(raw_required, str) or not isinstance(raw_required, Iterable):
            raise ToolDefinitionError(f"Expected list 'required' in '{path}'.")
        required = tuple(raw_required)
        if not all(isinstance(name, str) for name in required):
            raise ToolDefinitionError(f"Expected string entries in '{path}.required'.")

        raw_items = data.get("items")
        items = cls.from_dict(raw_items, path=f"{path}[]") if raw_items is not None else None

        annotations = {key: value for key, value in data.items() if key not in _STRUCTURAL_KEYS}
        return cls(
            declared_type=declared_type,
            description=description,
            properties=properties,
            required=required,
            items=items,
            annotations=annotations,
        )

    def to_dict(self) -> dict[str, Any]:
        """Render the JSON-Schema-like form used in discovery responses."""
        payload: dict[str, Any] = {}
        if self.declared_type is not None:
            payload["type"] = self.declared_type
        if self.description is not None:
            payload["description"] = self.description
        if self.properties or self.kind is SchemaKind.OBJECT:
            payload["properties"] = {
                name: sub_schema.to_dict() for name, sub_schema in self.properties.items()
            }
        if self.required:
            payload["required"] = list(self.required)
        if self.items is not None:
            payload["items"] = self.items.to_dict()
        payload.update(self.annotations)
        return payload


def object_schema(
    properties: Mapping[str, ParameterSchema] | None = None,
    *,
    required: Iterable[str] = (),
    description: str | None = None,
) -> ParameterSchema:
    return ParameterSchema(
        declared_type=SchemaKind.OBJECT.value,
        description=description,
        properties=properties or {},
        required=tuple(required),
    )


def string_schema(description: str | None = None) -> ParameterSchema:
    return ParameterSchema(declared_type=SchemaKind.STRING.value, description=description)


def number_schema(description: str | None = None) -> ParameterSchema:
    return ParameterSchema(declared_type=SchemaKind.NUMBER.value, description=description)


def boolean_schema(description: str | None = None) -> ParameterSchema:
    return ParameterSchema(declared_type=SchemaKind.BOOLEAN.value, description=description)


def array_schema(
    items: ParameterSchema | None = None,
    *,
    description: str | None = None,
) -> ParameterSchema:
    return ParameterSchema(
        declared_type=SchemaKind.ARRAY.value,
        description=description,
        items=items,
    )
