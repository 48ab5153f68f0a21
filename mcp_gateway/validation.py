"""Structural validation of tool arguments against parameter schemas."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from mcp_gateway.parameters import ParameterSchema, SchemaKind

ROOT_PATH_LABEL = "arguments"
MISSING = "missing"


@dataclass(frozen=True, slots=True)
class Violation:
    """One reason a value does not conform to its schema."""

    path: str
    expected: str
    actual: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {
            "path": self.path,
            "expected": self.expected,
            "actual": self.actual,
            "message": self.message,
        }


@dataclass(frozen=True, slots=True)
class ValidationOutcome:
    """Result of validating a value: conformant when no violations were found."""

    violations: tuple[Violation, ...] = ()

    @property
    def conformant(self) -> bool:
        return not self.violations

    def missing_fields(self) -> tuple[str, ...]:
        """Return paths of required fields that were absent."""
        return tuple(v.path for v in self.violations if v.actual == MISSING)


def describe_kind(value: Any) -> str:
    """Name the JSON kind of a Python value."""
    if value is None:
        return "null"
    # bool is an int subclass; check it first so True is never a number.
    if isinstance(value, bool):
        return SchemaKind.BOOLEAN.value
    if isinstance(value, int | float):
        return SchemaKind.NUMBER.value
    if isinstance(value, str):
        return SchemaKind.STRING.value
    if isinstance(value, Mapping):
        return SchemaKind.OBJECT.value
    if isinstance(value, list | tuple):
        return SchemaKind.ARRAY.value
    return type(value).__name__


def validate(schema: ParameterSchema, value: Any) -> ValidationOutcome:
    """Check ``value`` against ``schema`` and collect every violation.

    Object schemas are not allow-lists: fields the schema does not declare are
    ignored. Schemas without a recognized kind accept any value. Primitive
    kinds must match exactly, with no coercion between them.
    """
    violations: list[Violation] = []
    _check(schema, value, path="", violations=violations)
    return ValidationOutcome(violations=tuple(violations))


def _check(schema: ParameterSchema, value: Any, *, path: str, violations: list[Violation]) -> None:
    kind = schema.kind
    if kind is None:
        return

    actual = describe_kind(value)
    if actual != kind:
        violations.append(
            Violation(
                path=path,
                expected=kind.value,
                actual=actual,
                message=f"Expected {kind.value} at '{path or ROOT_PATH_LABEL}', got {actual}",
            )
        )
        return

    if kind is SchemaKind.OBJECT:
        for name in schema.required:
            if name not in value:
                field_path = _field_path(path, name)
                violations.append(
                    Violation(
                        path=field_path,
                        expected=_describe_expected(schema.properties[name]),
                        actual=MISSING,
                        message=f"Missing required field '{field_path}'",
                    )
                )
        for name, sub_schema in schema.properties.items():
            if name in value:
                _check(
                    sub_schema,
                    value[name],
                    path=_field_path(path, name),
                    violations=violations,
                )
    elif kind is SchemaKind.ARRAY and schema.items is not None:
        for index, element in enumerate(value):
            _check(schema.items, element, path=f"{path}[{index}]", violations=violations)


def _field_path(parent: str, name: str) -> str:
    return f"{parent}.{name}" if parent else name


def _describe_expected(schema: ParameterSchema) -> str:
    kind = schema.kind
    return kind.value if kind is not None else "any"
