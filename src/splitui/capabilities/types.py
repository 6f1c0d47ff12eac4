"""Capability schema types.

A capability is declared as static data: a `CapabilityDescriptor` bundling
an identifier, a model-facing description, an ordered tuple of
`SchemaField`s, the subset of those fields that is required, and an opaque
render handle the presentation surface knows how to use.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from splitui.foundation.errors import descriptor_error


class FieldKind(Enum):
    """Declared type of an extractable field."""

    TEXT = "text"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ENUM = "enum"

    @property
    def json_type(self) -> str:
        """JSON Schema type used when compiling tools."""
        match self:
            case FieldKind.NUMBER:
                return "number"
            case FieldKind.BOOLEAN:
                return "boolean"
            case _:
                return "string"


@dataclass(frozen=True, slots=True)
class SchemaField:
    """One named, typed input field of a capability."""

    name: str
    """Field name, unique within its capability (e.g., "dueDate")."""

    kind: FieldKind
    """Declared type the extracted value is coerced to."""

    description: str = ""
    """Free text guiding the model's extraction."""

    allowed_values: tuple[str, ...] = ()
    """Ordered allowed values. Non-empty exactly when kind is ENUM."""

    def __post_init__(self) -> None:
        if not self.name:
            raise descriptor_error("<field>", "field name must be non-empty")
        if not isinstance(self.kind, FieldKind):
            raise descriptor_error(self.name, f"unknown field kind {self.kind!r}")

        # Normalize to an ordered set
        values = tuple(dict.fromkeys(self.allowed_values))
        object.__setattr__(self, "allowed_values", values)

        if self.kind is FieldKind.ENUM and not values:
            raise descriptor_error(self.name, "enumerated field needs at least one allowed value")
        if self.kind is not FieldKind.ENUM and values:
            raise descriptor_error(
                self.name, f"allowed values are only valid on enum fields, not {self.kind.value}"
            )

    def to_json_schema(self) -> dict[str, Any]:
        schema: dict[str, Any] = {"type": self.kind.json_type}
        if self.description:
            schema["description"] = self.description
        if self.allowed_values:
            schema["enum"] = list(self.allowed_values)
        return schema


def text(name: str, description: str = "") -> SchemaField:
    return SchemaField(name, FieldKind.TEXT, description)


def number(name: str, description: str = "") -> SchemaField:
    return SchemaField(name, FieldKind.NUMBER, description)


def boolean(name: str, description: str = "") -> SchemaField:
    return SchemaField(name, FieldKind.BOOLEAN, description)


def enum(name: str, values: tuple[str, ...] | list[str], description: str = "") -> SchemaField:
    return SchemaField(name, FieldKind.ENUM, description, tuple(values))


@dataclass(frozen=True, slots=True)
class CapabilityDescriptor:
    """Definition of one addressable unit of functionality.

    This defines what the model may extract for a capability and which
    view renders it, not an activation of it.
    """

    identifier: str
    """Stable snake_case dispatch key (e.g., "add_task")."""

    description: str
    """Written for the model; must distinguish this capability from its siblings."""

    fields: tuple[SchemaField, ...] = ()
    """Declared fields in the order they are compiled."""

    required: tuple[str, ...] = ()
    """Names of fields that must be present for the capability to be satisfied."""

    render_handle: Any = None
    """Opaque reference resolved by the presentation surface."""

    def __post_init__(self) -> None:
        # Accept lists from hand-written catalogs, store tuples
        object.__setattr__(self, "fields", tuple(self.fields))
        object.__setattr__(self, "required", tuple(self.required))

    @property
    def field_names(self) -> tuple[str, ...]:
        return tuple(f.name for f in self.fields)

    def get_field(self, name: str) -> SchemaField | None:
        """Get a declared field by name, or None if not declared."""
        for f in self.fields:
            if f.name == name:
                return f
        return None

    def is_actionable(self, data: Mapping[str, Any]) -> bool:
        """Whether at least one required field is present in `data`.

        A capability with no required fields is never actionable, so it
        never auto-promotes.
        """
        return any(name in data for name in self.required)
