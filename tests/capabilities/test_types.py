"""Tests for schema fields and capability descriptors."""

import pytest

from splitui.capabilities.types import (
    CapabilityDescriptor,
    FieldKind,
    SchemaField,
    boolean,
    enum,
    number,
    text,
)
from splitui.foundation.errors import InvalidDescriptor


class TestSchemaField:
    def test_helpers_set_kind(self) -> None:
        assert text("title").kind is FieldKind.TEXT
        assert number("amount").kind is FieldKind.NUMBER
        assert boolean("urgent").kind is FieldKind.BOOLEAN
        assert enum("priority", ["low", "high"]).kind is FieldKind.ENUM

    def test_enum_values_keep_order_and_drop_duplicates(self) -> None:
        field = enum("priority", ["low", "high", "low", "medium"])

        assert field.allowed_values == ("low", "high", "medium")

    def test_enum_needs_values(self) -> None:
        with pytest.raises(InvalidDescriptor):
            SchemaField("priority", FieldKind.ENUM)

    def test_values_only_on_enum(self) -> None:
        with pytest.raises(InvalidDescriptor):
            SchemaField("title", FieldKind.TEXT, allowed_values=("a",))

    def test_empty_name(self) -> None:
        with pytest.raises(InvalidDescriptor):
            text("")

    def test_kind_must_be_field_kind(self) -> None:
        with pytest.raises(InvalidDescriptor):
            SchemaField("title", "text")

    @pytest.mark.parametrize(
        ("field", "expected"),
        [
            (text("title", "Task title"), {"type": "string", "description": "Task title"}),
            (number("amount"), {"type": "number"}),
            (boolean("urgent"), {"type": "boolean"}),
            (
                enum("priority", ("low", "medium", "high")),
                {"type": "string", "enum": ["low", "medium", "high"]},
            ),
        ],
    )
    def test_to_json_schema(self, field: SchemaField, expected: dict) -> None:
        assert field.to_json_schema() == expected


class TestCapabilityDescriptor:
    def test_lists_become_tuples(self) -> None:
        descriptor = CapabilityDescriptor(
            identifier="add_task",
            description="Create a task",
            fields=[text("title")],
            required=["title"],
        )

        assert descriptor.fields == (text("title"),)
        assert descriptor.required == ("title",)

    def test_get_field(self) -> None:
        descriptor = CapabilityDescriptor("add_task", "d", fields=(text("title"), text("dueDate")))

        assert descriptor.get_field("dueDate") == text("dueDate")
        assert descriptor.get_field("missing") is None
        assert descriptor.field_names == ("title", "dueDate")

    def test_actionable_with_required_field_present(self) -> None:
        descriptor = CapabilityDescriptor(
            "add_task", "d", fields=(text("title"),), required=("title",)
        )

        assert descriptor.is_actionable({"title": "X"})
        assert not descriptor.is_actionable({})

    def test_no_required_fields_is_never_actionable(self) -> None:
        descriptor = CapabilityDescriptor("list_tasks", "d", fields=(enum("filter", ["all"]),))

        assert not descriptor.is_actionable({"filter": "all"})
