"""Tests for the invocation normalizer and field coercion."""

import math

import pytest

from splitui.capabilities.registry import CapabilityRegistry
from splitui.capabilities.types import FieldKind, boolean, enum, number, text
from splitui.dispatch.normalizer import CoercionError, coerce_value, normalize
from splitui.dispatch.types import ActivationRecord
from splitui.foundation.errors import UnknownCapability
from splitui.models.mock import declined, invocation
from splitui.models.protocol import GenerateResult, ToolCall


class TestCoerceNumber:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            (500, 500),
            (12.5, 12.5),
            ("500", 500),
            ("1,500", 1500),
            ("$250", 250),
            (" 3.75 ", 3.75),
        ],
    )
    def test_accepts(self, raw, expected) -> None:
        assert coerce_value(number("amount"), raw) == expected

    @pytest.mark.parametrize("raw", [True, "five hundred", "", "nan", "inf", [1], {"a": 1}])
    def test_rejects(self, raw) -> None:
        with pytest.raises(CoercionError):
            coerce_value(number("amount"), raw)

    def test_rejects_non_finite_float(self) -> None:
        with pytest.raises(CoercionError):
            coerce_value(number("amount"), math.inf)


class TestCoerceBoolean:
    @pytest.mark.parametrize("raw", [True, "yes", "TRUE", "on", 1])
    def test_true(self, raw) -> None:
        assert coerce_value(boolean("urgent"), raw) is True

    @pytest.mark.parametrize("raw", [False, "no", "Off", "0", 0])
    def test_false(self, raw) -> None:
        assert coerce_value(boolean("urgent"), raw) is False

    @pytest.mark.parametrize("raw", ["maybe", 2, None])
    def test_rejects(self, raw) -> None:
        with pytest.raises(CoercionError):
            coerce_value(boolean("urgent"), raw)


class TestCoerceText:
    def test_strings_pass_through(self) -> None:
        assert coerce_value(text("title"), "buy milk") == "buy milk"

    def test_numbers_become_strings(self) -> None:
        assert coerce_value(text("title"), 42) == "42"

    @pytest.mark.parametrize("raw", [True, ["a"], {"a": 1}])
    def test_rejects(self, raw) -> None:
        with pytest.raises(CoercionError):
            coerce_value(text("title"), raw)


class TestCoerceEnum:
    def test_canonical_value_is_returned(self) -> None:
        field = enum("priority", ("low", "medium", "high"))

        assert coerce_value(field, "HIGH") == "high"
        assert coerce_value(field, " medium ") == "medium"

    @pytest.mark.parametrize("raw", ["urgent", 3, None])
    def test_rejects(self, raw) -> None:
        with pytest.raises(CoercionError):
            coerce_value(enum("priority", ("low", "high")), raw)


class TestNormalize:
    def test_declined_response(self, registry: CapabilityRegistry) -> None:
        record = normalize(declined("Just chatting."), registry)

        assert record.capability_id is None
        assert record.certainty == 0.0
        assert dict(record.extracted_data) == {}
        assert not record.is_selection

    def test_invocation(self, registry: CapabilityRegistry) -> None:
        record = normalize(
            invocation("add_task", {"title": "buy milk", "priority": "high"}), registry
        )

        assert record.capability_id == "add_task"
        assert record.certainty == 1.0
        assert dict(record.extracted_data) == {"title": "buy milk", "priority": "high"}
        assert "dueDate" not in record.extracted_data
        assert record.coercion_failures == ()

    def test_unknown_capability(self, registry: CapabilityRegistry) -> None:
        with pytest.raises(UnknownCapability) as exc_info:
            normalize(invocation("delete_everything"), registry)

        assert exc_info.value.context == {"identifier": "delete_everything"}

    def test_null_values_are_absent(self, registry: CapabilityRegistry) -> None:
        record = normalize(invocation("add_task", {"title": "x", "dueDate": None}), registry)

        assert "dueDate" not in record.extracted_data

    def test_coercion_failure_is_non_fatal(self, registry: CapabilityRegistry) -> None:
        record = normalize(
            invocation("issue_bonus", {"employeeName": "Sarah", "amount": "lots"}), registry
        )

        assert record.capability_id == "issue_bonus"
        assert dict(record.extracted_data) == {"employeeName": "Sarah"}
        (failure,) = record.coercion_failures
        assert failure.field_name == "amount"
        assert failure.raw_value == "lots"
        assert failure.kind is FieldKind.NUMBER

    def test_values_are_coerced(self, registry: CapabilityRegistry) -> None:
        record = normalize(
            invocation("issue_bonus", {"employeeName": "Sarah", "amount": "$1,500"}), registry
        )

        assert record.extracted_data["amount"] == 1500

    def test_undeclared_arguments_are_dropped(self, registry: CapabilityRegistry) -> None:
        record = normalize(invocation("add_task", {"title": "x", "colour": "red"}), registry)

        assert dict(record.extracted_data) == {"title": "x"}

    def test_first_call_wins(self, registry: CapabilityRegistry) -> None:
        response = GenerateResult(
            content=None,
            model="m",
            tool_calls=(
                ToolCall(id="1", name="list_tasks", arguments={}),
                ToolCall(id="2", name="add_task", arguments={"title": "x"}),
            ),
        )

        assert normalize(response, registry).capability_id == "list_tasks"

    def test_custom_certainty(self, registry: CapabilityRegistry) -> None:
        record = normalize(
            invocation("add_task", {"title": "x"}), registry, certainty=lambda call: 0.4
        )

        assert record.certainty == 0.4

    def test_record_data_is_read_only(self, registry: CapabilityRegistry) -> None:
        record = normalize(invocation("add_task", {"title": "x"}), registry)

        with pytest.raises(TypeError):
            record.extracted_data["title"] = "y"

    @pytest.mark.parametrize(
        "response",
        [
            declined(),
            declined("hello"),
            invocation("add_task"),
            invocation("add_task", {"title": 3, "priority": "nope"}),
            invocation("list_tasks", {"filter": "pending"}),
            invocation("not_registered", {"title": "x"}),
        ],
    )
    def test_exactly_one_outcome(self, registry: CapabilityRegistry, response) -> None:
        try:
            outcome = normalize(response, registry)
        except UnknownCapability:
            assert response.tool_calls[0].name not in registry
        else:
            assert isinstance(outcome, ActivationRecord)
