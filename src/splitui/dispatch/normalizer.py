"""Invocation normalizer: raw model response -> ActivationRecord.

`normalize` is total. Every response maps to exactly one fully-formed
record, or exactly one `UnknownCapability` error. It never touches
dispatch state.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from typing import Any

from splitui.capabilities.registry import CapabilityRegistry
from splitui.capabilities.types import FieldKind, SchemaField
from splitui.dispatch.types import ActivationRecord, CoercionFailure
from splitui.foundation.errors import UnknownCapability
from splitui.models.protocol import GenerateResult, ToolCall

logger = logging.getLogger(__name__)

_TRUE_WORDS = frozenset({"true", "yes", "y", "1", "on"})
_FALSE_WORDS = frozenset({"false", "no", "n", "0", "off"})


class CoercionError(ValueError):
    """Raised by `coerce_value` when a value does not fit its field kind."""


def invocation_certainty(call: ToolCall) -> float:
    """Certainty assigned to a tool invocation.

    The model is not asked for a graded confidence: choosing a tool out of
    the compiled list is itself the signal, so every invocation scores 1.0.
    """
    return 1.0


def _coerce_number(value: Any) -> int | float:
    if isinstance(value, bool):
        raise CoercionError("boolean is not a number")
    if isinstance(value, (int, float)):
        number = value
    elif isinstance(value, str):
        cleaned = value.strip().replace(",", "").lstrip("$").strip()
        if not cleaned:
            raise CoercionError("empty string")
        try:
            number = int(cleaned)
        except ValueError:
            try:
                number = float(cleaned)
            except ValueError:
                raise CoercionError(f"{value!r} is not numeric") from None
    else:
        raise CoercionError(f"{type(value).__name__} is not a number")

    if isinstance(number, float) and not math.isfinite(number):
        raise CoercionError(f"{value!r} is not finite")
    return number


def _coerce_boolean(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        word = value.strip().lower()
        if word in _TRUE_WORDS:
            return True
        if word in _FALSE_WORDS:
            return False
    raise CoercionError(f"{value!r} is not a boolean")


def _coerce_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    raise CoercionError(f"{type(value).__name__} is not text")


def _coerce_enum(value: Any, allowed: tuple[str, ...]) -> str:
    if not isinstance(value, str):
        raise CoercionError(f"{type(value).__name__} is not text")
    wanted = value.strip().lower()
    for candidate in allowed:
        if candidate.lower() == wanted:
            return candidate
    raise CoercionError(f"{value!r} not in {', '.join(allowed)}")


def coerce_value(field: SchemaField, value: Any) -> Any:
    """Coerce a raw extracted value to the field's declared kind.

    Raises:
        CoercionError: If the value cannot represent that kind.
    """
    match field.kind:
        case FieldKind.TEXT:
            return _coerce_text(value)
        case FieldKind.NUMBER:
            return _coerce_number(value)
        case FieldKind.BOOLEAN:
            return _coerce_boolean(value)
        case FieldKind.ENUM:
            return _coerce_enum(value, field.allowed_values)
        case _:
            raise CoercionError(f"unsupported kind {field.kind!r}")


def normalize(
    response: GenerateResult,
    registry: CapabilityRegistry,
    *,
    certainty: Callable[[ToolCall], float] = invocation_certainty,
) -> ActivationRecord:
    """Turn a model response into an ActivationRecord.

    Args:
        response: The intent-detection response from the model.
        registry: Registry the compiled tool list came from.
        certainty: Scores an invocation; defaults to `invocation_certainty`.

    Returns:
        A no-selection record when the response carries no tool call,
        otherwise a record whose data holds only declared fields that
        coerced cleanly.

    Raises:
        UnknownCapability: The invoked tool is not registered.
    """
    if not response.has_tool_calls:
        return ActivationRecord.no_selection()

    call = response.tool_calls[0]
    if len(response.tool_calls) > 1:
        logger.warning(
            "Model returned %d tool calls, using the first (%s)",
            len(response.tool_calls),
            call.name,
        )

    descriptor = registry.lookup(call.name)
    if descriptor is None:
        logger.warning("Model invoked unregistered capability %r", call.name)
        raise UnknownCapability(context={"identifier": call.name})

    payload = call.arguments if isinstance(call.arguments, dict) else {}

    extracted: dict[str, Any] = {}
    failures: list[CoercionFailure] = []
    for schema_field in descriptor.fields:
        raw = payload.get(schema_field.name)
        if raw is None:
            continue
        try:
            extracted[schema_field.name] = coerce_value(schema_field, raw)
        except CoercionError as e:
            failures.append(
                CoercionFailure(
                    field_name=schema_field.name,
                    raw_value=raw,
                    kind=schema_field.kind,
                    reason=str(e),
                )
            )
            logger.info(
                "Dropped field %s.%s: %s", descriptor.identifier, schema_field.name, e
            )

    extraneous = set(payload) - set(descriptor.field_names)
    if extraneous:
        logger.debug(
            "Ignoring undeclared %s arguments: %s",
            descriptor.identifier,
            ", ".join(sorted(extraneous)),
        )

    return ActivationRecord(
        capability_id=descriptor.identifier,
        extracted_data=extracted,
        certainty=certainty(call),
        coercion_failures=tuple(failures),
    )
