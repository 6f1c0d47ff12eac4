"""Dispatch value types.

All immutable. A new `ActivationRecord` supersedes the previous one; nothing
here is ever updated in place.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any

from splitui.capabilities.types import FieldKind


class DisplayMode(Enum):
    """What the presentation surface should show."""

    IDLE = "idle"
    SUMMARY = "summary"
    FULL = "full"


@dataclass(frozen=True, slots=True)
class CoercionFailure:
    """A field value that could not be coerced to its declared kind.

    Non-fatal: the field is left out of the activation's extracted data.
    """

    field_name: str
    raw_value: Any
    kind: FieldKind
    reason: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "field": self.field_name,
            "raw_value": self.raw_value,
            "kind": self.kind.value,
            "reason": self.reason,
        }


@dataclass(frozen=True, slots=True)
class ActivationRecord:
    """Canonical outcome of one intent-resolution cycle."""

    capability_id: str | None
    """Registered capability identifier, or None when nothing was selected."""

    extracted_data: MappingProxyType[str, Any] = field(
        default_factory=lambda: MappingProxyType({})
    )
    """Declared field name -> coerced value. Absent fields are not yet known."""

    certainty: float = 0.0
    """Selection certainty in 0..1. Gates auto-promotion."""

    created_at: float = field(default_factory=time.monotonic)
    """Monotonic creation timestamp."""

    coercion_failures: tuple[CoercionFailure, ...] = ()
    """Fields dropped because their values could not be coerced."""

    def __post_init__(self) -> None:
        if not isinstance(self.extracted_data, MappingProxyType):
            object.__setattr__(
                self, "extracted_data", MappingProxyType(dict(self.extracted_data))
            )

    @property
    def is_selection(self) -> bool:
        return self.capability_id is not None

    @classmethod
    def no_selection(cls) -> ActivationRecord:
        """The record for a response in which no capability was invoked."""
        return cls(capability_id=None, certainty=0.0)

    def to_dict(self) -> dict[str, Any]:
        return {
            "capability_id": self.capability_id,
            "extracted_data": dict(self.extracted_data),
            "certainty": self.certainty,
            "coercion_failures": [f.to_dict() for f in self.coercion_failures],
        }


@dataclass(frozen=True, slots=True)
class DispatchSnapshot:
    """Read-only view of the dispatch state handed to the presentation surface."""

    display_mode: DisplayMode
    activation: ActivationRecord | None
    countdown_remaining: int | None = None
    """Ticks left before auto-promotion. Only set in SUMMARY with a live countdown."""

    @property
    def capability_id(self) -> str | None:
        return self.activation.capability_id if self.activation else None

    def to_dict(self) -> dict[str, Any]:
        return {
            "display_mode": self.display_mode.value,
            "activation": self.activation.to_dict() if self.activation else None,
            "countdown_remaining": self.countdown_remaining,
        }
