"""Dispatch core: normalization of model responses and the display state machine."""

from splitui.dispatch.controller import DispatchController
from splitui.dispatch.countdown import Countdown, CountdownState
from splitui.dispatch.normalizer import CoercionError, coerce_value, invocation_certainty, normalize
from splitui.dispatch.types import ActivationRecord, CoercionFailure, DispatchSnapshot, DisplayMode

__all__ = [
    "ActivationRecord",
    "CoercionError",
    "CoercionFailure",
    "Countdown",
    "CountdownState",
    "DispatchController",
    "DispatchSnapshot",
    "DisplayMode",
    "coerce_value",
    "invocation_certainty",
    "normalize",
]
