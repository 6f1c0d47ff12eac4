"""Dispatch Controller - the per-session state machine.

    idle ──selection──▶ summary ──countdown expires / promote_now──▶ full
      ▲                   │  ▲                                       │
      └──none / dismiss───┘  └──────────── new selection ────────────┤
      └──────────────────── complete / dismiss ──────────────────────┘

Owns exactly one activation record and at most one countdown. Responses are
applied only if they answer the most recently issued request.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from splitui.dispatch.countdown import Countdown
from splitui.dispatch.types import ActivationRecord, DispatchSnapshot, DisplayMode
from splitui.foundation.errors import SplitUIError, UnknownCapability

if TYPE_CHECKING:
    from splitui.capabilities.registry import CapabilityRegistry
    from splitui.foundation.config import DispatchConfig

logger = logging.getLogger(__name__)

StateListener = Callable[[DispatchSnapshot], None]


class DispatchController:
    """Tracks the live activation and drives auto-promotion.

    Not thread-safe: one controller belongs to one session and is driven
    from a single event loop.

    Example:
        controller = DispatchController(registry)
        request_id = controller.begin_request()
        controller.apply(normalize(response, registry), request_id)
        controller.snapshot().display_mode  # DisplayMode.SUMMARY
    """

    def __init__(
        self,
        registry: CapabilityRegistry,
        *,
        promotion_threshold: float = 0.8,
        countdown_ticks: int = 3,
        tick_seconds: float = 1.0,
        auto_tick: bool = True,
        on_change: StateListener | None = None,
    ) -> None:
        """Initialize an idle controller.

        Args:
            registry: Registry activations are resolved against.
            promotion_threshold: Minimum certainty that starts a countdown.
            countdown_ticks: Ticks from summary to automatic promotion.
            tick_seconds: Wall-clock length of one tick when auto-ticking.
            auto_tick: Drive the countdown from an asyncio task. When False
                (or when no event loop is running) call `tick()` manually.
            on_change: Called with a fresh snapshot after every state change.
        """
        if countdown_ticks < 1:
            raise ValueError(f"countdown_ticks must be positive, got {countdown_ticks}")
        self._registry = registry
        self.promotion_threshold = promotion_threshold
        self.countdown_ticks = countdown_ticks
        self.tick_seconds = tick_seconds
        self.auto_tick = auto_tick
        self._listeners: list[StateListener] = [on_change] if on_change else []

        self._mode = DisplayMode.IDLE
        self._activation: ActivationRecord | None = None
        self._countdown: Countdown | None = None
        self._ticker: asyncio.Task[None] | None = None
        self._latest_request = 0

    @classmethod
    def from_config(
        cls,
        registry: CapabilityRegistry,
        config: DispatchConfig,
        **kwargs,
    ) -> DispatchController:
        return cls(
            registry,
            promotion_threshold=config.promotion_threshold,
            countdown_ticks=config.countdown_ticks,
            tick_seconds=config.tick_seconds,
            **kwargs,
        )

    # =========================================================================
    # Read-only state
    # =========================================================================

    @property
    def display_mode(self) -> DisplayMode:
        return self._mode

    @property
    def activation(self) -> ActivationRecord | None:
        return self._activation

    @property
    def countdown_remaining(self) -> int | None:
        if self._mode is DisplayMode.SUMMARY and self._countdown and self._countdown.running:
            return self._countdown.remaining
        return None

    @property
    def has_pending_countdown(self) -> bool:
        return self._countdown is not None and self._countdown.running

    def snapshot(self) -> DispatchSnapshot:
        return DispatchSnapshot(
            display_mode=self._mode,
            activation=self._activation,
            countdown_remaining=self.countdown_remaining,
        )

    def subscribe(self, listener: StateListener) -> None:
        self._listeners.append(listener)

    # =========================================================================
    # Request sequencing
    # =========================================================================

    def begin_request(self) -> int:
        """Issue the sequence number for a new user turn.

        Every earlier request is superseded from this point on. A pending
        countdown stops here; the record and the display mode stay until the
        answer arrives.
        """
        self._latest_request += 1
        if self.has_pending_countdown:
            logger.debug("New request %s stops the pending countdown", self._latest_request)
            self._stop_countdown()
            self._notify()
        return self._latest_request

    @property
    def latest_request(self) -> int:
        return self._latest_request

    def is_current(self, request_id: int | None) -> bool:
        return request_id is None or request_id == self._latest_request

    def apply(self, record: ActivationRecord, request_id: int | None = None) -> bool:
        """Apply a normalized record.

        The record replaces the current activation outright. Any countdown
        belonging to the previous activation is cancelled first.

        Returns:
            False if the record answers a superseded request and was dropped.
        """
        if not self.is_current(request_id):
            logger.debug(
                "Dropping response for request %s (latest is %s)",
                request_id,
                self._latest_request,
            )
            return False

        if not record.is_selection:
            if self._mode is DisplayMode.SUMMARY:
                self._clear()
                self._notify()
            # idle stays idle; a full view is not torn down by small talk
            return True

        descriptor = self._registry.lookup(record.capability_id)
        if descriptor is None:
            # Records come from normalize(), which already checked this
            self.fail(UnknownCapability(context={"identifier": record.capability_id}))
            return False

        self._stop_countdown()
        self._activation = record
        self._mode = DisplayMode.SUMMARY

        if (
            record.certainty >= self.promotion_threshold
            and descriptor.is_actionable(record.extracted_data)
        ):
            self._start_countdown()
        else:
            logger.debug(
                "No auto-promotion for %s (certainty=%.2f, actionable=%s)",
                record.capability_id,
                record.certainty,
                descriptor.is_actionable(record.extracted_data),
            )

        self._notify()
        return True

    def fail(self, error: SplitUIError, request_id: int | None = None) -> bool:
        """Record a failed dispatch cycle.

        UnknownCapability drops back to idle. Any other error (transport
        failures) leaves the state exactly as it was before the request.

        Returns:
            False if the failure belongs to a superseded request.
        """
        if not self.is_current(request_id):
            return False
        if isinstance(error, UnknownCapability):
            logger.warning("Dispatch cycle failed, returning to idle: %s", error)
            self._clear()
            self._notify()
        return True

    # =========================================================================
    # Presentation commands
    # =========================================================================

    def promote_now(self) -> bool:
        """summary -> full immediately, discarding any countdown."""
        if self._mode is not DisplayMode.SUMMARY:
            return False
        self._stop_countdown()
        self._mode = DisplayMode.FULL
        self._notify()
        return True

    def cancel_countdown(self) -> bool:
        """Stop auto-promotion for the current activation; stay in summary."""
        if self._mode is not DisplayMode.SUMMARY or not self.has_pending_countdown:
            return False
        self._stop_countdown()
        self._notify()
        return True

    def complete_activation(self) -> bool:
        """full -> idle after the capability's action succeeded."""
        if self._mode is not DisplayMode.FULL:
            return False
        self._clear()
        self._notify()
        return True

    def dismiss_activation(self) -> bool:
        """summary or full -> idle without acting."""
        if self._mode is DisplayMode.IDLE:
            return False
        self._clear()
        self._notify()
        return True

    # =========================================================================
    # Countdown
    # =========================================================================

    def tick(self) -> bool:
        """Advance the live countdown by one tick.

        Returns:
            True if this tick promoted the activation to full.
        """
        if self._countdown is None:
            return False
        return self._advance(self._countdown)

    def _advance(self, countdown: Countdown) -> bool:
        if countdown is not self._countdown or self._mode is not DisplayMode.SUMMARY:
            return False
        expired = countdown.tick()
        if expired:
            self._countdown = None
            self._mode = DisplayMode.FULL
            logger.debug("Auto-promoted %s", self._activation and self._activation.capability_id)
        self._notify()
        return expired

    def _start_countdown(self) -> None:
        countdown = Countdown(total=self.countdown_ticks)
        self._countdown = countdown
        if not self.auto_tick:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        self._ticker = loop.create_task(self._run_ticker(countdown))

    async def _run_ticker(self, countdown: Countdown) -> None:
        while countdown.running and countdown is self._countdown:
            await asyncio.sleep(self.tick_seconds)
            # A superseded or cancelled countdown must not advance
            if countdown is not self._countdown:
                return
            self._advance(countdown)

    def _stop_countdown(self) -> None:
        if self._countdown is not None:
            self._countdown.cancel()
            self._countdown = None
        if self._ticker is not None:
            if not self._ticker.done():
                self._ticker.cancel()
            self._ticker = None

    def _clear(self) -> None:
        self._stop_countdown()
        self._activation = None
        self._mode = DisplayMode.IDLE

    def _notify(self) -> None:
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in self._listeners:
            listener(snapshot)

    async def aclose(self) -> None:
        """Cancel the ticker task, if any, and wait for it to finish."""
        ticker = self._ticker
        self._stop_countdown()
        if ticker is not None:
            try:
                await ticker
            except asyncio.CancelledError:
                pass
