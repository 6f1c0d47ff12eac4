"""Tests for the DispatchController state machine.

Covers:
- idle/summary/full transitions and the presentation commands
- Countdown gating, cancellation and auto-promotion
- Supersession of activations and of stale responses
- Failure handling
"""

import asyncio

import pytest

from splitui.capabilities.registry import CapabilityRegistry
from splitui.dispatch.controller import DispatchController
from splitui.dispatch.normalizer import normalize
from splitui.dispatch.types import ActivationRecord, DispatchSnapshot, DisplayMode
from splitui.foundation.config import DispatchConfig
from splitui.foundation.errors import ErrorCode, TransportFailure, UnknownCapability
from splitui.models.mock import declined, invocation


def _add_task(**data) -> ActivationRecord:
    return ActivationRecord("add_task", {"title": "buy milk", **data}, certainty=1.0)


def _in_summary(controller: DispatchController) -> ActivationRecord:
    record = _add_task()
    controller.apply(record, controller.begin_request())
    return record


class TestTransitions:
    def test_starts_idle(self, controller: DispatchController) -> None:
        snapshot = controller.snapshot()

        assert snapshot == DispatchSnapshot(DisplayMode.IDLE, None, None)

    def test_selection_then_ticks_promotes(
        self, controller: DispatchController, registry: CapabilityRegistry
    ) -> None:
        record = normalize(
            invocation("add_task", {"title": "buy milk", "priority": "high"}), registry
        )

        controller.apply(record, controller.begin_request())

        assert controller.display_mode is DisplayMode.SUMMARY
        assert controller.countdown_remaining == 3
        assert [controller.tick() for _ in range(3)] == [False, False, True]
        assert controller.display_mode is DisplayMode.FULL
        assert dict(controller.activation.extracted_data) == {
            "title": "buy milk",
            "priority": "high",
        }
        assert controller.countdown_remaining is None

    def test_declined_response_keeps_idle(
        self, controller: DispatchController, registry: CapabilityRegistry
    ) -> None:
        controller.apply(normalize(declined(), registry), controller.begin_request())

        assert controller.display_mode is DisplayMode.IDLE
        assert controller.activation is None

    def test_unknown_capability_falls_back_to_idle(
        self, controller: DispatchController, registry: CapabilityRegistry
    ) -> None:
        _in_summary(controller)
        request_id = controller.begin_request()

        with pytest.raises(UnknownCapability) as exc_info:
            normalize(invocation("delete_everything"), registry)
        controller.fail(exc_info.value, request_id)

        assert controller.display_mode is DisplayMode.IDLE
        assert controller.activation is None
        assert not controller.has_pending_countdown

    def test_declined_in_summary_returns_to_idle(self, controller: DispatchController) -> None:
        _in_summary(controller)

        controller.apply(ActivationRecord.no_selection(), controller.begin_request())

        assert controller.display_mode is DisplayMode.IDLE
        assert not controller.has_pending_countdown

    def test_declined_in_full_keeps_full(self, controller: DispatchController) -> None:
        record = _in_summary(controller)
        controller.promote_now()

        controller.apply(ActivationRecord.no_selection(), controller.begin_request())

        assert controller.display_mode is DisplayMode.FULL
        assert controller.activation is record

    def test_new_selection_in_full_returns_to_summary(self, controller: DispatchController) -> None:
        _in_summary(controller)
        controller.promote_now()
        listing = ActivationRecord("list_tasks", {}, certainty=1.0)

        controller.apply(listing, controller.begin_request())

        assert controller.display_mode is DisplayMode.SUMMARY
        assert controller.activation is listing


class TestAutoPromotionGate:
    def test_required_field_present_and_certain(self, controller: DispatchController) -> None:
        controller.apply(ActivationRecord("add_task", {"title": "X"}, certainty=0.8))

        assert controller.has_pending_countdown

    def test_required_field_absent_never_counts_down(self, controller: DispatchController) -> None:
        controller.apply(ActivationRecord("add_task", {}, certainty=1.0))

        assert controller.display_mode is DisplayMode.SUMMARY
        assert not controller.has_pending_countdown
        assert controller.tick() is False
        assert controller.display_mode is DisplayMode.SUMMARY

    def test_below_threshold(self, controller: DispatchController) -> None:
        controller.apply(ActivationRecord("add_task", {"title": "X"}, certainty=0.79))

        assert not controller.has_pending_countdown

    def test_capability_without_required_fields(self, controller: DispatchController) -> None:
        controller.apply(ActivationRecord("list_tasks", {"filter": "all"}, certainty=1.0))

        assert controller.display_mode is DisplayMode.SUMMARY
        assert not controller.has_pending_countdown

    def test_threshold_from_config(self, registry: CapabilityRegistry) -> None:
        controller = DispatchController.from_config(
            registry,
            DispatchConfig(promotion_threshold=0.5, countdown_ticks=1),
            auto_tick=False,
        )
        controller.apply(ActivationRecord("add_task", {"title": "X"}, certainty=0.6))

        assert controller.countdown_remaining == 1
        assert controller.tick() is True


class TestCommands:
    def test_promote_now_stops_countdown(self, controller: DispatchController) -> None:
        _in_summary(controller)
        controller.tick()
        assert controller.countdown_remaining == 2

        assert controller.promote_now() is True
        assert controller.display_mode is DisplayMode.FULL
        assert not controller.has_pending_countdown
        assert controller.tick() is False
        assert controller.display_mode is DisplayMode.FULL

    def test_cancel_countdown_stays_in_summary(self, controller: DispatchController) -> None:
        _in_summary(controller)

        assert controller.cancel_countdown() is True
        for _ in range(10):
            controller.tick()

        assert controller.display_mode is DisplayMode.SUMMARY
        assert controller.countdown_remaining is None
        assert controller.promote_now() is True

    def test_cancel_without_countdown(self, controller: DispatchController) -> None:
        assert controller.cancel_countdown() is False
        controller.apply(ActivationRecord("list_tasks", {}, certainty=1.0))
        assert controller.cancel_countdown() is False

    def test_complete_only_from_full(self, controller: DispatchController) -> None:
        assert controller.complete_activation() is False
        _in_summary(controller)
        assert controller.complete_activation() is False

        controller.promote_now()

        assert controller.complete_activation() is True
        assert controller.display_mode is DisplayMode.IDLE
        assert controller.activation is None

    @pytest.mark.parametrize("promote", [False, True])
    def test_dismiss(self, controller: DispatchController, promote: bool) -> None:
        _in_summary(controller)
        if promote:
            controller.promote_now()

        assert controller.dismiss_activation() is True
        assert controller.display_mode is DisplayMode.IDLE
        assert not controller.has_pending_countdown

    def test_dismiss_when_idle(self, controller: DispatchController) -> None:
        assert controller.dismiss_activation() is False

    def test_promote_now_outside_summary(self, controller: DispatchController) -> None:
        assert controller.promote_now() is False


class TestSupersession:
    def test_new_selection_replaces_record_and_countdown(
        self, controller: DispatchController
    ) -> None:
        _in_summary(controller)
        controller.tick()
        listing = ActivationRecord("list_tasks", {}, certainty=1.0)

        controller.apply(listing, controller.begin_request())

        assert controller.activation is listing
        assert dict(controller.activation.extracted_data) == {}
        assert not controller.has_pending_countdown
        for _ in range(5):
            controller.tick()
        assert controller.display_mode is DisplayMode.SUMMARY

    def test_new_countdown_starts_from_scratch(self, controller: DispatchController) -> None:
        _in_summary(controller)
        controller.tick()
        controller.tick()

        controller.apply(_add_task(title="walk dog"), controller.begin_request())

        assert controller.countdown_remaining == 3

    def test_new_request_stops_pending_countdown(self, controller: DispatchController) -> None:
        record = _in_summary(controller)
        controller.tick()

        controller.begin_request()
        for _ in range(5):
            controller.tick()

        assert controller.display_mode is DisplayMode.SUMMARY
        assert controller.activation is record
        assert controller.countdown_remaining is None

    def test_stale_response_is_dropped(self, controller: DispatchController) -> None:
        first = controller.begin_request()
        second = controller.begin_request()

        assert controller.apply(_add_task(), first) is False
        assert controller.display_mode is DisplayMode.IDLE

        listing = ActivationRecord("list_tasks", {}, certainty=1.0)
        assert controller.apply(listing, second) is True
        assert controller.apply(_add_task(), first) is False
        assert controller.activation is listing

    def test_stale_failure_is_dropped(self, controller: DispatchController) -> None:
        record = _in_summary(controller)
        stale = controller.latest_request
        controller.begin_request()

        assert controller.fail(UnknownCapability(context={"identifier": "x"}), stale) is False
        assert controller.activation is record

    def test_apply_without_request_id_is_always_current(
        self, controller: DispatchController
    ) -> None:
        controller.begin_request()

        assert controller.apply(_add_task()) is True


class TestFailures:
    def test_transport_failure_keeps_state(self, controller: DispatchController) -> None:
        record = _in_summary(controller)
        controller.tick()

        controller.fail(
            TransportFailure(code=ErrorCode.MODEL_TIMEOUT), controller.begin_request()
        )

        assert controller.display_mode is DisplayMode.SUMMARY
        assert controller.activation is record
        assert not controller.has_pending_countdown

    def test_unregistered_record_is_rejected(self, controller: DispatchController) -> None:
        _in_summary(controller)

        assert controller.apply(ActivationRecord("ghost", {}, certainty=1.0)) is False
        assert controller.display_mode is DisplayMode.IDLE


class TestListeners:
    def test_on_change_receives_snapshots(self, registry: CapabilityRegistry) -> None:
        seen: list[DispatchSnapshot] = []
        controller = DispatchController(registry, auto_tick=False, on_change=seen.append)

        _in_summary(controller)
        controller.tick()
        controller.promote_now()
        controller.complete_activation()

        assert [s.display_mode for s in seen] == [
            DisplayMode.SUMMARY,
            DisplayMode.SUMMARY,
            DisplayMode.FULL,
            DisplayMode.IDLE,
        ]
        assert [s.countdown_remaining for s in seen[:2]] == [3, 2]

    def test_subscribe(self, controller: DispatchController) -> None:
        seen: list[DispatchSnapshot] = []
        controller.subscribe(seen.append)

        _in_summary(controller)

        assert seen[-1].capability_id == "add_task"

    def test_rejects_zero_ticks(self, registry: CapabilityRegistry) -> None:
        with pytest.raises(ValueError):
            DispatchController(registry, countdown_ticks=0)


class TestAutoTick:
    """Countdown driven by the controller's own asyncio task."""

    @pytest.mark.asyncio
    async def test_expires_to_full(self, registry: CapabilityRegistry) -> None:
        controller = DispatchController(registry, tick_seconds=0.01)

        controller.apply(_add_task())
        await asyncio.sleep(0.2)

        assert controller.display_mode is DisplayMode.FULL
        await controller.aclose()

    @pytest.mark.asyncio
    async def test_cancelled_countdown_never_promotes(self, registry: CapabilityRegistry) -> None:
        controller = DispatchController(registry, tick_seconds=0.05)
        controller.apply(_add_task())
        await asyncio.sleep(0.06)

        controller.cancel_countdown()
        await asyncio.sleep(0.25)

        assert controller.display_mode is DisplayMode.SUMMARY
        await controller.aclose()

    @pytest.mark.asyncio
    async def test_one_countdown_at_a_time(self, registry: CapabilityRegistry) -> None:
        promoted: list[str] = []

        def on_change(snapshot: DispatchSnapshot) -> None:
            if snapshot.display_mode is DisplayMode.FULL:
                promoted.append(snapshot.capability_id)

        controller = DispatchController(registry, tick_seconds=0.05, on_change=on_change)
        controller.apply(_add_task())
        await asyncio.sleep(0.06)
        controller.apply(
            ActivationRecord("complete_task", {"taskIdentifier": "milk"}, certainty=1.0)
        )
        await asyncio.sleep(0.4)

        assert promoted == ["complete_task"]
        assert controller.activation.capability_id == "complete_task"
        await controller.aclose()

    @pytest.mark.asyncio
    async def test_aclose_stops_ticker(self, registry: CapabilityRegistry) -> None:
        controller = DispatchController(registry, tick_seconds=0.01)
        controller.apply(_add_task())

        await controller.aclose()
        await asyncio.sleep(0.1)

        assert controller.display_mode is DisplayMode.SUMMARY
        assert not controller.has_pending_countdown

    def test_no_running_loop_falls_back_to_manual(self, registry: CapabilityRegistry) -> None:
        controller = DispatchController(registry, tick_seconds=0.01)

        controller.apply(_add_task())

        assert controller.has_pending_countdown
        assert [controller.tick() for _ in range(3)][-1] is True
