"""Chat session: one user, one transcript, one dispatch controller.

Each submitted message becomes a turn with a fresh request number. The
previous turn, if still waiting on the model, is cancelled; if its response
arrives anyway it is dropped, because only the latest request may update
the dispatch state.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Literal
from uuid import uuid4

from splitui.dispatch.controller import DispatchController
from splitui.dispatch.normalizer import coerce_value, normalize
from splitui.dispatch.types import ActivationRecord, DispatchSnapshot, DisplayMode
from splitui.foundation.errors import SplitUIError, UnknownCapability
from splitui.models.protocol import GenerateResult, Message
from splitui.session.transport import IntentTransport
from splitui.store.native import memory_stores
from splitui.surface.panel import render_panel, resolve_view
from splitui.surface.views import ActionResult, ChoosableView, ViewContext

if TYPE_CHECKING:
    from rich.console import RenderableType

    from splitui.capabilities.registry import CapabilityRegistry
    from splitui.foundation.config import SplitUIConfig
    from splitui.models.protocol import ModelProtocol
    from splitui.store.base import DomainStores

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ChatMessage:
    """One transcript entry."""

    id: str
    role: Literal["user", "assistant"]
    content: str
    timestamp: float

    def to_message(self) -> Message:
        return Message(role=self.role, content=self.content)


@dataclass(frozen=True, slots=True)
class TurnResult:
    """Outcome of one submitted message."""

    request_id: int
    reply: str | None
    """Assistant text added to the transcript (an error message on failure)."""

    snapshot: DispatchSnapshot
    """Dispatch state right after the turn."""

    error: SplitUIError | None = None
    """The per-turn error, if the turn failed."""

    superseded: bool = False
    """A newer message arrived first; nothing from this turn was applied."""


def _self_cancelling() -> bool:
    current = asyncio.current_task()
    return current is not None and current.cancelling() > 0


class Session:
    """Per-user chat session driving a DispatchController.

    Example:
        session = Session(registry, IntentTransport(model))
        result = await session.submit("add a task to buy milk")
        result.snapshot.display_mode  # DisplayMode.SUMMARY
    """

    def __init__(
        self,
        registry: CapabilityRegistry,
        transport: IntentTransport,
        *,
        controller: DispatchController | None = None,
        stores: DomainStores | None = None,
    ) -> None:
        self.registry = registry
        self.transport = transport
        self.controller = controller or DispatchController(registry)
        self.stores = stores or memory_stores()
        self.tools = registry.compile_tools()

        self._messages: list[ChatMessage] = []
        self._inflight: asyncio.Task[TurnResult] | None = None
        self._form: dict[str, Any] = {}
        self._form_owner: ActivationRecord | None = None

    @classmethod
    def from_config(
        cls,
        config: SplitUIConfig,
        *,
        registry: CapabilityRegistry | None = None,
        model: ModelProtocol | None = None,
        stores: DomainStores | None = None,
        provider: str | None = None,
        model_name: str | None = None,
        auto_tick: bool = True,
    ) -> Session:
        """Wire a session from configuration.

        Raises:
            SplitUIError: CONFIG_* when the model cannot be created.
        """
        from splitui.capabilities.catalog import default_registry
        from splitui.models.factory import create_model
        from splitui.store.native import open_stores

        if registry is None:
            registry = default_registry()
        if model is None:
            model = create_model(config.model, provider=provider, model_name=model_name)
        return cls(
            registry,
            IntentTransport(model, max_tokens=config.model.max_tokens),
            controller=DispatchController.from_config(
                registry, config.dispatch, auto_tick=auto_tick
            ),
            stores=stores or open_stores(config.store.data_dir),
        )

    # =========================================================================
    # Transcript
    # =========================================================================

    @property
    def messages(self) -> tuple[ChatMessage, ...]:
        return tuple(self._messages)

    def _append(self, role: Literal["user", "assistant"], content: str) -> ChatMessage:
        message = ChatMessage(id=str(uuid4()), role=role, content=content, timestamp=time.time())
        self._messages.append(message)
        return message

    def _history(self) -> Sequence[Message]:
        return tuple(m.to_message() for m in self._messages)

    # =========================================================================
    # Turns
    # =========================================================================

    async def submit(self, text: str) -> TurnResult:
        """Process one user message.

        Per-turn errors are returned on the result, never raised: the session
        stays usable after any single failed turn.

        Raises:
            ValueError: If `text` is blank.
        """
        text = text.strip()
        if not text:
            raise ValueError("message must not be blank")

        history = self._history()
        self._append("user", text)
        request_id = self.controller.begin_request()

        previous = self._inflight
        if previous is not None and not previous.done():
            logger.debug("Cancelling superseded turn")
            previous.cancel()

        task = asyncio.create_task(self._run_turn(text, history, request_id))
        self._inflight = task
        try:
            return await task
        except asyncio.CancelledError:
            if task.cancelled() and not _self_cancelling():
                return TurnResult(
                    request_id=request_id,
                    reply=None,
                    snapshot=self.controller.snapshot(),
                    superseded=True,
                )
            raise
        finally:
            if self._inflight is task:
                self._inflight = None

    async def _run_turn(
        self,
        text: str,
        history: Sequence[Message],
        request_id: int,
    ) -> TurnResult:
        detected, replied = await asyncio.gather(
            self.transport.detect(text, history, self.tools),
            self.transport.reply(text, history),
            return_exceptions=True,
        )
        for outcome in (detected, replied):
            if isinstance(outcome, BaseException) and not isinstance(outcome, SplitUIError):
                raise outcome

        if not self.controller.is_current(request_id):
            return TurnResult(request_id, None, self.controller.snapshot(), superseded=True)

        error = self._dispatch(detected, request_id)

        if error is not None:
            reply = error.user_message
        elif isinstance(replied, SplitUIError):
            logger.warning("Reply request failed: %s", replied)
            error = replied
            reply = replied.user_message
        else:
            reply = replied

        self._append("assistant", reply)
        return TurnResult(request_id, reply, self.controller.snapshot(), error=error)

    def _dispatch(
        self,
        detected: GenerateResult | SplitUIError,
        request_id: int,
    ) -> SplitUIError | None:
        if isinstance(detected, SplitUIError):
            # The controller keeps its pre-call state
            logger.warning("Intent detection failed: %s", detected)
            self.controller.fail(detected, request_id)
            return detected

        try:
            record = normalize(detected, self.registry)
        except UnknownCapability as e:
            self.controller.fail(e, request_id)
            return e

        self.controller.apply(record, request_id)
        return None

    # =========================================================================
    # Presentation commands
    # =========================================================================

    def promote_now(self) -> bool:
        return self.controller.promote_now()

    def cancel_countdown(self) -> bool:
        return self.controller.cancel_countdown()

    def dismiss(self) -> bool:
        self._form.clear()
        return self.controller.dismiss_activation()

    def _sync_form(self) -> None:
        # Edits belong to one activation; a new one starts from a clean form
        activation = self.controller.activation
        if activation is not self._form_owner:
            self._form = {}
            self._form_owner = activation

    @property
    def form_values(self) -> dict[str, Any]:
        """Extracted data with the user's edits layered on top."""
        self._sync_form()
        activation = self.controller.activation
        if activation is None:
            return {}
        return {**activation.extracted_data, **self._form}

    def set_field(self, name: str, raw: Any) -> Any:
        """Edit one field of the open activation.

        Returns:
            The coerced value.

        Raises:
            KeyError: No activation is open, or it has no such field.
            CoercionError: The value does not fit the field's kind.
        """
        activation = self.controller.activation
        if activation is None or activation.capability_id is None:
            raise KeyError("no open activation")
        descriptor = self.registry.lookup(activation.capability_id)
        schema_field = descriptor.get_field(name) if descriptor else None
        if schema_field is None:
            raise KeyError(f"{activation.capability_id} has no field '{name}'")

        value = coerce_value(schema_field, raw)
        self._sync_form()
        self._form[name] = value
        return value

    def complete(self) -> ActionResult:
        """Run the open capability's action and return to idle on success."""
        activation = self.controller.activation
        if self.controller.display_mode is not DisplayMode.FULL or activation is None:
            return ActionResult(success=False, message="Nothing is open to complete.")

        view = resolve_view(self.registry, activation.capability_id)
        return self._finish(view.complete(self.form_values, self.view_context))

    def choose(self, choice: int) -> ActionResult:
        """Act on a numbered row of the open view.

        Completes the chosen task in a complete-task view, or toggles it in
        a task list, which stays open.
        """
        activation = self.controller.activation
        if self.controller.display_mode is not DisplayMode.FULL or activation is None:
            return ActionResult(success=False, message="Nothing is open to pick from.")

        view = resolve_view(self.registry, activation.capability_id)
        if not isinstance(view, ChoosableView):
            return ActionResult(
                success=False,
                message=f"{activation.capability_id} has no numbered rows to pick from.",
            )
        return self._finish(view.choose(choice, self.form_values, self.view_context))

    def _finish(self, result: ActionResult) -> ActionResult:
        if not result.success:
            return result
        if not result.keep_open:
            self.controller.complete_activation()
            self._form.clear()
        self._append("assistant", result.message)
        return result

    # =========================================================================
    # Rendering
    # =========================================================================

    @property
    def view_context(self) -> ViewContext:
        return ViewContext(stores=self.stores)

    def render(self) -> RenderableType:
        """Render the right panel for the current state."""
        snapshot = self.controller.snapshot()
        form = self.form_values if snapshot.display_mode is DisplayMode.FULL else None
        return render_panel(snapshot, self.registry, self.view_context, form)

    async def aclose(self) -> None:
        """Stop the countdown and release the model's connections."""
        if self._inflight is not None and not self._inflight.done():
            self._inflight.cancel()
        await self.controller.aclose()
        close = getattr(self.transport.model, "aclose", None)
        if close is not None:
            await close()
