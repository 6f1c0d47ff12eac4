"""Right-panel rendering.

The panel is a pure function of a dispatch snapshot: idle shows examples,
summary shows what was detected (and the countdown), full shows the
capability's view.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from rich.console import Group, RenderableType
from rich.panel import Panel
from rich.text import Text

from splitui.capabilities.types import CapabilityDescriptor
from splitui.dispatch.types import DispatchSnapshot, DisplayMode
from splitui.foundation.errors import ErrorCode, SplitUIError, UnknownCapability
from splitui.surface.views import CapabilityView, ViewContext

if TYPE_CHECKING:
    from splitui.capabilities.registry import CapabilityRegistry

EXAMPLE_PROMPTS = (
    "Add a task to buy groceries",
    "Show me my tasks",
    "I need to finish the report by Friday",
)


def resolve_view(registry: CapabilityRegistry, capability_id: str) -> CapabilityView:
    """Resolve the view registered for a capability.

    Raises:
        UnknownCapability: The identifier is not registered.
        SplitUIError: RENDER_HANDLE_INVALID when the render handle is not a view.
    """
    match registry.lookup(capability_id):
        case None:
            raise UnknownCapability(context={"identifier": capability_id})
        case CapabilityDescriptor(render_handle=CapabilityView() as view):
            return view
        case CapabilityDescriptor(render_handle=handle):
            raise SplitUIError(
                code=ErrorCode.RENDER_HANDLE_INVALID,
                context={
                    "identifier": capability_id,
                    "detail": f"{type(handle).__name__} does not implement render/complete",
                },
            )
        case other:
            raise SplitUIError(
                code=ErrorCode.RENDER_HANDLE_INVALID,
                context={"identifier": capability_id, "detail": f"unexpected entry {other!r}"},
            )


def _idle() -> RenderableType:
    lines = [Text("No intent detected yet.", style="bold"), Text("Try saying something like:")]
    lines.extend(Text(f'  • "{example}"', style="dim") for example in EXAMPLE_PROMPTS)
    return Panel(Group(*lines), title="Context", border_style="dim")


def _summary(snapshot: DispatchSnapshot, registry: CapabilityRegistry) -> RenderableType:
    activation = snapshot.activation
    assert activation is not None and activation.capability_id is not None

    parts: list[RenderableType] = [
        Text.assemble(("Detected intent: ", "bold"), (activation.capability_id, "cyan")),
        Text(f"Confidence: {activation.certainty * 100:.0f}%"),
    ]
    if activation.extracted_data:
        parts.append(Text("Entities", style="bold"))
        parts.append(Text(json.dumps(dict(activation.extracted_data), indent=2, default=str)))
    for failure in activation.coercion_failures:
        parts.append(Text(f"Ignored {failure.field_name}: {failure.reason}", style="yellow"))

    if snapshot.countdown_remaining is not None:
        parts.append(Text(
            f"Opening {activation.capability_id} in {snapshot.countdown_remaining}... "
            "(/cancel to stay, /open to open now)",
            style="bold yellow",
        ))
    else:
        parts.append(Text("/open to open it, /dismiss to clear", style="dim"))

    descriptor = registry.lookup(activation.capability_id)
    subtitle = descriptor.description if descriptor else None
    return Panel(Group(*parts), title="Context", subtitle=subtitle, border_style="cyan")


def _full(
    snapshot: DispatchSnapshot,
    registry: CapabilityRegistry,
    context: ViewContext,
    form: dict | None,
) -> RenderableType:
    activation = snapshot.activation
    assert activation is not None and activation.capability_id is not None

    view = resolve_view(registry, activation.capability_id)
    data = {**activation.extracted_data, **(form or {})}
    title = getattr(view, "title", activation.capability_id)
    return Panel(
        view.render(data, context),
        title=title,
        subtitle="/set key=value · /done · /dismiss",
        border_style="green",
    )


def render_panel(
    snapshot: DispatchSnapshot,
    registry: CapabilityRegistry,
    context: ViewContext,
    form: dict | None = None,
) -> RenderableType:
    """Render the right panel for a dispatch snapshot.

    Args:
        snapshot: Current dispatch state.
        registry: Used only to resolve render handles.
        context: Stores the views read from.
        form: User edits layered over the extracted data in full mode.
    """
    match snapshot.display_mode:
        case DisplayMode.IDLE:
            return _idle()
        case DisplayMode.SUMMARY:
            return _summary(snapshot, registry)
        case DisplayMode.FULL:
            return _full(snapshot, registry, context, form)
