"""Presentation surface: capability views and right-panel rendering."""

from splitui.surface.panel import render_panel, resolve_view
from splitui.surface.views import (
    ActionResult,
    AddTaskView,
    CapabilityView,
    CompleteTaskView,
    IssueBonusView,
    ListTasksView,
    ViewContext,
)

__all__ = [
    "ActionResult",
    "AddTaskView",
    "CapabilityView",
    "CompleteTaskView",
    "IssueBonusView",
    "ListTasksView",
    "ViewContext",
    "render_panel",
    "resolve_view",
]
