"""Capability views.

A view is the render handle of a capability: it turns extracted data into a
rich renderable and, when the user completes the activation, performs the
capability's action against the record stores.

Defaults live here and only here. The dispatch core leaves unknown fields
out; a view shows them as not yet known and fills a default only when the
user actually completes the action.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from rich.console import Group, RenderableType
from rich.table import Table
from rich.text import Text

from splitui.foundation.errors import SplitUIError
from splitui.store.base import Bonus, DomainStores, Task

logger = logging.getLogger(__name__)

UNKNOWN = Text("not yet known", style="dim italic")

DEFAULT_TASK_TITLE = "Untitled Task"
DEFAULT_PRIORITY = "medium"
DEFAULT_BONUS_REASON = "performance"

_PRIORITY_STYLES = {"low": "green", "medium": "yellow", "high": "red"}


@dataclass(frozen=True, slots=True)
class ActionResult:
    """Result of completing a capability's action."""

    success: bool
    message: str
    data: dict[str, Any] | None = None
    keep_open: bool = False
    """Leave the activation open after a successful action."""


@dataclass(frozen=True, slots=True)
class ViewContext:
    """What a view may read and write besides its extracted data."""

    stores: DomainStores


@runtime_checkable
class CapabilityView(Protocol):
    """Render handle protocol."""

    def render(self, data: Mapping[str, Any], context: ViewContext) -> RenderableType:
        """Render the full view for `data`."""
        ...

    def complete(self, data: Mapping[str, Any], context: ViewContext) -> ActionResult:
        """Perform the capability's action."""
        ...


@runtime_checkable
class ChoosableView(CapabilityView, Protocol):
    """A view that shows numbered rows the user can pick from."""

    def choose(
        self, choice: int, data: Mapping[str, Any], context: ViewContext
    ) -> ActionResult:
        """Act on row `choice` (1-based) of the rendered list."""
        ...


def _form(rows: list[tuple[str, RenderableType]]) -> Table:
    table = Table.grid(padding=(0, 2))
    table.add_column(style="bold")
    table.add_column()
    for label, value in rows:
        table.add_row(label, value)
    return table


def _value(data: Mapping[str, Any], name: str) -> RenderableType:
    if name not in data:
        return UNKNOWN
    return Text(str(data[name]))


def _priority(priority: str) -> Text:
    return Text(priority, style=_PRIORITY_STYLES.get(priority, ""))


def _task_table(tasks: list[Task]) -> Table:
    table = Table(show_header=True, header_style="bold", expand=True)
    table.add_column("#", justify="right", width=3)
    table.add_column("", width=3)
    table.add_column("Title")
    table.add_column("Due")
    table.add_column("Priority")
    for number, task in enumerate(tasks, 1):
        table.add_row(
            str(number),
            "[green]✓[/green]" if task.completed else "○",
            Text(task.title, style="strike dim" if task.completed else ""),
            task.due_date or "",
            _priority(task.priority),
        )
    return table


def _row(tasks: list[Task], choice: int) -> Task | None:
    if 1 <= choice <= len(tasks):
        return tasks[choice - 1]
    return None


def format_amount(amount: float) -> str:
    if float(amount).is_integer():
        return f"${int(amount):,}"
    return f"${amount:,.2f}"


# =============================================================================
# Views
# =============================================================================


class AddTaskView:
    """Task creation form."""

    title = "Create Task"

    def render(self, data: Mapping[str, Any], context: ViewContext) -> RenderableType:
        return _form([
            ("Title", _value(data, "title")),
            ("Due Date", _value(data, "dueDate")),
            ("Priority", _priority(data["priority"]) if "priority" in data else UNKNOWN),
        ])

    def complete(self, data: Mapping[str, Any], context: ViewContext) -> ActionResult:
        title = str(data.get("title") or "").strip() or DEFAULT_TASK_TITLE
        record = context.stores.tasks.append({
            "title": title,
            "due_date": data.get("dueDate") or None,
            "priority": data.get("priority") or DEFAULT_PRIORITY,
            "completed": False,
        })
        logger.info("Created task %s", record["id"])
        return ActionResult(
            success=True,
            message=f'Task "{title}" has been created.',
            data={"task_id": record["id"]},
        )


class ListTasksView:
    """Task list with an optional completed/pending filter."""

    title = "Your Tasks"

    def _filtered(self, data: Mapping[str, Any], context: ViewContext) -> list[Task]:
        tasks = context.stores.list_tasks()
        match data.get("filter", "all"):
            case "completed":
                return [t for t in tasks if t.completed]
            case "pending":
                return [t for t in tasks if not t.completed]
            case _:
                return tasks

    def render(self, data: Mapping[str, Any], context: ViewContext) -> RenderableType:
        tasks = self._filtered(data, context)
        if not tasks:
            return Text("No tasks yet.", style="dim")
        return _task_table(tasks)

    def complete(self, data: Mapping[str, Any], context: ViewContext) -> ActionResult:
        tasks = self._filtered(data, context)
        return ActionResult(
            success=True,
            message=f"Showing {len(tasks)} task(s).",
            data={"count": len(tasks)},
        )

    def choose(self, choice: int, data: Mapping[str, Any], context: ViewContext) -> ActionResult:
        """Toggle a listed task between completed and pending."""
        task = _row(self._filtered(data, context), choice)
        if task is None:
            return ActionResult(success=False, message=f"There is no task number {choice}.")
        try:
            toggled = context.stores.toggle_task(task.id)
        except SplitUIError as e:
            return ActionResult(success=False, message=e.message)
        state = "complete" if toggled.completed else "pending"
        return ActionResult(
            success=True,
            message=f'Task "{toggled.title}" is now {state}.',
            data={"task_id": toggled.id},
            keep_open=True,
        )


def _mark_complete(task: Task, context: ViewContext) -> ActionResult:
    try:
        context.stores.tasks.update(task.id, {"completed": True})
    except SplitUIError as e:
        return ActionResult(success=False, message=e.message)
    return ActionResult(
        success=True,
        message=f'Task "{task.title}" has been marked as complete.',
        data={"task_id": task.id},
    )


class CompleteTaskView:
    """Finds pending tasks by partial title and marks one complete.

    The numbered candidates are the matches, or every pending task when
    nothing matches; `choose` completes one of them directly.
    """

    title = "Complete Task"

    def matches(self, data: Mapping[str, Any], context: ViewContext) -> list[Task]:
        query = str(data.get("taskIdentifier") or "").strip().lower()
        pending = [t for t in context.stores.list_tasks() if not t.completed]
        return [t for t in pending if query in t.title.lower()]

    def candidates(self, data: Mapping[str, Any], context: ViewContext) -> list[Task]:
        return self.matches(data, context) or [
            t for t in context.stores.list_tasks() if not t.completed
        ]

    def render(self, data: Mapping[str, Any], context: ViewContext) -> RenderableType:
        parts: list[RenderableType] = []
        if data.get("taskIdentifier"):
            parts.append(Text(f'Looking for: "{data["taskIdentifier"]}"', style="italic"))

        found = self.matches(data, context)
        if found:
            parts.append(Text("Select task to complete:"))
            parts.append(_task_table(found))
        else:
            pending = self.candidates(data, context)
            parts.append(Text("No matching tasks found.", style="yellow"))
            if pending:
                parts.append(Text("Available tasks:"))
                parts.append(_task_table(pending))
        return Group(*parts)

    def complete(self, data: Mapping[str, Any], context: ViewContext) -> ActionResult:
        found = self.matches(data, context)
        if len(found) > 1:
            query = str(data.get("taskIdentifier") or "").strip().lower()
            exact = [t for t in found if t.title.lower() == query]
            found = exact if len(exact) == 1 else found

        match found:
            case []:
                return ActionResult(success=False, message="No matching tasks found.")
            case [task]:
                return _mark_complete(task, context)
            case _:
                titles = ", ".join(f'{n}. "{t.title}"' for n, t in enumerate(found, 1))
                return ActionResult(
                    success=False,
                    message=f"Several tasks match: {titles}. Pick one by number.",
                    data={"candidates": [t.id for t in found]},
                )

    def choose(self, choice: int, data: Mapping[str, Any], context: ViewContext) -> ActionResult:
        task = _row(self.candidates(data, context), choice)
        if task is None:
            return ActionResult(success=False, message=f"There is no task number {choice}.")
        return _mark_complete(task, context)


class IssueBonusView:
    """Bonus form: employee, amount and reason."""

    title = "Issue Bonus"

    def render(self, data: Mapping[str, Any], context: ViewContext) -> RenderableType:
        amount = data.get("amount")
        return _form([
            ("Employee Name", _value(data, "employeeName")),
            ("Amount", Text(format_amount(amount)) if amount is not None else UNKNOWN),
            ("Reason", _value(data, "reason")),
        ])

    def complete(self, data: Mapping[str, Any], context: ViewContext) -> ActionResult:
        employee = str(data.get("employeeName") or "").strip()
        amount = data.get("amount")
        if not employee or amount is None:
            return ActionResult(
                success=False,
                message="A bonus needs an employee name and an amount.",
            )
        if isinstance(amount, bool) or not isinstance(amount, (int, float)) or amount <= 0:
            return ActionResult(success=False, message="Bonus amount must be a positive number.")

        reason = str(data.get("reason") or "").strip() or DEFAULT_BONUS_REASON
        record = context.stores.bonuses.append({
            "employee_name": employee,
            "amount": float(amount),
            "reason": reason,
        })
        bonus = Bonus.from_dict(record)
        logger.info("Issued bonus %s", bonus.id)
        return ActionResult(
            success=True,
            message=(
                f"Bonus of {format_amount(amount)} has been issued to {employee} for \"{reason}\"."
            ),
            data={"bonus_id": bonus.id},
        )
