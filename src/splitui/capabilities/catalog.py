"""Built-in capability catalog.

Registration order is part of the contract: it is the order of the tool
list the model sees.
"""

from splitui.capabilities.registry import CapabilityRegistry
from splitui.capabilities.types import CapabilityDescriptor, enum, number, text
from splitui.surface.views import AddTaskView, CompleteTaskView, IssueBonusView, ListTasksView

# =============================================================================
# DEFAULT CAPABILITY DEFINITIONS
# =============================================================================

ADD_TASK = CapabilityDescriptor(
    identifier="add_task",
    description="Create a new task with optional due date and priority",
    fields=(
        text("title", "Task title"),
        text("dueDate", "Due date in natural language"),
        enum("priority", ("low", "medium", "high"), "Task priority"),
    ),
    required=("title",),
    render_handle=AddTaskView(),
)

LIST_TASKS = CapabilityDescriptor(
    identifier="list_tasks",
    description="View current tasks with optional filtering",
    fields=(
        enum("filter", ("all", "completed", "pending"), "Task filter"),
    ),
    render_handle=ListTasksView(),
)

COMPLETE_TASK = CapabilityDescriptor(
    identifier="complete_task",
    description="Mark a task as completed",
    fields=(
        text("taskIdentifier", "Task identifier - title or partial title"),
    ),
    required=("taskIdentifier",),
    render_handle=CompleteTaskView(),
)

ISSUE_BONUS = CapabilityDescriptor(
    identifier="issue_bonus",
    description="Issue a monetary bonus to an employee",
    fields=(
        text("employeeName", "Name of the employee receiving the bonus"),
        number("amount", "Amount of the bonus in dollars"),
        text("reason", "Reason for the bonus"),
    ),
    required=("employeeName", "amount"),
    render_handle=IssueBonusView(),
)

BUILTIN_CAPABILITIES: tuple[CapabilityDescriptor, ...] = (
    ADD_TASK,
    LIST_TASKS,
    COMPLETE_TASK,
    ISSUE_BONUS,
)


def default_registry() -> CapabilityRegistry:
    """A fresh registry holding the built-in catalog, in catalog order."""
    return CapabilityRegistry.from_descriptors(BUILTIN_CAPABILITIES)
