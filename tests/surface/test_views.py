"""Tests for capability views: rendering and completion actions."""

from rich.console import Console

from splitui.store.base import DomainStores
from splitui.surface.views import (
    AddTaskView,
    CapabilityView,
    ChoosableView,
    CompleteTaskView,
    IssueBonusView,
    ListTasksView,
    ViewContext,
    format_amount,
)


def render_text(renderable) -> str:
    console = Console(record=True, width=100, color_system=None)
    console.print(renderable)
    return console.export_text()


def _seed(stores: DomainStores, *titles: str, completed: tuple[str, ...] = ()) -> None:
    for title in titles:
        stores.tasks.append({"title": title, "completed": title in completed})


class TestProtocol:
    def test_builtin_views_implement_protocol(self) -> None:
        for view in (AddTaskView(), ListTasksView(), CompleteTaskView(), IssueBonusView()):
            assert isinstance(view, CapabilityView)

    def test_task_views_are_choosable(self) -> None:
        assert isinstance(ListTasksView(), ChoosableView)
        assert isinstance(CompleteTaskView(), ChoosableView)
        assert not isinstance(AddTaskView(), ChoosableView)


class TestAddTaskView:
    def test_render_marks_unknown_fields(self, view_context: ViewContext) -> None:
        text = render_text(AddTaskView().render({"title": "buy milk"}, view_context))

        assert "buy milk" in text
        assert "not yet known" in text

    def test_complete_creates_task(self, view_context: ViewContext) -> None:
        result = AddTaskView().complete(
            {"title": "buy milk", "dueDate": "Friday", "priority": "high"}, view_context
        )

        assert result.success
        assert result.message == 'Task "buy milk" has been created.'
        (task,) = view_context.stores.list_tasks()
        assert task.id == result.data["task_id"]
        assert task.due_date == "Friday"
        assert task.priority == "high"

    def test_defaults_apply_on_completion(self, view_context: ViewContext) -> None:
        result = AddTaskView().complete({}, view_context)

        (task,) = view_context.stores.list_tasks()
        assert result.message == 'Task "Untitled Task" has been created.'
        assert task.priority == "medium"
        assert task.due_date is None


class TestListTasksView:
    def test_filters(self, view_context: ViewContext) -> None:
        _seed(view_context.stores, "a", "b", "c", completed=("b",))
        view = ListTasksView()

        assert view.complete({}, view_context).message == "Showing 3 task(s)."
        assert view.complete({"filter": "completed"}, view_context).data == {"count": 1}
        assert view.complete({"filter": "pending"}, view_context).data == {"count": 2}

    def test_render_empty(self, view_context: ViewContext) -> None:
        assert "No tasks yet." in render_text(ListTasksView().render({}, view_context))

    def test_render_rows(self, view_context: ViewContext) -> None:
        _seed(view_context.stores, "write report")

        assert "write report" in render_text(ListTasksView().render({}, view_context))

    def test_choose_toggles_and_reopens(self, view_context: ViewContext) -> None:
        _seed(view_context.stores, "a", "b")
        view = ListTasksView()

        done = view.choose(2, {}, view_context)
        reopened = view.choose(2, {}, view_context)

        assert done.success and done.keep_open
        assert done.message == 'Task "b" is now complete.'
        assert reopened.message == 'Task "b" is now pending.'
        assert not any(t.completed for t in view_context.stores.list_tasks())

    def test_choose_numbers_follow_the_filter(self, view_context: ViewContext) -> None:
        _seed(view_context.stores, "a", "b", "c", completed=("b",))

        result = ListTasksView().choose(1, {"filter": "completed"}, view_context)

        assert result.message == 'Task "b" is now pending.'

    def test_choose_out_of_range(self, view_context: ViewContext) -> None:
        _seed(view_context.stores, "a")

        result = ListTasksView().choose(3, {}, view_context)

        assert not result.success
        assert result.message == "There is no task number 3."


class TestCompleteTaskView:
    def test_partial_match(self, view_context: ViewContext) -> None:
        _seed(view_context.stores, "Buy groceries", "Write report")

        result = CompleteTaskView().complete({"taskIdentifier": "grocer"}, view_context)

        assert result.success
        assert result.message == 'Task "Buy groceries" has been marked as complete.'
        done = [t for t in view_context.stores.list_tasks() if t.completed]
        assert [t.title for t in done] == ["Buy groceries"]

    def test_completed_tasks_are_not_candidates(self, view_context: ViewContext) -> None:
        _seed(view_context.stores, "Buy milk", completed=("Buy milk",))

        result = CompleteTaskView().complete({"taskIdentifier": "milk"}, view_context)

        assert not result.success
        assert result.message == "No matching tasks found."

    def test_ambiguous_match(self, view_context: ViewContext) -> None:
        _seed(view_context.stores, "Report draft", "Report final")

        result = CompleteTaskView().complete({"taskIdentifier": "report"}, view_context)

        assert not result.success
        assert "Several tasks match" in result.message
        assert len(result.data["candidates"]) == 2
        assert not any(t.completed for t in view_context.stores.list_tasks())

    def test_exact_title_wins(self, view_context: ViewContext) -> None:
        _seed(view_context.stores, "Report", "Report final")

        result = CompleteTaskView().complete({"taskIdentifier": "report"}, view_context)

        assert result.success
        assert result.message == 'Task "Report" has been marked as complete.'

    def test_render_lists_pending_when_nothing_matches(self, view_context: ViewContext) -> None:
        _seed(view_context.stores, "Walk dog")

        text = render_text(CompleteTaskView().render({"taskIdentifier": "milk"}, view_context))

        assert "No matching tasks found." in text
        assert "Walk dog" in text

    def test_duplicate_titles_can_be_chosen(self, view_context: ViewContext) -> None:
        _seed(view_context.stores, "buy milk", "buy milk")
        view = CompleteTaskView()
        data = {"taskIdentifier": "buy milk"}

        ambiguous = view.complete(data, view_context)
        result = view.choose(2, data, view_context)

        assert not ambiguous.success
        assert "Pick one by number" in ambiguous.message
        assert result.success
        first, second = view_context.stores.list_tasks()
        assert not first.completed
        assert second.completed

    def test_choose_from_pending_when_nothing_matches(
        self, view_context: ViewContext
    ) -> None:
        _seed(view_context.stores, "Walk dog", "Feed cat", completed=("Walk dog",))

        result = CompleteTaskView().choose(1, {"taskIdentifier": "milk"}, view_context)

        assert result.message == 'Task "Feed cat" has been marked as complete.'

    def test_render_numbers_candidates(self, view_context: ViewContext) -> None:
        _seed(view_context.stores, "Report draft", "Report final")

        text = render_text(CompleteTaskView().render({"taskIdentifier": "report"}, view_context))

        (draft,) = [line for line in text.splitlines() if "Report draft" in line]
        (final,) = [line for line in text.splitlines() if "Report final" in line]
        assert "1" in draft.split("Report draft")[0]
        assert "2" in final.split("Report final")[0]
        assert "Select task to complete:" in text


class TestIssueBonusView:
    def test_issue(self, view_context: ViewContext) -> None:
        result = IssueBonusView().complete(
            {"employeeName": "Sarah", "amount": 1500}, view_context
        )

        assert result.success
        assert result.message == 'Bonus of $1,500 has been issued to Sarah for "performance".'
        (bonus,) = view_context.stores.list_bonuses()
        assert bonus.id == result.data["bonus_id"]
        assert bonus.amount == 1500.0

    def test_missing_required(self, view_context: ViewContext) -> None:
        result = IssueBonusView().complete({"employeeName": "Sarah"}, view_context)

        assert not result.success
        assert view_context.stores.list_bonuses() == []

    def test_amount_must_be_positive(self, view_context: ViewContext) -> None:
        result = IssueBonusView().complete(
            {"employeeName": "Sarah", "amount": 0}, view_context
        )

        assert not result.success
        assert result.message == "Bonus amount must be a positive number."

    def test_render_amount(self, view_context: ViewContext) -> None:
        text = render_text(
            IssueBonusView().render({"employeeName": "Sarah", "amount": 12.5}, view_context)
        )

        assert "$12.50" in text
        assert "not yet known" in text


def test_format_amount() -> None:
    assert format_amount(1500) == "$1,500"
    assert format_amount(1500.0) == "$1,500"
    assert format_amount(12.5) == "$12.50"
