"""Tests for in-memory and JSON record stores."""

from pathlib import Path

import pytest

from splitui.foundation.errors import ErrorCode, SplitUIError
from splitui.store.base import Bonus, Task
from splitui.store.native import InMemoryRecordStore, JsonRecordStore, memory_stores, open_stores


@pytest.fixture(params=["memory", "json"])
def store(request: pytest.FixtureRequest, tmp_path: Path):
    if request.param == "memory":
        return InMemoryRecordStore()
    return JsonRecordStore(tmp_path, "tasks")


class TestRecordStore:
    def test_append_stamps_id_and_created_at(self, store) -> None:
        record = store.append({"title": "buy milk"})

        assert record["title"] == "buy milk"
        assert record["id"]
        assert record["created_at"] > 0

    def test_append_keeps_given_id(self, store) -> None:
        assert store.append({"id": "t1", "title": "x"})["id"] == "t1"

    def test_list_in_append_order(self, store) -> None:
        store.append({"title": "first"})
        store.append({"title": "second"})

        assert [r["title"] for r in store.list_records()] == ["first", "second"]

    def test_update_merges_patch(self, store) -> None:
        record = store.append({"title": "x", "completed": False})

        updated = store.update(record["id"], {"completed": True, "id": "other"})

        assert updated["completed"] is True
        assert updated["id"] == record["id"]
        assert store.get(record["id"])["completed"] is True

    def test_update_missing(self, store) -> None:
        with pytest.raises(SplitUIError) as exc_info:
            store.update("nope", {"completed": True})

        assert exc_info.value.code is ErrorCode.RECORD_NOT_FOUND

    def test_get_missing(self, store) -> None:
        assert store.get("nope") is None

    def test_returned_records_are_copies(self, store) -> None:
        record = store.append({"title": "x"})
        record["title"] = "changed"

        assert store.list_records()[0]["title"] == "x"


class TestJsonRecordStore:
    def test_persists_across_instances(self, tmp_path: Path) -> None:
        JsonRecordStore(tmp_path, "tasks").append({"title": "kept"})

        reopened = JsonRecordStore(tmp_path, "tasks")

        assert [r["title"] for r in reopened.list_records()] == ["kept"]
        assert (tmp_path / "records" / "tasks.json").exists()

    def test_corrupt_file_reads_as_empty(self, tmp_path: Path) -> None:
        store = JsonRecordStore(tmp_path, "tasks")
        store.path.write_text("{not json")

        assert store.list_records() == []

    def test_collection_name_is_sanitized(self, tmp_path: Path) -> None:
        store = JsonRecordStore(tmp_path, "../evil name")

        assert store.path.parent == tmp_path / "records"
        assert store.path.name == "___evil_name.json"


class TestDomainStores:
    def test_typed_views(self) -> None:
        stores = memory_stores()
        stores.tasks.append({"title": "buy milk", "priority": "high"})
        stores.bonuses.append({"employee_name": "Sarah", "amount": 500})

        (task,) = stores.list_tasks()
        (bonus,) = stores.list_bonuses()

        assert isinstance(task, Task)
        assert task.priority == "high"
        assert task.completed is False
        assert isinstance(bonus, Bonus)
        assert bonus.amount == 500.0
        assert bonus.reason == "performance"

    def test_open_stores_uses_separate_files(self, tmp_path: Path) -> None:
        stores = open_stores(tmp_path)
        stores.tasks.append({"title": "x"})

        assert stores.list_bonuses() == []
        assert len(stores.list_tasks()) == 1

    def test_task_round_trip(self) -> None:
        task = Task(id="t1", title="x", due_date="Friday", priority="low", completed=True)

        assert Task.from_dict(task.to_dict()) == task
