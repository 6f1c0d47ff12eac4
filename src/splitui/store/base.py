"""Record store interfaces and domain records.

The store is the only durable state. Dispatch state never reaches it;
capability views write to it when the user completes an action.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Literal
from uuid import uuid4

from splitui.foundation.errors import ErrorCode, SplitUIError

Priority = Literal["low", "medium", "high"]


@dataclass(frozen=True, slots=True)
class Task:
    """A task record."""

    id: str
    title: str
    due_date: str | None = None
    priority: Priority = "medium"
    completed: bool = False
    created_at: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "id": self.id,
            "title": self.title,
            "due_date": self.due_date,
            "priority": self.priority,
            "completed": self.completed,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Task:
        return cls(
            id=str(data["id"]),
            title=str(data.get("title", "")),
            due_date=data.get("due_date"),
            priority=data.get("priority", "medium"),
            completed=bool(data.get("completed", False)),
            created_at=float(data.get("created_at", 0.0)),
        )


@dataclass(frozen=True, slots=True)
class Bonus:
    """A bonus issued to an employee."""

    id: str
    employee_name: str
    amount: float
    reason: str = "performance"
    created_at: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "id": self.id,
            "employee_name": self.employee_name,
            "amount": self.amount,
            "reason": self.reason,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Bonus:
        return cls(
            id=str(data["id"]),
            employee_name=str(data.get("employee_name", "")),
            amount=float(data.get("amount", 0.0)),
            reason=str(data.get("reason") or "performance"),
            created_at=float(data.get("created_at", 0.0)),
        )


def record_not_found(record_id: str) -> SplitUIError:
    return SplitUIError(code=ErrorCode.RECORD_NOT_FOUND, context={"record_id": record_id})


class RecordStore(ABC):
    """Keyed, append-ordered record collection.

    Records are plain dicts. `append` assigns `id` and `created_at` when the
    record does not carry them.
    """

    @abstractmethod
    def append(self, record: dict[str, Any]) -> dict[str, Any]:
        """Append a record. Returns the stored record."""
        ...

    @abstractmethod
    def update(self, record_id: str, patch: dict[str, Any]) -> dict[str, Any]:
        """Merge `patch` into a record. Returns the updated record.

        Raises:
            SplitUIError: RECORD_NOT_FOUND if no record has `record_id`.
        """
        ...

    @abstractmethod
    def get(self, record_id: str) -> dict[str, Any] | None:
        """Get a record by ID, or None if not found."""
        ...

    @abstractmethod
    def list_records(self) -> list[dict[str, Any]]:
        """All records in append order."""
        ...

    @staticmethod
    def _stamp(record: dict[str, Any]) -> dict[str, Any]:
        stamped = dict(record)
        stamped.setdefault("id", str(uuid4()))
        stamped.setdefault("created_at", time.time())
        return stamped


@dataclass(frozen=True, slots=True)
class DomainStores:
    """The record collections capability views write to."""

    tasks: RecordStore
    bonuses: RecordStore

    def list_tasks(self) -> list[Task]:
        return [Task.from_dict(r) for r in self.tasks.list_records()]

    def list_bonuses(self) -> list[Bonus]:
        return [Bonus.from_dict(r) for r in self.bonuses.list_records()]

    def toggle_task(self, task_id: str) -> Task:
        """Flip a task between completed and pending.

        Raises:
            SplitUIError: RECORD_NOT_FOUND if no task has `task_id`.
        """
        current = self.tasks.get(task_id)
        if current is None:
            raise record_not_found(task_id)
        return Task.from_dict(
            self.tasks.update(task_id, {"completed": not current.get("completed", False)})
        )
