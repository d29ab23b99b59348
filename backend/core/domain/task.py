"""Task domain entity and its completion state machine."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any


class TaskStatus(StrEnum):
    """Two-valued, reversible task status."""

    PENDING = "pending"
    COMPLETED = "completed"

    def toggled(self) -> "TaskStatus":
        """Return the complementary status."""
        if self is TaskStatus.COMPLETED:
            return TaskStatus.PENDING
        return TaskStatus.COMPLETED


class TaskPriority(StrEnum):
    """Task priority flag."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


def derive_completed_at(status: TaskStatus, now: datetime) -> datetime | None:
    """``completedAt`` is set exactly when the task is completed."""
    return now if status is TaskStatus.COMPLETED else None


@dataclass
class Task:
    """A unit of work inside one project."""

    id: str = ""
    name: str = ""
    description: str = ""
    project_id: str = ""
    owner: str = ""
    status: TaskStatus = TaskStatus.PENDING
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: datetime | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    completed_at: datetime | None = None

    def __post_init__(self):
        if isinstance(self.status, str):
            self.status = TaskStatus(self.status)
        if isinstance(self.priority, str):
            self.priority = TaskPriority(self.priority)

    @property
    def is_completed(self) -> bool:
        return self.status is TaskStatus.COMPLETED

    def to_document(self) -> dict[str, Any]:
        """Convert to store document format (id excluded)."""
        return {
            "name": self.name,
            "description": self.description,
            "projectId": self.project_id,
            "owner": self.owner,
            "status": self.status.value,
            "priority": self.priority.value,
            "dueDate": self.due_date,
            "createdAt": self.created_at,
            "completedAt": self.completed_at,
        }

    @classmethod
    def from_document(cls, data: dict[str, Any]) -> "Task":
        """Create a task from a store document."""
        return cls(
            id=data["id"],
            name=data.get("name") or "",
            description=data.get("description") or "",
            project_id=data.get("projectId") or "",
            owner=data.get("owner") or "",
            status=data.get("status") or TaskStatus.PENDING,
            priority=data.get("priority") or TaskPriority.MEDIUM,
            due_date=data.get("dueDate"),
            created_at=data.get("createdAt") or datetime.now(UTC),
            completed_at=data.get("completedAt"),
        )
