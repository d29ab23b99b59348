"""Activity (audit trail) domain entity."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any


class ActivityType(StrEnum):
    """Kinds of audit records a project can accumulate."""

    CREATE = "create"
    STATUS = "status"
    MESSAGE = "message"
    FILE = "file"
    IMAGE = "image"


@dataclass(frozen=True)
class Activity:
    """Immutable, append-only audit record."""

    id: str = ""
    project_id: str = ""
    user_id: str = ""
    type: ActivityType = ActivityType.MESSAGE
    content: str = ""
    task_id: str | None = None
    file_url: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __post_init__(self):
        if isinstance(self.type, str) and not isinstance(self.type, ActivityType):
            object.__setattr__(self, "type", ActivityType(self.type))

    def to_document(self) -> dict[str, Any]:
        """Convert to store document format (id excluded)."""
        return {
            "projectId": self.project_id,
            "taskId": self.task_id,
            "userId": self.user_id,
            "type": self.type.value,
            "content": self.content,
            "fileUrl": self.file_url,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_document(cls, data: dict[str, Any]) -> "Activity":
        """Create an activity from a store document."""
        return cls(
            id=data["id"],
            project_id=data.get("projectId") or "",
            user_id=data.get("userId") or "",
            type=data.get("type") or ActivityType.MESSAGE,
            content=data.get("content") or "",
            task_id=data.get("taskId"),
            file_url=data.get("fileUrl"),
            timestamp=data["timestamp"],
        )
