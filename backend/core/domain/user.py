"""User-facing identity entities."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any


@dataclass
class UserProfile:
    """Account profile stored in the ``users`` collection."""

    id: str = ""
    email: str = ""
    first_name: str = ""
    last_name: str = ""
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def display_name(self) -> str:
        return self.first_name

    @classmethod
    def from_document(cls, data: dict[str, Any]) -> "UserProfile":
        return cls(
            id=data["id"],
            email=data.get("email") or "",
            first_name=data.get("firstName") or "",
            last_name=data.get("lastName") or "",
            created_at=data.get("createdAt") or datetime.now(UTC),
        )


@dataclass
class ProjectUser:
    """Entry of a project's per-project user sub-resource.

    Maintained independently of ``Project.shared_with``.
    """

    user_id: str = ""
    push_token: str | None = None

    @classmethod
    def from_document(cls, data: dict[str, Any]) -> "ProjectUser":
        return cls(
            user_id=data.get("id") or "",
            push_token=data.get("expoPushToken"),
        )
