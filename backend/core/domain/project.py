"""Project domain entity."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any


@dataclass
class Project:
    """A shared project owned by exactly one user.

    ``shared_with`` holds user ids, or lower-cased emails for invitees that
    have not created an account yet.
    """

    id: str = ""
    name: str = ""
    description: str = ""
    created_by: str = ""
    shared_with: list[str] = field(default_factory=list)
    due_date: datetime | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    is_active: bool = True
    deleted_at: datetime | None = None

    @property
    def members(self) -> list[str]:
        """Creator first, then shared entries, without duplicates."""
        seen: dict[str, None] = {}
        if self.created_by:
            seen[self.created_by] = None
        for entry in self.shared_with:
            seen.setdefault(entry, None)
        return list(seen)

    def to_document(self) -> dict[str, Any]:
        """Convert to store document format (id excluded)."""
        return {
            "name": self.name,
            "description": self.description,
            "createdBy": self.created_by,
            "sharedWith": list(self.shared_with),
            "dueDate": self.due_date,
            "createdAt": self.created_at,
            "isActive": self.is_active,
            "deletedAt": self.deleted_at,
        }

    @classmethod
    def from_document(cls, data: dict[str, Any]) -> "Project":
        """Create a project from a store document."""
        return cls(
            id=data["id"],
            name=data.get("name") or "",
            description=data.get("description") or "",
            created_by=data.get("createdBy") or "",
            shared_with=list(data.get("sharedWith") or []),
            due_date=data.get("dueDate"),
            created_at=data.get("createdAt") or datetime.now(UTC),
            is_active=bool(data.get("isActive", True)),
            deleted_at=data.get("deletedAt"),
        )
