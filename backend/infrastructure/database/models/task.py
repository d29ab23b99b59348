"""
Task database model.
"""

from datetime import datetime
from typing import Any, Optional
from uuid import uuid4

from sqlalchemy import ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, UTCDateTime, utcnow


class Task(Base):
    """Row form of a ``tasks`` document."""

    __tablename__ = "tasks"

    DOCUMENT_FIELDS = {
        "name": "name",
        "description": "description",
        "projectId": "project_id",
        "owner": "owner",
        "status": "status",
        "priority": "priority",
        "dueDate": "due_date",
        "createdAt": "created_at",
        "completedAt": "completed_at",
    }

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    project_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    owner: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(20), default="pending", nullable=False)
    priority: Mapped[str] = mapped_column(String(20), default="medium", nullable=False)
    due_date: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, nullable=False)
    completed_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True)

    __table_args__ = (Index("ix_tasks_owner_due", "owner", "due_date"),)

    def __repr__(self) -> str:
        return f"<Task(id={self.id}, name={self.name}, status={self.status})>"

    def to_document(self) -> dict[str, Any]:
        doc = {key: getattr(self, attr) for key, attr in self.DOCUMENT_FIELDS.items()}
        doc["id"] = self.id
        return doc
