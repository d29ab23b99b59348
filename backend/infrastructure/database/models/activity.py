"""
Activity (audit trail) database model.
"""

from datetime import datetime
from typing import Any, Optional
from uuid import uuid4

from sqlalchemy import Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, UTCDateTime, utcnow


class Activity(Base):
    """Row form of an ``activities`` document. Append-only."""

    __tablename__ = "activities"

    DOCUMENT_FIELDS = {
        "projectId": "project_id",
        "taskId": "task_id",
        "userId": "user_id",
        "type": "type",
        "content": "content",
        "fileUrl": "file_url",
        "timestamp": "timestamp",
    }

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    # No foreign keys: audit rows outlive the records they describe
    project_id: Mapped[str] = mapped_column(String(36), nullable=False)
    task_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    content: Mapped[str] = mapped_column(Text, default="", nullable=False)
    file_url: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)
    timestamp: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, nullable=False)

    __table_args__ = (
        Index("ix_activities_project_timestamp", "project_id", "timestamp"),
        Index("ix_activities_task_timestamp", "task_id", "timestamp"),
    )

    def __repr__(self) -> str:
        return f"<Activity(id={self.id}, type={self.type}, project_id={self.project_id})>"

    def to_document(self) -> dict[str, Any]:
        doc = {key: getattr(self, attr) for key, attr in self.DOCUMENT_FIELDS.items()}
        doc["id"] = self.id
        return doc
