"""
Project database models: the project document, its ordered share list,
and its per-project user sub-resource.
"""

from datetime import datetime
from typing import Any, Optional
from uuid import uuid4

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, UTCDateTime, utcnow


class Project(Base):
    """Row form of a ``projects`` document."""

    __tablename__ = "projects"

    DOCUMENT_FIELDS = {
        "name": "name",
        "description": "description",
        "createdBy": "created_by",
        "dueDate": "due_date",
        "createdAt": "created_at",
        "isActive": "is_active",
        "deletedAt": "deleted_at",
    }

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    created_by: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    due_date: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, nullable=False)

    # Soft delete
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    deleted_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True)

    shares = relationship(
        "ProjectShare",
        back_populates="project",
        cascade="all, delete-orphan",
        order_by="ProjectShare.position",
        lazy="selectin",
    )
    users = relationship(
        "ProjectUser",
        back_populates="project",
        cascade="all, delete-orphan",
        lazy="select",
    )

    __table_args__ = (Index("ix_projects_creator_active", "created_by", "is_active"),)

    def __repr__(self) -> str:
        return f"<Project(id={self.id}, name={self.name})>"

    @property
    def shared_with(self) -> list[str]:
        return [share.member for share in self.shares]

    def set_shared_with(self, members: list[str]) -> None:
        """Replace the share list, keeping the given order."""
        self.shares = [
            ProjectShare(member=member, position=index) for index, member in enumerate(members)
        ]

    def to_document(self) -> dict[str, Any]:
        doc = {key: getattr(self, attr) for key, attr in self.DOCUMENT_FIELDS.items()}
        doc["id"] = self.id
        doc["sharedWith"] = self.shared_with
        return doc


class ProjectShare(Base):
    """One entry of a project's ``sharedWith`` sequence (user id or email)."""

    __tablename__ = "project_shares"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    project_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    member: Mapped[str] = mapped_column(String(320), nullable=False, index=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    project = relationship("Project", back_populates="shares")

    def __repr__(self) -> str:
        return f"<ProjectShare(project_id={self.project_id}, member={self.member})>"


class ProjectUser(Base):
    """Entry of the ``projects/{id}/users`` sub-resource.

    Maintained independently of ``Project.shares``.
    """

    __tablename__ = "project_users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    project_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    expo_push_token: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    project = relationship("Project", back_populates="users")

    __table_args__ = (UniqueConstraint("project_id", "user_id", name="uq_project_users_member"),)

    def to_document(self) -> dict[str, Any]:
        return {"id": self.user_id, "expoPushToken": self.expo_push_token}
