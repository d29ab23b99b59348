"""
User profile database model.
"""

from datetime import datetime
from typing import Any
from uuid import uuid4

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, UTCDateTime, utcnow


class User(Base):
    """Row form of a ``users`` document."""

    __tablename__ = "users"

    DOCUMENT_FIELDS = {
        "email": "email",
        "firstName": "first_name",
        "lastName": "last_name",
        "createdAt": "created_at",
    }

    # Ids are issued by the auth provider, so they are not always UUIDs
    id: Mapped[str] = mapped_column(
        String(128),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False, index=True)
    first_name: Mapped[str] = mapped_column(String(100), default="", nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), default="", nullable=False)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email})>"

    def to_document(self) -> dict[str, Any]:
        doc = {key: getattr(self, attr) for key, attr in self.DOCUMENT_FIELDS.items()}
        doc["id"] = self.id
        return doc
