"""
SQLAlchemy database models.
"""

from .activity import Activity
from .base import Base, UTCDateTime
from .project import Project, ProjectShare, ProjectUser
from .task import Task
from .user import User

__all__ = [
    "Base",
    "UTCDateTime",
    "Project",
    "ProjectShare",
    "ProjectUser",
    "Task",
    "Activity",
    "User",
]
