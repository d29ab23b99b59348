# Domain Entities
# Pure business objects with no external dependencies
from .activity import Activity, ActivityType
from .project import Project
from .task import Task, TaskPriority, TaskStatus, derive_completed_at
from .user import ProjectUser, UserProfile

__all__ = [
    "Project",
    "Task",
    "TaskStatus",
    "TaskPriority",
    "derive_completed_at",
    "Activity",
    "ActivityType",
    "UserProfile",
    "ProjectUser",
]
