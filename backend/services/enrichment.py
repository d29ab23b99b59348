"""
Display joins over already-fetched records.

Everything here is pure: no store access and no mutation of the inputs.
Lookup tables may be incomplete (they come from best-effort batched
reads), so missing or blank entries fall back to fixed placeholders.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Mapping

from core.domain import Activity, Project, Task

UNNAMED_PROJECT = "Unnamed Project"
UNNAMED_TASK = "Unnamed Task"
UNKNOWN_USER = "Unknown"


@dataclass(frozen=True)
class ActivityView:
    """An activity annotated for display."""

    activity: Activity
    title: str
    user_name: str
    task_name: str | None = None


@dataclass(frozen=True)
class TaskView:
    """A task annotated for display."""

    task: Task
    project_name: str
    owner_name: str


def project_name_map(projects: list[Project]) -> dict[str, str]:
    return {project.id: project.name for project in projects}


def task_name_map(tasks: list[Task]) -> dict[str, str]:
    return {task.id: task.name for task in tasks}


def enrich_activities(
    activities: list[Activity],
    project_names: Mapping[str, str],
    task_names: Mapping[str, str] | None = None,
    user_names: Mapping[str, str] | None = None,
) -> list[ActivityView]:
    """Attach project title, task name and author name to each activity."""
    task_names = task_names or {}
    user_names = user_names or {}

    views = []
    for activity in activities:
        task_name = None
        if activity.task_id:
            task_name = task_names.get(activity.task_id) or UNNAMED_TASK
        views.append(
            ActivityView(
                activity=activity,
                title=project_names.get(activity.project_id) or UNNAMED_PROJECT,
                user_name=user_names.get(activity.user_id) or UNKNOWN_USER,
                task_name=task_name,
            )
        )
    return views


def enrich_tasks(
    tasks: list[Task],
    project_names: Mapping[str, str],
    user_names: Mapping[str, str] | None = None,
) -> list[TaskView]:
    """Attach project name and owner name to each task."""
    user_names = user_names or {}
    return [
        TaskView(
            task=task,
            project_name=project_names.get(task.project_id) or UNNAMED_PROJECT,
            owner_name=user_names.get(task.owner) or UNKNOWN_USER,
        )
        for task in tasks
    ]


def sort_by_due_date(tasks: list[Task]) -> list[Task]:
    """Nearest due date first; tasks without one go last."""
    return sorted(tasks, key=lambda t: (t.due_date is None, t.due_date or datetime.min))
