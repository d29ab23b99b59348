"""
Task lifecycle: creation, completion toggling, and task reads.

Status changes are written in two steps that are not atomic together:
the task document is updated first, then a ``status`` activity is
appended. If the append fails the task stays updated and
``PartialWriteInconsistency`` is raised so the caller can repair the log.
"""

import logging
from collections.abc import Callable
from dataclasses import replace
from datetime import UTC, datetime

from core.domain import Activity, ActivityType, Task, TaskPriority, TaskStatus, derive_completed_at
from core.errors import EntityNotFound, PartialWriteInconsistency, StoreUnavailable, ValidationError
from core.interfaces.store import Collection, DocumentStore, FieldFilter, OrderBy
from infrastructure.config import get_settings
from services.activities import append_activity
from services.enrichment import sort_by_due_date
from services.membership import ensure_member

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _parse_status(value: TaskStatus | str) -> TaskStatus:
    try:
        return TaskStatus(value)
    except ValueError:
        raise ValidationError(f"Unknown task status: {value!r}") from None


def _parse_priority(value: TaskPriority | str) -> TaskPriority:
    try:
        return TaskPriority(value)
    except ValueError:
        raise ValidationError(f"Unknown task priority: {value!r}") from None


def creation_message(task: Task) -> str:
    if task.is_completed:
        return f'Created task "{task.name}" as completed'
    return f'Created task "{task.name}"'


def transition_message(task: Task, new_status: TaskStatus) -> str:
    if new_status is TaskStatus.COMPLETED:
        return f'Task "{task.name}" marked as completed'
    return f'Task "{task.name}" reopened'


def apply_toggle(task: Task, now: datetime | None = None) -> Task:
    """
    Local mirror of a successful toggle.

    Uses the same ``completedAt`` rule as the remote write so a cached copy
    never drifts from the stored one.
    """
    new_status = task.status.toggled()
    return replace(
        task,
        status=new_status,
        completed_at=derive_completed_at(new_status, now or _utcnow()),
    )


class TaskLifecycleManager:
    """Owns the pending/completed state machine and its audit entries."""

    def __init__(self, store: DocumentStore, clock: Callable[[], datetime] = _utcnow):
        self.store = store
        self._clock = clock

    async def add_task(
        self,
        name: str,
        project_id: str,
        owner: str,
        description: str = "",
        status: TaskStatus | str | None = None,
        priority: TaskPriority | str | None = None,
        due_date: datetime | None = None,
        acting_user_id: str | None = None,
        acting_email: str | None = None,
    ) -> Task:
        """
        Create a task and its ``create`` activity.

        Args:
            name: Task name (required)
            project_id: Owning project (required)
            owner: Assigned user (required); need not be the project creator
            description: Defaults to ""
            status: Defaults to pending
            priority: Defaults to medium
            due_date: Optional due date
            acting_user_id: Author of the creation entry (defaults to *owner*)
            acting_email: Acting user's email, for members shared by email

        Raises:
            ValidationError: Missing name/project/owner or bad enum values
            NotAMemberError: The acting user is not a project member
            PartialWriteInconsistency: Task stored but its activity was not
        """
        if not name or not name.strip():
            raise ValidationError("Task name is required")
        if not project_id:
            raise ValidationError("Project ID is required")
        if not owner:
            raise ValidationError("Task owner is required")

        task_status = _parse_status(status or TaskStatus.PENDING)
        task_priority = _parse_priority(priority or TaskPriority.MEDIUM)
        actor = acting_user_id or owner

        await ensure_member(self.store, project_id, actor, acting_email)

        now = self._clock()
        task = Task(
            name=name.strip(),
            description=description or "",
            project_id=project_id,
            owner=owner,
            status=task_status,
            priority=task_priority,
            due_date=due_date,
            created_at=now,
            completed_at=derive_completed_at(task_status, now),
        )
        task.id = await self.store.insert(Collection.TASKS, task.to_document())

        await self._record(
            task,
            actor,
            ActivityType.CREATE,
            creation_message(task),
        )
        logger.info(
            "Created task %s in project %s",
            task.id,
            project_id,
            extra={"task_id": task.id, "project_id": project_id, "user_id": actor},
        )
        return task

    async def toggle_completion(
        self,
        task_id: str,
        current_status: TaskStatus | str,
        acting_user_id: str,
        acting_email: str | None = None,
    ) -> Task:
        """
        Flip a task between pending and completed and log the transition.

        *acting_email* admits a member still listed by email placeholder.

        Returns:
            The task as stored after the transition

        Raises:
            ValidationError: Missing ids or unknown status
            EntityNotFound: The task does not exist
            NotAMemberError: The acting user is not a member of the task's project
            StoreUnavailable: The status update failed (nothing was written)
            PartialWriteInconsistency: Status updated but the activity was not
        """
        if not task_id:
            raise ValidationError("Task ID is required")
        if not acting_user_id:
            raise ValidationError("Acting user ID is required")
        current = _parse_status(current_status)

        doc = await self.store.get(Collection.TASKS, task_id)
        if doc is None:
            raise EntityNotFound(Collection.TASKS, task_id)
        task = Task.from_document(doc)
        if task.status is not current:
            logger.warning(
                "Task %s toggled from %s but stored status is %s",
                task_id,
                current.value,
                task.status.value,
                extra={"task_id": task_id},
            )

        await ensure_member(self.store, task.project_id, acting_user_id, acting_email)

        new_status = current.toggled()
        completed_at = derive_completed_at(new_status, self._clock())
        await self.store.update(
            Collection.TASKS,
            task_id,
            {"status": new_status.value, "completedAt": completed_at},
        )
        updated = replace(task, status=new_status, completed_at=completed_at)

        await self._record(
            updated,
            acting_user_id,
            ActivityType.STATUS,
            transition_message(task, new_status),
        )
        return updated

    async def _record(self, task: Task, user_id: str, activity_type: ActivityType, content: str) -> None:
        """Append the audit entry for a write that already succeeded."""
        try:
            await append_activity(
                self.store,
                Activity(
                    project_id=task.project_id,
                    task_id=task.id,
                    user_id=user_id,
                    type=activity_type,
                    content=content,
                    timestamp=self._clock(),
                ),
            )
        except StoreUnavailable as e:
            logger.error(
                "Task %s is '%s' but its %s activity was not recorded: %s",
                task.id,
                task.status.value,
                activity_type.value,
                e,
                extra={"task_id": task.id, "project_id": task.project_id},
            )
            raise PartialWriteInconsistency(task.id, task.status.value) from e


async def fetch_tasks_by_project(store: DocumentStore, project_id: str) -> list[Task]:
    """All tasks of a project, nearest due date first."""
    if not project_id:
        raise ValidationError("Project ID is required")

    docs = await store.query(Collection.TASKS, [FieldFilter.eq("projectId", project_id)])
    return sort_by_due_date([Task.from_document(doc) for doc in docs])


async def fetch_tasks_for_user(store: DocumentStore, user_id: str) -> list[Task]:
    """All tasks assigned to a user."""
    if not user_id:
        return []

    docs = await store.query(Collection.TASKS, [FieldFilter.eq("owner", user_id)])
    return [Task.from_document(doc) for doc in docs]


async def fetch_upcoming_tasks(
    store: DocumentStore,
    user_id: str,
    max_tasks: int | None = None,
) -> list[Task]:
    """The user's tasks with the nearest due dates (summary view)."""
    if not user_id:
        return []
    if max_tasks is None:
        max_tasks = get_settings().upcoming_tasks_default
    if max_tasks < 1:
        raise ValidationError("max_tasks must be a positive integer")

    docs = await store.query(
        Collection.TASKS,
        [FieldFilter.eq("owner", user_id)],
        order_by=OrderBy("dueDate"),
        limit=max_tasks,
    )
    return [Task.from_document(doc) for doc in docs]
