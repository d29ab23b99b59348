"""
Activity (audit trail) reads and writes.

The store caps "field in [...]" predicates at ``store.max_in_values``
values, so reads over many projects or tasks are split into batches, each
queried newest-first, then concatenated, re-sorted globally, and only then
truncated to the caller's limit.
"""

import logging
from collections import defaultdict
from datetime import UTC, datetime

from core.domain import Activity, ActivityType
from core.errors import ValidationError
from core.interfaces.store import Collection, DocumentStore, FieldFilter, OrderBy
from infrastructure.config import get_settings
from services.batching import chunked, unique
from services.membership import ensure_member

logger = logging.getLogger(__name__)

NEWEST_FIRST = OrderBy("timestamp", descending=True)


def _per_batch_limit(overall: int | None, batch_cap: int | None) -> int | None:
    """Rows requested per batch.

    Each batch is asked for at most the overall limit: the global top-K is
    always contained in the union of every batch's own top-K.
    """
    limits = [value for value in (overall, batch_cap) if value is not None]
    return min(limits) if limits else None


async def _fetch_batched(
    store: DocumentStore,
    field: str,
    ids: list[str],
    limit: int | None = None,
) -> list[Activity]:
    if limit is not None and limit < 1:
        raise ValidationError("Activity limit must be a positive integer")

    keys = unique(ids)
    if not keys:
        return []

    per_batch = _per_batch_limit(limit, get_settings().activity_batch_limit)
    collected: list[Activity] = []

    # Batches run one after another; a failure aborts the whole fetch
    for index, batch in enumerate(chunked(keys, store.max_in_values)):
        docs = await store.query(
            Collection.ACTIVITIES,
            [FieldFilter.is_in(field, batch)],
            order_by=NEWEST_FIRST,
            limit=per_batch,
        )
        logger.debug(
            "Activity batch %d on %s: %d ids, %d rows",
            index,
            field,
            len(batch),
            len(docs),
            extra={"batch": index},
        )
        collected.extend(Activity.from_document(doc) for doc in docs)

    # Stable: equal timestamps keep their concatenation order
    collected.sort(key=lambda activity: activity.timestamp, reverse=True)
    return collected[:limit] if limit is not None else collected


async def fetch_recent_activities(
    store: DocumentStore,
    project_ids: list[str],
    max_activities: int | None = None,
) -> list[Activity]:
    """
    Return the most recent activities across several projects, newest first.

    Args:
        store: Document store
        project_ids: Projects to read. Repeated ids are dropped first, so
            ceil(distinct ids / store.max_in_values) queries are issued;
            an empty list issues none
        max_activities: Overall result cap (None = everything)

    Raises:
        StoreUnavailable: If any batch fails (no partial result is returned)
    """
    return await _fetch_batched(store, "projectId", project_ids, max_activities)


async def fetch_activities_for_tasks(store: DocumentStore, task_ids: list[str]) -> list[Activity]:
    """Return every activity attached to the given tasks, newest first."""
    return await _fetch_batched(store, "taskId", task_ids)


def group_activities_by_task(activities: list[Activity]) -> dict[str, list[Activity]]:
    """Group task-level activities by task id; project-level ones are left out."""
    grouped: dict[str, list[Activity]] = defaultdict(list)
    for activity in activities:
        if activity.task_id:
            grouped[activity.task_id].append(activity)
    return dict(grouped)


async def append_activity(store: DocumentStore, activity: Activity) -> Activity:
    """Insert an already-validated activity and return it with its id."""
    activity_id = await store.insert(Collection.ACTIVITIES, activity.to_document())
    return Activity.from_document({"id": activity_id, **activity.to_document()})


async def add_activity(
    store: DocumentStore,
    project_id: str,
    user_id: str,
    activity_type: ActivityType | str,
    content: str,
    task_id: str | None = None,
    file_url: str | None = None,
    email: str | None = None,
) -> Activity:
    """
    Record an activity on a project (optionally on one of its tasks).

    *email* lets a user still shared by email placeholder post.

    Raises:
        ValidationError: Missing ids or unknown activity type
        NotAMemberError: *user_id* is not a member of the project
        EntityNotFound: The project does not exist
    """
    if not project_id or not user_id:
        raise ValidationError("Project ID and User ID are required")
    try:
        activity_type = ActivityType(activity_type)
    except ValueError:
        raise ValidationError(f"Unknown activity type: {activity_type!r}") from None

    await ensure_member(store, project_id, user_id, email)

    activity = await append_activity(
        store,
        Activity(
            project_id=project_id,
            user_id=user_id,
            type=activity_type,
            content=content or "",
            task_id=task_id,
            file_url=file_url,
            timestamp=datetime.now(UTC),
        ),
    )
    logger.info(
        "Recorded %s activity on project %s",
        activity_type.value,
        project_id,
        extra={"project_id": project_id, "user_id": user_id, "task_id": task_id},
    )
    return activity
