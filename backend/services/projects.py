"""
Project aggregation and project document maintenance.
"""

import asyncio
import logging
from datetime import UTC, datetime

from core.domain import Project
from core.errors import EntityNotFound, StoreUnavailable, ValidationError
from core.interfaces.store import Collection, DocumentStore, FieldFilter
from services.batching import chunked, unique
from services.membership import find_user_id_by_email, normalize_email

logger = logging.getLogger(__name__)


async def fetch_projects(
    store: DocumentStore,
    user_id: str | None,
    email: str | None = None,
) -> list[Project]:
    """
    Return the active projects a user created or was shared into.

    The creator query and the shared-with query run concurrently and are
    merged by project id. No ordering is guaranteed; sort explicitly
    (e.g. by due date) if needed.

    Args:
        store: Document store
        user_id: Acting user; without one the result is empty
        email: User's email, matched lower-cased against pending shares

    Raises:
        StoreUnavailable: If either query fails
    """
    if not user_id:
        return []

    candidates = [user_id]
    if email and email.strip():
        candidates.append(normalize_email(email))

    active = FieldFilter.eq("isActive", True)
    created, shared = await asyncio.gather(
        store.query(Collection.PROJECTS, [FieldFilter.eq("createdBy", user_id), active]),
        store.query(
            Collection.PROJECTS, [FieldFilter.contains_any("sharedWith", candidates), active]
        ),
    )

    merged: dict[str, Project] = {}
    for doc in [*created, *shared]:
        merged[doc["id"]] = Project.from_document(doc)

    logger.debug(
        "Fetched %d projects for user %s (%d owned, %d shared)",
        len(merged),
        user_id,
        len(created),
        len(shared),
        extra={"user_id": user_id},
    )
    return list(merged.values())


async def fetch_project_by_id(store: DocumentStore, project_id: str) -> Project:
    """Point read of one project, soft-deleted or not."""
    if not project_id:
        raise ValidationError("Project ID is required")

    doc = await store.get(Collection.PROJECTS, project_id)
    if doc is None:
        raise EntityNotFound(Collection.PROJECTS, project_id)
    return Project.from_document(doc)


async def fetch_project_names(store: DocumentStore, project_ids: list[str]) -> dict[str, str]:
    """
    Build a project id -> name table for display.

    Best-effort: a failing batch is logged and left out of the table.
    """
    names: dict[str, str] = {}
    for batch in chunked(unique(project_ids), store.max_in_values):
        try:
            docs = await store.query(Collection.PROJECTS, [FieldFilter.is_in("id", batch)])
        except StoreUnavailable as e:
            logger.warning("Project name lookup skipped %d ids: %s", len(batch), e)
            continue
        for doc in docs:
            names[doc["id"]] = doc.get("name") or ""
    return names


async def _resolve_share(store: DocumentStore, email: str) -> str:
    """Account id for a registered email, otherwise the normalized email."""
    user_id = await find_user_id_by_email(store, email)
    return user_id or normalize_email(email)


async def create_project(
    store: DocumentStore,
    user_id: str,
    name: str,
    shared_with: list[str] | None = None,
    due_date: datetime | None = None,
    description: str = "",
) -> str:
    """
    Create a project owned by *user_id*.

    Shared emails that belong to existing accounts are stored as account ids;
    others are stored as lower-cased email placeholders.

    Returns:
        The new project id
    """
    if not user_id:
        raise ValidationError("User ID is required to create a project")
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("Project name must be a non-empty string")

    emails = [e for e in (shared_with or []) if e and e.strip()]
    resolved = await asyncio.gather(*[_resolve_share(store, e) for e in emails])
    members = [m for m in unique(resolved) if m != user_id]

    now = datetime.now(UTC)
    project = Project(
        name=name.strip(),
        description=description or "",
        created_by=user_id,
        shared_with=members,
        due_date=due_date or now,
        created_at=now,
    )
    project_id = await store.insert(Collection.PROJECTS, project.to_document())

    logger.info(
        "Created project %s shared with %d members",
        project_id,
        len(members),
        extra={"project_id": project_id, "user_id": user_id},
    )
    return project_id


async def update_project(
    store: DocumentStore,
    project_id: str,
    name: str | None = None,
    description: str | None = None,
) -> None:
    """Rename and/or re-describe a project."""
    if not project_id:
        raise ValidationError("Project ID is required")

    changes: dict[str, str] = {}
    if name is not None:
        if not name.strip():
            raise ValidationError("Project name must be a non-empty string")
        changes["name"] = name.strip()
    if description is not None:
        changes["description"] = description

    if not changes:
        return
    await store.update(Collection.PROJECTS, project_id, changes)


async def soft_delete_project(store: DocumentStore, project_id: str) -> None:
    """Mark a project inactive. The document is kept for recovery."""
    if not project_id:
        raise ValidationError("Project ID is required")

    await store.update(
        Collection.PROJECTS,
        project_id,
        {"isActive": False, "deletedAt": datetime.now(UTC)},
    )
    logger.info("Soft-deleted project %s", project_id, extra={"project_id": project_id})


async def add_user_to_project(store: DocumentStore, project_id: str, email: str) -> list[str]:
    """
    Share a project with the owner of *email*.

    Returns:
        The project's updated ``sharedWith`` list
    """
    if not project_id:
        raise ValidationError("Project ID is required")
    if not email or not email.strip():
        raise ValidationError("Email is required")

    project = await fetch_project_by_id(store, project_id)
    member = await _resolve_share(store, email)

    if member in project.members:
        logger.info("%s already belongs to project %s", member, project_id)
        return project.shared_with

    shared = [*project.shared_with, member]
    await store.update(Collection.PROJECTS, project_id, {"sharedWith": shared})
    return shared
