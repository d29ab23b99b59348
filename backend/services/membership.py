"""
Project membership resolution and user name lookup.

Two membership views exist and are kept apart on purpose:

- ``resolve_members`` reads the project document (``createdBy`` + ``sharedWith``)
- ``fetch_project_users`` reads the ``projects/{id}/users`` sub-resource,
  which also carries push tokens
"""

import logging

from core.domain import Project, ProjectUser
from core.errors import EntityNotFound, NotAMemberError, StoreUnavailable, ValidationError
from core.interfaces.store import Collection, DocumentStore, FieldFilter
from services.batching import chunked, unique

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


async def resolve_members(store: DocumentStore, project_id: str) -> list[str]:
    """
    Return the project's members, creator first, without duplicates.

    A project that does not exist has no members.
    """
    if not project_id:
        raise ValidationError("Project ID is required")

    doc = await store.get(Collection.PROJECTS, project_id)
    if doc is None:
        return []
    return Project.from_document(doc).members


async def ensure_member(
    store: DocumentStore,
    project_id: str,
    user_id: str,
    email: str | None = None,
) -> Project:
    """
    Load a project and check that *user_id* belongs to it.

    A user still listed under the email placeholder they were invited with
    counts as a member when *email* is given, matching ``fetch_projects``.

    Raises:
        EntityNotFound: If the project does not exist
        NotAMemberError: If the user is neither creator nor shared with
    """
    doc = await store.get(Collection.PROJECTS, project_id)
    if doc is None:
        raise EntityNotFound(Collection.PROJECTS, project_id)

    project = Project.from_document(doc)
    identities = {user_id}
    if email and email.strip():
        identities.add(normalize_email(email))
    if identities.isdisjoint(project.members):
        raise NotAMemberError(f"User {user_id} is not a member of project {project_id}")
    return project


async def fetch_project_users(store: DocumentStore, project_id: str) -> list[ProjectUser]:
    """Return entries of the per-project user sub-resource."""
    if not project_id:
        raise ValidationError("Project ID is required")

    docs = await store.list_subcollection(Collection.PROJECTS, project_id, "users")
    return [ProjectUser.from_document(doc) for doc in docs]


async def find_user_id_by_email(store: DocumentStore, email: str) -> str | None:
    """Return the account id registered for *email*, or None."""
    normalized = normalize_email(email or "")
    if not normalized:
        return None

    docs = await store.query(Collection.USERS, [FieldFilter.eq("email", normalized)], limit=1)
    return docs[0]["id"] if docs else None


async def lookup_names(store: DocumentStore, user_ids: list[str]) -> dict[str, str]:
    """
    Resolve user ids to display (first) names.

    Unknown ids are omitted. A failing batch is logged and skipped so the
    rest of the mapping is still returned.
    """
    ids = unique(user_ids)
    names: dict[str, str] = {}

    for batch in chunked(ids, store.max_in_values):
        try:
            docs = await store.query(Collection.USERS, [FieldFilter.is_in("id", batch)])
        except StoreUnavailable as e:
            logger.warning("Name lookup skipped %d ids: %s", len(batch), e)
            continue
        for doc in docs:
            names[doc["id"]] = doc.get("firstName") or ""

    return names


async def bind_pending_memberships(store: DocumentStore, email: str, user_id: str) -> int:
    """
    Replace an email placeholder with the account id it now belongs to.

    Called once an invitee signs up. Share order is preserved; if the user
    was already listed by id the placeholder is simply dropped.

    Returns:
        Number of projects updated
    """
    normalized = normalize_email(email or "")
    if not normalized or not user_id:
        raise ValidationError("Email and user ID are required")

    docs = await store.query(
        Collection.PROJECTS, [FieldFilter.contains("sharedWith", normalized)]
    )

    for doc in docs:
        shared = [user_id if entry == normalized else entry for entry in doc.get("sharedWith", [])]
        await store.update(Collection.PROJECTS, doc["id"], {"sharedWith": unique(shared)})

    if docs:
        logger.info(
            "Bound %d pending project shares to user %s",
            len(docs),
            user_id,
            extra={"user_id": user_id},
        )
    return len(docs)
