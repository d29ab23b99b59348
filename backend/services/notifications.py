"""
Push notification fan-out to project members.

Recipients come from the ``projects/{id}/users`` sub-resource, not from the
project's ``sharedWith`` list. Each dispatch is independent: one failing
recipient is logged and counted, never raised.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

from core.domain import ProjectUser
from core.errors import RecipientDispatchFailure, ValidationError
from core.interfaces.services import PushMessage, PushService
from core.interfaces.store import DocumentStore
from services.membership import fetch_project_users

logger = logging.getLogger(__name__)


@dataclass
class FanOutResult:
    """Outcome counts of one fan-out."""

    delivered: int = 0
    failed: int = 0
    skipped: int = 0

    def to_dict(self) -> dict[str, int]:
        return {"delivered": self.delivered, "failed": self.failed, "skipped": self.skipped}


class NotificationService:
    """Sends a message to every member of a project except its sender."""

    def __init__(self, store: DocumentStore, push: PushService):
        self.store = store
        self.push = push

    async def notify_project_members(
        self,
        project_id: str,
        sender_id: str,
        title: str,
        body: str,
        data: dict[str, Any] | None = None,
    ) -> FanOutResult:
        """
        Dispatch a push message to the project's other members.

        Members without a registered push token are skipped.

        Raises:
            ValidationError: Missing project or sender id
            StoreUnavailable: The member list could not be read
        """
        if not project_id:
            raise ValidationError("Project ID is required")
        if not sender_id:
            raise ValidationError("Sender ID is required")

        users = await fetch_project_users(self.store, project_id)
        recipients = [u for u in users if u.user_id != sender_id and u.push_token]
        result = FanOutResult(skipped=len(users) - len(recipients))

        outcomes = await asyncio.gather(
            *[self._dispatch(project_id, user, title, body, data or {}) for user in recipients]
        )
        result.delivered = sum(1 for ok in outcomes if ok)
        result.failed = len(outcomes) - result.delivered

        logger.info(
            "Project %s notification: %d delivered, %d failed, %d skipped",
            project_id,
            result.delivered,
            result.failed,
            result.skipped,
            extra={"project_id": project_id, "user_id": sender_id},
        )
        return result

    async def _dispatch(
        self,
        project_id: str,
        user: ProjectUser,
        title: str,
        body: str,
        data: dict[str, Any],
    ) -> bool:
        message = PushMessage(token=user.push_token, title=title, body=body, data=data)
        try:
            await self.push.send(message)
            return True
        except RecipientDispatchFailure as e:
            logger.warning(
                "Push to user %s failed: %s",
                user.user_id,
                e.reason,
                extra={"project_id": project_id, "recipient": user.user_id},
            )
        except Exception:
            logger.exception(
                "Unexpected error pushing to user %s",
                user.user_id,
                extra={"project_id": project_id, "recipient": user.user_id},
            )
        return False
