"""
Service layer for business logic.
"""

from functools import lru_cache

from adapters.push import ExpoPushAdapter
from adapters.store import get_document_store
from services.notifications import FanOutResult, NotificationService
from services.tasks import TaskLifecycleManager


@lru_cache
def get_task_manager() -> TaskLifecycleManager:
    """
    Get singleton task lifecycle manager bound to the application store.

    Returns:
        Configured TaskLifecycleManager instance
    """
    return TaskLifecycleManager(store=get_document_store())


@lru_cache
def get_notification_service() -> NotificationService:
    """
    Get singleton notification service.

    Returns:
        NotificationService using the Expo push endpoint from settings
    """
    return NotificationService(store=get_document_store(), push=ExpoPushAdapter())


__all__ = [
    "TaskLifecycleManager",
    "NotificationService",
    "FanOutResult",
    "get_task_manager",
    "get_notification_service",
]
