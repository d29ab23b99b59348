"""Error taxonomy for the synchronization layer."""


class SyncLayerError(Exception):
    """Base exception for project/task/activity orchestration errors."""

    pass


class ValidationError(SyncLayerError):
    """Raised when a required field is missing or malformed.

    Always raised before any store access; never worth retrying.
    """

    pass


class NotAMemberError(ValidationError):
    """Raised when a user writes to a project they are not a member of."""

    pass


class EntityNotFound(SyncLayerError):
    """Raised when a point read finds no document."""

    def __init__(self, collection: str, doc_id: str):
        self.collection = collection
        self.doc_id = doc_id
        super().__init__(f"{collection}/{doc_id} does not exist")


class StoreUnavailable(SyncLayerError):
    """Raised when a read, query, or write against the document store fails.

    Retryable by the caller; this layer never retries.
    """

    pass


class QueryLimitExceeded(SyncLayerError):
    """Raised when a membership predicate carries more values than the store allows."""

    def __init__(self, field: str, size: int, limit: int):
        self.field = field
        self.size = size
        self.limit = limit
        super().__init__(
            f"Membership predicate on '{field}' has {size} values (limit {limit})"
        )


class PartialWriteInconsistency(SyncLayerError):
    """Raised when a task status update succeeded but its audit entry was not written."""

    def __init__(self, task_id: str, applied_status: str, message: str | None = None):
        self.task_id = task_id
        self.applied_status = applied_status
        super().__init__(
            message
            or f"Task {task_id} set to '{applied_status}' but the audit entry was not recorded"
        )


class RecipientDispatchFailure(SyncLayerError):
    """Raised by push adapters when one recipient's dispatch fails."""

    def __init__(self, token: str, reason: str):
        self.token = token
        self.reason = reason
        super().__init__(f"Push dispatch failed: {reason}")
