# Interfaces (Abstract Contracts)
# Adapters implement these interfaces
from .services import PushMessage, PushService
from .store import (
    MEMBERSHIP_OPS,
    Collection,
    DocumentStore,
    FieldFilter,
    FilterOp,
    OrderBy,
)

__all__ = [
    "DocumentStore",
    "Collection",
    "FieldFilter",
    "FilterOp",
    "OrderBy",
    "MEMBERSHIP_OPS",
    "PushService",
    "PushMessage",
]
