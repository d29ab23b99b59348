"""Document store contract consumed by the service layer."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import StrEnum
from typing import Any


class Collection(StrEnum):
    """Top-level collections known to the store."""

    PROJECTS = "projects"
    TASKS = "tasks"
    ACTIVITIES = "activities"
    USERS = "users"


class FilterOp(StrEnum):
    """Supported query predicates."""

    EQ = "=="
    IN = "in"
    ARRAY_CONTAINS = "array-contains"
    ARRAY_CONTAINS_ANY = "array-contains-any"


# Operators whose value is a bounded set of candidates
MEMBERSHIP_OPS = frozenset({FilterOp.IN, FilterOp.ARRAY_CONTAINS_ANY})


@dataclass(frozen=True)
class FieldFilter:
    """Single predicate over a document field."""

    field: str
    op: FilterOp
    value: Any

    @classmethod
    def eq(cls, field: str, value: Any) -> "FieldFilter":
        return cls(field, FilterOp.EQ, value)

    @classmethod
    def is_in(cls, field: str, values: list[Any]) -> "FieldFilter":
        return cls(field, FilterOp.IN, list(values))

    @classmethod
    def contains(cls, field: str, value: Any) -> "FieldFilter":
        return cls(field, FilterOp.ARRAY_CONTAINS, value)

    @classmethod
    def contains_any(cls, field: str, values: list[Any]) -> "FieldFilter":
        return cls(field, FilterOp.ARRAY_CONTAINS_ANY, list(values))


@dataclass(frozen=True)
class OrderBy:
    """Ordering clause for a query."""

    field: str
    descending: bool = False


class DocumentStore(ABC):
    """Abstract document store over collections of dict documents.

    Documents are returned with their id under the ``"id"`` key. Every call is
    independently atomic; implementations raise ``StoreUnavailable`` on
    backend failure and ``QueryLimitExceeded`` when a membership predicate is
    larger than ``max_in_values``.
    """

    max_in_values: int = 10

    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        """Point read by id."""
        ...

    @abstractmethod
    async def query(
        self,
        collection: str,
        filters: list[FieldFilter],
        order_by: OrderBy | None = None,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """Query a collection with AND-ed filters."""
        ...

    @abstractmethod
    async def insert(self, collection: str, data: dict[str, Any]) -> str:
        """Insert a document and return its generated id."""
        ...

    @abstractmethod
    async def update(self, collection: str, doc_id: str, changes: dict[str, Any]) -> None:
        """Partially update a document."""
        ...

    @abstractmethod
    async def list_subcollection(
        self, collection: str, doc_id: str, subcollection: str
    ) -> list[dict[str, Any]]:
        """List documents of a sub-resource, e.g. ``projects/{id}/users``."""
        ...
