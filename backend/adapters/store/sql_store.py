"""
SQLAlchemy implementation of the document store contract.

Each collection is backed by one table; document fields are camelCase and
map onto snake_case columns declared by each model's ``DOCUMENT_FIELDS``.
The project ``sharedWith`` array lives in ``project_shares`` so that
``array-contains`` / ``array-contains-any`` predicates translate to EXISTS
subqueries.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any
from uuid import uuid4

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import InstrumentedAttribute

from core.errors import EntityNotFound, QueryLimitExceeded, StoreUnavailable
from core.interfaces.store import (
    MEMBERSHIP_OPS,
    DocumentStore,
    FieldFilter,
    FilterOp,
    OrderBy,
)
from infrastructure.database.models import (
    Activity,
    Base,
    Project,
    ProjectShare,
    ProjectUser,
    Task,
    User,
)

logger = logging.getLogger(__name__)


COLLECTION_MODELS: dict[str, type[Base]] = {
    "projects": Project,
    "tasks": Task,
    "activities": Activity,
    "users": User,
}

# (model, document field) -> (relationship, element column)
ARRAY_FIELDS: dict[tuple[type[Base], str], tuple[InstrumentedAttribute, InstrumentedAttribute]] = {
    (Project, "sharedWith"): (Project.shares, ProjectShare.member),
}

# (parent collection, sub-collection) -> (model, parent key column)
SUBCOLLECTIONS: dict[tuple[str, str], tuple[type[Base], InstrumentedAttribute]] = {
    ("projects", "users"): (ProjectUser, ProjectUser.project_id),
}


class SqlDocumentStore(DocumentStore):
    """
    Document store over a SQL database.

    Every public call opens its own session and transaction, so each call is
    atomic on its own and nothing is held open between calls.
    """

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        max_in_values: int | None = None,
    ):
        """
        Initialize the store.

        Args:
            session_maker: Factory for async sessions bound to the target engine
            max_in_values: Cardinality limit for membership predicates
                (defaults to the ``store_max_in_values`` setting)
        """
        if max_in_values is None:
            from infrastructure.config import get_settings

            max_in_values = get_settings().store_max_in_values
        self._session_maker = session_maker
        self.max_in_values = max_in_values

    @asynccontextmanager
    async def _transaction(self, operation: str, collection: str) -> AsyncIterator[AsyncSession]:
        """Open a session+transaction and translate driver errors."""
        try:
            async with self._session_maker() as session:
                async with session.begin():
                    yield session
        except SQLAlchemyError as e:
            logger.error(
                "Store %s on %s failed: %s",
                operation,
                collection,
                e,
                extra={"collection": collection},
            )
            raise StoreUnavailable(f"{operation} on '{collection}' failed") from e

    # ── Mapping helpers ──────────────────────────────────────────────────────

    @staticmethod
    def _model(collection: str) -> type[Base]:
        try:
            return COLLECTION_MODELS[collection]
        except KeyError:
            raise ValueError(f"Unknown collection: {collection}") from None

    @staticmethod
    def _column(model: type[Base], field: str) -> InstrumentedAttribute:
        if field == "id":
            return model.id
        try:
            return getattr(model, model.DOCUMENT_FIELDS[field])
        except KeyError:
            raise ValueError(f"Unknown field '{field}' on {model.__tablename__}") from None

    def _clause(self, model: type[Base], flt: FieldFilter):
        if flt.op in MEMBERSHIP_OPS and len(flt.value) > self.max_in_values:
            raise QueryLimitExceeded(flt.field, len(flt.value), self.max_in_values)

        array = ARRAY_FIELDS.get((model, flt.field))
        if array is not None:
            relationship_attr, element = array
            if flt.op == FilterOp.ARRAY_CONTAINS:
                return relationship_attr.any(element == flt.value)
            if flt.op == FilterOp.ARRAY_CONTAINS_ANY:
                return relationship_attr.any(element.in_(flt.value))
            raise ValueError(f"Operator '{flt.op}' is not supported on array field '{flt.field}'")

        column = self._column(model, flt.field)
        if flt.op == FilterOp.EQ:
            return column == flt.value
        if flt.op == FilterOp.IN:
            return column.in_(flt.value)
        raise ValueError(f"Operator '{flt.op}' requires an array field, got '{flt.field}'")

    def _apply(self, model: type[Base], obj: Base, data: dict[str, Any]) -> None:
        for key, value in data.items():
            if key == "id":
                continue
            if (model, key) in ARRAY_FIELDS:
                obj.set_shared_with(list(value or []))
            elif key in model.DOCUMENT_FIELDS:
                setattr(obj, model.DOCUMENT_FIELDS[key], value)
            else:
                raise ValueError(f"Unknown field '{key}' on {model.__tablename__}")

    # ── DocumentStore API ────────────────────────────────────────────────────

    async def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        model = self._model(collection)
        async with self._transaction("get", collection) as session:
            obj = await session.get(model, doc_id)
            return obj.to_document() if obj is not None else None

    async def query(
        self,
        collection: str,
        filters: list[FieldFilter],
        order_by: OrderBy | None = None,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        model = self._model(collection)
        stmt = select(model).where(*[self._clause(model, flt) for flt in filters])
        if order_by is not None:
            column = self._column(model, order_by.field)
            direction = column.desc() if order_by.descending else column.asc()
            # Missing values sort last in both directions, on every backend
            stmt = stmt.order_by(direction.nulls_last())
        if limit is not None:
            stmt = stmt.limit(limit)

        async with self._transaction("query", collection) as session:
            result = await session.execute(stmt)
            documents = [obj.to_document() for obj in result.scalars().all()]

        logger.debug("Query on %s returned %d documents", collection, len(documents))
        return documents

    async def insert(self, collection: str, data: dict[str, Any]) -> str:
        model = self._model(collection)
        doc_id = data.get("id") or str(uuid4())
        obj = model(id=doc_id)
        self._apply(model, obj, data)

        async with self._transaction("insert", collection) as session:
            session.add(obj)

        logger.debug("Inserted %s/%s", collection, doc_id)
        return doc_id

    async def update(self, collection: str, doc_id: str, changes: dict[str, Any]) -> None:
        model = self._model(collection)
        async with self._transaction("update", collection) as session:
            obj = await session.get(model, doc_id)
            if obj is None:
                raise EntityNotFound(collection, doc_id)
            self._apply(model, obj, changes)

        logger.debug("Updated %s/%s fields=%s", collection, doc_id, sorted(changes))

    async def list_subcollection(
        self, collection: str, doc_id: str, subcollection: str
    ) -> list[dict[str, Any]]:
        try:
            model, parent_key = SUBCOLLECTIONS[(collection, subcollection)]
        except KeyError:
            raise ValueError(f"Unknown sub-collection: {collection}/{subcollection}") from None

        stmt = select(model).where(parent_key == doc_id).order_by(model.id)
        async with self._transaction("list", f"{collection}/{doc_id}/{subcollection}") as session:
            result = await session.execute(stmt)
            return [obj.to_document() for obj in result.scalars().all()]
