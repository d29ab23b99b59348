"""Document store adapters."""

from .sql_store import SqlDocumentStore


def get_document_store() -> SqlDocumentStore:
    """Build a store bound to the application database."""
    from infrastructure.database import get_session_maker

    return SqlDocumentStore(get_session_maker())


__all__ = ["SqlDocumentStore", "get_document_store"]
