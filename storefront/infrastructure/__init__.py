"""Infrastructure: configuration, logging and document store backends."""

from storefront.infrastructure.memory_store import InMemoryDocumentStore
from storefront.infrastructure.store import (
    DOCUMENT_ID,
    Document,
    DocumentStore,
    DocumentStoreError,
    FieldFilter,
    OrderBy,
    Query,
)

__all__ = [
    "DOCUMENT_ID",
    "Document",
    "DocumentStore",
    "DocumentStoreError",
    "FieldFilter",
    "InMemoryDocumentStore",
    "OrderBy",
    "Query",
]
