"""Product search backends.

The catalog talks to search through ``SearchBackend`` so the default
linear scan can be swapped for a real text index without touching
callers.
"""

from typing import Protocol

import structlog

from storefront.domain.entities import Product
from storefront.domain.exceptions import ValidationError
from storefront.infrastructure.store import DocumentStore, Query

logger = structlog.get_logger()


class SearchBackend(Protocol):
    """Free-text product search."""

    async def search(self, term: str, limit: int) -> list[Product]:
        """Return at most ``limit`` products matching ``term``."""
        ...


class LinearScanSearch:
    """Case-insensitive substring search over the whole collection.

    Reads every product on each call and keeps those whose name or
    description contains the term, in collection order, stopping at
    ``limit`` matches. Cost grows linearly with the catalog; large
    catalogs should plug in an indexed backend instead.
    """

    def __init__(self, store: DocumentStore, collection: str = "products") -> None:
        """Initialize search over a collection.

        Args:
            store: Document store to scan.
            collection: Collection holding product documents.
        """
        self.store = store
        self.collection = collection

    async def search(self, term: str, limit: int) -> list[Product]:
        documents = await self.store.query(Query(self.collection))
        needle = term.lower()

        matches: list[Product] = []
        for document in documents:
            try:
                product = Product.from_document(document.id, document.data)
            except ValidationError as e:
                logger.warning("Skipping malformed product in search", product_id=document.id, error=e.message)
                continue
            if needle in product.name.lower() or needle in product.description.lower():
                matches.append(product)
                if len(matches) >= limit:
                    break
        return matches
