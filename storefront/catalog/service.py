"""Catalog query service.

Translates storefront catalog requests into document store queries and
shapes the results into validated Product records. One-shot reads are
coroutines; live reads return a Subscription handle.
"""

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any

import structlog

from storefront.catalog.cursor import ProductCursor
from storefront.catalog.search import LinearScanSearch, SearchBackend
from storefront.catalog.subscriptions import Subscription, SubscriptionStream
from storefront.domain.entities import Product
from storefront.domain.exceptions import InvalidQueryError, StoreUnavailableError, ValidationError
from storefront.infrastructure.store import DOCUMENT_ID, Document, DocumentStore, DocumentStoreError, Query

logger = structlog.get_logger()

PRODUCTS = "products"
REVIEWS = "reviews"


@contextmanager
def translate_store_errors(operation: str, **context: Any) -> Iterator[None]:
    """Re-raise document store failures as StoreUnavailableError.

    Args:
        operation: Catalog operation name, for logging and the error.
        **context: Extra key/values to log.
    """
    try:
        yield
    except DocumentStoreError as e:
        logger.warning("Document store call failed", operation=operation, error=str(e), **context)
        raise StoreUnavailableError(operation, str(e)) from e


def check_limit(limit: int) -> None:
    if limit < 1:
        raise InvalidQueryError("limit", f"must be at least 1, got {limit}")


def to_products(documents: list[Document]) -> list[Product]:
    """Convert documents to products, skipping malformed ones."""
    products = []
    for document in documents:
        try:
            products.append(Product.from_document(document.id, document.data))
        except ValidationError as e:
            logger.warning("Skipping malformed product", product_id=document.id, error=e.message)
    return products


@dataclass
class ProductPage:
    """One page of a category listing.

    Attributes:
        products: Products on this page, newest first.
        next_cursor: Where the next page starts, None on the last page.
    """

    products: list[Product]
    next_cursor: ProductCursor | None


class CatalogService:
    """Service for catalog reads.

    Stateless apart from the live subscriptions it hands out. No caching
    and no de-duplication: concurrent identical calls each hit the store.

    Example usage:
        service = CatalogService(store)
        featured = await service.get_featured_products()
        page = await service.get_next_products_batch("steam", cursor=None)
    """

    def __init__(self, store: DocumentStore, search_backend: SearchBackend | None = None) -> None:
        """Initialize service with a document store.

        Args:
            store: Document store holding the products collection.
            search_backend: Search implementation; defaults to a linear scan.
        """
        self.store = store
        self.search_backend = search_backend or LinearScanSearch(store, PRODUCTS)

    # ------------------------------------------------------------------
    # Query construction
    # ------------------------------------------------------------------

    @staticmethod
    def category_query(category: str) -> Query:
        """Newest-first listing of a category, id as tie-breaker."""
        return (
            Query(PRODUCTS)
            .where("category", "==", category)
            .order("createdAt", descending=True)
            .order(DOCUMENT_ID, descending=True)
        )

    async def _fetch(self, operation: str, query: Query, **context: Any) -> list[Document]:
        with translate_store_errors(operation, **context):
            return await self.store.query(query)

    # ------------------------------------------------------------------
    # One-shot reads
    # ------------------------------------------------------------------

    async def get_product(self, product_id: str) -> Product | None:
        """Get product by ID.

        Args:
            product_id: Product ID.

        Returns:
            Product if found, None otherwise.

        Raises:
            StoreUnavailableError: If the store call fails.
            ValidationError: If the stored record is malformed.
        """
        if not product_id:
            return None
        with translate_store_errors("get_product", product_id=product_id):
            document = await self.store.get(PRODUCTS, product_id)
        if document is None:
            return None
        try:
            return Product.from_document(document.id, document.data)
        except ValidationError as e:
            logger.error("Malformed product record", product_id=product_id, error=e.message)
            raise

    async def get_products_by_category(self, category: str, limit: int = 6) -> list[Product]:
        """Get the newest products of a category.

        Args:
            category: Category slug.
            limit: Maximum number of products.

        Returns:
            Products ordered by creation time, newest first.
        """
        check_limit(limit)
        if not category:
            return []
        documents = await self._fetch(
            "get_products_by_category",
            self.category_query(category).limited(limit),
            category=category,
        )
        return to_products(documents)

    async def _get_flagged(self, flag: str, order_field: str, limit: int) -> list[Product]:
        check_limit(limit)
        query = Query(PRODUCTS).where(flag, "==", True).order(order_field, descending=True)
        if order_field != "createdAt":
            query = query.order("createdAt", descending=True)
        documents = await self._fetch(f"get_{flag}_products", query.limited(limit))
        return to_products(documents)

    async def get_featured_products(self, limit: int = 4) -> list[Product]:
        """Get featured products, newest first."""
        return await self._get_flagged("featured", "createdAt", limit)

    async def get_popular_products(self, limit: int = 4) -> list[Product]:
        """Get popular products, best rated first.

        Products without a rating have no sort key and are left out.
        """
        return await self._get_flagged("popular", "rating", limit)

    async def get_sale_products(self, limit: int = 4) -> list[Product]:
        """Get products on sale, newest first."""
        return await self._get_flagged("sale", "createdAt", limit)

    async def get_related_products(self, product_id: str, category: str, limit: int = 3) -> list[Product]:
        """Get other products from the same category.

        Args:
            product_id: Product to exclude.
            category: Category slug to draw from.
            limit: Maximum number of products.

        Returns:
            Products ordered newest first, never including ``product_id``.
        """
        check_limit(limit)
        if not category:
            return []
        # One extra row covers the excluded product
        documents = await self._fetch(
            "get_related_products",
            self.category_query(category).limited(limit + 1),
            product_id=product_id,
            category=category,
        )
        related = [d for d in documents if d.id != product_id][:limit]
        return to_products(related)

    async def get_next_products_batch(
        self,
        category: str,
        cursor: ProductCursor | str | None = None,
        limit: int = 6,
    ) -> ProductPage:
        """Get the page of a category listing that follows a cursor.

        Args:
            category: Category slug.
            cursor: Position to resume after; None starts at the top.
                Encoded cursor strings are accepted.
            limit: Page size.

        Returns:
            ProductPage whose ``next_cursor`` is None on the final page.

        Raises:
            InvalidQueryError: If the limit or cursor is unusable.
        """
        check_limit(limit)
        if isinstance(cursor, str):
            cursor = ProductCursor.decode(cursor)
        if not category:
            return ProductPage(products=[], next_cursor=None)

        query = self.category_query(category).limited(limit)
        if cursor is not None:
            query = query.after(cursor.values())

        documents = await self._fetch(
            "get_next_products_batch",
            query,
            category=category,
            cursor=str(cursor) if cursor else None,
        )
        next_cursor = ProductCursor.from_document(documents[-1]) if len(documents) == limit else None
        return ProductPage(products=to_products(documents), next_cursor=next_cursor)

    async def search_products(self, term: str, limit: int = 10) -> list[Product]:
        """Search product names and descriptions.

        Args:
            term: Text to look for, case-insensitively.
            limit: Maximum number of matches.

        Returns:
            Matching products in collection order.
        """
        check_limit(limit)
        with translate_store_errors("search_products", term=term):
            return await self.search_backend.search(term, limit)

    async def check_store(self) -> None:
        """Run a minimal query to confirm the store answers.

        Raises:
            StoreUnavailableError: If it does not.
        """
        await self._fetch("check_store", Query(PRODUCTS).limited(1))

    # ------------------------------------------------------------------
    # Live reads
    # ------------------------------------------------------------------

    def subscribe_to_product(
        self,
        product_id: str,
        on_change: Callable[[Product | None], None],
    ) -> Subscription[Product | None]:
        """Watch one product.

        ``on_change`` receives the current product (or None) right away
        and again after every change, until the subscription is
        cancelled. Store errors and malformed records deliver None; the
        subscription keeps listening.

        Args:
            product_id: Product ID.
            on_change: Consumer callback.

        Returns:
            Active Subscription; the caller must cancel it.
        """
        subscription: Subscription[Product | None] = Subscription(f"{PRODUCTS}/{product_id}")

        def on_snapshot(document: Document | None) -> None:
            product = None
            if document is not None:
                try:
                    product = Product.from_document(document.id, document.data)
                except ValidationError as e:
                    logger.warning("Malformed product in subscription", product_id=product_id, error=e.message)
            subscription.deliver(on_change, product)

        def on_error(error: Exception) -> None:
            logger.warning("Product subscription error", product_id=product_id, error=str(error))
            subscription.deliver(on_change, None)

        subscription.bind(self.store.watch_document(PRODUCTS, product_id, on_snapshot, on_error))
        return subscription

    def subscribe_to_products_by_category(
        self,
        category: str,
        on_change: Callable[[list[Product]], None],
        limit: int = 6,
    ) -> Subscription[list[Product]]:
        """Watch the newest products of a category.

        ``on_change`` receives the full, recomputed list right away and
        whenever the result set changes. Store errors deliver an empty
        list; the subscription keeps listening.

        Args:
            category: Category slug.
            on_change: Consumer callback.
            limit: Maximum number of products.

        Returns:
            Active Subscription; the caller must cancel it.
        """
        check_limit(limit)
        subscription: Subscription[list[Product]] = Subscription(f"{PRODUCTS}?category={category}")

        def on_snapshot(documents: list[Document]) -> None:
            subscription.deliver(on_change, to_products(documents))

        def on_error(error: Exception) -> None:
            logger.warning("Category subscription error", category=category, error=str(error))
            subscription.deliver(on_change, [])

        query = self.category_query(category).limited(limit)
        subscription.bind(self.store.watch_query(query, on_snapshot, on_error))
        return subscription

    def stream_product(self, product_id: str) -> SubscriptionStream[Product | None]:
        """Watch one product as an async iterator. Needs a running loop."""
        stream: SubscriptionStream[Product | None] = SubscriptionStream()
        stream.attach(self.subscribe_to_product(product_id, stream.push))
        return stream

    def stream_products_by_category(self, category: str, limit: int = 6) -> SubscriptionStream[list[Product]]:
        """Watch a category listing as an async iterator. Needs a running loop."""
        stream: SubscriptionStream[list[Product]] = SubscriptionStream()
        stream.attach(self.subscribe_to_products_by_category(category, stream.push, limit))
        return stream
