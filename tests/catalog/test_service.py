"""Tests for the catalog query service."""

from collections.abc import Callable
from datetime import datetime
from decimal import Decimal

import pytest

from storefront.catalog.cursor import ProductCursor
from storefront.catalog.service import CatalogService
from storefront.domain.entities import Product
from storefront.domain.exceptions import InvalidQueryError, StoreUnavailableError, ValidationError
from storefront.infrastructure.memory_store import InMemoryDocumentStore
from storefront.infrastructure.store import DocumentStoreError


@pytest.fixture
def games(add_product: Callable[..., str]) -> list[str]:
    """Eight products T1..T8 in category "games", T8 newest."""
    return [add_product(f"T{i}", name=f"Game Card {i}", category="games", hours=i) for i in range(1, 9)]


class TestGetProduct:
    """Tests for point lookups."""

    @pytest.mark.asyncio
    async def test_returns_stored_state(
        self, service: CatalogService, store: InMemoryDocumentStore, add_product
    ) -> None:
        """The product equals what the store holds."""
        add_product("steam-001", category="steam", featured=True, rating=4.5)
        product = await service.get_product("steam-001")

        stored = await store.get("products", "steam-001")
        assert product == Product.from_document(stored.id, stored.data)
        assert product.featured is True

    @pytest.mark.asyncio
    async def test_missing_product_is_none(self, service: CatalogService) -> None:
        assert await service.get_product("nope") is None

    @pytest.mark.asyncio
    async def test_empty_id_is_none(self, service: CatalogService) -> None:
        assert await service.get_product("") is None

    @pytest.mark.asyncio
    async def test_malformed_record_raises(self, service: CatalogService, store: InMemoryDocumentStore) -> None:
        """Point lookups surface validation failures."""
        store.put("products", "bad", {"name": "Broken"})
        with pytest.raises(ValidationError):
            await service.get_product("bad")

    @pytest.mark.asyncio
    async def test_store_failure(self, service: CatalogService, store: InMemoryDocumentStore) -> None:
        store.set_available(False)
        with pytest.raises(StoreUnavailableError) as exc_info:
            await service.get_product("steam-001")
        assert exc_info.value.operation == "get_product"
        assert isinstance(exc_info.value.__cause__, DocumentStoreError)


class TestCategoryListing:
    """Tests for get_products_by_category."""

    @pytest.mark.asyncio
    async def test_newest_first_within_limit(
        self, service: CatalogService, games: list[str], add_product
    ) -> None:
        add_product("other", category="steam", hours=100)
        products = await service.get_products_by_category("games", limit=5)

        assert len(products) == 5
        assert all(p.category == "games" for p in products)
        timestamps = [p.created_at for p in products]
        assert timestamps == sorted(timestamps, reverse=True)
        assert [p.id for p in products] == ["T8", "T7", "T6", "T5", "T4"]

    @pytest.mark.asyncio
    async def test_default_limit(self, service: CatalogService, games: list[str]) -> None:
        assert len(await service.get_products_by_category("games")) == 6

    @pytest.mark.asyncio
    async def test_unknown_category(self, service: CatalogService, games: list[str]) -> None:
        assert await service.get_products_by_category("nothing-here") == []

    @pytest.mark.asyncio
    async def test_empty_category_skips_store(self, service: CatalogService, store: InMemoryDocumentStore) -> None:
        """An empty category never reaches the store."""
        store.set_available(False)
        assert await service.get_products_by_category("") == []

    @pytest.mark.asyncio
    async def test_same_timestamp_ordered_by_id(self, service: CatalogService, add_product) -> None:
        add_product("a", hours=1)
        add_product("c", hours=1)
        add_product("b", hours=1)
        products = await service.get_products_by_category("games")
        assert [p.id for p in products] == ["c", "b", "a"]

    @pytest.mark.asyncio
    async def test_malformed_records_skipped(
        self, service: CatalogService, store: InMemoryDocumentStore, games: list[str], product_data
    ) -> None:
        """List reads drop records that fail validation."""
        store.put("products", "broken", product_data(hours=50, price=Decimal("-5")))
        products = await service.get_products_by_category("games", limit=3)
        assert [p.id for p in products] == ["T8", "T7"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("limit", [0, -1])
    async def test_invalid_limit(self, service: CatalogService, limit: int) -> None:
        with pytest.raises(InvalidQueryError) as exc_info:
            await service.get_products_by_category("games", limit=limit)
        assert exc_info.value.parameter == "limit"

    @pytest.mark.asyncio
    async def test_store_failure(self, service: CatalogService, store: InMemoryDocumentStore) -> None:
        store.set_available(False)
        with pytest.raises(StoreUnavailableError) as exc_info:
            await service.get_products_by_category("games")
        assert exc_info.value.operation == "get_products_by_category"


class TestFlaggedListings:
    """Tests for featured, popular and sale listings."""

    @pytest.mark.asyncio
    async def test_featured(self, service: CatalogService, add_product) -> None:
        add_product("f1", featured=True, hours=1)
        add_product("f2", featured=True, hours=2)
        add_product("plain", hours=3)

        products = await service.get_featured_products()
        assert [p.id for p in products] == ["f2", "f1"]

    @pytest.mark.asyncio
    async def test_sale(self, service: CatalogService, add_product) -> None:
        for i in range(6):
            add_product(f"s{i}", sale=True, originalPrice=Decimal("12.00"), hours=i)

        products = await service.get_sale_products()
        assert [p.id for p in products] == ["s5", "s4", "s3", "s2"]
        assert all(p.discount_percent == 17 for p in products)

    @pytest.mark.asyncio
    async def test_popular_ordered_by_rating(self, service: CatalogService, add_product) -> None:
        """Best rated first; unrated popular products are left out."""
        add_product("low", popular=True, rating=3.9, hours=1)
        add_product("high", popular=True, rating=4.9, hours=2)
        add_product("tie-old", popular=True, rating=4.5, hours=3)
        add_product("tie-new", popular=True, rating=4.5, hours=4)
        add_product("unrated", popular=True, hours=5)

        products = await service.get_popular_products(limit=10)
        assert [p.id for p in products] == ["high", "tie-new", "tie-old", "low"]

    @pytest.mark.asyncio
    async def test_flagged_invalid_limit(self, service: CatalogService) -> None:
        with pytest.raises(InvalidQueryError):
            await service.get_featured_products(limit=0)


class TestRelatedProducts:
    """Tests for get_related_products."""

    @pytest.mark.asyncio
    async def test_excludes_product(self, service: CatalogService, games: list[str]) -> None:
        related = await service.get_related_products("T8", "games")
        assert "T8" not in [p.id for p in related]
        assert [p.id for p in related] == ["T7", "T6", "T5"]

    @pytest.mark.asyncio
    async def test_excluded_product_outside_window(self, service: CatalogService, games: list[str]) -> None:
        related = await service.get_related_products("T1", "games", limit=3)
        assert [p.id for p in related] == ["T8", "T7", "T6"]

    @pytest.mark.asyncio
    async def test_only_product_in_category(self, service: CatalogService, add_product) -> None:
        add_product("lonely", category="steam")
        assert await service.get_related_products("lonely", "steam") == []

    @pytest.mark.asyncio
    async def test_empty_category(self, service: CatalogService) -> None:
        assert await service.get_related_products("T1", "") == []


class TestPagination:
    """Tests for get_next_products_batch."""

    @pytest.mark.asyncio
    async def test_eight_products_two_pages(self, service: CatalogService, games: list[str]) -> None:
        """First page is T8..T3; the page after T3 is T2, T1 and ends."""
        first = await service.get_next_products_batch("games", cursor=None, limit=6)
        assert [p.id for p in first.products] == ["T8", "T7", "T6", "T5", "T4", "T3"]
        assert first.next_cursor is not None
        assert first.next_cursor.product_id == "T3"

        second = await service.get_next_products_batch("games", cursor=first.next_cursor, limit=6)
        assert [p.id for p in second.products] == ["T2", "T1"]
        assert second.next_cursor is None

    @pytest.mark.asyncio
    async def test_cursor_from_product(self, service: CatalogService, games: list[str]) -> None:
        t3 = await service.get_product("T3")
        page = await service.get_next_products_batch("games", cursor=ProductCursor.after(t3))
        assert [p.id for p in page.products] == ["T2", "T1"]

    @pytest.mark.asyncio
    async def test_encoded_cursor_accepted(self, service: CatalogService, games: list[str]) -> None:
        first = await service.get_next_products_batch("games", limit=4)
        second = await service.get_next_products_batch("games", cursor=first.next_cursor.encode(), limit=4)
        assert [p.id for p in second.products] == ["T4", "T3", "T2", "T1"]

    @pytest.mark.asyncio
    async def test_walk_matches_full_listing(self, service: CatalogService, add_product) -> None:
        """Following cursors yields every product exactly once."""
        for i in range(11):
            # Pairs share a timestamp to exercise the id tie-breaker
            add_product(f"p{i:02d}", hours=i // 2)

        expected = [p.id for p in await service.get_products_by_category("games", limit=100)]

        seen: list[str] = []
        cursor = None
        while True:
            page = await service.get_next_products_batch("games", cursor=cursor, limit=3)
            seen.extend(p.id for p in page.products)
            if page.next_cursor is None:
                break
            cursor = page.next_cursor

        assert seen == expected
        assert len(set(seen)) == 11

    @pytest.mark.asyncio
    async def test_exact_multiple_ends_with_empty_page(self, service: CatalogService, add_product) -> None:
        """A full last page still returns a cursor; the next page is empty."""
        for i in range(4):
            add_product(f"p{i}", hours=i)

        first = await service.get_next_products_batch("games", limit=4)
        assert first.next_cursor is not None

        second = await service.get_next_products_batch("games", cursor=first.next_cursor, limit=4)
        assert second.products == []
        assert second.next_cursor is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("as_stored", [
        lambda t: t.replace(tzinfo=None),
        lambda t: t.isoformat(),
        lambda t: t.replace(tzinfo=None).isoformat(),
    ], ids=["naive", "iso_string", "naive_iso_string"])
    async def test_pages_over_loosely_typed_timestamps(
        self,
        service: CatalogService,
        store: InMemoryDocumentStore,
        games: list[str],
        as_stored: Callable[[datetime], object],
    ) -> None:
        """Naive and string createdAt values page like UTC timestamps."""
        for product_id in ("T1", "T3", "T5", "T7"):
            product = await service.get_product(product_id)
            store.patch("products", product_id, {"createdAt": as_stored(product.created_at)})

        seen: list[str] = []
        cursor = None
        while True:
            page = await service.get_next_products_batch("games", cursor=cursor, limit=3)
            seen.extend(p.id for p in page.products)
            if page.next_cursor is None:
                break
            cursor = page.next_cursor.encode()

        assert seen == ["T8", "T7", "T6", "T5", "T4", "T3", "T2", "T1"]

    @pytest.mark.asyncio
    async def test_malformed_cursor(self, service: CatalogService) -> None:
        with pytest.raises(InvalidQueryError) as exc_info:
            await service.get_next_products_batch("games", cursor="not-a-cursor")
        assert exc_info.value.parameter == "cursor"

    @pytest.mark.asyncio
    async def test_empty_category(self, service: CatalogService) -> None:
        page = await service.get_next_products_batch("")
        assert page.products == []
        assert page.next_cursor is None


class TestSearch:
    """Tests for search_products."""

    @pytest.mark.asyncio
    async def test_matches_name_or_description(self, service: CatalogService, add_product) -> None:
        add_product("a", name="Steam Wallet $20")
        add_product("b", name="Xbox Card", description="Works with STEAM-like stores")
        add_product("c", name="Roblox Robux")

        results = await service.search_products("steam")
        assert [p.id for p in results] == ["a", "b"]

    @pytest.mark.asyncio
    async def test_truncated_to_limit(self, service: CatalogService, add_product) -> None:
        for i in range(5):
            add_product(f"card-{i}", name=f"Gift Card {i}")

        results = await service.search_products("gift", limit=2)
        assert [p.id for p in results] == ["card-0", "card-1"]

    @pytest.mark.asyncio
    async def test_no_matches(self, service: CatalogService, add_product) -> None:
        add_product("a", name="Steam Wallet")
        assert await service.search_products("fortnite") == []

    @pytest.mark.asyncio
    async def test_store_failure(self, service: CatalogService, store: InMemoryDocumentStore) -> None:
        store.set_available(False)
        with pytest.raises(StoreUnavailableError) as exc_info:
            await service.search_products("steam")
        assert exc_info.value.operation == "search_products"

    @pytest.mark.asyncio
    async def test_custom_backend(self, store: InMemoryDocumentStore) -> None:
        """Search goes through the configured backend."""

        class FixedSearch:
            def __init__(self) -> None:
                self.calls: list[tuple[str, int]] = []

            async def search(self, term: str, limit: int) -> list[Product]:
                self.calls.append((term, limit))
                return []

        backend = FixedSearch()
        service = CatalogService(store, search_backend=backend)
        assert await service.search_products("robux", limit=7) == []
        assert backend.calls == [("robux", 7)]


class TestCheckStore:
    """Tests for the readiness check."""

    @pytest.mark.asyncio
    async def test_available(self, service: CatalogService) -> None:
        await service.check_store()

    @pytest.mark.asyncio
    async def test_unavailable(self, service: CatalogService, store: InMemoryDocumentStore) -> None:
        store.set_available(False)
        with pytest.raises(StoreUnavailableError):
            await service.check_store()
