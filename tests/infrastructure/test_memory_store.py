"""Tests for the in-memory document store."""

from datetime import datetime, timezone

import pytest

from storefront.infrastructure.memory_store import InMemoryDocumentStore
from storefront.infrastructure.store import DOCUMENT_ID, Document, DocumentStoreError, Query, evaluate

T0 = datetime(2025, 1, 1, tzinfo=timezone.utc)
T1 = datetime(2025, 1, 2, tzinfo=timezone.utc)


class TestQueryEvaluation:
    """Tests for in-process query evaluation."""

    @pytest.fixture
    def documents(self) -> list[Document]:
        return [
            Document("b", {"kind": "card", "rank": 2, "at": T0}),
            Document("a", {"kind": "card", "rank": 2, "at": T1}),
            Document("c", {"kind": "pass", "rank": 1, "at": T1}),
            Document("d", {"kind": "card", "at": T0}),
        ]

    def test_no_order_is_id_order(self, documents: list[Document]) -> None:
        assert [d.id for d in evaluate(Query("x"), documents)] == ["a", "b", "c", "d"]

    def test_equality_filter(self, documents: list[Document]) -> None:
        query = Query("x").where("kind", "==", "pass")
        assert [d.id for d in evaluate(query, documents)] == ["c"]

    def test_inequality_excludes_missing_field(self, documents: list[Document]) -> None:
        query = Query("x").where("rank", "!=", 1)
        assert [d.id for d in evaluate(query, documents)] == ["a", "b"]

    def test_ordering_excludes_missing_field(self, documents: list[Document]) -> None:
        query = Query("x").order("rank", descending=True).order(DOCUMENT_ID)
        assert [d.id for d in evaluate(query, documents)] == ["a", "b", "c"]

    def test_start_after(self, documents: list[Document]) -> None:
        query = Query("x").order("at", descending=True).order(DOCUMENT_ID, descending=True)
        assert [d.id for d in evaluate(query.after((T1, "c")), documents)] == ["a", "d", "b"]

    def test_limit(self, documents: list[Document]) -> None:
        assert len(evaluate(Query("x").limited(2), documents)) == 2

    def test_start_after_needs_matching_values(self) -> None:
        with pytest.raises(ValueError):
            Query("x").order("at").after((T0, "a"))

    def test_unsupported_operator(self) -> None:
        with pytest.raises(ValueError):
            Query("x").where("rank", ">", 1)


class TestInMemoryDocumentStore:
    """Tests for InMemoryDocumentStore."""

    @pytest.mark.asyncio
    async def test_put_and_get(self, store: InMemoryDocumentStore) -> None:
        store.put("products", "p1", {"name": "Card"})
        document = await store.get("products", "p1")
        assert document == Document("p1", {"name": "Card"})
        assert await store.get("products", "p2") is None

    @pytest.mark.asyncio
    async def test_reads_are_copies(self, store: InMemoryDocumentStore) -> None:
        store.put("products", "p1", {"tags": ["a"]})
        document = await store.get("products", "p1")
        document.data["tags"].append("b")
        assert (await store.get("products", "p1")).data["tags"] == ["a"]

    @pytest.mark.asyncio
    async def test_add_generates_id(self, store: InMemoryDocumentStore) -> None:
        doc_id = store.add("products", {"name": "Card"})
        assert (await store.get("products", doc_id)).data == {"name": "Card"}

    def test_patch_missing_document(self, store: InMemoryDocumentStore) -> None:
        with pytest.raises(DocumentStoreError):
            store.patch("products", "nope", {"name": "x"})

    @pytest.mark.asyncio
    async def test_unavailable(self, store: InMemoryDocumentStore) -> None:
        store.set_available(False)
        with pytest.raises(DocumentStoreError):
            await store.query(Query("products"))
        with pytest.raises(DocumentStoreError):
            store.put("products", "p1", {})

        store.set_available(True)
        assert await store.query(Query("products")) == []

    def test_watch_document(self, store: InMemoryDocumentStore) -> None:
        snapshots: list[Document | None] = []
        unsubscribe = store.watch_document("products", "p1", snapshots.append, pytest.fail)

        store.put("products", "p1", {"v": 1})
        store.put("products", "p2", {"v": 1})
        unsubscribe()
        store.put("products", "p1", {"v": 2})

        assert snapshots == [None, Document("p1", {"v": 1})]

    def test_watch_query_delivers_only_changes(self, store: InMemoryDocumentStore) -> None:
        snapshots: list[list[str]] = []
        query = Query("products").where("kind", "==", "card")
        unsubscribe = store.watch_query(query, lambda docs: snapshots.append([d.id for d in docs]), pytest.fail)

        store.put("products", "p1", {"kind": "card"})
        store.put("products", "p2", {"kind": "pass"})
        store.put("reviews", "r1", {"kind": "card"})
        unsubscribe()

        assert snapshots == [[], ["p1"]]
        assert store.listener_count == 0

    def test_failing_listener_does_not_block_others(self, store: InMemoryDocumentStore) -> None:
        """The write succeeds and later listeners still see the change."""
        snapshots: list[Document | None] = []

        def crashing(document: Document | None) -> None:
            if document is not None:
                raise RuntimeError("view crashed")

        store.watch_document("products", "p1", crashing, pytest.fail)
        store.watch_document("products", "p1", snapshots.append, pytest.fail)

        store.put("products", "p1", {"v": 1})
        store.put("products", "p1", {"v": 2})

        assert snapshots == [None, Document("p1", {"v": 1}), Document("p1", {"v": 2})]
        assert store.listener_count == 2

    def test_broadcast_error(self, store: InMemoryDocumentStore) -> None:
        errors: list[Exception] = []
        store.watch_query(Query("products"), lambda docs: None, errors.append)
        store.broadcast_error(DocumentStoreError("boom"))
        assert len(errors) == 1

    @pytest.mark.asyncio
    async def test_close_drops_listeners(self, store: InMemoryDocumentStore) -> None:
        store.watch_query(Query("products"), lambda docs: None, lambda error: None)
        await store.close()
        assert store.listener_count == 0
