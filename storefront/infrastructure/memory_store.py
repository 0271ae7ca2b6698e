"""In-memory document store.

Dict-backed store used for local development and tests. Writes notify
listeners synchronously on the writing thread, so listeners must be
cheap and thread-safe. Availability can be toggled to simulate outages.
"""

import copy
import itertools
import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any
from uuid import uuid4

import structlog

from storefront.infrastructure.store import (
    Document,
    DocumentStoreError,
    ErrorCallback,
    Query,
    Unsubscribe,
    evaluate,
)

logger = structlog.get_logger()


@dataclass
class _DocumentWatcher:
    collection: str
    doc_id: str
    on_snapshot: Callable[[Document | None], None]
    on_error: ErrorCallback


@dataclass
class _QueryWatcher:
    query: Query
    on_snapshot: Callable[[list[Document]], None]
    on_error: ErrorCallback
    last: list[Document] | None = None


class InMemoryDocumentStore:
    """Thread-safe in-memory document store with change notification.

    Example usage:
        store = InMemoryDocumentStore()
        store.put("products", "p1", {"name": "Steam $20", ...})
        unsubscribe = store.watch_document("products", "p1", print, print)
    """

    def __init__(self) -> None:
        """Initialize an empty store."""
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}
        self._document_watchers: dict[int, _DocumentWatcher] = {}
        self._query_watchers: dict[int, _QueryWatcher] = {}
        self._tokens = itertools.count()
        self._lock = threading.RLock()
        self._available = True

    # ------------------------------------------------------------------
    # Availability
    # ------------------------------------------------------------------

    def set_available(self, available: bool) -> None:
        """Simulate the store going down or coming back."""
        self._available = available
        logger.info("In-memory store availability changed", available=available)

    def _check_available(self) -> None:
        if not self._available:
            raise DocumentStoreError("In-memory store is unavailable")

    def broadcast_error(self, error: Exception) -> None:
        """Deliver an error to every active listener."""
        with self._lock:
            callbacks = [w.on_error for w in self._document_watchers.values()]
            callbacks += [w.on_error for w in self._query_watchers.values()]
        for callback in callbacks:
            try:
                callback(error)
            except Exception:
                logger.exception("Listener error callback failed")

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _snapshot(self, collection: str, doc_id: str) -> Document | None:
        data = self._collections.get(collection, {}).get(doc_id)
        if data is None:
            return None
        return Document(id=doc_id, data=copy.deepcopy(data))

    def _run(self, query: Query) -> list[Document]:
        documents = [
            Document(id=doc_id, data=copy.deepcopy(data))
            for doc_id, data in self._collections.get(query.collection, {}).items()
        ]
        return evaluate(query, documents)

    async def get(self, collection: str, doc_id: str) -> Document | None:
        self._check_available()
        with self._lock:
            return self._snapshot(collection, doc_id)

    async def query(self, query: Query) -> list[Document]:
        self._check_available()
        with self._lock:
            return self._run(query)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def put(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        """Create or replace a document."""
        self._check_available()
        with self._lock:
            self._collections.setdefault(collection, {})[doc_id] = copy.deepcopy(data)
        self._notify(collection, doc_id)

    def add(self, collection: str, data: dict[str, Any]) -> str:
        """Create a document with a generated id.

        Returns:
            The new document id.
        """
        doc_id = uuid4().hex
        self.put(collection, doc_id, data)
        return doc_id

    def patch(self, collection: str, doc_id: str, changes: dict[str, Any]) -> None:
        """Merge fields into an existing document.

        Raises:
            DocumentStoreError: If the document does not exist.
        """
        self._check_available()
        with self._lock:
            current = self._collections.get(collection, {}).get(doc_id)
            if current is None:
                raise DocumentStoreError(f"No document to update: {collection}/{doc_id}")
            current.update(copy.deepcopy(changes))
        self._notify(collection, doc_id)

    def delete(self, collection: str, doc_id: str) -> None:
        """Delete a document if present."""
        self._check_available()
        with self._lock:
            self._collections.get(collection, {}).pop(doc_id, None)
        self._notify(collection, doc_id)

    def clear(self) -> None:
        """Drop every document without notifying listeners."""
        with self._lock:
            self._collections.clear()

    def _notify(self, collection: str, doc_id: str) -> None:
        deliveries: list[tuple[Callable[[Any], None], Any]] = []
        with self._lock:
            for watcher in self._document_watchers.values():
                if watcher.collection == collection and watcher.doc_id == doc_id:
                    deliveries.append((watcher.on_snapshot, self._snapshot(collection, doc_id)))
            for watcher in self._query_watchers.values():
                if watcher.query.collection != collection:
                    continue
                results = self._run(watcher.query)
                if results != watcher.last:
                    watcher.last = results
                    deliveries.append((watcher.on_snapshot, results))
        for callback, value in deliveries:
            try:
                callback(value)
            except Exception:
                logger.exception("Listener callback failed", collection=collection, doc_id=doc_id)

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def watch_document(
        self,
        collection: str,
        doc_id: str,
        on_snapshot: Callable[[Document | None], None],
        on_error: ErrorCallback,
    ) -> Unsubscribe:
        token = next(self._tokens)
        with self._lock:
            self._document_watchers[token] = _DocumentWatcher(collection, doc_id, on_snapshot, on_error)
            initial = self._snapshot(collection, doc_id)

        if self._available:
            on_snapshot(initial)
        else:
            on_error(DocumentStoreError("In-memory store is unavailable"))

        def unsubscribe() -> None:
            with self._lock:
                self._document_watchers.pop(token, None)

        return unsubscribe

    def watch_query(
        self,
        query: Query,
        on_snapshot: Callable[[list[Document]], None],
        on_error: ErrorCallback,
    ) -> Unsubscribe:
        token = next(self._tokens)
        with self._lock:
            initial = self._run(query)
            self._query_watchers[token] = _QueryWatcher(query, on_snapshot, on_error, last=initial)

        if self._available:
            on_snapshot(initial)
        else:
            on_error(DocumentStoreError("In-memory store is unavailable"))

        def unsubscribe() -> None:
            with self._lock:
                self._query_watchers.pop(token, None)

        return unsubscribe

    @property
    def listener_count(self) -> int:
        """Number of registered listeners."""
        with self._lock:
            return len(self._document_watchers) + len(self._query_watchers)

    async def close(self) -> None:
        with self._lock:
            self._document_watchers.clear()
            self._query_watchers.clear()
