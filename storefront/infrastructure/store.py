"""Document store contract.

Describes the logical query shape the catalog needs from a document
database: equality filters, ordering, limits, keyset ``start_after``
and change notification. Backends implement ``DocumentStore`` and
raise ``DocumentStoreError`` for every failure of the underlying store.
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Protocol

# Pseudo-field naming the document identifier in filters and ordering
DOCUMENT_ID = "__name__"

Unsubscribe = Callable[[], None]
ErrorCallback = Callable[[Exception], None]


class DocumentStoreError(Exception):
    """Error raised by a document store backend."""


@dataclass(frozen=True)
class Document:
    """A stored document snapshot.

    Attributes:
        id: Document identifier within its collection.
        data: Document fields.
    """

    id: str
    data: dict[str, Any]

    def get(self, name: str) -> Any:
        """Get a field value, resolving the document id pseudo-field."""
        if name == DOCUMENT_ID:
            return self.id
        return self.data.get(name)


@dataclass(frozen=True)
class FieldFilter:
    """A single field comparison.

    Only equality and inequality are needed by the catalog. Inequality
    excludes documents missing the field, like the managed stores do.
    """

    field: str
    op: str
    value: Any

    def __post_init__(self) -> None:
        if self.op not in ("==", "!="):
            raise ValueError(f"Unsupported filter operator: {self.op}")

    def matches(self, document: Document) -> bool:
        current = document.get(self.field)
        if self.op == "==":
            return current == self.value
        return current is not None and current != self.value


@dataclass(frozen=True)
class OrderBy:
    """Sort key for a query."""

    field: str
    descending: bool = False


@dataclass(frozen=True)
class Query:
    """Logical collection query.

    Attributes:
        collection: Collection name (e.g., "products").
        filters: Conjunction of field filters.
        order_by: Sort keys, most significant first. Documents missing
            an order field are excluded. Without ordering, results come
            back in document id order.
        limit: Maximum number of documents, None for all.
        start_after: Order-field values of the last document already
            seen; results resume strictly after that position.
    """

    collection: str
    filters: tuple[FieldFilter, ...] = ()
    order_by: tuple[OrderBy, ...] = ()
    limit: int | None = None
    start_after: tuple[Any, ...] | None = None

    def __post_init__(self) -> None:
        if self.start_after is not None and len(self.start_after) != len(self.order_by):
            raise ValueError("start_after needs one value per order_by field")

    def where(self, field_name: str, op: str, value: Any) -> "Query":
        return replace(self, filters=self.filters + (FieldFilter(field_name, op, value),))

    def order(self, field_name: str, descending: bool = False) -> "Query":
        return replace(self, order_by=self.order_by + (OrderBy(field_name, descending),))

    def limited(self, count: int | None) -> "Query":
        return replace(self, limit=count)

    def after(self, values: tuple[Any, ...]) -> "Query":
        return replace(self, start_after=values)


class DocumentStore(Protocol):
    """Operations the catalog needs from a document database."""

    async def get(self, collection: str, doc_id: str) -> Document | None:
        """Point lookup; None when absent."""
        ...

    async def query(self, query: Query) -> list[Document]:
        """Run a collection query."""
        ...

    def watch_document(
        self,
        collection: str,
        doc_id: str,
        on_snapshot: Callable[[Document | None], None],
        on_error: ErrorCallback,
    ) -> Unsubscribe:
        """Listen to one document; deliver now and on every change."""
        ...

    def watch_query(
        self,
        query: Query,
        on_snapshot: Callable[[list[Document]], None],
        on_error: ErrorCallback,
    ) -> Unsubscribe:
        """Listen to a query; deliver now and whenever the result changes."""
        ...

    async def close(self) -> None:
        """Release connections and stop all listeners."""
        ...


# ============================================================================
# In-process query evaluation
# ============================================================================


def _parse_timestamp(value: str) -> datetime | None:
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


def sort_key(value: Any) -> tuple[int, Any]:
    """Build a comparable key for a field value.

    Values are grouped by kind first (booleans, numbers, timestamps,
    strings) so mixed kinds never fail to compare. Naive timestamps
    count as UTC, and ISO-8601 strings order as the timestamps they
    spell.
    """
    if isinstance(value, str):
        parsed = _parse_timestamp(value)
        if parsed is None:
            return (3, value)
        value = parsed
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return (2, value.replace(tzinfo=timezone.utc))
        return (2, value.astimezone(timezone.utc))
    if isinstance(value, bool):
        return (0, value)
    if isinstance(value, (int, float, Decimal)):
        return (1, value)
    return (4, repr(value))


def is_after(document: Document, order_by: tuple[OrderBy, ...], values: tuple[Any, ...]) -> bool:
    """Check whether a document sorts strictly after a keyset position."""
    for order, value in zip(order_by, values):
        current, position = sort_key(document.get(order.field)), sort_key(value)
        if current == position:
            continue
        return current < position if order.descending else current > position
    return False


def evaluate(query: Query, documents: Iterable[Document]) -> list[Document]:
    """Apply a query to documents held in memory.

    Args:
        query: Query to evaluate (its collection is not checked).
        documents: Candidate documents.

    Returns:
        Matching documents in query order.
    """
    results = [d for d in documents if all(f.matches(d) for f in query.filters)]

    if query.order_by:
        results = [d for d in results if all(d.get(o.field) is not None for o in query.order_by)]
        # Stable sorts, least significant key first
        for order in reversed(query.order_by):
            results.sort(key=lambda d, name=order.field: sort_key(d.get(name)), reverse=order.descending)
    else:
        results.sort(key=lambda d: d.id)

    if query.start_after is not None:
        results = [d for d in results if is_after(d, query.order_by, query.start_after)]

    if query.limit is not None:
        results = results[: query.limit]
    return results
