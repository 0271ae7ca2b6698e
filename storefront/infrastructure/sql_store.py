"""SQL-backed document store.

Translates logical document queries into SQLAlchemy statements over one
table per collection. SQL databases have no change feed, so listeners
poll on an interval and deliver only when the snapshot changed.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

import structlog
from sqlalchemy import and_, delete, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlalchemy.sql import Select

from storefront.infrastructure.database import Base, build_engine, build_session_factory
from storefront.infrastructure.models import COLLECTION_MODELS, DocumentRowMixin
from storefront.infrastructure.store import (
    DOCUMENT_ID,
    Document,
    DocumentStoreError,
    ErrorCallback,
    Query,
    Unsubscribe,
)

logger = structlog.get_logger()

_UNSET: Any = object()


def _dispatch(callback: Callable[[Any], None], value: Any) -> None:
    """Run a listener callback; a failure must not end the poll loop."""
    try:
        callback(value)
    except Exception:
        logger.exception("Listener callback failed")


class SqlDocumentStore:
    """Document store over SQLAlchemy async sessions.

    Example usage:
        store = SqlDocumentStore.from_url("postgresql+asyncpg://...")
        await store.create_all()
        docs = await store.query(Query("products").where("sale", "==", True))
    """

    def __init__(self, engine: AsyncEngine, poll_interval: float = 1.0) -> None:
        """Initialize store with an engine.

        Args:
            engine: Async SQLAlchemy engine.
            poll_interval: Seconds between listener polls.
        """
        self.engine = engine
        self.poll_interval = poll_interval
        self._session_factory = build_session_factory(engine)
        self._tasks: set[asyncio.Task] = set()

    @classmethod
    def from_url(cls, database_url: str, poll_interval: float = 1.0, echo: bool = False) -> "SqlDocumentStore":
        return cls(build_engine(database_url, echo=echo), poll_interval=poll_interval)

    async def create_all(self) -> None:
        """Create tables if they don't exist."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    # ------------------------------------------------------------------
    # Statement construction
    # ------------------------------------------------------------------

    def _model(self, collection: str) -> type[DocumentRowMixin]:
        try:
            return COLLECTION_MODELS[collection]
        except KeyError:
            raise DocumentStoreError(f"Unknown collection: {collection}") from None

    def _column(self, model: type[DocumentRowMixin], field_name: str) -> Any:
        try:
            return model.column_for(field_name)
        except KeyError:
            raise DocumentStoreError(f"Unknown field {field_name} on {model.__tablename__}") from None  # type: ignore[attr-defined]

    def build_statement(self, query: Query) -> Select:
        """Translate a logical query to a SELECT.

        Args:
            query: Logical query.

        Returns:
            SQLAlchemy Select over the collection's model.
        """
        model = self._model(query.collection)
        statement = select(model)

        for condition in query.filters:
            column = self._column(model, condition.field)
            if condition.op == "==":
                statement = statement.where(column == condition.value)
            else:
                statement = statement.where(and_(column.isnot(None), column != condition.value))

        columns = [(self._column(model, o.field), o.descending) for o in query.order_by]
        for column, descending in columns:
            statement = statement.where(column.isnot(None))
            statement = statement.order_by(column.desc() if descending else column.asc())
        if not columns:
            statement = statement.order_by(self._column(model, DOCUMENT_ID).asc())

        if query.start_after is not None:
            # Keyset: (a, b) after (x, y) means a past x, or a == x and b past y
            branches = []
            for index, ((column, descending), value) in enumerate(zip(columns, query.start_after)):
                equal_prefix = [c == v for (c, _), v in zip(columns[:index], query.start_after[:index])]
                past = column < value if descending else column > value
                branches.append(and_(*equal_prefix, past))
            statement = statement.where(or_(*branches))

        if query.limit is not None:
            statement = statement.limit(query.limit)
        return statement

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get(self, collection: str, doc_id: str) -> Document | None:
        model = self._model(collection)
        try:
            async with self._session_factory() as session:
                row = await session.get(model, doc_id)
                return row.to_document() if row is not None else None
        except (SQLAlchemyError, OSError) as e:
            raise DocumentStoreError(str(e)) from e

    async def query(self, query: Query) -> list[Document]:
        statement = self.build_statement(query)
        try:
            async with self._session_factory() as session:
                result = await session.execute(statement)
                return [row.to_document() for row in result.scalars().all()]
        except (SQLAlchemyError, OSError) as e:
            raise DocumentStoreError(str(e)) from e

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def put(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        """Create or replace a document."""
        model = self._model(collection)
        try:
            async with self._session_factory() as session:
                await session.merge(model.from_document(doc_id, data))
                await session.commit()
        except (SQLAlchemyError, OSError) as e:
            raise DocumentStoreError(str(e)) from e

    async def delete(self, collection: str, doc_id: str) -> None:
        """Delete a document if present."""
        model = self._model(collection)
        try:
            async with self._session_factory() as session:
                await session.execute(delete(model).where(self._column(model, DOCUMENT_ID) == doc_id))
                await session.commit()
        except (SQLAlchemyError, OSError) as e:
            raise DocumentStoreError(str(e)) from e

    async def clear(self, collection: str) -> int:
        """Delete every document in a collection.

        Returns:
            Number of deleted documents.
        """
        model = self._model(collection)
        try:
            async with self._session_factory() as session:
                result = await session.execute(delete(model))
                await session.commit()
                return result.rowcount or 0
        except (SQLAlchemyError, OSError) as e:
            raise DocumentStoreError(str(e)) from e

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
        return self._start_polling(lambda: self.get(collection, doc_id), on_snapshot, on_error)

    def watch_query(
        self,
        query: Query,
        on_snapshot: Callable[[list[Document]], None],
        on_error: ErrorCallback,
    ) -> Unsubscribe:
        self.build_statement(query)
        return self._start_polling(lambda: self.query(query), on_snapshot, on_error)

    def _start_polling(
        self,
        fetch: Callable[[], Awaitable[Any]],
        on_snapshot: Callable[[Any], None],
        on_error: ErrorCallback,
    ) -> Unsubscribe:
        loop = asyncio.get_running_loop()
        task = loop.create_task(self._poll(fetch, on_snapshot, on_error))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

        def unsubscribe() -> None:
            if not task.done():
                loop.call_soon_threadsafe(task.cancel)

        return unsubscribe

    async def _poll(
        self,
        fetch: Callable[[], Awaitable[Any]],
        on_snapshot: Callable[[Any], None],
        on_error: ErrorCallback,
    ) -> None:
        last = _UNSET
        while True:
            try:
                current = await fetch()
            except DocumentStoreError as e:
                logger.warning("Listener poll failed", error=str(e))
                last = _UNSET
                _dispatch(on_error, e)
            else:
                if current != last:
                    last = current
                    _dispatch(on_snapshot, current)
            await asyncio.sleep(self.poll_interval)

    @property
    def listener_count(self) -> int:
        """Number of running listener tasks."""
        return len(self._tasks)

    async def close(self) -> None:
        """Stop listeners and dispose of the engine."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        await self.engine.dispose()
