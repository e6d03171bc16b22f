import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import delete, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession
from sqlalchemy.sql import func

from inventory_tracker.database import create_session_factory, create_tables
from inventory_tracker.models.document import DocumentRecord
from inventory_tracker.stores.base import (
    Document,
    DocumentStore,
    StoreError,
    has_server_timestamp,
    resolve_server_timestamps,
)

logger = logging.getLogger(__name__)


class SQLDocumentStore(DocumentStore):
    """
    Document store backed by a relational database through SQLAlchemy.

    All documents live in the ``documents`` table, keyed by collection and
    key, with their field set in a JSON column. Each operation runs in its
    own transaction, so a batch delete either removes every requested row
    or, on failure, rolls back and removes none.
    """

    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        self.session_factory = create_session_factory(engine)

    async def create_schema(self) -> None:
        """Create the documents table if it does not exist."""
        try:
            await create_tables(self.engine)
        except SQLAlchemyError as e:
            raise StoreError(f"Could not create document tables: {e}") from e

    @asynccontextmanager
    async def _transaction(self):
        """Yield a session inside a transaction, translating database errors."""
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    yield session
        except SQLAlchemyError as e:
            logger.error(f"Database error: {e}")
            raise StoreError(str(e)) from e

    async def _server_now(self, session: AsyncSession) -> datetime:
        now = await session.scalar(select(func.now()))
        if isinstance(now, str):
            now = datetime.fromisoformat(now)
        if now.tzinfo is None:
            # SQLite reports CURRENT_TIMESTAMP as naive UTC
            now = now.replace(tzinfo=timezone.utc)
        return now

    async def list_documents(self, collection: str) -> List[Document]:
        async with self._transaction() as session:
            result = await session.execute(
                select(DocumentRecord).where(DocumentRecord.collection == collection)
            )
            return [
                Document(key=record.key, fields=dict(record.fields or {}))
                for record in result.scalars()
            ]

    async def get_document(self, collection: str, key: str) -> Optional[Dict[str, Any]]:
        async with self._transaction() as session:
            record = await session.get(DocumentRecord, (collection, key))
            if record is None:
                return None
            return dict(record.fields or {})

    async def set_document(
        self,
        collection: str,
        key: str,
        fields: Dict[str, Any],
        merge: bool = False,
    ) -> None:
        async with self._transaction() as session:
            if has_server_timestamp(fields):
                fields = resolve_server_timestamps(fields, await self._server_now(session))

            record = await session.get(DocumentRecord, (collection, key))
            if record is None:
                session.add(DocumentRecord(collection=collection, key=key, fields=dict(fields)))
            elif merge:
                # Reassign so the JSON column is flagged as changed
                record.fields = {**(record.fields or {}), **fields}
            else:
                record.fields = dict(fields)

    async def delete_document(self, collection: str, key: str) -> None:
        async with self._transaction() as session:
            await session.execute(
                delete(DocumentRecord).where(
                    DocumentRecord.collection == collection,
                    DocumentRecord.key == key,
                )
            )

    async def delete_many(self, collection: str, keys: Iterable[str]) -> None:
        keys = list(keys)
        if not keys:
            return
        async with self._transaction() as session:
            await session.execute(
                delete(DocumentRecord).where(
                    DocumentRecord.collection == collection,
                    DocumentRecord.key.in_(keys),
                )
            )

    async def ping(self) -> bool:
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.error(f"Database ping failed: {e}")
            return False

    async def close(self) -> None:
        await self.engine.dispose()
