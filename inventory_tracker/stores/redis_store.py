import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

import redis
import redis.asyncio as aioredis

from inventory_tracker.stores.base import (
    Document,
    DocumentStore,
    StoreError,
    has_server_timestamp,
    resolve_server_timestamps,
)

logger = logging.getLogger(__name__)


class RedisDocumentStore(DocumentStore):
    """
    Document store backed by Redis.

    Layout:
    - ``{collection}:doc:{key}`` is a hash holding the document's fields,
      each value JSON-encoded so numbers keep their type
    - ``{collection}:index`` is a set of the collection's document keys

    Writes and batch deletes run inside a MULTI/EXEC pipeline, so the hash
    and the index are always updated together. Server timestamps come from
    the Redis ``TIME`` command.
    """

    def __init__(self, client: aioredis.Redis):
        self.client = client

    @classmethod
    def from_url(cls, url: str) -> "RedisDocumentStore":
        return cls(aioredis.from_url(url, decode_responses=True))

    def _make_key(self, collection: str, key: str) -> str:
        """Create the namespaced hash key for a document."""
        return f"{collection}:doc:{key}"

    def _index_key(self, collection: str) -> str:
        return f"{collection}:index"

    @staticmethod
    def _encode(fields: Dict[str, Any]) -> Dict[str, str]:
        return {name: json.dumps(value, default=str) for name, value in fields.items()}

    @staticmethod
    def _decode(raw: Dict[str, str]) -> Dict[str, Any]:
        fields = {}
        for name, value in raw.items():
            try:
                fields[name] = json.loads(value)
            except (json.JSONDecodeError, TypeError):
                fields[name] = value
        return fields

    async def _server_now(self) -> datetime:
        seconds, microseconds = await self.client.time()
        return datetime.fromtimestamp(int(seconds) + int(microseconds) / 1_000_000, tz=timezone.utc)

    async def list_documents(self, collection: str) -> List[Document]:
        try:
            keys = sorted(await self.client.smembers(self._index_key(collection)))
            if not keys:
                return []
            async with self.client.pipeline(transaction=False) as pipe:
                for key in keys:
                    pipe.hgetall(self._make_key(collection, key))
                hashes = await pipe.execute()
        except redis.RedisError as e:
            logger.error(f"Redis error listing '{collection}': {e}")
            raise StoreError(str(e)) from e

        # A key can outlive its hash briefly if another client deleted it mid-read
        return [
            Document(key=key, fields=self._decode(raw))
            for key, raw in zip(keys, hashes)
            if raw
        ]

    async def get_document(self, collection: str, key: str) -> Optional[Dict[str, Any]]:
        try:
            raw = await self.client.hgetall(self._make_key(collection, key))
        except redis.RedisError as e:
            logger.error(f"Redis error reading '{collection}/{key}': {e}")
            raise StoreError(str(e)) from e
        return self._decode(raw) if raw else None

    async def set_document(
        self,
        collection: str,
        key: str,
        fields: Dict[str, Any],
        merge: bool = False,
    ) -> None:
        document_key = self._make_key(collection, key)
        try:
            if has_server_timestamp(fields):
                fields = resolve_server_timestamps(fields, await self._server_now())
            async with self.client.pipeline(transaction=True) as pipe:
                if not merge:
                    pipe.delete(document_key)
                pipe.hset(document_key, mapping=self._encode(fields))
                pipe.sadd(self._index_key(collection), key)
                await pipe.execute()
        except redis.RedisError as e:
            logger.error(f"Redis error writing '{collection}/{key}': {e}")
            raise StoreError(str(e)) from e

    async def delete_document(self, collection: str, key: str) -> None:
        try:
            async with self.client.pipeline(transaction=True) as pipe:
                pipe.delete(self._make_key(collection, key))
                pipe.srem(self._index_key(collection), key)
                await pipe.execute()
        except redis.RedisError as e:
            logger.error(f"Redis error deleting '{collection}/{key}': {e}")
            raise StoreError(str(e)) from e

    async def delete_many(self, collection: str, keys: Iterable[str]) -> None:
        keys = list(keys)
        if not keys:
            return
        try:
            async with self.client.pipeline(transaction=True) as pipe:
                pipe.delete(*[self._make_key(collection, key) for key in keys])
                pipe.srem(self._index_key(collection), *keys)
                await pipe.execute()
        except redis.RedisError as e:
            logger.error(f"Redis error batch deleting from '{collection}': {e}")
            raise StoreError(str(e)) from e

    async def ping(self) -> bool:
        try:
            return bool(await self.client.ping())
        except redis.RedisError as e:
            logger.error(f"Redis ping failed: {e}")
            return False

    async def close(self) -> None:
        await self.client.aclose()
