"""In-process document store, for local runs and tests."""
import copy
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from inventory_tracker.stores.base import Document, DocumentStore, resolve_server_timestamps


class MemoryDocumentStore(DocumentStore):
    """
    Document store keeping every collection in a dictionary.

    Snapshots handed out are deep copies, so mutating them never changes
    the stored documents.
    """

    def __init__(self):
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {}

    def _collection(self, collection: str) -> Dict[str, Dict[str, Any]]:
        return self._collections.setdefault(collection, {})

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    async def list_documents(self, collection: str) -> List[Document]:
        return [
            Document(key=key, fields=copy.deepcopy(fields))
            for key, fields in self._collection(collection).items()
        ]

    async def get_document(self, collection: str, key: str) -> Optional[Dict[str, Any]]:
        fields = self._collection(collection).get(key)
        return copy.deepcopy(fields) if fields is not None else None

    async def set_document(
        self,
        collection: str,
        key: str,
        fields: Dict[str, Any],
        merge: bool = False,
    ) -> None:
        resolved = resolve_server_timestamps(fields, self.now())
        documents = self._collection(collection)
        if merge and key in documents:
            documents[key].update(resolved)
        else:
            documents[key] = resolved

    async def delete_document(self, collection: str, key: str) -> None:
        self._collection(collection).pop(key, None)

    async def delete_many(self, collection: str, keys: Iterable[str]) -> None:
        documents = self._collection(collection)
        for key in list(keys):
            documents.pop(key, None)
