"""Document store contract shared by every storage backend."""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional


class StoreError(Exception):
    """Exception raised when the backing store fails to complete an operation."""
    pass


class _ServerTimestamp:
    """Placeholder replaced by the store's own clock when a document is written."""

    def __repr__(self):
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()


@dataclass
class Document:
    """A document snapshot: its key plus a copy of its field set."""
    key: str
    fields: Dict[str, Any] = field(default_factory=dict)


def resolve_server_timestamps(fields: Dict[str, Any], now: datetime) -> Dict[str, Any]:
    """Return a copy of ``fields`` with every SERVER_TIMESTAMP replaced by ``now``."""
    return {
        name: now.isoformat() if value is SERVER_TIMESTAMP else value
        for name, value in fields.items()
    }


def has_server_timestamp(fields: Dict[str, Any]) -> bool:
    return any(value is SERVER_TIMESTAMP for value in fields.values())


class DocumentStore(ABC):
    """
    Interface for a remote, document-oriented key-value collection store.

    Documents are addressed by (collection, key). Every read returns a fresh
    snapshot; callers never hold references into the store's own state.
    Implementations raise StoreError for any backend failure.
    """

    @abstractmethod
    async def list_documents(self, collection: str) -> List[Document]:
        """Return every document of the collection."""
        pass

    @abstractmethod
    async def get_document(self, collection: str, key: str) -> Optional[Dict[str, Any]]:
        """Return the document's fields, or None if it does not exist."""
        pass

    @abstractmethod
    async def set_document(
        self,
        collection: str,
        key: str,
        fields: Dict[str, Any],
        merge: bool = False,
    ) -> None:
        """
        Write a document.

        With ``merge`` the given fields are written over the existing ones and
        any other field is left untouched; without it the document is replaced.
        """
        pass

    @abstractmethod
    async def delete_document(self, collection: str, key: str) -> None:
        """Delete a document. Deleting a missing document is not an error."""
        pass

    @abstractmethod
    async def delete_many(self, collection: str, keys: Iterable[str]) -> None:
        """Delete several documents atomically: either all are removed or none."""
        pass

    def server_timestamp(self) -> Any:
        """Value to write for a field that should hold the store's write time."""
        return SERVER_TIMESTAMP

    async def ping(self) -> bool:
        """Check that the store is reachable."""
        return True

    async def close(self) -> None:
        """Release connections held by the store."""
        return None
