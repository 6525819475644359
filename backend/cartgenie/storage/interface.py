"""
Storage Interface - Abstract base class for document store implementations.
This interface enables switching between the local file store and MongoDB.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple

ASCENDING = 1
DESCENDING = -1

Filter = Dict[str, Any]
Sort = List[Tuple[str, int]]


@dataclass(frozen=True)
class IndexSpec:
    """
    Index declaration for a collection field.

    With ``sparse`` set, documents whose value is missing or null are not
    indexed, so any number of them may coexist under a unique index.
    """
    collection: str
    field: str
    unique: bool = False
    sparse: bool = False


class DocumentStore(ABC):
    """
    Abstract document store.

    Filters are equality matches on (optionally dotted) field paths. Every
    document carries a string ``_id`` assigned on insert when absent.
    """

    @abstractmethod
    async def insert_one(self, collection: str, document: Dict[str, Any]) -> str:
        """
        Insert a document.

        Args:
            collection: Collection name
            document: Document to insert (not mutated)

        Returns:
            str: The document id

        Raises:
            DuplicateDocumentError: If a unique index would be violated
        """
        pass

    @abstractmethod
    async def find_one(self, collection: str, filter: Filter) -> Optional[Dict[str, Any]]:
        """Return the first document matching the filter, or None."""
        pass

    @abstractmethod
    async def find(
        self,
        collection: str,
        filter: Optional[Filter] = None,
        sort: Optional[Sort] = None,
        skip: int = 0,
        limit: int = 0
    ) -> List[Dict[str, Any]]:
        """
        Return matching documents.

        Args:
            collection: Collection name
            filter: Equality filter; None matches everything
            sort: List of (field, ASCENDING|DESCENDING)
            skip: Number of documents to skip
            limit: Maximum number of documents, 0 for no limit
        """
        pass

    @abstractmethod
    async def count(self, collection: str, filter: Optional[Filter] = None) -> int:
        pass

    @abstractmethod
    async def update_one(self, collection: str, filter: Filter, values: Dict[str, Any]) -> bool:
        """
        Set the given fields on the first matching document.

        Only the keys in ``values`` are written; dotted keys address nested
        fields. Returns True if a document matched.
        """
        pass

    @abstractmethod
    async def delete_one(self, collection: str, filter: Filter) -> bool:
        """Delete the first matching document. Returns True if one was deleted."""
        pass

    @abstractmethod
    async def delete_many(self, collection: str, filter: Filter) -> int:
        """Delete all matching documents and return how many were deleted."""
        pass

    @abstractmethod
    async def ensure_indexes(self, indexes: Iterable[IndexSpec]) -> None:
        pass

    async def ping(self) -> None:
        """Check the backend is reachable. No-op by default."""
        return None

    async def close(self) -> None:
        """Release connections. No-op by default."""
        return None
