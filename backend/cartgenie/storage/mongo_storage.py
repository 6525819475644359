"""
MongoDB Document Store.
Backed by pymongo's asyncio client. Ids assigned here are string UUIDs;
catalog documents imported by other tools may carry ObjectId ids.
"""

import logging
import uuid
from typing import Any, Dict, Iterable, List, Optional

from pymongo import AsyncMongoClient
from pymongo.errors import DuplicateKeyError

from ..core.exceptions import DuplicateDocumentError
from .interface import DocumentStore, Filter, IndexSpec, Sort

logger = logging.getLogger(__name__)


def _duplicate(collection: str, error: DuplicateKeyError) -> DuplicateDocumentError:
    key_value = (error.details or {}).get("keyValue") or {}
    field, value = next(iter(key_value.items()), ("unknown", None))
    return DuplicateDocumentError(collection, field, value)


class MongoStorage(DocumentStore):
    """MongoDB document store."""

    def __init__(self, uri: str, database: str, client: Optional[AsyncMongoClient] = None):
        """
        Args:
            uri: MongoDB connection string
            database: Database name
            client: Pre-built client, mainly for tests
        """
        self.client = client or AsyncMongoClient(
            uri,
            tz_aware=True,
            retryWrites=True,
            serverSelectionTimeoutMS=5000,
            connectTimeoutMS=10000,
            socketTimeoutMS=20000
        )
        self.db = self.client[database]

    async def ping(self) -> None:
        await self.client.admin.command("ping")

    async def insert_one(self, collection: str, document: Dict[str, Any]) -> str:
        stored = dict(document)
        stored["_id"] = str(stored.get("_id") or uuid.uuid4().hex)
        try:
            await self.db[collection].insert_one(stored)
        except DuplicateKeyError as e:
            raise _duplicate(collection, e) from e
        return stored["_id"]

    async def find_one(self, collection: str, filter: Filter) -> Optional[Dict[str, Any]]:
        return await self.db[collection].find_one(filter)

    async def find(
        self,
        collection: str,
        filter: Optional[Filter] = None,
        sort: Optional[Sort] = None,
        skip: int = 0,
        limit: int = 0
    ) -> List[Dict[str, Any]]:
        cursor = self.db[collection].find(filter or {})
        if sort:
            cursor = cursor.sort(sort)
        if skip:
            cursor = cursor.skip(skip)
        if limit:
            cursor = cursor.limit(limit)
        return await cursor.to_list()

    async def count(self, collection: str, filter: Optional[Filter] = None) -> int:
        return await self.db[collection].count_documents(filter or {})

    async def update_one(self, collection: str, filter: Filter, values: Dict[str, Any]) -> bool:
        try:
            result = await self.db[collection].update_one(filter, {"$set": values})
        except DuplicateKeyError as e:
            raise _duplicate(collection, e) from e
        return result.matched_count > 0

    async def delete_one(self, collection: str, filter: Filter) -> bool:
        result = await self.db[collection].delete_one(filter)
        return result.deleted_count > 0

    async def delete_many(self, collection: str, filter: Filter) -> int:
        result = await self.db[collection].delete_many(filter)
        return result.deleted_count

    async def ensure_indexes(self, indexes: Iterable[IndexSpec]) -> None:
        for spec in indexes:
            options: Dict[str, Any] = {"unique": spec.unique}
            if spec.sparse:
                # A sparse index still indexes explicit nulls; index strings only
                options["partialFilterExpression"] = {spec.field: {"$type": "string"}}
            await self.db[spec.collection].create_index(spec.field, **options)
            logger.debug(f"Index ensured: {spec.collection}.{spec.field}")

    async def close(self) -> None:
        await self.client.close()
