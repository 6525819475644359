"""
Local Filesystem Document Store.
Stores every document as a JSON file under ``<base_dir>/<collection>/<id>.json``.
Intended for development and tests; queries scan the whole collection.
"""

import json
import logging
import re
import uuid
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import aiofiles

from ..core.exceptions import DuplicateDocumentError
from .interface import DESCENDING, DocumentStore, Filter, IndexSpec, Sort

logger = logging.getLogger(__name__)

_SAFE_ID = re.compile(r"^[A-Za-z0-9_-]+$")
_MISSING = object()


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _get_path(document: Dict[str, Any], path: str) -> Any:
    current: Any = document
    for part in path.split("."):
        if not isinstance(current, dict) or part not in current:
            return _MISSING
        current = current[part]
    return current


def _set_path(document: Dict[str, Any], path: str, value: Any) -> None:
    parts = path.split(".")
    current = document
    for part in parts[:-1]:
        if not isinstance(current.get(part), dict):
            current[part] = {}
        current = current[part]
    current[parts[-1]] = value


def _normalize(value: Any) -> Any:
    """Bring a filter value to the form it has after a JSON round trip."""
    return json.loads(json.dumps(value, default=_json_default))


def _matches(document: Dict[str, Any], filter: Optional[Filter]) -> bool:
    if not filter:
        return True
    for key, expected in filter.items():
        value = _get_path(document, key)
        if value is _MISSING:
            if expected is not None:
                return False
            continue
        if value != _normalize(expected):
            return False
    return True


def _sort_key(field: str):
    def key(document: Dict[str, Any]):
        value = _get_path(document, field)
        if value is _MISSING or value is None:
            return (0, "")
        return (1, value)
    return key


class LocalStorage(DocumentStore):
    """
    Local filesystem document store.
    Unique indexes are enforced on write within a single process.
    """

    def __init__(self, base_dir: str = "./data", indexes: Optional[Iterable[IndexSpec]] = None):
        """
        Initialize local storage with a base directory.

        Args:
            base_dir: Base directory for all collections
            indexes: Index declarations to enforce from the start
        """
        self.base_dir = Path(base_dir).resolve()
        self.base_dir.mkdir(parents=True, exist_ok=True)
        self._unique: Dict[str, List[IndexSpec]] = {}
        if indexes:
            self._register(indexes)

    def _get_full_path(self, path: str) -> Path:
        """Convert relative path to full absolute path within base directory."""
        full_path = (self.base_dir / path).resolve()

        # Path must stay inside base_dir
        if not str(full_path).startswith(str(self.base_dir)):
            raise ValueError(f"Invalid path: {path} - path traversal detected")

        return full_path

    def _document_path(self, collection: str, doc_id: str) -> Path:
        return self._get_full_path(f"{collection}/{doc_id}.json")

    def _register(self, indexes: Iterable[IndexSpec]) -> None:
        for spec in indexes:
            if not spec.unique:
                continue
            specs = self._unique.setdefault(spec.collection, [])
            if spec not in specs:
                specs.append(spec)

    async def _read(self, path: Path) -> Optional[Dict[str, Any]]:
        try:
            async with aiofiles.open(path, "r", encoding="utf-8") as f:
                return json.loads(await f.read())
        except FileNotFoundError:
            return None
        except json.JSONDecodeError as e:
            logger.warning(f"Skipping corrupt document {path.name}: {e}")
            return None

    async def _write(self, collection: str, document: Dict[str, Any]) -> None:
        path = self._document_path(collection, document["_id"])
        path.parent.mkdir(parents=True, exist_ok=True)
        content = json.dumps(document, default=_json_default, ensure_ascii=False, indent=2)
        async with aiofiles.open(path, "w", encoding="utf-8") as f:
            await f.write(content)

    async def _load_collection(self, collection: str) -> List[Dict[str, Any]]:
        directory = self._get_full_path(collection)
        if not directory.exists():
            return []
        documents = []
        for path in sorted(directory.glob("*.json")):
            document = await self._read(path)
            if document is not None:
                documents.append(document)
        return documents

    async def _check_unique(self, collection: str, document: Dict[str, Any]) -> None:
        specs = self._unique.get(collection)
        if not specs:
            return
        others = [d for d in await self._load_collection(collection) if d.get("_id") != document.get("_id")]
        for spec in specs:
            value = _get_path(document, spec.field)
            if value is _MISSING:
                value = None
            if value is None and spec.sparse:
                continue
            value = _normalize(value)
            for other in others:
                other_value = _get_path(other, spec.field)
                if other_value is _MISSING:
                    other_value = None
                if other_value == value:
                    raise DuplicateDocumentError(collection, spec.field, value)

    async def insert_one(self, collection: str, document: Dict[str, Any]) -> str:
        stored = _normalize(document)
        stored.setdefault("_id", uuid.uuid4().hex)
        stored["_id"] = str(stored["_id"])
        if not _SAFE_ID.match(stored["_id"]):
            raise ValueError(f"Invalid document id: {stored['_id']}")
        if self._document_path(collection, stored["_id"]).exists():
            raise DuplicateDocumentError(collection, "_id", stored["_id"])
        await self._check_unique(collection, stored)
        await self._write(collection, stored)
        return stored["_id"]

    async def find_one(self, collection: str, filter: Filter) -> Optional[Dict[str, Any]]:
        doc_id = filter.get("_id") if filter else None
        if doc_id is not None:
            # Ids are file names, so an id lookup is a single read
            if not isinstance(doc_id, str) or not _SAFE_ID.match(doc_id):
                return None
            document = await self._read(self._document_path(collection, doc_id))
            if document is None or not _matches(document, filter):
                return None
            return document
        for document in await self._load_collection(collection):
            if _matches(document, filter):
                return document
        return None

    async def find(
        self,
        collection: str,
        filter: Optional[Filter] = None,
        sort: Optional[Sort] = None,
        skip: int = 0,
        limit: int = 0
    ) -> List[Dict[str, Any]]:
        documents = [d for d in await self._load_collection(collection) if _matches(d, filter)]
        # Stable sorts applied last key first give a multi-key ordering
        for field, direction in reversed(sort or []):
            documents.sort(key=_sort_key(field), reverse=direction == DESCENDING)
        if skip:
            documents = documents[skip:]
        if limit:
            documents = documents[:limit]
        return documents

    async def count(self, collection: str, filter: Optional[Filter] = None) -> int:
        return len(await self.find(collection, filter))

    async def update_one(self, collection: str, filter: Filter, values: Dict[str, Any]) -> bool:
        document = await self.find_one(collection, filter)
        if document is None:
            return False
        for key, value in _normalize(values).items():
            _set_path(document, key, value)
        await self._check_unique(collection, document)
        await self._write(collection, document)
        return True

    async def delete_one(self, collection: str, filter: Filter) -> bool:
        document = await self.find_one(collection, filter)
        if document is None:
            return False
        path = self._document_path(collection, document["_id"])
        if not path.exists():
            return False
        path.unlink()
        return True

    async def delete_many(self, collection: str, filter: Filter) -> int:
        deleted = 0
        for document in await self.find(collection, filter):
            path = self._document_path(collection, document["_id"])
            if path.exists():
                path.unlink()
                deleted += 1
        return deleted

    async def ensure_indexes(self, indexes: Iterable[IndexSpec]) -> None:
        self._register(indexes)
