"""
Global document store instance, selected by configuration.
"""

import logging
from typing import Optional

from ..config.settings import Settings
from .collections import INDEXES
from .interface import DocumentStore
from .local_storage import LocalStorage
from .mongo_storage import MongoStorage

logger = logging.getLogger(__name__)

_document_store: Optional[DocumentStore] = None


def create_document_store(config: Settings) -> DocumentStore:
    """
    Build the store named by ``config.storage_type``.

    Raises:
        ValueError: If the storage type is unknown
    """
    storage_type = config.storage_type.lower()
    if storage_type == "local":
        return LocalStorage(config.local_storage_path, indexes=INDEXES)
    if storage_type == "mongo":
        return MongoStorage(config.mongo_uri, config.mongo_database)
    raise ValueError(f"Unsupported storage type: {config.storage_type}")


def init_document_store(store: DocumentStore) -> DocumentStore:
    """
    Initialize the global document store instance.

    Args:
        store: DocumentStore implementation
    """
    global _document_store
    _document_store = store
    logger.info(f"Document store initialized: {type(store).__name__}")
    return store


def get_document_store() -> DocumentStore:
    """
    Get the global document store instance.

    Raises:
        RuntimeError: If the store has not been initialized
    """
    if _document_store is None:
        raise RuntimeError("Document store not initialized. Call init_document_store() first.")
    return _document_store


async def close_document_store() -> None:
    global _document_store
    if _document_store is not None:
        await _document_store.close()
        _document_store = None
