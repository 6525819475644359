"""Storage module - document store implementations and collection repositories."""

from .interface import ASCENDING, DESCENDING, DocumentStore, IndexSpec
from .local_storage import LocalStorage
from .mongo_storage import MongoStorage
from .collections import INDEXES
from .store import create_document_store, init_document_store, get_document_store, close_document_store
from .credential_storage import CredentialStorage, normalize_username, normalize_email
from .profile_storage import ProfileStorage
from .product_storage import ProductStorage
from .history_storage import HistoryStorage, HISTORY_LIMIT

__all__ = [
    'ASCENDING', 'DESCENDING', 'DocumentStore', 'IndexSpec',
    'LocalStorage', 'MongoStorage', 'INDEXES',
    'create_document_store', 'init_document_store', 'get_document_store', 'close_document_store',
    'CredentialStorage', 'normalize_username', 'normalize_email',
    'ProfileStorage', 'ProductStorage', 'HistoryStorage', 'HISTORY_LIMIT',
]
