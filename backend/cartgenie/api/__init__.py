"""API module."""

from .auth import router as auth_router
from .password_reset import router as password_reset_router
from .userdata import router as userdata_router
from .products import router as products_router
from .ocr import router as ocr_router
from .blood_test import router as blood_test_router
from .consult import router as consult_router
from .history import router as history_router

__all__ = [
    'auth_router',
    'password_reset_router',
    'userdata_router',
    'products_router',
    'ocr_router',
    'blood_test_router',
    'consult_router',
    'history_router',
]
