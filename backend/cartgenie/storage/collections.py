"""Collection names and the indexes each one needs."""

from .interface import IndexSpec

LOGIN_INFO = "login_info"
USER_DATA = "userdata"
PRODUCTS = "products"
SCAN_HISTORY = "scan_history"
RECEIPT_HISTORY = "receipt_history"
BLOOD_TESTS = "blood_tests"

INDEXES = [
    IndexSpec(LOGIN_INFO, "username", unique=True),
    IndexSpec(LOGIN_INFO, "email", unique=True),
    IndexSpec(LOGIN_INFO, "google_id", unique=True, sparse=True),
    IndexSpec(USER_DATA, "username", unique=True),
    IndexSpec(PRODUCTS, "barcode", unique=True),
    IndexSpec(SCAN_HISTORY, "username"),
    IndexSpec(RECEIPT_HISTORY, "username"),
    IndexSpec(BLOOD_TESTS, "username"),
]
