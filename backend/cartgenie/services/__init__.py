"""Services module - OCR, blood-test analysis, Google sign-in and profile upserts."""

from .ocr_engine import configure_tesseract
from .receipt_ocr import scan_receipt, extract_barcodes, preprocess_receipt
from .blood_test import analyze_blood_test, analyze_text, extract_text, SUPPORTED_CONTENT_TYPES, NO_FINDINGS
from .google_auth import GoogleIdentity, verify_google_token
from .profile_service import ProfileService, parse_illnesses

__all__ = [
    'configure_tesseract',
    'scan_receipt',
    'extract_barcodes',
    'preprocess_receipt',
    'analyze_blood_test',
    'analyze_text',
    'extract_text',
    'SUPPORTED_CONTENT_TYPES',
    'NO_FINDINGS',
    'GoogleIdentity',
    'verify_google_token',
    'ProfileService',
    'parse_illnesses',
]
