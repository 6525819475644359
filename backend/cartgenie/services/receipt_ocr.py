"""
Receipt OCR - barcode extraction from a photographed receipt.

Only barcodes are extracted; line items and prices are not parsed.
"""

import asyncio
import logging
import re
from typing import List

from PIL import Image, ImageOps

from ..models.ocr import ReceiptScanResult
from .ocr_engine import image_to_text, open_image

logger = logging.getLogger(__name__)

BARCODE_PATTERN = re.compile(r"\b\d{12,14}\b")
BINARY_THRESHOLD = 128
DIGITS_CONFIG = "--psm 6 -c tessedit_char_whitelist=0123456789"


def preprocess_receipt(image: Image.Image) -> Image.Image:
    """Grayscale, stretch contrast, then threshold to pure black and white."""
    gray = ImageOps.grayscale(image)
    stretched = ImageOps.autocontrast(gray)
    return stretched.point(lambda p: 255 if p > BINARY_THRESHOLD else 0)


def extract_barcodes(text: str) -> List[str]:
    """12-14 digit runs, de-duplicated in first-seen order."""
    return list(dict.fromkeys(BARCODE_PATTERN.findall(text)))


def read_receipt(data: bytes) -> ReceiptScanResult:
    """
    OCR receipt image bytes and pull out the barcodes.

    Raises:
        DocumentAnalysisError: If the image cannot be decoded or OCR'd
    """
    image = preprocess_receipt(open_image(data))
    text = image_to_text(image, DIGITS_CONFIG)
    barcodes = extract_barcodes(text)
    logger.info(
        "Receipt OCR completed",
        extra={"extra_fields": {"text_length": len(text), "barcodes": len(barcodes)}}
    )
    return ReceiptScanResult(raw_text=text, extracted_items=barcodes)


async def scan_receipt(data: bytes) -> ReceiptScanResult:
    return await asyncio.to_thread(read_receipt, data)
