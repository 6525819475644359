"""
Thin wrapper over Tesseract shared by receipt and blood-test OCR.

All functions here are blocking; async callers run them with asyncio.to_thread.
"""

import io
import logging
from typing import Optional

import pytesseract
from PIL import Image, UnidentifiedImageError

from ..core.exceptions import DocumentAnalysisError

logger = logging.getLogger(__name__)

OCR_LANGUAGE = "eng"


def configure_tesseract(tesseract_cmd: Optional[str]) -> None:
    """Point pytesseract at a specific binary; None keeps the one on PATH."""
    if tesseract_cmd:
        pytesseract.pytesseract.tesseract_cmd = tesseract_cmd
        logger.info(f"Tesseract binary: {tesseract_cmd}")


def open_image(data: bytes) -> Image.Image:
    """
    Decode image bytes.

    Raises:
        DocumentAnalysisError: If the bytes are not a readable image or exceed Pillow's pixel limit
    """
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except Image.DecompressionBombError as e:
        raise DocumentAnalysisError(f"Image is too large: {e}") from e
    except (UnidentifiedImageError, OSError) as e:
        raise DocumentAnalysisError(f"Unreadable image: {e}") from e
    return image


def image_to_text(image: Image.Image, config: str = "") -> str:
    """
    OCR a single image.

    Raises:
        DocumentAnalysisError: If Tesseract rejects the image
        TesseractNotFoundError: If the tesseract binary is missing
    """
    try:
        return pytesseract.image_to_string(image, lang=OCR_LANGUAGE, config=config)
    except pytesseract.TesseractNotFoundError:
        logger.error("Tesseract is not installed; receipts and blood tests cannot be read")
        raise
    except pytesseract.TesseractError as e:
        raise DocumentAnalysisError(f"OCR failed: {e}") from e
