"""
Receipt OCR endpoint.
"""

import logging
from typing import Optional
from fastapi import APIRouter, HTTPException, status, UploadFile, File

from ..config import settings
from ..core.exceptions import DocumentAnalysisError
from ..models import envelope
from ..services.receipt_ocr import scan_receipt

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ocr", tags=["ocr"])

ALLOWED_IMAGE_TYPES = {"image/jpeg", "image/jpg", "image/png"}


@router.post("/scan")
async def scan(receipt_image: Optional[UploadFile] = File(None, alias="receiptImage")):
    """
    OCR a receipt photo and return the barcodes found on it.

    Returns:
        ``{rawText, extractedItems}``
    """
    if receipt_image is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No image file uploaded")

    if receipt_image.content_type not in ALLOWED_IMAGE_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unsupported image type: {receipt_image.content_type}"
        )

    content = await receipt_image.read()
    if len(content) > settings.receipt_max_upload_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail="Image exceeds the maximum upload size"
        )

    try:
        result = await scan_receipt(content)
    except DocumentAnalysisError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))

    return envelope(data=result.to_api())
