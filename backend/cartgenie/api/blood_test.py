"""
Blood test endpoints - upload for analysis and the latest result.
"""

import logging
from typing import Optional
from fastapi import APIRouter, HTTPException, status, Depends, UploadFile, File

from ..config import settings
from ..core.exceptions import DocumentAnalysisError
from ..models import BloodTestAnalysis, envelope
from ..services.blood_test import SUPPORTED_CONTENT_TYPES, analyze_blood_test
from ..storage.history_storage import HistoryStorage
from ..utils.auth import ensure_same_user, get_current_username
from .deps import get_history_storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/blood-test", tags=["blood-test"])


@router.post("/analyze")
async def analyze(
    blood_test_file: Optional[UploadFile] = File(None, alias="bloodTestFile"),
    username: str = Depends(get_current_username),
    history: HistoryStorage = Depends(get_history_storage)
):
    """
    OCR a blood-test PDF or image and store the detected conditions.

    Replaces any earlier analysis of the same user.
    """
    if blood_test_file is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No file uploaded")

    content_type = "image/jpeg" if blood_test_file.content_type == "image/jpg" else blood_test_file.content_type
    if content_type not in SUPPORTED_CONTENT_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"File type {blood_test_file.content_type} not supported"
        )

    content = await blood_test_file.read()
    if len(content) > settings.blood_test_max_upload_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail="File exceeds the maximum upload size"
        )

    try:
        record = await analyze_blood_test(
            history,
            username,
            content,
            content_type,
            file_name=blood_test_file.filename,
            dpi=settings.pdf_dpi,
            min_length=settings.blood_test_min_text_length,
        )
    except DocumentAnalysisError as e:
        logger.warning(f"Blood test analysis failed for {username}: {e}")
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))

    result = BloodTestAnalysis(diagnosis=record.diagnosis, record_id=record.id)
    return envelope(data=result.to_api())


@router.get("/history/{username}")
async def history_for_user(
    username: str,
    current_username: str = Depends(get_current_username),
    history: HistoryStorage = Depends(get_history_storage)
):
    """The user's latest blood-test record as a one-element list, or []."""
    username = ensure_same_user(current_username, username)
    record = await history.latest_blood_test(username)
    return envelope(data=[record.to_api()] if record else [])
