"""
Profile API endpoints - wizard upsert, lookup, blood-test metadata and deletion.
"""

import logging
import math
from datetime import datetime, timezone
from fastapi import APIRouter, HTTPException, Response, status, Depends, Query

from ..core.exceptions import DuplicateDocumentError, ProfileValidationError
from ..models import BloodTestInfo, BloodTestUpdateRequest, ProfileSaveRequest, ProfileView, envelope
from ..services.profile_service import ProfileService
from ..storage.history_storage import HistoryStorage
from ..storage.profile_storage import ProfileStorage
from ..utils.auth import ensure_same_user, get_current_username, require_admin
from .deps import get_history_storage, get_profile_storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/userdata", tags=["userdata"])


@router.post("/save")
async def save_user_data(
    request: ProfileSaveRequest,
    response: Response,
    current_username: str = Depends(get_current_username),
    profiles: ProfileStorage = Depends(get_profile_storage)
):
    """
    Create or update the caller's profile.

    Returns 201 with ``isNew: true`` when the profile was created.
    """
    username = ensure_same_user(current_username, request.username)
    try:
        profile, is_new = await ProfileService(profiles).save(username, request)
    except ProfileValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except DuplicateDocumentError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Profile already exists")

    if is_new:
        response.status_code = status.HTTP_201_CREATED
        message = "User created successfully"
    else:
        message = "User data updated successfully"
    return envelope(data=profile.to_api(), message=message, isNew=is_new)


@router.get("/all")
async def list_user_data(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    _admin: str = Depends(require_admin),
    profiles: ProfileStorage = Depends(get_profile_storage)
):
    """Paginated listing of all profiles, newest first. Admin only."""
    items, total = await profiles.list(page=page, limit=limit)
    return envelope(
        data=[profile.to_api() for profile in items],
        pagination={
            "page": page,
            "limit": limit,
            "total": total,
            "pages": math.ceil(total / limit) if total else 0,
        },
    )


@router.patch("/blood-test")
async def update_blood_test(
    request: BloodTestUpdateRequest,
    current_username: str = Depends(get_current_username),
    profiles: ProfileStorage = Depends(get_profile_storage)
):
    """Record an uploaded blood-test file on the profile and mark it complete."""
    username = ensure_same_user(current_username, request.username)
    blood_test = BloodTestInfo(
        file_name=request.file_name,
        file_url=request.file_url,
        file_size=request.file_size,
        upload_date=datetime.now(timezone.utc),
        status="uploaded",
    )
    updated = await profiles.update_fields(
        username, {"blood_test": blood_test.model_dump(), "is_completed": True}
    )
    if not updated:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User data not found")

    profile = await profiles.get(username)
    return envelope(data=profile.to_api(), message="Blood test updated")


@router.get("/{username}")
async def get_user_data(
    username: str,
    current_username: str = Depends(get_current_username),
    profiles: ProfileStorage = Depends(get_profile_storage),
    history: HistoryStorage = Depends(get_history_storage)
):
    """Profile of ``username`` plus whether any blood-test record exists."""
    username = ensure_same_user(current_username, username)
    profile = await profiles.get(username)
    if profile is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    has_blood_tests = await history.count_blood_tests(username) > 0
    view = ProfileView.model_validate({**profile.model_dump(), "has_blood_tests": has_blood_tests})
    return envelope(data=view.to_api())


@router.delete("/{username}")
async def delete_user_data(
    username: str,
    current_username: str = Depends(get_current_username),
    profiles: ProfileStorage = Depends(get_profile_storage)
):
    """Delete exactly the profile of ``username``."""
    username = ensure_same_user(current_username, username)
    if not await profiles.delete(username):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return envelope(message="User data deleted successfully")
