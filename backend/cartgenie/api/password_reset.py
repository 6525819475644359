"""
Password reset endpoints - identity check by username and email, then a new password.
"""

import logging
from fastapi import APIRouter, HTTPException, status, Depends

from ..models import ResetPasswordRequest, VerifyIdentityRequest, CredentialInDB, envelope
from ..storage.credential_storage import CredentialStorage, normalize_email
from ..utils.auth import get_password_hash
from .deps import get_credential_storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/passRest", tags=["password-reset"])

MIN_PASSWORD_LENGTH = 6


async def _verified_credential(credentials: CredentialStorage, username: str, email: str) -> CredentialInDB:
    if not username or not email:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Username and email are required")

    credential = await credentials.get_by_username(username)
    if credential is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    if credential.email != normalize_email(email):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email does not match this user")
    return credential


@router.post("/verify-identity")
async def verify_identity(
    request: VerifyIdentityRequest,
    credentials: CredentialStorage = Depends(get_credential_storage)
):
    """Check that the username exists and the email belongs to it."""
    await _verified_credential(credentials, request.username, request.email)
    return envelope(message="Identity verified")


@router.post("/reset-password")
async def reset_password(
    request: ResetPasswordRequest,
    credentials: CredentialStorage = Depends(get_credential_storage)
):
    """Set a new password after re-checking the username/email pair."""
    credential = await _verified_credential(credentials, request.username, request.email)

    if len(request.new_password) < MIN_PASSWORD_LENGTH:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
        )

    await credentials.set_password_hash(credential.username, get_password_hash(request.new_password))
    logger.info(f"Password reset for {credential.username}")
    return envelope(message="Password updated successfully")
