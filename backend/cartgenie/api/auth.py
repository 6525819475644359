"""
Authentication API endpoints.
"""

import logging
from fastapi import APIRouter, HTTPException, status, Depends

from ..config import settings
from ..core.exceptions import DuplicateDocumentError, GoogleAuthError
from ..models import (
    CredentialInDB,
    GoogleLoginRequest,
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    envelope,
)
from ..services.google_auth import verify_google_token
from ..storage.credential_storage import CredentialStorage
from ..utils.auth import (
    create_access_token,
    get_current_username,
    get_password_hash,
    verify_password,
)
from .deps import get_credential_storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"])


def _login_response(credential: CredentialInDB) -> dict:
    token = create_access_token(data={"sub": credential.username})
    return LoginResponse(
        username=credential.username,
        email=credential.email,
        access_token=token,
    ).to_api()


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    user_data: RegisterRequest,
    credentials: CredentialStorage = Depends(get_credential_storage)
):
    """
    Register a new user.

    Raises:
        HTTPException: 400 if the username or the email is already taken
    """
    if await credentials.exists(user_data.username, user_data.email):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="User already exists")

    try:
        credential = await credentials.create(
            username=user_data.username,
            email=user_data.email,
            password_hash=get_password_hash(user_data.password),
        )
    except DuplicateDocumentError:
        # Lost a race with a concurrent registration
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="User already exists")

    return envelope(data=credential.public().to_api(), message="User registered successfully")


@router.post("/login")
async def login(
    form_data: LoginRequest,
    credentials: CredentialStorage = Depends(get_credential_storage)
):
    """
    Login with username and password.

    Returns:
        The username, email and a bearer access token
    """
    if not form_data.username or not form_data.password:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing username or password")

    credential = await credentials.get_by_username(form_data.username)
    if credential is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")

    if not credential.password_hash:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Please use Google Login")

    if not verify_password(form_data.password, credential.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Incorrect password")

    logger.info(f"User logged in: {credential.username}")
    return _login_response(credential)


@router.post("/google")
async def google_login(
    request: GoogleLoginRequest,
    credentials: CredentialStorage = Depends(get_credential_storage)
):
    """
    Sign in with a Google ID token.

    Links the Google account to an existing login with the same email, or
    creates a password-less login named after the email's local part.
    """
    if not request.token:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No token provided")

    try:
        identity = await verify_google_token(
            request.token,
            client_id=settings.google_client_id,
            tokeninfo_url=settings.google_tokeninfo_url,
        )
    except GoogleAuthError as e:
        logger.warning(f"Google login rejected: {e}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Google authentication failed")

    credential = await credentials.get_by_email(identity.email)
    if credential is not None:
        if not credential.google_id:
            await credentials.link_google_id(credential.username, identity.google_id)
            credential.google_id = identity.google_id
    else:
        username = await credentials.unique_username(identity.email.split("@")[0])
        credential = await credentials.create(
            username=username,
            email=identity.email,
            google_id=identity.google_id,
        )

    return _login_response(credential)


@router.get("/me")
async def get_current_user(
    username: str = Depends(get_current_username),
    credentials: CredentialStorage = Depends(get_credential_storage)
):
    """Get the login record of the current user."""
    credential = await credentials.get_by_username(username)
    if credential is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return envelope(data=credential.public().to_api())
