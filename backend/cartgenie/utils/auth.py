"""
Authentication utilities - JWT token handling, password hashing and ownership checks.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional
import bcrypt
from jose import JWTError, jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from ..config import settings
from ..models import TokenData
from ..storage.credential_storage import normalize_username

# Bearer token security; missing tokens are handled below so the error uses the envelope
security = HTTPBearer(auto_error=False)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against a hashed password."""
    return bcrypt.checkpw(plain_password.encode('utf-8'), hashed_password.encode('utf-8'))


def get_password_hash(password: str) -> str:
    """Hash a password."""
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token.

    Args:
        data: Data to encode in the token; ``sub`` carries the username
        expires_delta: Optional expiration time delta

    Returns:
        str: Encoded JWT token
    """
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=settings.access_token_expire_minutes)

    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str) -> Optional[TokenData]:
    """
    Decode and verify a JWT access token.

    Returns:
        Optional[TokenData]: Token data if valid, None otherwise
    """
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None

    username = payload.get("sub")
    if not username:
        return None
    return TokenData(username=username)


async def get_current_username(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> str:
    """
    Dependency to get the current username from the JWT token.

    Raises:
        HTTPException: 401 if the token is missing or invalid
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if credentials is None:
        raise credentials_exception

    token_data = decode_access_token(credentials.credentials)
    if token_data is None or token_data.username is None:
        raise credentials_exception

    return token_data.username


async def get_optional_username(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> Optional[str]:
    """Like get_current_username, but anonymous or invalid tokens yield None."""
    if credentials is None:
        return None
    token_data = decode_access_token(credentials.credentials)
    return token_data.username if token_data else None


def is_admin(username: str) -> bool:
    return normalize_username(username) in {normalize_username(u) for u in settings.admin_usernames}


def ensure_same_user(current_username: str, target_username: Optional[str]) -> str:
    """
    Resolve the username an operation acts on.

    A missing target means the caller. Any other user requires admin rights.

    Raises:
        HTTPException: 403 if a non-admin targets someone else
    """
    if not target_username:
        return current_username
    target = normalize_username(target_username)
    if target != normalize_username(current_username) and not is_admin(current_username):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not allowed to access another user's data"
        )
    return target


async def require_admin(username: str = Depends(get_current_username)) -> str:
    if not is_admin(username):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return username
