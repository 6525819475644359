"""
User Models - login credentials, auth requests and tokens.
"""

from datetime import datetime
from typing import Optional
from pydantic import EmailStr, Field

from .common import CamelModel, DocumentId


class RegisterRequest(CamelModel):
    """Registration payload."""
    username: str = Field(..., min_length=3, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=6)


class LoginRequest(CamelModel):
    """Username/password login. Presence is checked by the route."""
    username: Optional[str] = None
    password: Optional[str] = None


class GoogleLoginRequest(CamelModel):
    """Google sign-in with an ID token from the mobile SDK."""
    token: Optional[str] = None


class VerifyIdentityRequest(CamelModel):
    username: str = ""
    email: str = ""


class ResetPasswordRequest(CamelModel):
    username: str = ""
    email: str = ""
    new_password: str = ""


class Credential(CamelModel):
    """Public view of a login record."""
    username: str
    email: str
    google_linked: bool = False
    created_at: Optional[datetime] = None


class CredentialInDB(CamelModel):
    """Login record as stored in the ``login_info`` collection."""
    id: DocumentId = Field(None, alias="_id")
    username: str
    email: str
    password_hash: Optional[str] = None
    google_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def public(self) -> Credential:
        return Credential(
            username=self.username,
            email=self.email,
            google_linked=self.google_id is not None,
            created_at=self.created_at,
        )


class LoginResponse(CamelModel):
    """Login result; same shape for password and Google sign-in."""
    success: bool = True
    username: str
    email: str
    access_token: str
    token_type: str = "bearer"


class TokenData(CamelModel):
    """Token payload data."""
    username: Optional[str] = None
