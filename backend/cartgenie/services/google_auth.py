"""
Google ID token verification through Google's token-info endpoint.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from ..core.exceptions import GoogleAuthError

logger = logging.getLogger(__name__)

GOOGLE_ISSUERS = ("accounts.google.com", "https://accounts.google.com")


@dataclass
class GoogleIdentity:
    google_id: str
    email: str


async def verify_google_token(
    token: str,
    client_id: Optional[str],
    tokeninfo_url: str = "https://oauth2.googleapis.com/tokeninfo",
    timeout: float = 10.0
) -> GoogleIdentity:
    """
    Verify a Google ID token and return the identity it asserts.

    Google checks the signature and expiry; the audience, issuer and
    email verification are checked here.

    Raises:
        GoogleAuthError: If the token is rejected or sign-in is not configured
    """
    if not client_id:
        raise GoogleAuthError("Google sign-in is not configured")

    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            resp = await client.get(tokeninfo_url, params={"id_token": token})
    except httpx.HTTPError as e:
        raise GoogleAuthError(f"Token verification request failed: {e}") from e

    if resp.status_code != 200:
        raise GoogleAuthError(f"Token rejected by Google (status {resp.status_code})")

    claims = resp.json()
    if claims.get("aud") != client_id:
        raise GoogleAuthError("Token audience mismatch")
    if claims.get("iss") not in GOOGLE_ISSUERS:
        raise GoogleAuthError("Token issuer mismatch")
    if str(claims.get("email_verified", "")).lower() != "true":
        raise GoogleAuthError("Google email is not verified")
    if not claims.get("sub") or not claims.get("email"):
        raise GoogleAuthError("Token is missing subject or email")

    logger.debug(f"Google token verified for {claims['email']}")
    return GoogleIdentity(google_id=claims["sub"], email=claims["email"].lower())
