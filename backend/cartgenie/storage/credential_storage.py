"""
Credential Storage - login records in the ``login_info`` collection.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from ..models.user import CredentialInDB
from .collections import LOGIN_INFO
from .interface import DocumentStore

logger = logging.getLogger(__name__)


def normalize_username(username: str) -> str:
    return username.strip().lower()


def normalize_email(email: str) -> str:
    return email.strip().lower()


class CredentialStorage:
    """
    Manages login records.
    Usernames and emails are stored lower-cased and trimmed.
    """

    def __init__(self, store: DocumentStore):
        self.store = store

    async def get_by_username(self, username: str) -> Optional[CredentialInDB]:
        """
        Get a login record by username.

        Args:
            username: Username, any case

        Returns:
            Optional[CredentialInDB]: The record or None if not found
        """
        document = await self.store.find_one(LOGIN_INFO, {"username": normalize_username(username)})
        return CredentialInDB.model_validate(document) if document else None

    async def get_by_email(self, email: str) -> Optional[CredentialInDB]:
        document = await self.store.find_one(LOGIN_INFO, {"email": normalize_email(email)})
        return CredentialInDB.model_validate(document) if document else None

    async def exists(self, username: str, email: str) -> bool:
        """True if either the username or the email is taken."""
        if await self.get_by_username(username) is not None:
            return True
        return await self.get_by_email(email) is not None

    async def create(
        self,
        username: str,
        email: str,
        password_hash: Optional[str] = None,
        google_id: Optional[str] = None
    ) -> CredentialInDB:
        """
        Create a login record.

        Raises:
            DuplicateDocumentError: If the username, email or Google id is taken
        """
        now = datetime.now(timezone.utc)
        credential = CredentialInDB(
            username=normalize_username(username),
            email=normalize_email(email),
            password_hash=password_hash,
            google_id=google_id,
            created_at=now,
            updated_at=now,
        )
        # Absent Google id stays absent so the partial unique index ignores it
        document = credential.to_document()
        if document.get("google_id") is None:
            document.pop("google_id", None)
        credential.id = await self.store.insert_one(LOGIN_INFO, document)
        logger.info(f"Credential created: {credential.username}")
        return credential

    async def link_google_id(self, username: str, google_id: str) -> bool:
        return await self.store.update_one(
            LOGIN_INFO,
            {"username": normalize_username(username)},
            {"google_id": google_id, "updated_at": datetime.now(timezone.utc)},
        )

    async def set_password_hash(self, username: str, password_hash: str) -> bool:
        return await self.store.update_one(
            LOGIN_INFO,
            {"username": normalize_username(username)},
            {"password_hash": password_hash, "updated_at": datetime.now(timezone.utc)},
        )

    async def unique_username(self, base: str) -> str:
        """
        Derive a free username from ``base`` by appending a counter.

        ``base`` itself is returned when it is free.
        """
        base = normalize_username(base) or "user"
        candidate = base
        suffix = 1
        while await self.get_by_username(candidate) is not None:
            candidate = f"{base}{suffix}"
            suffix += 1
        return candidate
