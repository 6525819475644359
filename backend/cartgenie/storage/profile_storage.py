"""
Profile Storage - health profiles in the ``userdata`` collection.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from ..models.profile import UserProfile
from .collections import USER_DATA
from .interface import DESCENDING, DocumentStore

logger = logging.getLogger(__name__)


class ProfileStorage:
    """Manages one profile document per username."""

    def __init__(self, store: DocumentStore):
        self.store = store

    async def get(self, username: str) -> Optional[UserProfile]:
        document = await self.store.find_one(USER_DATA, {"username": username})
        return UserProfile.model_validate(document) if document else None

    async def create(self, profile: UserProfile) -> UserProfile:
        """
        Insert a new profile.

        Raises:
            DuplicateDocumentError: If the username already has a profile
        """
        profile.id = await self.store.insert_one(USER_DATA, profile.to_document())
        logger.info(f"Profile created: {profile.username}")
        return profile

    async def update_fields(self, username: str, fields: Dict[str, Any]) -> bool:
        """
        Set individual profile fields.

        Args:
            username: Profile owner
            fields: Dotted snake_case paths to values, e.g. ``body_measurements.bmi``

        Returns:
            bool: False if the profile does not exist
        """
        values = dict(fields)
        values["last_updated"] = datetime.now(timezone.utc)
        return await self.store.update_one(USER_DATA, {"username": username}, values)

    async def delete(self, username: str) -> bool:
        deleted = await self.store.delete_one(USER_DATA, {"username": username})
        if deleted:
            logger.info(f"Profile deleted: {username}")
        return deleted

    async def list(self, page: int = 1, limit: int = 10) -> Tuple[List[UserProfile], int]:
        """Return one page of profiles, newest first, plus the total count."""
        page = max(page, 1)
        documents = await self.store.find(
            USER_DATA,
            sort=[("created_at", DESCENDING)],
            skip=(page - 1) * limit,
            limit=limit,
        )
        total = await self.store.count(USER_DATA)
        return [UserProfile.model_validate(d) for d in documents], total
