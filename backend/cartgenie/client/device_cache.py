"""
Device cache - small key-value store kept in one JSON file on the device.

Holds the logged-in username and token, the last saved profile snapshot and
the illness/allergy selections of the wizard.
"""

import json
import logging
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

import aiofiles

logger = logging.getLogger(__name__)

LOGGED_IN_USER_KEY = "loggedInUser"
ACCESS_TOKEN_KEY = "accessToken"
USER_DATA_KEY = "app_user_data_v1"
ILLNESSES_KEY = "ILLNESSES_V1"
ALLERGIES_KEY = "ALLERGIES_V1"


class DeviceCache:
    """
    JSON-file key-value cache.

    Every write rewrites the whole file; the data is a handful of keys.
    """

    def __init__(self, path: str = "./cartgenie_cache.json"):
        """
        Args:
            path: File the cache is persisted to; its directory is created on demand
        """
        self.path = Path(path)

    async def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        async with aiofiles.open(self.path, "r", encoding="utf-8") as f:
            raw = await f.read()
        if not raw.strip():
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(f"Device cache at {self.path} is corrupted, starting empty")
            return {}
        return data if isinstance(data, dict) else {}

    async def _dump(self, data: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        async with aiofiles.open(self.path, "w", encoding="utf-8") as f:
            await f.write(json.dumps(data, ensure_ascii=False, indent=2))

    async def get_item(self, key: str) -> Any:
        return (await self._load()).get(key)

    async def set_item(self, key: str, value: Any) -> None:
        data = await self._load()
        data[key] = value
        await self._dump(data)

    async def remove_item(self, key: str) -> None:
        data = await self._load()
        if data.pop(key, None) is not None:
            await self._dump(data)

    async def clear(self) -> None:
        """Forget everything, e.g. on logout."""
        await self._dump({})

    # Session

    async def set_session(self, username: str, access_token: Optional[str] = None) -> None:
        data = await self._load()
        data[LOGGED_IN_USER_KEY] = username
        if access_token is not None:
            data[ACCESS_TOKEN_KEY] = access_token
        await self._dump(data)

    async def get_logged_in_user(self) -> Optional[str]:
        return await self.get_item(LOGGED_IN_USER_KEY)

    async def get_access_token(self) -> Optional[str]:
        return await self.get_item(ACCESS_TOKEN_KEY)

    # Profile snapshot

    async def save_profile(self, profile: Dict[str, Any]) -> Dict[str, Any]:
        """Merge ``profile`` over the cached snapshot and return the result."""
        existing = await self.get_profile() or {}
        merged = {**existing, **profile}
        await self.set_item(USER_DATA_KEY, merged)
        return merged

    async def get_profile(self) -> Optional[Dict[str, Any]]:
        return await self.get_item(USER_DATA_KEY)

    # Selections

    async def save_illnesses(self, selected: List[str], other: str = "") -> Dict[str, Any]:
        payload = {
            "selected": list(selected),
            "other": (other or "").strip(),
            "updatedAt": int(time.time() * 1000),
        }
        await self.set_item(ILLNESSES_KEY, payload)
        return payload

    async def get_illnesses(self) -> Optional[Dict[str, Any]]:
        stored = await self.get_item(ILLNESSES_KEY)
        if not isinstance(stored, dict):
            return None
        return {
            "selected": stored.get("selected") if isinstance(stored.get("selected"), list) else [],
            "other": stored.get("other") if isinstance(stored.get("other"), str) else "",
            "updatedAt": stored.get("updatedAt"),
        }

    async def save_allergies(self, selected: List[str], other: str = "") -> Dict[str, Any]:
        payload = {"selected": list(selected), "other": (other or "").strip()}
        await self.set_item(ALLERGIES_KEY, payload)
        return payload

    async def get_allergies(self) -> Optional[Dict[str, Any]]:
        stored = await self.get_item(ALLERGIES_KEY)
        return stored if isinstance(stored, dict) else None
