"""
HTTP client for the CartGenie backend.

One coroutine per endpoint. Responses come back as the parsed JSON body;
transport failures and ``success: false`` envelopes raise ``ApiError``.
No retries.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from ..core.exceptions import ApiError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 15.0


class CartGenieClient:
    """
    Async client for the ``/api`` routes.

    Usage:
        async with CartGenieClient("http://localhost:8000") as api:
            await api.login("dana", "secret1")
            profile = await api.get_profile("dana")
    """

    def __init__(
        self,
        base_url: str,
        access_token: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Args:
            base_url: Server root, without the ``/api`` suffix
            access_token: Bearer token from an earlier login
            timeout: Per-request timeout in seconds
            transport: Custom transport, e.g. ``httpx.ASGITransport`` in tests
        """
        self.base_url = base_url.rstrip("/")
        self.access_token = access_token
        self._client = httpx.AsyncClient(
            base_url=f"{self.base_url}/api",
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "CartGenieClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def _auth_headers(self) -> Dict[str, str]:
        if not self.access_token:
            return {}
        return {"Authorization": f"Bearer {self.access_token}"}

    async def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        try:
            resp = await self._client.request(method, path, headers=self._auth_headers(), **kwargs)
        except httpx.TimeoutException as e:
            logger.warning(f"{method} {path} timed out: {e}")
            raise ApiError("The server did not respond in time. Please try again.") from e
        except httpx.HTTPError as e:
            logger.warning(f"{method} {path} failed: {e}")
            raise ApiError("Could not reach the server. Check your connection.") from e

        try:
            body = resp.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {"data": body}

        if resp.is_error or body.get("success") is False:
            message = body.get("message") or body.get("detail") or f"Request failed with status {resp.status_code}"
            raise ApiError(str(message), resp.status_code)
        return body

    # Auth

    async def register(self, username: str, email: str, password: str) -> Dict[str, Any]:
        return await self._request(
            "POST", "/auth/register", json={"username": username, "email": email, "password": password}
        )

    async def login(self, username: str, password: str) -> Dict[str, Any]:
        """Log in and keep the returned token for later calls."""
        body = await self._request("POST", "/auth/login", json={"username": username, "password": password})
        self.access_token = body.get("accessToken")
        return body

    async def google_login(self, id_token: str) -> Dict[str, Any]:
        body = await self._request("POST", "/auth/google", json={"token": id_token})
        self.access_token = body.get("accessToken")
        return body

    async def me(self) -> Dict[str, Any]:
        return (await self._request("GET", "/auth/me"))["data"]

    def logout(self) -> None:
        self.access_token = None

    # Password reset

    async def verify_identity(self, username: str, email: str) -> Dict[str, Any]:
        return await self._request("POST", "/passRest/verify-identity", json={"username": username, "email": email})

    async def reset_password(self, username: str, email: str, new_password: str) -> Dict[str, Any]:
        return await self._request(
            "POST",
            "/passRest/reset-password",
            json={"username": username, "email": email, "newPassword": new_password},
        )

    # Profile

    async def save_profile(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Upsert; the body carries ``data`` and ``isNew``."""
        return await self._request("POST", "/userdata/save", json=payload)

    async def get_profile(self, username: str) -> Dict[str, Any]:
        return (await self._request("GET", f"/userdata/{username}"))["data"]

    async def list_profiles(self, page: int = 1, limit: int = 10) -> Dict[str, Any]:
        return await self._request("GET", "/userdata/all", params={"page": page, "limit": limit})

    async def update_blood_test(
        self,
        username: str,
        file_name: str,
        file_url: Optional[str] = None,
        file_size: Optional[int] = None
    ) -> Dict[str, Any]:
        payload = {"username": username, "fileName": file_name, "fileUrl": file_url, "fileSize": file_size}
        return (await self._request("PATCH", "/userdata/blood-test", json=payload))["data"]

    async def delete_profile(self, username: str) -> Dict[str, Any]:
        return await self._request("DELETE", f"/userdata/{username}")

    # Products

    async def batch_details(self, barcodes: List[str]) -> List[Dict[str, Any]]:
        return (await self._request("POST", "/products/batch-details", json={"barcodes": barcodes}))["data"]

    async def get_product(self, barcode: str) -> Dict[str, Any]:
        return (await self._request("GET", f"/products/{barcode}"))["data"]

    # Documents

    async def scan_receipt(
        self,
        image: bytes,
        filename: str = "receipt.jpg",
        content_type: str = "image/jpeg"
    ) -> Dict[str, Any]:
        """OCR a receipt photo; returns ``{rawText, extractedItems}``."""
        files = {"receiptImage": (filename, image, content_type)}
        return (await self._request("POST", "/ocr/scan", files=files))["data"]

    async def analyze_blood_test(
        self,
        document: bytes,
        filename: str = "blood_test.pdf",
        content_type: str = "application/pdf"
    ) -> Dict[str, Any]:
        """Upload a blood test; returns ``{diagnosis, recordId}``."""
        files = {"bloodTestFile": (filename, document, content_type)}
        return (await self._request("POST", "/blood-test/analyze", files=files))["data"]

    async def get_blood_test_history(self, username: str) -> List[Dict[str, Any]]:
        return (await self._request("GET", f"/blood-test/history/{username}"))["data"]

    # AI consult

    async def consult(self, product: Dict[str, Any], username: Optional[str] = None) -> Dict[str, Any]:
        body = await self._request("POST", "/ai/consult", json={"username": username, "product": product})
        return body["data"]

    async def consult_cart(self, products: List[str], username: Optional[str] = None) -> Dict[str, Any]:
        body = await self._request("POST", "/ai/consult-cart", json={"username": username, "products": products})
        return body["data"]

    # History

    async def add_scan_history(self, entry: Dict[str, Any]) -> Dict[str, Any]:
        return (await self._request("POST", "/history/add", json=entry))["data"]

    async def add_receipt_history(self, entry: Dict[str, Any]) -> Dict[str, Any]:
        return (await self._request("POST", "/history/receipts/add", json=entry))["data"]

    async def get_scan_history(self, username: str) -> List[Dict[str, Any]]:
        return (await self._request("GET", f"/history/{username}"))["data"]

    async def get_receipt_history(self, username: str) -> List[Dict[str, Any]]:
        return (await self._request("GET", f"/history/receipts/{username}"))["data"]

    async def delete_history_entry(self, entry_id: str) -> Dict[str, Any]:
        return await self._request("DELETE", f"/history/{entry_id}")
