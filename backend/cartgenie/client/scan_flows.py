"""
Scan flows - a product barcode or a receipt photo through lookup and AI consult.

Failures the user should see end up in the result's ``error`` instead of
being raised, the way a screen would show them in an alert.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..core.exceptions import ApiError
from .api_client import CartGenieClient
from .device_cache import DeviceCache

logger = logging.getLogger(__name__)

NOT_IN_DATABASE = "Item not in database. AI analysis skipped."
PRODUCT_NOT_FOUND = "Product not found in database"
NO_BARCODES = "No barcodes found to analyze."
NONE_READABLE = "None of the items could be read clearly. Please try taking a better photo."
LOGIN_REQUIRED = "You must be logged in to save history."
SCANNED_RECEIPT_STORE = "Scanned Receipt"


def unidentified_warning(count: int) -> str:
    return f"{count} items were not identified due to unclear receipt quality."


@dataclass
class ProductScanResult:
    barcode: str
    product: Optional[Dict[str, Any]] = None
    verdict: Optional[Dict[str, Any]] = None
    error: Optional[str] = None

    @property
    def ai_unavailable(self) -> bool:
        """The verdict is the conservative placeholder, not a real answer."""
        return bool(self.verdict and self.verdict.get("fallback"))


@dataclass
class ReceiptAnalysis:
    barcodes: List[str] = field(default_factory=list)
    products: List[str] = field(default_factory=list)
    verdict: Optional[Dict[str, Any]] = None
    warning: Optional[str] = None
    error: Optional[str] = None
    saved: bool = False

    @property
    def item_count(self) -> int:
        return len(self.products)

    @property
    def ai_unavailable(self) -> bool:
        return bool(self.verdict and self.verdict.get("fallback"))

    def health_summary(self) -> Dict[str, int]:
        """Counts of SAFE, CAUTION and AVOID verdicts among the analyzed items."""
        items = (self.verdict or {}).get("analyzedItems") or []
        recommendations = [item.get("recommendation") for item in items]
        return {
            "safe": recommendations.count("SAFE"),
            "caution": recommendations.count("CAUTION"),
            "avoid": recommendations.count("AVOID"),
        }


class ScanFlows:
    """Product and receipt scanning for the logged-in user, or a guest."""

    def __init__(self, api: CartGenieClient, cache: DeviceCache):
        self.api = api
        self.cache = cache

    async def scan_product(self, barcode: str) -> ProductScanResult:
        """
        Look the barcode up, consult the AI and record the verdict.

        Unknown products skip the consult. A failed history write is logged
        and does not affect the result.
        """
        result = ProductScanResult(barcode=barcode)
        try:
            lookups = await self.api.batch_details([barcode])
        except ApiError as e:
            logger.warning(f"Product lookup failed for {barcode}: {e.message}")
            result.error = e.message
            return result

        if not lookups:
            result.error = PRODUCT_NOT_FOUND
            return result
        product = lookups[0]
        if product.get("notFound") or not product.get("name"):
            result.error = NOT_IN_DATABASE
            return result
        result.product = product

        username = await self.cache.get_logged_in_user()
        try:
            result.verdict = await self.api.consult(product, username=username)
        except ApiError as e:
            logger.warning(f"Consult failed for {barcode}: {e.message}")
            result.error = e.message
            return result

        if username:
            await self._save_scan(username, product, result.verdict)
        return result

    async def _save_scan(self, username: str, product: Dict[str, Any], verdict: Dict[str, Any]) -> None:
        try:
            await self.api.add_scan_history({
                "username": username,
                "productName": product.get("name"),
                "barcode": product.get("barcode"),
                "brand": product.get("brand"),
                "aiRecommendation": verdict.get("recommendation", "UNKNOWN"),
                "aiReason": verdict.get("reason"),
            })
        except ApiError as e:
            logger.error(f"Failed to save scan history for {username}: {e.message}")

    async def scan_receipt(
        self,
        image: bytes,
        filename: str = "receipt.jpg",
        content_type: str = "image/jpeg"
    ) -> ReceiptAnalysis:
        """OCR the receipt, resolve its barcodes and consult the AI on the cart."""
        result = ReceiptAnalysis()
        try:
            scanned = await self.api.scan_receipt(image, filename=filename, content_type=content_type)
            result.barcodes = scanned.get("extractedItems") or []
            if not result.barcodes:
                result.error = NO_BARCODES
                return result

            lookups = await self.api.batch_details(result.barcodes)
            result.products = [item["name"] for item in lookups if not item.get("notFound")]
            not_found = len(lookups) - len(result.products)
            if not_found:
                result.warning = unidentified_warning(not_found)
            if not result.products:
                result.error = NONE_READABLE
                return result

            username = await self.cache.get_logged_in_user()
            result.verdict = await self.api.consult_cart(result.products, username=username)
        except ApiError as e:
            logger.warning(f"Receipt analysis failed: {e.message}")
            result.error = e.message
        return result

    async def save_receipt(self, result: ReceiptAnalysis) -> Dict[str, Any]:
        """
        Store the receipt summary. The price is not read from the receipt, so
        the total is always 0.

        Raises:
            ApiError: Guest user, nothing analyzed, or the save failed
        """
        username = await self.cache.get_logged_in_user()
        if not username:
            raise ApiError(LOGIN_REQUIRED)
        if result.verdict is None:
            raise ApiError("Nothing to save yet.")
        if result.saved:
            raise ApiError("Receipt already saved.")

        saved = await self.api.add_receipt_history({
            "username": username,
            "storeName": SCANNED_RECEIPT_STORE,
            "totalPrice": 0,
            "itemCount": result.item_count,
            "healthSummary": result.health_summary(),
        })
        result.saved = True
        return saved
