"""
History Models - scan, receipt and blood-test records.
"""

from datetime import datetime, timezone
from typing import List, Literal, Optional
from pydantic import Field

from .common import CamelModel, DocumentId

Recommendation = Literal["SAFE", "CAUTION", "AVOID", "UNKNOWN"]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ScanHistoryCreate(CamelModel):
    username: Optional[str] = None
    product_name: str
    barcode: Optional[str] = None
    brand: Optional[str] = None
    ai_recommendation: Recommendation = "UNKNOWN"
    ai_reason: Optional[str] = None


class ScanHistory(ScanHistoryCreate):
    """Single product verdict, append-only."""
    id: DocumentId = Field(None, alias="_id")
    username: str
    scanned_at: datetime = Field(default_factory=_utcnow)


class HealthSummary(CamelModel):
    safe: int = 0
    caution: int = 0
    avoid: int = 0


class ReceiptHistoryCreate(CamelModel):
    username: Optional[str] = None
    store_name: str = "Unknown Store"
    total_price: float = 0
    currency: str = "₪"
    item_count: int = 0
    health_summary: HealthSummary = Field(default_factory=HealthSummary)


class ReceiptHistory(ReceiptHistoryCreate):
    """Cart verdict summary, append-only."""
    id: DocumentId = Field(None, alias="_id")
    username: str
    scan_date: datetime = Field(default_factory=_utcnow)


class BloodTestRecord(CamelModel):
    """Latest blood-test analysis of a user."""
    id: DocumentId = Field(None, alias="_id")
    username: str
    upload_date: datetime = Field(default_factory=_utcnow)
    diagnosis: List[str] = Field(default_factory=list)
    raw_text: str = ""
    file_name: Optional[str] = None
