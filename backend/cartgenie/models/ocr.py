"""
OCR Models - receipt scan and blood-test analysis results.
"""

from typing import List, Optional
from pydantic import Field

from .common import CamelModel


class ReceiptScanResult(CamelModel):
    raw_text: str = ""
    extracted_items: List[str] = Field(default_factory=list)


class BloodTestAnalysis(CamelModel):
    diagnosis: List[str] = Field(default_factory=list)
    record_id: Optional[str] = None
