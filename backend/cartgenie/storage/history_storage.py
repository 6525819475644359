"""
History Storage - scan, receipt and blood-test records.
"""

import logging
from typing import List, Optional

from ..models.history import BloodTestRecord, ReceiptHistory, ScanHistory
from .collections import BLOOD_TESTS, RECEIPT_HISTORY, SCAN_HISTORY
from .interface import DESCENDING, DocumentStore

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 50


class HistoryStorage:
    """
    Append-only scan and receipt history, plus the latest blood test per user.
    """

    def __init__(self, store: DocumentStore):
        self.store = store

    async def add_scan(self, entry: ScanHistory) -> ScanHistory:
        entry.id = await self.store.insert_one(SCAN_HISTORY, entry.to_document())
        return entry

    async def list_scans(self, username: str, limit: int = HISTORY_LIMIT) -> List[ScanHistory]:
        """Most recent scans first."""
        documents = await self.store.find(
            SCAN_HISTORY, {"username": username}, sort=[("scanned_at", DESCENDING)], limit=limit
        )
        return [ScanHistory.model_validate(d) for d in documents]

    async def get_scan(self, entry_id: str) -> Optional[ScanHistory]:
        document = await self.store.find_one(SCAN_HISTORY, {"_id": entry_id})
        return ScanHistory.model_validate(document) if document else None

    async def delete_scan(self, entry_id: str) -> bool:
        return await self.store.delete_one(SCAN_HISTORY, {"_id": entry_id})

    async def add_receipt(self, entry: ReceiptHistory) -> ReceiptHistory:
        entry.id = await self.store.insert_one(RECEIPT_HISTORY, entry.to_document())
        return entry

    async def list_receipts(self, username: str, limit: int = HISTORY_LIMIT) -> List[ReceiptHistory]:
        """Most recent receipts first."""
        documents = await self.store.find(
            RECEIPT_HISTORY, {"username": username}, sort=[("scan_date", DESCENDING)], limit=limit
        )
        return [ReceiptHistory.model_validate(d) for d in documents]

    async def get_receipt(self, entry_id: str) -> Optional[ReceiptHistory]:
        document = await self.store.find_one(RECEIPT_HISTORY, {"_id": entry_id})
        return ReceiptHistory.model_validate(document) if document else None

    async def delete_receipt(self, entry_id: str) -> bool:
        return await self.store.delete_one(RECEIPT_HISTORY, {"_id": entry_id})

    async def replace_blood_test(self, record: BloodTestRecord) -> BloodTestRecord:
        """Store ``record`` as the user's only blood-test record."""
        removed = await self.store.delete_many(BLOOD_TESTS, {"username": record.username})
        if removed:
            logger.debug(f"Replaced {removed} blood test record(s) for {record.username}")
        record.id = await self.store.insert_one(BLOOD_TESTS, record.to_document())
        return record

    async def latest_blood_test(self, username: str) -> Optional[BloodTestRecord]:
        documents = await self.store.find(
            BLOOD_TESTS, {"username": username}, sort=[("upload_date", DESCENDING)], limit=1
        )
        return BloodTestRecord.model_validate(documents[0]) if documents else None

    async def count_blood_tests(self, username: str) -> int:
        return await self.store.count(BLOOD_TESTS, {"username": username})
