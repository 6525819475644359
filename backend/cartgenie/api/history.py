"""
History API endpoints - product scans and receipt summaries.
"""

import logging
from fastapi import APIRouter, HTTPException, status, Depends

from ..models import ReceiptHistory, ReceiptHistoryCreate, ScanHistory, ScanHistoryCreate, envelope
from ..storage.history_storage import HistoryStorage
from ..utils.auth import ensure_same_user, get_current_username
from .deps import get_history_storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/history", tags=["history"])


@router.post("/add", status_code=status.HTTP_201_CREATED)
async def add_scan(
    entry: ScanHistoryCreate,
    current_username: str = Depends(get_current_username),
    history: HistoryStorage = Depends(get_history_storage)
):
    username = ensure_same_user(current_username, entry.username)
    saved = await history.add_scan(ScanHistory(**entry.model_dump(exclude={"username"}), username=username))
    return envelope(data=saved.to_api(), message="History saved")


@router.post("/receipts/add", status_code=status.HTTP_201_CREATED)
async def add_receipt(
    entry: ReceiptHistoryCreate,
    current_username: str = Depends(get_current_username),
    history: HistoryStorage = Depends(get_history_storage)
):
    username = ensure_same_user(current_username, entry.username)
    saved = await history.add_receipt(ReceiptHistory(**entry.model_dump(exclude={"username"}), username=username))
    return envelope(data=saved.to_api(), message="Receipt saved")


@router.get("/receipts/{username}")
async def list_receipts(
    username: str,
    current_username: str = Depends(get_current_username),
    history: HistoryStorage = Depends(get_history_storage)
):
    """Latest receipts of ``username``, newest first."""
    username = ensure_same_user(current_username, username)
    receipts = await history.list_receipts(username)
    return envelope(data=[receipt.to_api() for receipt in receipts])


@router.get("/{username}")
async def list_scans(
    username: str,
    current_username: str = Depends(get_current_username),
    history: HistoryStorage = Depends(get_history_storage)
):
    """Latest product scans of ``username``, newest first."""
    username = ensure_same_user(current_username, username)
    scans = await history.list_scans(username)
    return envelope(data=[scan.to_api() for scan in scans])


@router.delete("/{entry_id}")
async def delete_entry(
    entry_id: str,
    current_username: str = Depends(get_current_username),
    history: HistoryStorage = Depends(get_history_storage)
):
    """Delete a scan or, failing that, a receipt with this id."""
    scan = await history.get_scan(entry_id)
    if scan is not None:
        ensure_same_user(current_username, scan.username)
        await history.delete_scan(entry_id)
        return envelope(message="Item deleted")

    receipt = await history.get_receipt(entry_id)
    if receipt is not None:
        ensure_same_user(current_username, receipt.username)
        await history.delete_receipt(entry_id)
        return envelope(message="Item deleted")

    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Item not found")
