"""
Product API endpoints - catalog lookups by barcode.
"""

from fastapi import APIRouter, HTTPException, status, Depends

from ..models import BatchDetailsRequest, ProductLookup, envelope
from ..storage.product_storage import ProductStorage
from .deps import get_product_storage

router = APIRouter(prefix="/products", tags=["products"])


@router.post("/batch-details")
async def batch_details(
    request: BatchDetailsRequest,
    products: ProductStorage = Depends(get_product_storage)
):
    """
    Look up many barcodes at once.

    Unknown barcodes come back as not-found entries, in input order.
    """
    if not isinstance(request.barcodes, list):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid barcodes array")

    barcodes = [str(barcode).strip() for barcode in request.barcodes]
    results = await products.lookup_batch(barcodes)
    return envelope(data=[result.to_api() for result in results])


@router.get("/{barcode}")
async def get_product(
    barcode: str,
    products: ProductStorage = Depends(get_product_storage)
):
    product = await products.get_by_barcode(barcode)
    result = ProductLookup.from_product(product) if product else ProductLookup.missing(barcode)
    return envelope(data=result.to_api())
