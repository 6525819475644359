"""
Product Models - catalog entries and batch lookup results.
"""

from typing import Any, Dict, Optional
from pydantic import Field

from .common import CamelModel, DocumentId

NOT_FOUND_NAME = "Product Not Found in DB"


class Product(CamelModel):
    """Catalog entry in the ``products`` collection (populated out-of-band)."""
    id: DocumentId = Field(None, alias="_id")
    barcode: str
    name: str
    brand: Optional[str] = None
    image: Optional[str] = None
    nutrients: Dict[str, Any] = Field(default_factory=dict)


class ProductLookup(CamelModel):
    """One entry of a batch lookup; unknown barcodes carry ``not_found``."""
    barcode: str
    name: str
    brand: Optional[str] = None
    image: Optional[str] = None
    nutrients: Optional[Dict[str, Any]] = None
    not_found: bool = False

    @classmethod
    def from_product(cls, product: Product) -> "ProductLookup":
        return cls(
            barcode=product.barcode,
            name=product.name,
            brand=product.brand,
            image=product.image,
            nutrients=product.nutrients,
        )

    @classmethod
    def missing(cls, barcode: str) -> "ProductLookup":
        return cls(barcode=barcode, name=NOT_FOUND_NAME, image=None, not_found=True)


class BatchDetailsRequest(CamelModel):
    """Shape is checked by the route so a bad payload gets the envelope message."""
    barcodes: Any = None
