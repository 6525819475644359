"""
Product Storage - read access to the ``products`` catalog.
"""

from typing import List, Optional

from ..models.product import Product, ProductLookup
from .collections import PRODUCTS
from .interface import DocumentStore


class ProductStorage:
    """The catalog is populated out-of-band; the app only reads it (and seeds it in tests)."""

    def __init__(self, store: DocumentStore):
        self.store = store

    async def get_by_barcode(self, barcode: str) -> Optional[Product]:
        document = await self.store.find_one(PRODUCTS, {"barcode": barcode})
        return Product.model_validate(document) if document else None

    async def lookup_batch(self, barcodes: List[str]) -> List[ProductLookup]:
        """
        Look up barcodes one by one, preserving input order.
        Unknown barcodes yield a not-found placeholder entry.
        """
        results = []
        for barcode in barcodes:
            product = await self.get_by_barcode(barcode)
            if product is None:
                results.append(ProductLookup.missing(barcode))
            else:
                results.append(ProductLookup.from_product(product))
        return results

    async def add(self, product: Product) -> Product:
        product.id = await self.store.insert_one(PRODUCTS, product.to_document())
        return product
