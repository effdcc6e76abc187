"""
Product catalog: CRUD over the ``pavilo_products`` collection.

The whole catalog is held in memory and rewritten to storage on every
mutation. Invoices copy name/rate/unit at billing time, so edits here never
touch existing invoices, and stock is not decremented by invoicing.
"""
from __future__ import annotations

from typing import Any, Optional

from loguru import logger

from pavilo.core.exceptions import SerializationError, ValidationError
from pavilo.core.ids import new_id
from pavilo.core.storage import PRODUCTS_KEY, Storage, load_collection, save_collection
from pavilo.models.records import Product

SAMPLE_PRODUCTS = [
    {"id": "1", "name": "Basmati Rice", "rate": 100, "unit": "kg", "stock": 50, "category": "Grains"},
    {"id": "2", "name": "Wheat Flour", "rate": 45, "unit": "kg", "stock": 30, "category": "Grains"},
    {"id": "3", "name": "Sugar", "rate": 40, "unit": "kg", "stock": 25, "category": "Grocery"},
]

_EDITABLE = ("name", "rate", "unit", "stock", "category", "min_stock")


def _validate(fields: dict[str, Any]) -> None:
    if not str(fields.get("name") or "").strip():
        raise ValidationError("Product name is required")
    if fields.get("rate") is not None and float(fields["rate"]) < 0:
        raise ValidationError("rate cannot be negative")
    if fields.get("stock") is not None and int(fields["stock"]) < 0:
        raise ValidationError("stock cannot be negative")


class ProductCatalog:
    def __init__(self, storage: Storage) -> None:
        self.storage = storage
        self.load_error: Optional[SerializationError] = None
        self.products: list[Product] = self.load_products()

    def load_products(self) -> list[Product]:
        """
        Load the catalog, seeding the sample products when none are stored.
        Unreadable stored data is left untouched: the samples are shown but
        not saved, and writes are refused until the stored value is repaired.
        """
        try:
            products = load_collection(self.storage, PRODUCTS_KEY, Product)
        except SerializationError as exc:
            logger.error(f"catalog: {exc}; showing sample products, stored data kept")
            self.load_error = exc
            return [Product.model_validate(p) for p in SAMPLE_PRODUCTS]
        if products is not None:
            return products

        products = [Product.model_validate(p) for p in SAMPLE_PRODUCTS]
        save_collection(self.storage, PRODUCTS_KEY, products)
        logger.info(f"catalog: seeded {len(products)} sample products")
        return products

    def _check_writable(self) -> None:
        if self.load_error is not None:
            raise SerializationError(PRODUCTS_KEY, "stored products could not be read, refusing to overwrite them")

    def _persist(self) -> None:
        save_collection(self.storage, PRODUCTS_KEY, self.products)

    def list(self) -> list[Product]:
        return list(self.products)

    def get(self, product_id: str) -> Optional[Product]:
        return next((p for p in self.products if p.id == product_id), None)

    def search(self, term: str) -> list[Product]:
        """Case-insensitive substring match on product name."""
        needle = term.strip().lower()
        if not needle:
            return self.list()
        return [p for p in self.products if needle in p.name.lower()]

    def create(self, fields: dict[str, Any]) -> Product:
        self._check_writable()
        _validate(fields)
        data = {k: v for k, v in fields.items() if k in _EDITABLE and v is not None}
        product = Product(id=new_id(), **data)
        self.products.append(product)
        self._persist()
        logger.info(f"catalog: added product '{product.name}' ({product.id})")
        return product

    def update(self, product_id: str, fields: dict[str, Any]) -> Optional[Product]:
        """Apply ``fields`` to an existing product. Missing ids are a no-op."""
        self._check_writable()
        existing = self.get(product_id)
        if existing is None:
            logger.warning(f"catalog: update ignored, product '{product_id}' not found")
            return None

        changes = {k: v for k, v in fields.items() if k in _EDITABLE and v is not None}
        merged = {**existing.model_dump(), **changes}
        _validate(merged)
        updated = Product.model_validate(merged)
        self.products = [updated if p.id == product_id else p for p in self.products]
        self._persist()
        logger.info(f"catalog: updated product '{product_id}': {changes}")
        return updated

    def delete(self, product_id: str) -> bool:
        """Remove a product. Returns False (no-op) when the id is absent."""
        self._check_writable()
        remaining = [p for p in self.products if p.id != product_id]
        if len(remaining) == len(self.products):
            logger.warning(f"catalog: delete ignored, product '{product_id}' not found")
            return False
        self.products = remaining
        self._persist()
        logger.info(f"catalog: deleted product '{product_id}'")
        return True

    def low_stock(self) -> list[Product]:
        """Products at or below their minimum stock level."""
        return [
            p for p in self.products
            if p.min_stock is not None and p.stock <= p.min_stock
        ]
