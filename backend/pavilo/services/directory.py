"""Customer directory: CRUD and search over ``pavilo_customers``."""
from __future__ import annotations

from typing import Any, Optional

from loguru import logger

from pavilo.core.exceptions import SerializationError, ValidationError
from pavilo.core.ids import new_id
from pavilo.core.storage import CUSTOMERS_KEY, Storage, load_collection, save_collection
from pavilo.models.records import Customer

SAMPLE_CUSTOMERS = [
    {
        "id": "1",
        "name": "Rajesh Kumar",
        "phone": "+91 9876543210",
        "email": "rajesh@email.com",
        "address": "123 MG Road, Mumbai",
        "gstNumber": "27ABCDE1234F1Z5",
        "totalOrders": 15,
        "totalAmount": 45000,
        "lastOrderDate": "2024-01-15",
    },
    {
        "id": "2",
        "name": "Priya Sharma",
        "phone": "+91 9876543211",
        "address": "456 Park Street, Delhi",
        "totalOrders": 8,
        "totalAmount": 22000,
        "lastOrderDate": "2024-01-10",
    },
]

# Contact fields only; order aggregates are carried over from the stored record
_EDITABLE = ("name", "phone", "email", "address", "gst_number")


def _validate(fields: dict[str, Any]) -> None:
    for required in ("name", "phone"):
        if not str(fields.get(required) or "").strip():
            raise ValidationError(f"Customer {required} is required")


class CustomerDirectory:
    def __init__(self, storage: Storage) -> None:
        self.storage = storage
        self.load_error: Optional[SerializationError] = None
        self.customers: list[Customer] = self.load_customers()

    def load_customers(self) -> list[Customer]:
        try:
            customers = load_collection(self.storage, CUSTOMERS_KEY, Customer)
        except SerializationError as exc:
            logger.error(f"directory: {exc}; showing sample customers, stored data kept")
            self.load_error = exc
            return [Customer.model_validate(c) for c in SAMPLE_CUSTOMERS]
        if customers is not None:
            return customers

        customers = [Customer.model_validate(c) for c in SAMPLE_CUSTOMERS]
        save_collection(self.storage, CUSTOMERS_KEY, customers)
        logger.info(f"directory: seeded {len(customers)} sample customers")
        return customers

    def _check_writable(self) -> None:
        if self.load_error is not None:
            raise SerializationError(CUSTOMERS_KEY, "stored customers could not be read, refusing to overwrite them")

    def _persist(self) -> None:
        save_collection(self.storage, CUSTOMERS_KEY, self.customers)

    def list(self) -> list[Customer]:
        return list(self.customers)

    def get(self, customer_id: str) -> Optional[Customer]:
        return next((c for c in self.customers if c.id == customer_id), None)

    def search(self, term: str) -> list[Customer]:
        """Case-insensitive substring match over name, phone and email."""
        needle = term.strip().lower()
        if not needle:
            return self.list()
        return [
            c for c in self.customers
            if needle in c.name.lower()
            or needle in c.phone.lower()
            or (c.email and needle in c.email.lower())
        ]

    def create(self, fields: dict[str, Any]) -> Customer:
        self._check_writable()
        _validate(fields)
        data = {k: v for k, v in fields.items() if k in _EDITABLE and v is not None}
        customer = Customer(id=new_id(), **data)
        self.customers.append(customer)
        self._persist()
        logger.info(f"directory: added customer '{customer.name}' ({customer.id})")
        return customer

    def update(self, customer_id: str, fields: dict[str, Any]) -> Optional[Customer]:
        self._check_writable()
        existing = self.get(customer_id)
        if existing is None:
            logger.warning(f"directory: update ignored, customer '{customer_id}' not found")
            return None

        changes = {k: v for k, v in fields.items() if k in _EDITABLE and v is not None}
        merged = {**existing.model_dump(), **changes}
        _validate(merged)
        updated = Customer.model_validate(merged)
        self.customers = [updated if c.id == customer_id else c for c in self.customers]
        self._persist()
        logger.info(f"directory: updated customer '{customer_id}'")
        return updated

    def delete(self, customer_id: str) -> bool:
        self._check_writable()
        remaining = [c for c in self.customers if c.id != customer_id]
        if len(remaining) == len(self.customers):
            logger.warning(f"directory: delete ignored, customer '{customer_id}' not found")
            return False
        self.customers = remaining
        self._persist()
        logger.info(f"directory: deleted customer '{customer_id}'")
        return True
