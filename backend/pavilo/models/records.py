"""Pydantic models for the stored collections.

Attributes are snake_case; the stored JSON uses the camelCase aliases
(``productId``, ``gstRate``, ``createdAt`` …) so previously stored data
keeps loading.
"""
from __future__ import annotations

from datetime import date, datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InvoiceStatus(str, Enum):
    PENDING = "Pending"
    PAID = "Paid"
    RECEIVED = "Received"
    UNPAID = "Unpaid"


class PaymentMethod(str, Enum):
    CASH = "Cash"
    CARD = "Card"
    UPI = "UPI"
    BANK_TRANSFER = "Bank Transfer"


class StoredRecord(BaseModel):
    """Base for everything written through the storage adapter."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True

    def to_stored(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Product(StoredRecord):
    id: str
    name: str
    rate: float = Field(default=0.0, ge=0)
    unit: str = ""
    stock: int = Field(default=0, ge=0)
    category: str = ""
    min_stock: Optional[int] = Field(default=None, ge=0)


class Customer(StoredRecord):
    id: str
    name: str
    phone: str
    email: Optional[str] = None
    address: str = ""
    gst_number: Optional[str] = None
    # maintained by hand, never recomputed from invoices
    total_orders: int = 0
    total_amount: float = 0.0
    last_order_date: Optional[date] = None


class CustomerSnapshot(StoredRecord):
    """Customer details copied onto an invoice at creation time."""

    name: str = ""
    phone: str = ""
    email: str = ""
    address: str = ""


class LineItem(StoredRecord):
    id: str
    product_id: str = ""
    name: str = ""
    quantity: float = Field(default=1.0, ge=0)
    rate: float = Field(default=0.0, ge=0)
    unit: Optional[str] = None
    amount: float = 0.0


class Invoice(StoredRecord):
    id: str
    customer: CustomerSnapshot = Field(default_factory=CustomerSnapshot)
    items: list[LineItem] = []
    subtotal: float = 0.0
    gst: float = 0.0
    total: float = 0.0
    gst_rate: float = 18.0
    status: InvoiceStatus = InvoiceStatus.UNPAID
    payment_method: Optional[PaymentMethod] = None
    created_at: datetime = Field(default_factory=utcnow)


class PaymentRecord(StoredRecord):
    id: str
    invoice_id: str
    method: PaymentMethod
    amount: float
    date: datetime = Field(default_factory=utcnow)


class SubscriptionRequest(StoredRecord):
    id: str
    user_id: str
    email: Optional[str] = None
    plan_name: str
    price: int
    status: str = "pending"
    created_at: datetime = Field(default_factory=utcnow)


class AppPreferencesData(StoredRecord):
    language: str = "en"
    dark_mode: bool = False


class BusinessSettings(StoredRecord):
    business_name: str = "Pavilo Store"
    owner_name: str = "Owner Name"
    phone: str = ""
    email: str = ""
    address: str = ""
