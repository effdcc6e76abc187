"""Pydantic request/response schemas for API endpoints.

Bodies use the same camelCase names as the stored records; snake_case is
accepted too.
"""
from __future__ import annotations

from typing import Optional
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from pavilo.models.records import CustomerSnapshot, LineItem


class ApiModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True


class HealthResponse(ApiModel):
    status: str
    storage: str
    backend: str
    version: str = "1.0.0"


# ── Catalog / directory ───────────────────────────────────────────────────────


class ProductIn(ApiModel):
    name: str
    rate: float = 0.0
    unit: str = ""
    stock: int = 0
    category: str = ""
    min_stock: Optional[int] = None


class ProductUpdate(ApiModel):
    name: Optional[str] = None
    rate: Optional[float] = None
    unit: Optional[str] = None
    stock: Optional[int] = None
    category: Optional[str] = None
    min_stock: Optional[int] = None


class CustomerIn(ApiModel):
    name: str
    phone: str
    email: Optional[str] = None
    address: str = ""
    gst_number: Optional[str] = None


class CustomerUpdate(ApiModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    gst_number: Optional[str] = None


# ── Drafts ────────────────────────────────────────────────────────────────────


class DraftCreate(ApiModel):
    gst_rate: Optional[float] = None


class DraftUpdate(ApiModel):
    customer: Optional[CustomerSnapshot] = None
    gst_rate: Optional[float] = None
    status: Optional[str] = None


class LinePatch(ApiModel):
    product_id: Optional[str] = None
    name: Optional[str] = None
    quantity: Optional[float] = Field(default=None, ge=0)
    rate: Optional[float] = Field(default=None, ge=0)
    unit: Optional[str] = None


class ProductSelection(ApiModel):
    product_id: Optional[str] = None


class DraftRead(ApiModel):
    id: str
    customer: CustomerSnapshot
    items: list[LineItem]
    gst_rate: float
    status: str
    subtotal: float
    gst: float
    total: float
    committed: bool
    invoice_id: Optional[str] = None


# ── Ledger / settings ─────────────────────────────────────────────────────────


class MethodIn(ApiModel):
    method: str


class PreferencesUpdate(ApiModel):
    language: Optional[str] = None
    dark_mode: Optional[bool] = None


class BusinessUpdate(ApiModel):
    business_name: Optional[str] = None
    owner_name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
