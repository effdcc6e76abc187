"""
Product catalog and customer directory API routes.

Endpoints:
  GET    /api/products                – list products (?q= name search)
  POST   /api/products                – add product
  GET    /api/products/low-stock      – products at or below minStock
  GET    /api/products/{id}           – one product
  PUT    /api/products/{id}           – edit product
  DELETE /api/products/{id}           – remove product
  GET    /api/customers               – list customers (?q= name/phone/email search)
  POST   /api/customers               – add customer
  GET    /api/customers/{id}          – one customer
  PUT    /api/customers/{id}          – edit customer
  DELETE /api/customers/{id}          – remove customer
"""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from pavilo.api.deps import get_catalog, get_directory
from pavilo.core.exceptions import ValidationError
from pavilo.models.records import Customer, Product
from pavilo.schemas.responses import CustomerIn, CustomerUpdate, ProductIn, ProductUpdate
from pavilo.services.catalog import ProductCatalog
from pavilo.services.directory import CustomerDirectory

catalog_router = APIRouter(prefix="/api", tags=["catalog"])


# ── Products ──────────────────────────────────────────────────────────────────


@catalog_router.get("/products", response_model=list[Product])
def list_products(
    q: Optional[str] = Query(default=None, description="Search product name"),
    catalog: ProductCatalog = Depends(get_catalog),
):
    return catalog.search(q) if q else catalog.list()


@catalog_router.post("/products", response_model=Product, status_code=201)
def create_product(body: ProductIn, catalog: ProductCatalog = Depends(get_catalog)):
    try:
        return catalog.create(body.model_dump())
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=str(exc))


@catalog_router.get("/products/low-stock", response_model=list[Product])
def low_stock_products(catalog: ProductCatalog = Depends(get_catalog)):
    return catalog.low_stock()


@catalog_router.get("/products/{product_id}", response_model=Product)
def get_product(product_id: str, catalog: ProductCatalog = Depends(get_catalog)):
    product = catalog.get(product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


@catalog_router.put("/products/{product_id}", response_model=Optional[Product])
def update_product(
    product_id: str, body: ProductUpdate, catalog: ProductCatalog = Depends(get_catalog)
):
    """Edit a product. An unknown id is ignored and returns null."""
    try:
        return catalog.update(product_id, body.model_dump(exclude_none=True))
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=str(exc))


@catalog_router.delete("/products/{product_id}")
def delete_product(product_id: str, catalog: ProductCatalog = Depends(get_catalog)) -> dict:
    deleted = catalog.delete(product_id)
    return {"status": "deleted" if deleted else "ignored", "id": product_id}


# ── Customers ─────────────────────────────────────────────────────────────────


@catalog_router.get("/customers", response_model=list[Customer])
def list_customers(
    q: Optional[str] = Query(default=None, description="Search name, phone or email"),
    directory: CustomerDirectory = Depends(get_directory),
):
    return directory.search(q) if q else directory.list()


@catalog_router.post("/customers", response_model=Customer, status_code=201)
def create_customer(body: CustomerIn, directory: CustomerDirectory = Depends(get_directory)):
    try:
        return directory.create(body.model_dump())
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=str(exc))


@catalog_router.get("/customers/{customer_id}", response_model=Customer)
def get_customer(customer_id: str, directory: CustomerDirectory = Depends(get_directory)):
    customer = directory.get(customer_id)
    if not customer:
        raise HTTPException(status_code=404, detail="Customer not found")
    return customer


@catalog_router.put("/customers/{customer_id}", response_model=Optional[Customer])
def update_customer(
    customer_id: str,
    body: CustomerUpdate,
    directory: CustomerDirectory = Depends(get_directory),
):
    try:
        return directory.update(customer_id, body.model_dump(exclude_none=True))
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=str(exc))


@catalog_router.delete("/customers/{customer_id}")
def delete_customer(customer_id: str, directory: CustomerDirectory = Depends(get_directory)) -> dict:
    deleted = directory.delete(customer_id)
    return {"status": "deleted" if deleted else "ignored", "id": customer_id}
