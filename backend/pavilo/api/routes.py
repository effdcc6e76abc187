"""
Health, report and settings routes for the Pavilo backend.

Endpoints:
  GET  /api/health
  GET  /api/reports/dashboard
  GET  /api/reports/monthly
  GET  /api/reports/top-products
  GET  /api/reports/categories
  GET  /api/settings/preferences
  PUT  /api/settings/preferences
  GET  /api/settings/business
  PUT  /api/settings/business
"""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from loguru import logger

from pavilo.api.deps import get_catalog, get_ledger, get_preferences
from pavilo.core.config import settings
from pavilo.core.exceptions import ValidationError
from pavilo.core.storage import Storage, get_storage
from pavilo.models.records import AppPreferencesData, BusinessSettings
from pavilo.schemas.responses import BusinessUpdate, HealthResponse, PreferencesUpdate
from pavilo.services import reports
from pavilo.services.catalog import ProductCatalog
from pavilo.services.ledger import PaymentLedger
from pavilo.services.preferences import AppPreferences, load_business, save_business

router = APIRouter(prefix="/api")

HEALTH_KEY = "pavilo_health_check"


# ── Health ────────────────────────────────────────────────────────────────────


@router.get("/health", response_model=HealthResponse)
def health(storage: Storage = Depends(get_storage)):
    try:
        storage.save(HEALTH_KEY, "ok")
        storage_status = "ok" if storage.load(HEALTH_KEY) == "ok" else "error: write not readable"
    except Exception as e:
        storage_status = f"error: {e}"
    if storage_status != "ok":
        logger.warning(f"health: storage {storage_status}")
    return HealthResponse(
        status="ok",
        storage=storage_status,
        backend=type(storage).__name__,
    )


# ── Reports ───────────────────────────────────────────────────────────────────


@router.get("/reports/dashboard", response_model=reports.DashboardStats)
def dashboard(
    ledger: PaymentLedger = Depends(get_ledger),
    catalog: ProductCatalog = Depends(get_catalog),
):
    return reports.dashboard_stats(ledger.list_invoices(), catalog.list())


@router.get("/reports/monthly", response_model=list[reports.MonthlyRevenue])
def monthly(
    months: int = Query(default=6, ge=1, le=24),
    ledger: PaymentLedger = Depends(get_ledger),
):
    return reports.monthly_revenue(ledger.list_invoices(), months=months)


@router.get("/reports/top-products", response_model=list[reports.ProductSales])
def top_products(
    limit: int = Query(default=5, ge=1, le=50),
    ledger: PaymentLedger = Depends(get_ledger),
):
    return reports.top_products(ledger.list_invoices(), n=limit)


@router.get("/reports/categories", response_model=list[reports.CategoryShare])
def categories(
    ledger: PaymentLedger = Depends(get_ledger),
    catalog: ProductCatalog = Depends(get_catalog),
):
    return reports.category_breakdown(ledger.list_invoices(), catalog.list())


# ── Settings ──────────────────────────────────────────────────────────────────


@router.get("/settings/preferences", response_model=AppPreferencesData)
def get_app_preferences(prefs: AppPreferences = Depends(get_preferences)):
    return prefs.snapshot()


@router.put("/settings/preferences", response_model=AppPreferencesData)
def update_app_preferences(body: PreferencesUpdate, prefs: AppPreferences = Depends(get_preferences)):
    try:
        return prefs.update(language=body.language, dark_mode=body.dark_mode)
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=str(exc))


@router.get("/settings/business", response_model=BusinessSettings)
def get_business(storage: Storage = Depends(get_storage)):
    profile = load_business(storage)
    if not profile.business_name:
        profile = profile.model_copy(update={"business_name": settings.BUSINESS_NAME})
    return profile


@router.put("/settings/business", response_model=BusinessSettings)
def update_business(body: BusinessUpdate, storage: Storage = Depends(get_storage)):
    try:
        return save_business(storage, body.model_dump(exclude_unset=True))
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
