"""
Dashboard and report figures computed from the stored collections.

Everything is derived on demand by scanning the invoice list; nothing here
is persisted.
"""
from __future__ import annotations

from collections import defaultdict
from datetime import datetime, timezone
from typing import Optional

from dateutil.relativedelta import relativedelta
from pydantic import BaseModel

from pavilo.models.records import Invoice, InvoiceStatus, Product

WALK_IN = "Walk-in"


class DashboardStats(BaseModel):
    total_sales: float
    invoice_count: int
    paid_invoices: int
    unpaid_invoices: int
    product_count: int
    customer_count: int
    low_stock: list[str]


class MonthlyRevenue(BaseModel):
    month: str  # "YYYY-MM"
    revenue: float
    orders: int


class ProductSales(BaseModel):
    name: str
    quantity: float
    revenue: float


class CategoryShare(BaseModel):
    category: str
    revenue: float
    share: float  # percent of line revenue


def dashboard_stats(invoices: list[Invoice], products: list[Product]) -> DashboardStats:
    paid = sum(1 for i in invoices if i.status == InvoiceStatus.PAID)
    customers = {(i.customer.name or "").strip() or WALK_IN for i in invoices}
    low = [
        p.name for p in products
        if p.min_stock is not None and p.stock <= p.min_stock
    ]
    return DashboardStats(
        total_sales=round(sum(i.total or 0 for i in invoices), 2),
        invoice_count=len(invoices),
        paid_invoices=paid,
        unpaid_invoices=len(invoices) - paid,
        product_count=len(products),
        customer_count=len(customers),
        low_stock=low,
    )


def monthly_revenue(
    invoices: list[Invoice], months: int = 6, today: Optional[datetime] = None
) -> list[MonthlyRevenue]:
    """Invoice totals per calendar month for the last ``months`` months, oldest first."""
    today = today or datetime.now(timezone.utc)
    first = today.replace(day=1) - relativedelta(months=months - 1)
    buckets: dict[str, MonthlyRevenue] = {}
    current = first
    for _ in range(months):
        key = current.strftime("%Y-%m")
        buckets[key] = MonthlyRevenue(month=key, revenue=0, orders=0)
        current += relativedelta(months=1)

    for inv in invoices:
        key = inv.created_at.strftime("%Y-%m")
        if key in buckets:
            buckets[key].revenue += inv.total
            buckets[key].orders += 1

    for row in buckets.values():
        row.revenue = round(row.revenue, 2)
    return list(buckets.values())


def top_products(invoices: list[Invoice], n: int = 5) -> list[ProductSales]:
    """Line quantity and revenue per product name, highest revenue first."""
    qty: dict[str, float] = defaultdict(float)
    revenue: dict[str, float] = defaultdict(float)
    for inv in invoices:
        for it in inv.items:
            if not it.name:
                continue
            qty[it.name] += it.quantity
            revenue[it.name] += it.amount
    ranked = sorted(revenue, key=lambda name: revenue[name], reverse=True)[:n]
    return [
        ProductSales(name=name, quantity=round(qty[name], 3), revenue=round(revenue[name], 2))
        for name in ranked
    ]


def category_breakdown(invoices: list[Invoice], products: list[Product]) -> list[CategoryShare]:
    """
    Revenue share per product category. Lines are matched to the catalog by
    productId; lines whose product is gone count as "Others".
    """
    category_of = {p.id: p.category or "Others" for p in products}
    revenue: dict[str, float] = defaultdict(float)
    for inv in invoices:
        for it in inv.items:
            revenue[category_of.get(it.product_id, "Others")] += it.amount

    total = sum(revenue.values())
    return [
        CategoryShare(
            category=cat,
            revenue=round(amount, 2),
            share=round(amount / total * 100, 1) if total else 0.0,
        )
        for cat, amount in sorted(revenue.items(), key=lambda kv: kv[1], reverse=True)
    ]
