"""
Invoice builder: a single invoice draft under construction.

Draft → Committed. While in Draft the customer fields, line items, GST rate
and initial status can change freely; every line edit recomputes
``amount = quantity × rate`` from the post-edit values. ``finalize()`` prices
the draft, stamps it and hands the frozen Invoice to the payment ledger.
A committed draft rejects further edits; start a new one instead.

Money is plain float; only display rounds to two decimals.
"""
from __future__ import annotations

import threading
from typing import Any, Optional

from loguru import logger

from pavilo.core.config import settings
from pavilo.core.exceptions import NotFound, ValidationError
from pavilo.core.ids import new_id
from pavilo.models.records import CustomerSnapshot, Invoice, InvoiceStatus, LineItem, utcnow
from pavilo.services.catalog import ProductCatalog
from pavilo.services.ledger import PaymentLedger

# Statuses a user may pick before the invoice is generated
DRAFT_STATUSES = (InvoiceStatus.PENDING, InvoiceStatus.RECEIVED)

_LINE_FIELDS = ("product_id", "name", "quantity", "rate", "unit")


def blank_line() -> LineItem:
    return LineItem(id=new_id(), product_id="", name="", quantity=1, rate=0, amount=0)


def price(items: list[LineItem], gst_rate: float) -> tuple[float, float, float]:
    """Return (subtotal, gst, total) for the given lines and GST percentage."""
    subtotal = sum(it.amount or 0 for it in items)
    gst = subtotal * (gst_rate / 100)
    return subtotal, gst, subtotal + gst


class InvoiceDraft:
    def __init__(self, gst_rate: Optional[float] = None) -> None:
        self.id = new_id()
        self.customer = CustomerSnapshot()
        self.items: list[LineItem] = [blank_line()]
        self.gst_rate: float = settings.DEFAULT_GST_RATE if gst_rate is None else gst_rate
        self.status: InvoiceStatus = InvoiceStatus.PENDING
        self.invoice: Optional[Invoice] = None

    @property
    def committed(self) -> bool:
        return self.invoice is not None

    def _check_open(self) -> None:
        if self.committed:
            raise ValidationError(f"Draft {self.id} is already finalized as invoice {self.invoice.id}")

    def _line(self, line_id: str) -> LineItem:
        line = next((it for it in self.items if it.id == line_id), None)
        if line is None:
            raise NotFound("Line item", line_id)
        return line

    # ── Draft fields ──────────────────────────────────────────────────────────

    def set_customer(self, **fields: Any) -> CustomerSnapshot:
        self._check_open()
        changes = {k: v for k, v in fields.items() if v is not None}
        self.customer = self.customer.model_copy(update=changes)
        return self.customer

    def set_gst_rate(self, rate: float) -> None:
        self._check_open()
        if rate < 0:
            raise ValidationError("GST rate cannot be negative")
        self.gst_rate = float(rate)

    def set_status(self, status: str | InvoiceStatus) -> None:
        self._check_open()
        try:
            chosen = InvoiceStatus(status)
        except ValueError:
            chosen = None
        if chosen not in DRAFT_STATUSES:
            raise ValidationError(f"Draft status must be Pending or Received, got '{status}'")
        self.status = chosen

    # ── Lines ─────────────────────────────────────────────────────────────────

    def add_line(self) -> LineItem:
        self._check_open()
        line = blank_line()
        self.items.append(line)
        return line

    def remove_line(self, line_id: str) -> bool:
        """Remove a line unless it is the last one left."""
        self._check_open()
        self._line(line_id)
        if len(self.items) == 1:
            return False
        self.items = [it for it in self.items if it.id != line_id]
        return True

    def update_line(self, line_id: str, patch: dict[str, Any]) -> LineItem:
        """Apply a partial update, then recompute amount from the resulting quantity and rate."""
        self._check_open()
        line = self._line(line_id)
        changes = {k: v for k, v in patch.items() if k in _LINE_FIELDS}
        merged = {**line.model_dump(), **changes}
        merged["amount"] = (merged["quantity"] or 0) * (merged["rate"] or 0)
        try:
            updated = LineItem.model_validate(merged)
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc
        self.items = [updated if it.id == line_id else it for it in self.items]
        return updated

    def select_product(
        self, line_id: str, product_id: Optional[str], catalog: ProductCatalog
    ) -> LineItem:
        """
        Copy name, rate and unit of a catalog product into the line.
        ``None`` or an unknown id clears the line's product and pricing.
        """
        self._check_open()
        product = catalog.get(product_id) if product_id else None
        if product is None:
            return self.update_line(
                line_id, {"product_id": "", "name": "", "rate": 0, "unit": None}
            )
        return self.update_line(
            line_id,
            {
                "product_id": product.id,
                "name": product.name,
                "rate": product.rate,
                "unit": product.unit,
            },
        )

    # ── Pricing & commit ──────────────────────────────────────────────────────

    @property
    def subtotal(self) -> float:
        return price(self.items, self.gst_rate)[0]

    @property
    def gst(self) -> float:
        return price(self.items, self.gst_rate)[1]

    @property
    def total(self) -> float:
        return price(self.items, self.gst_rate)[2]

    def finalize(self, ledger: PaymentLedger) -> Invoice:
        """Price the draft, store it in the ledger and freeze it."""
        self._check_open()
        subtotal, gst, total = price(self.items, self.gst_rate)
        invoice = Invoice(
            id=new_id(),
            customer=self.customer,
            items=list(self.items),
            subtotal=subtotal,
            gst=gst,
            total=total,
            gst_rate=self.gst_rate,
            status=self.status,
            created_at=utcnow(),
        )
        ledger.append(invoice)
        self.invoice = invoice
        logger.info(f"builder: draft {self.id} committed as invoice {invoice.id}")
        return invoice


class DraftRegistry:
    """Open drafts kept in process memory; drafts are never persisted."""

    def __init__(self) -> None:
        self._drafts: dict[str, InvoiceDraft] = {}
        self._lock = threading.Lock()

    def start(self, gst_rate: Optional[float] = None) -> InvoiceDraft:
        draft = InvoiceDraft(gst_rate)
        with self._lock:
            self._drafts[draft.id] = draft
        return draft

    def get(self, draft_id: str) -> InvoiceDraft:
        with self._lock:
            draft = self._drafts.get(draft_id)
        if draft is None:
            raise NotFound("Draft", draft_id)
        return draft

    def discard(self, draft_id: str) -> None:
        with self._lock:
            self._drafts.pop(draft_id, None)


drafts = DraftRegistry()
