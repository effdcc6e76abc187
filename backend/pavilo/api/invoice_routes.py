"""
Invoice drafting, payment and export API routes.

Endpoints:
  POST   /api/drafts                               – start a draft
  GET    /api/drafts/{id}                          – draft with preview totals
  PATCH  /api/drafts/{id}                          – customer / gstRate / status
  POST   /api/drafts/{id}/lines                    – add empty line
  PATCH  /api/drafts/{id}/lines/{line_id}          – partial line update
  DELETE /api/drafts/{id}/lines/{line_id}          – remove line (never the last)
  PUT    /api/drafts/{id}/lines/{line_id}/product  – pick a catalog product
  POST   /api/drafts/{id}/finalize                 – commit as invoice
  GET    /api/invoices                             – all invoices, oldest first
  GET    /api/invoices/export/xlsx                 – spreadsheet download
  GET    /api/invoices/{id}                        – one invoice
  PUT    /api/invoices/{id}/method                 – select payment method
  POST   /api/invoices/{id}/pay                    – mark paid
  DELETE /api/invoices/{id}?confirm=true           – delete invoice
  GET    /api/invoices/{id}/preview                – printable HTML
  GET    /api/invoices/{id}/pdf                    – PDF download
  GET    /api/payments                             – payment records (?invoice_id=)
"""
from __future__ import annotations

import io
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import HTMLResponse, StreamingResponse
from loguru import logger

from pavilo.api.deps import get_catalog, get_ledger
from pavilo.core.config import settings
from pavilo.core.exceptions import NotFound, ValidationError
from pavilo.core.storage import Storage, get_storage
from pavilo.models.records import Invoice, PaymentRecord
from pavilo.schemas.responses import (
    DraftCreate,
    DraftRead,
    DraftUpdate,
    LinePatch,
    MethodIn,
    ProductSelection,
)
from pavilo.services.builder import InvoiceDraft, drafts
from pavilo.services.catalog import ProductCatalog
from pavilo.services.export import (
    export_invoices_xlsx,
    pdf_filename,
    render_invoice_html,
    render_invoice_pdf,
)
from pavilo.services.ledger import PaymentLedger
from pavilo.services.preferences import load_business

invoice_router = APIRouter(prefix="/api", tags=["invoices"])


# ── Helpers ───────────────────────────────────────────────────────────────────


def _draft_read(draft: InvoiceDraft) -> DraftRead:
    return DraftRead(
        id=draft.id,
        customer=draft.customer,
        items=draft.items,
        gst_rate=draft.gst_rate,
        status=draft.status.value,
        subtotal=draft.subtotal,
        gst=draft.gst,
        total=draft.total,
        committed=draft.committed,
        invoice_id=draft.invoice.id if draft.invoice else None,
    )


def _open_draft(draft_id: str) -> InvoiceDraft:
    try:
        return drafts.get(draft_id)
    except NotFound:
        raise HTTPException(status_code=404, detail="Draft not found")


def _invoice_or_404(ledger: PaymentLedger, invoice_id: str) -> Invoice:
    invoice = ledger.get_invoice(invoice_id)
    if not invoice:
        raise HTTPException(status_code=404, detail="Invoice not found")
    return invoice


def _business_name(storage: Storage) -> str:
    profile = load_business(storage)
    return profile.business_name or settings.BUSINESS_NAME


# ── Drafts ────────────────────────────────────────────────────────────────────


@invoice_router.post("/drafts", response_model=DraftRead, status_code=201)
def start_draft(body: Optional[DraftCreate] = None):
    draft = drafts.start(body.gst_rate if body else None)
    return _draft_read(draft)


@invoice_router.get("/drafts/{draft_id}", response_model=DraftRead)
def get_draft(draft_id: str):
    return _draft_read(_open_draft(draft_id))


@invoice_router.patch("/drafts/{draft_id}", response_model=DraftRead)
def update_draft(draft_id: str, body: DraftUpdate):
    draft = _open_draft(draft_id)
    try:
        if body.customer is not None:
            draft.set_customer(**body.customer.model_dump(exclude_unset=True))
        if body.gst_rate is not None:
            draft.set_gst_rate(body.gst_rate)
        if body.status is not None:
            draft.set_status(body.status)
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    return _draft_read(draft)


@invoice_router.post("/drafts/{draft_id}/lines", response_model=DraftRead, status_code=201)
def add_line(draft_id: str):
    draft = _open_draft(draft_id)
    try:
        draft.add_line()
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    return _draft_read(draft)


@invoice_router.patch("/drafts/{draft_id}/lines/{line_id}", response_model=DraftRead)
def update_line(draft_id: str, line_id: str, body: LinePatch):
    draft = _open_draft(draft_id)
    try:
        draft.update_line(line_id, body.model_dump(exclude_none=True))
    except NotFound:
        raise HTTPException(status_code=404, detail="Line item not found")
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    return _draft_read(draft)


@invoice_router.delete("/drafts/{draft_id}/lines/{line_id}", response_model=DraftRead)
def remove_line(draft_id: str, line_id: str):
    draft = _open_draft(draft_id)
    try:
        if not draft.remove_line(line_id):
            logger.info(f"draft {draft_id}: kept last line {line_id}")
    except NotFound:
        raise HTTPException(status_code=404, detail="Line item not found")
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    return _draft_read(draft)


@invoice_router.put("/drafts/{draft_id}/lines/{line_id}/product", response_model=DraftRead)
def select_product(
    draft_id: str,
    line_id: str,
    body: ProductSelection,
    catalog: ProductCatalog = Depends(get_catalog),
):
    draft = _open_draft(draft_id)
    try:
        draft.select_product(line_id, body.product_id, catalog)
    except NotFound:
        raise HTTPException(status_code=404, detail="Line item not found")
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    return _draft_read(draft)


@invoice_router.post("/drafts/{draft_id}/finalize", response_model=Invoice, status_code=201)
def finalize_draft(draft_id: str, ledger: PaymentLedger = Depends(get_ledger)):
    draft = _open_draft(draft_id)
    try:
        invoice = draft.finalize(ledger)
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    drafts.discard(draft_id)
    return invoice


# ── Invoices ──────────────────────────────────────────────────────────────────


@invoice_router.get("/invoices", response_model=list[Invoice])
def list_invoices(ledger: PaymentLedger = Depends(get_ledger)):
    return ledger.list_invoices()


@invoice_router.get("/invoices/export/xlsx")
def export_xlsx(
    ledger: PaymentLedger = Depends(get_ledger),
    storage: Storage = Depends(get_storage),
):
    content = export_invoices_xlsx(ledger.list_invoices(), _business_name(storage))
    return StreamingResponse(
        io.BytesIO(content),
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": "attachment; filename=Invoices.xlsx"},
    )


@invoice_router.get("/invoices/{invoice_id}", response_model=Invoice)
def get_invoice(invoice_id: str, ledger: PaymentLedger = Depends(get_ledger)):
    return _invoice_or_404(ledger, invoice_id)


@invoice_router.put("/invoices/{invoice_id}/method", response_model=Invoice)
def set_payment_method(invoice_id: str, body: MethodIn, ledger: PaymentLedger = Depends(get_ledger)):
    try:
        return ledger.set_method(invoice_id, body.method)
    except NotFound:
        raise HTTPException(status_code=404, detail="Invoice not found")
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=str(exc))


@invoice_router.post("/invoices/{invoice_id}/pay", response_model=PaymentRecord)
def mark_paid(invoice_id: str, ledger: PaymentLedger = Depends(get_ledger)):
    try:
        return ledger.mark_paid(invoice_id)
    except NotFound:
        raise HTTPException(status_code=404, detail="Invoice not found")


@invoice_router.delete("/invoices/{invoice_id}")
def delete_invoice(
    invoice_id: str,
    confirm: bool = Query(default=False, description="Must be true; deletion cannot be undone"),
    ledger: PaymentLedger = Depends(get_ledger),
) -> dict:
    if not confirm:
        raise HTTPException(status_code=400, detail="Confirm deletion with ?confirm=true")
    deleted = ledger.delete(invoice_id)
    return {"status": "deleted" if deleted else "ignored", "id": invoice_id}


@invoice_router.get("/invoices/{invoice_id}/preview", response_class=HTMLResponse)
def preview_invoice(
    invoice_id: str,
    ledger: PaymentLedger = Depends(get_ledger),
    storage: Storage = Depends(get_storage),
):
    invoice = _invoice_or_404(ledger, invoice_id)
    return HTMLResponse(render_invoice_html(invoice, _business_name(storage)))


@invoice_router.get("/invoices/{invoice_id}/pdf")
def download_pdf(
    invoice_id: str,
    ledger: PaymentLedger = Depends(get_ledger),
    storage: Storage = Depends(get_storage),
):
    invoice = _invoice_or_404(ledger, invoice_id)
    content = render_invoice_pdf(invoice, _business_name(storage))
    return StreamingResponse(
        io.BytesIO(content),
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename={pdf_filename(invoice)}"},
    )


# ── Payments ──────────────────────────────────────────────────────────────────


@invoice_router.get("/payments", response_model=list[PaymentRecord])
def list_payments(
    invoice_id: Optional[str] = Query(default=None),
    ledger: PaymentLedger = Depends(get_ledger),
):
    return ledger.list_payments(invoice_id)
