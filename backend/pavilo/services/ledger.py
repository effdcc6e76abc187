"""
Payment ledger: invoice store and the Unpaid/Pending → Paid transition.

Invoices live in ``pavilo_invoices``; payment records are an append-only list
in ``pavilo_payments``. Marking an invoice paid writes the payment list first
and the invoice list second. The two writes are independent, so a failure
between them leaves one collection ahead of the other.

Deleting an invoice leaves its payment records in place. A collection whose
stored text cannot be read is never overwritten: writes touching it raise
SerializationError instead.
"""
from __future__ import annotations

from typing import Optional

from loguru import logger

from pavilo.core.exceptions import NotFound, SerializationError, ValidationError
from pavilo.core.ids import new_id
from pavilo.core.storage import (
    INVOICES_KEY,
    PAYMENTS_KEY,
    Storage,
    load_collection,
    save_collection,
)
from pavilo.models.records import Invoice, InvoiceStatus, PaymentMethod, PaymentRecord, utcnow

DEFAULT_METHOD = PaymentMethod.CASH


def parse_method(method: str | PaymentMethod) -> PaymentMethod:
    """Map a method label onto the closed set, or raise ValidationError."""
    try:
        return PaymentMethod(method)
    except ValueError:
        allowed = ", ".join(m.value for m in PaymentMethod)
        raise ValidationError(f"Unknown payment method '{method}' (allowed: {allowed})")


class PaymentLedger:
    def __init__(self, storage: Storage) -> None:
        self.storage = storage
        self.load_errors: dict[str, SerializationError] = {}
        self.invoices: list[Invoice] = self._load(INVOICES_KEY, Invoice)
        self.payments: list[PaymentRecord] = self._load(PAYMENTS_KEY, PaymentRecord)

    def _load(self, key: str, model):
        try:
            return load_collection(self.storage, key, model) or []
        except SerializationError as exc:
            logger.error(f"ledger: {exc}; stored data kept, writes to '{key}' refused")
            self.load_errors[key] = exc
            return []

    def _check_writable(self, *keys: str) -> None:
        for key in keys:
            if key in self.load_errors:
                raise SerializationError(key, "stored data could not be read, refusing to overwrite it")

    def _save_invoices(self) -> None:
        save_collection(self.storage, INVOICES_KEY, self.invoices)

    def _save_payments(self) -> None:
        save_collection(self.storage, PAYMENTS_KEY, self.payments)

    # ── Invoice store ─────────────────────────────────────────────────────────

    def list_invoices(self) -> list[Invoice]:
        return list(self.invoices)

    def get_invoice(self, invoice_id: str) -> Optional[Invoice]:
        return next((i for i in self.invoices if i.id == invoice_id), None)

    def _require(self, invoice_id: str) -> Invoice:
        invoice = self.get_invoice(invoice_id)
        if invoice is None:
            raise NotFound("Invoice", invoice_id)
        return invoice

    def _replace(self, invoice: Invoice) -> None:
        self.invoices = [invoice if i.id == invoice.id else i for i in self.invoices]

    def append(self, invoice: Invoice) -> Invoice:
        """Add a finalized invoice to the end of the store."""
        self._check_writable(INVOICES_KEY)
        self.invoices.append(invoice)
        self._save_invoices()
        logger.info(f"ledger: stored invoice {invoice.id} total={invoice.total:.2f}")
        return invoice

    # ── Payment lifecycle ─────────────────────────────────────────────────────

    def set_method(self, invoice_id: str, method: str | PaymentMethod) -> Invoice:
        """Select the payment method for an invoice that is not yet paid."""
        self._check_writable(INVOICES_KEY)
        invoice = self._require(invoice_id)
        chosen = parse_method(method)
        if invoice.status == InvoiceStatus.PAID:
            logger.info(f"ledger: invoice {invoice_id} already paid, method change ignored")
            return invoice

        updated = invoice.model_copy(update={"payment_method": chosen})
        self._replace(updated)
        self._save_invoices()
        return updated

    def mark_paid(self, invoice_id: str) -> PaymentRecord:
        """
        Record a payment for the invoice total and set its status to Paid.
        Each call appends a new record, including on an already paid invoice.
        """
        self._check_writable(PAYMENTS_KEY, INVOICES_KEY)
        invoice = self._require(invoice_id)
        method = invoice.payment_method or DEFAULT_METHOD

        record = PaymentRecord(
            id=new_id(),
            invoice_id=invoice.id,
            method=method,
            amount=invoice.total,
            date=utcnow(),
        )
        self.payments.append(record)
        self._save_payments()

        self._replace(invoice.model_copy(update={"status": InvoiceStatus.PAID, "payment_method": method}))
        self._save_invoices()
        logger.info(f"ledger: invoice {invoice_id} paid {record.amount:.2f} via {method.value}")
        return record

    def delete(self, invoice_id: str) -> bool:
        """Remove an invoice in any status. Payment records are kept."""
        self._check_writable(INVOICES_KEY)
        remaining = [i for i in self.invoices if i.id != invoice_id]
        if len(remaining) == len(self.invoices):
            logger.warning(f"ledger: delete ignored, invoice '{invoice_id}' not found")
            return False
        self.invoices = remaining
        self._save_invoices()
        logger.info(f"ledger: deleted invoice {invoice_id}")
        return True

    def list_payments(self, invoice_id: Optional[str] = None) -> list[PaymentRecord]:
        if invoice_id is None:
            return list(self.payments)
        return [p for p in self.payments if p.invoice_id == invoice_id]
