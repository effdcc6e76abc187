"""Unit tests for invoice HTML, PDF and XLSX export."""
import io
import re

import openpyxl
import pytest

from pavilo.models.records import CustomerSnapshot, Invoice, InvoiceStatus, LineItem, PaymentMethod
from pavilo.services.export import (
    ITEM_COLUMNS,
    export_invoices_xlsx,
    pdf_filename,
    render_invoice_html,
    render_invoice_pdf,
)


@pytest.fixture
def invoice():
    return Invoice(
        id="1700000000000",
        customer=CustomerSnapshot(name="Asha <Stores>", phone="99999"),
        items=[
            LineItem(id="a", name="Basmati Rice", quantity=2, rate=100, unit="kg", amount=200),
            LineItem(id="b", name="Sugar", quantity=1.5, rate=40, unit="kg", amount=60),
        ],
        subtotal=260,
        gst=46.8,
        total=306.8,
        status=InvoiceStatus.PAID,
        payment_method=PaymentMethod.UPI,
    )


class TestHtml:
    def test_columns_in_order(self, invoice):
        html = render_invoice_html(invoice, "Pavilo Store")
        positions = [html.index(f"<th>{c}</th>") for c in ITEM_COLUMNS]
        assert positions == sorted(positions)

    def test_totals_and_payment(self, invoice):
        html = render_invoice_html(invoice, "Pavilo Store")
        assert "₹260.00" in html
        assert "GST (18%): ₹46.80" in html
        assert "Total: ₹306.80" in html
        assert "Payment: UPI" in html

    def test_customer_name_escaped(self, invoice):
        html = render_invoice_html(invoice, "Pavilo Store")
        assert "Asha &lt;Stores&gt;" in html
        assert "<Stores>" not in html

    def test_walk_in_without_customer(self, invoice):
        invoice = invoice.model_copy(update={"customer": CustomerSnapshot(), "payment_method": None})
        html = render_invoice_html(invoice, "Pavilo Store")
        assert "Walk-in" in html
        assert "Payment: N/A" in html

    def test_footer(self, invoice):
        html = render_invoice_html(invoice, "Pavilo Store")
        assert "Pavilo - All Rights Reserved © 2025" in html
        assert "\u2014" not in html


class TestPdf:
    def test_pdf_bytes(self, invoice):
        content = render_invoice_pdf(invoice, "Pavilo Store")
        assert content.startswith(b"%PDF")

    def test_long_invoice_spans_pages(self, invoice):
        items = [
            LineItem(id=str(n), name=f"Item {n}", quantity=1, rate=10, amount=10)
            for n in range(120)
        ]
        content = render_invoice_pdf(invoice.model_copy(update={"items": items}), "Pavilo Store")
        page_counts = [int(n) for n in re.findall(rb"/Count (\d+)", content)]
        assert max(page_counts) >= 2

    def test_filename(self, invoice):
        assert pdf_filename(invoice) == "Invoice_1700000000000.pdf"


class TestXlsx:
    def test_register_and_items_sheets(self, invoice):
        wb = openpyxl.load_workbook(io.BytesIO(export_invoices_xlsx([invoice], "Pavilo Store")))
        assert wb.sheetnames == ["Invoices", "Items"]

        ws = wb["Invoices"]
        assert ws.cell(row=2, column=1).value == "1700000000000"
        assert ws.cell(row=2, column=8).value == 306.8
        assert ws.cell(row=2, column=10).value == "UPI"

        items = wb["Items"]
        assert [c.value for c in items[1]] == ["Invoice #"] + ITEM_COLUMNS
        assert items.cell(row=3, column=2).value == "Sugar"

    def test_empty_register(self):
        wb = openpyxl.load_workbook(io.BytesIO(export_invoices_xlsx([])))
        assert wb["Invoices"].max_row == 1
