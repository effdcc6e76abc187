"""
Invoice export: printable HTML, downloadable PDF and an XLSX register.

Pure projections of stored invoices. The items table keeps the column order
Product / Qty / Rate / Amount in every format.
"""
from __future__ import annotations

import io
from html import escape
from typing import Iterable, Optional

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from pavilo.models.records import Invoice

ITEM_COLUMNS = ["Product", "Qty", "Rate", "Amount"]
FOOTER = "Pavilo - All Rights Reserved © 2025"


def money(value: float) -> str:
    return f"₹{value:.2f}"


def _qty(value: float) -> str:
    return f"{value:g}"


def _date(invoice: Invoice) -> str:
    return invoice.created_at.strftime("%d/%m/%Y")


def _method(invoice: Invoice) -> str:
    return invoice.payment_method.value if invoice.payment_method else "N/A"


# ── HTML ──────────────────────────────────────────────────────────────────────


def render_invoice_html(invoice: Invoice, business_name: str) -> str:
    """Standalone HTML document for the browser print dialog."""
    rows = "".join(
        f"<tr><td>{escape(it.name)}</td><td>{_qty(it.quantity)}</td>"
        f"<td>{money(it.rate)}</td><td>{money(it.amount)}</td></tr>"
        for it in invoice.items
    )
    head = "".join(f"<th>{c}</th>" for c in ITEM_COLUMNS)
    customer = invoice.customer
    return f"""<html>
  <head>
    <title>Invoice #{escape(invoice.id)}</title>
    <style>
      body {{ font-family: Arial, sans-serif; padding: 30px; }}
      table {{ width: 100%; border-collapse: collapse; margin-top: 20px; }}
      th, td {{ border: 1px solid #ccc; padding: 8px; text-align: left; }}
      th {{ background: #f9f9f9; }}
      .footer {{ margin-top: 40px; text-align: center; font-size: 12px; color: #777; }}
    </style>
  </head>
  <body>
    <h2>{escape(business_name)}</h2>
    <h3>Invoice #{escape(invoice.id)}</h3>
    <p><strong>Date:</strong> {_date(invoice)}</p>
    <p><strong>Customer:</strong> {escape(customer.name or "Walk-in")}<br/>
       <strong>Phone:</strong> {escape(customer.phone or "N/A")}<br/>
       <strong>Address:</strong> {escape(customer.address)}</p>
    <table>
      <thead><tr>{head}</tr></thead>
      <tbody>{rows}</tbody>
    </table>
    <p style="text-align:right;">Subtotal: {money(invoice.subtotal)}</p>
    <p style="text-align:right;">GST ({invoice.gst_rate:g}%): {money(invoice.gst)}</p>
    <h3 style="text-align:right;">Total: {money(invoice.total)}</h3>
    <p style="text-align:right;">Status: {escape(invoice.status.value)}</p>
    <p style="text-align:right;">Payment: {escape(_method(invoice))}</p>
    <div class="footer">{FOOTER}</div>
  </body>
</html>"""


# ── PDF ───────────────────────────────────────────────────────────────────────


def render_invoice_pdf(invoice: Invoice, business_name: str) -> bytes:
    """
    A4 PDF: header block, items table, totals footer.
    Long item lists flow onto further pages with the table header repeated.
    """
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        topMargin=0.5 * inch,
        bottomMargin=0.5 * inch,
        title=f"Invoice {invoice.id}",
    )
    styles = getSampleStyleSheet()
    title_style = ParagraphStyle(
        "InvoiceTitle", parent=styles["Heading1"], fontSize=18, spaceAfter=12
    )
    normal = ParagraphStyle("InvoiceNormal", parent=styles["Normal"], fontSize=11)
    footer_style = ParagraphStyle(
        "InvoiceFooter",
        parent=styles["Normal"],
        fontSize=8,
        textColor=colors.grey,
        alignment=TA_CENTER,
    )

    customer = invoice.customer
    elements = [
        Paragraph(escape(business_name), title_style),
        Paragraph(f"Invoice #: {escape(invoice.id)}", normal),
        Paragraph(f"Date: {_date(invoice)}", normal),
        Paragraph(f"Customer: {escape(customer.name or 'Walk-in')}", normal),
        Paragraph(f"Phone: {escape(customer.phone or 'N/A')}", normal),
        Spacer(1, 0.3 * inch),
    ]

    # Rupee sign is missing from the built-in Helvetica, so the table uses plain numbers
    data = [ITEM_COLUMNS] + [
        [it.name, _qty(it.quantity), f"{it.rate:.2f}", f"{it.amount:.2f}"]
        for it in invoice.items
    ]
    items_table = Table(data, colWidths=[3 * inch, 1 * inch, 1.2 * inch, 1.3 * inch], repeatRows=1)
    items_table.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#f3f4f6")),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("ALIGN", (1, 0), (-1, -1), "RIGHT"),
        ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
        ("TOPPADDING", (0, 0), (-1, -1), 6),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 6),
    ]))
    elements.append(items_table)
    elements.append(Spacer(1, 0.2 * inch))

    totals = [
        ["", "", "Subtotal:", f"{invoice.subtotal:.2f}"],
        ["", "", f"GST ({invoice.gst_rate:g}%):", f"{invoice.gst:.2f}"],
        ["", "", "Total:", f"{invoice.total:.2f}"],
    ]
    totals_table = Table(totals, colWidths=[3 * inch, 1 * inch, 1.2 * inch, 1.3 * inch])
    totals_table.setStyle(TableStyle([
        ("ALIGN", (2, 0), (-1, -1), "RIGHT"),
        ("FONTNAME", (2, 2), (-1, 2), "Helvetica-Bold"),
        ("LINEABOVE", (2, 2), (-1, 2), 1, colors.black),
    ]))
    elements.append(totals_table)
    elements.append(Spacer(1, 0.2 * inch))
    elements.append(Paragraph(f"Payment Method: {escape(_method(invoice))}", normal))
    elements.append(Spacer(1, 0.5 * inch))
    elements.append(Paragraph(FOOTER, footer_style))

    doc.build(elements)
    return buffer.getvalue()


def pdf_filename(invoice: Invoice) -> str:
    return f"Invoice_{invoice.id}.pdf"


# ── XLSX ──────────────────────────────────────────────────────────────────────


def export_invoices_xlsx(invoices: Iterable[Invoice], business_name: Optional[str] = None) -> bytes:
    """Invoice register (one row per invoice) plus an items sheet (one row per line)."""
    import openpyxl
    from openpyxl.styles import Alignment, Font, PatternFill
    from openpyxl.utils import get_column_letter

    invoices = list(invoices)
    wb = openpyxl.Workbook()

    header_fill = PatternFill(start_color="1F3864", end_color="1F3864", fill_type="solid")
    header_font = Font(bold=True, color="FFFFFF", size=10)
    center = Alignment(horizontal="center", vertical="center")

    def _header(ws, headers: list[str]) -> None:
        for col_idx, h in enumerate(headers, 1):
            cell = ws.cell(row=1, column=col_idx, value=h)
            cell.font = header_font
            cell.fill = header_fill
            cell.alignment = center

    ws = wb.active
    ws.title = "Invoices"
    headers = [
        "Invoice #", "Date", "Customer", "Phone", "Subtotal",
        "GST %", "GST", "Total", "Status", "Payment Method",
    ]
    _header(ws, headers)
    for row_idx, inv in enumerate(invoices, 2):
        data = [
            inv.id,
            inv.created_at.strftime("%Y-%m-%d"),
            inv.customer.name or "Walk-in",
            inv.customer.phone,
            round(inv.subtotal, 2),
            inv.gst_rate,
            round(inv.gst, 2),
            round(inv.total, 2),
            inv.status.value,
            inv.payment_method.value if inv.payment_method else "",
        ]
        for col_idx, val in enumerate(data, 1):
            ws.cell(row=row_idx, column=col_idx, value=val)

    for col_idx in range(1, len(headers) + 1):
        col_letter = get_column_letter(col_idx)
        max_len = max(
            len(str(ws.cell(row=r, column=col_idx).value or ""))
            for r in range(1, len(invoices) + 2)
        )
        ws.column_dimensions[col_letter].width = min(max_len + 4, 40)

    ws2 = wb.create_sheet("Items")
    _header(ws2, ["Invoice #"] + ITEM_COLUMNS)
    row_idx = 2
    for inv in invoices:
        for it in inv.items:
            ws2.cell(row=row_idx, column=1, value=inv.id)
            ws2.cell(row=row_idx, column=2, value=it.name)
            ws2.cell(row=row_idx, column=3, value=it.quantity)
            ws2.cell(row=row_idx, column=4, value=round(it.rate, 2))
            ws2.cell(row=row_idx, column=5, value=round(it.amount, 2))
            row_idx += 1
    for col_idx, width in [(1, 18), (2, 35), (3, 10), (4, 12), (5, 14)]:
        ws2.column_dimensions[get_column_letter(col_idx)].width = width

    if business_name:
        wb.properties.creator = business_name

    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()
