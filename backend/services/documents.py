"""
Génération PDF (fpdf2) : bon de commande, bon de réception et rapports tabulaires.

Les polices de base de FPDF sont latin-1 : tout texte passe par `_latin1`.
"""

from __future__ import annotations

from datetime import datetime

import pandas as pd
from fpdf import FPDF
from fpdf.enums import XPos, YPos

from backend.app.core.config import settings
from backend.app.db.models.models_v1 import (
    PurchaseOrder,
    PurchaseOrderDetail,
    Reception,
    ReceptionDetail,
    Supplier,
)


def _latin1(value) -> str:
    if value is None:
        return ""
    return str(value).encode("latin-1", "replace").decode("latin-1")


def _fmt_date(value: datetime | None) -> str:
    return value.strftime("%d/%m/%Y") if value else "-"


def _new_pdf() -> FPDF:
    pdf = FPDF()
    pdf.set_auto_page_break(auto=True, margin=15)
    pdf.add_page()
    return pdf


def _line(pdf: FPDF, text: str, h: float = 7) -> None:
    pdf.cell(0, h, _latin1(text), new_x=XPos.LMARGIN, new_y=YPos.NEXT)


def render_purchase_order_pdf(
    po: PurchaseOrder,
    supplier: Supplier,
    lines: list[tuple[PurchaseOrderDetail, str]],
) -> bytes:
    """lines = [(détail, libellé produit), ...]"""
    pdf = _new_pdf()

    pdf.set_font("Helvetica", "B", 16)
    pdf.cell(0, 10, _latin1(f"PURCHASE ORDER {po.code}"), align="C", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.ln(4)

    pdf.set_font("Helvetica", size=11)
    _line(pdf, f"Issuer: {settings.app_name}")
    _line(pdf, f"Subject: {po.title}")
    _line(pdf, f"Status: {po.status.value}")
    _line(pdf, f"Expected delivery: {_fmt_date(po.expected_delivery_date)}")
    pdf.ln(3)

    pdf.set_font("Helvetica", "B", 11)
    _line(pdf, "Supplier")
    pdf.set_font("Helvetica", size=11)
    _line(pdf, supplier.name)
    for extra in (supplier.contact, supplier.address, supplier.email, supplier.phone):
        if extra:
            _line(pdf, extra)
    if supplier.tax_id:
        _line(pdf, f"Tax ID: {supplier.tax_id}")
    pdf.ln(4)

    widths = (80, 25, 20, 30, 35)
    headers = ("Product", "Quantity", "Unit", "Unit price", "Total")
    pdf.set_font("Helvetica", "B", 10)
    for w, h in zip(widths, headers):
        pdf.cell(w, 8, h, border=1)
    pdf.ln()

    pdf.set_font("Helvetica", size=10)
    for detail, product_label in lines:
        cells = (
            product_label,
            f"{detail.quantity:g}",
            detail.unit,
            f"{detail.unit_price:.2f}",
            f"{detail.total_price:.2f}",
        )
        for w, text in zip(widths, cells):
            pdf.cell(w, 8, _latin1(text)[:45], border=1)
        pdf.ln()

    pdf.set_font("Helvetica", "B", 11)
    pdf.cell(sum(widths[:-1]), 8, "TOTAL", border=1, align="R")
    pdf.cell(widths[-1], 8, _latin1(f"{po.total_amount or 0:.2f} {po.currency}"), border=1)
    pdf.ln(14)

    if po.notes:
        pdf.set_font("Helvetica", "I", 10)
        pdf.multi_cell(0, 6, _latin1(f"Notes: {po.notes}"))

    return bytes(pdf.output())


def render_reception_pdf(
    rec: Reception,
    supplier: Supplier,
    po_code: str | None,
    lines: list[tuple[ReceptionDetail, str]],
) -> bytes:
    pdf = _new_pdf()

    pdf.set_font("Helvetica", "B", 16)
    pdf.cell(0, 10, _latin1(f"GOODS RECEPTION {rec.code}"), align="C", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.ln(4)

    pdf.set_font("Helvetica", size=11)
    _line(pdf, f"Supplier: {supplier.name}")
    _line(pdf, f"Purchase order: {po_code or '-'}")
    _line(pdf, f"Status: {rec.status.value}")
    _line(pdf, f"Received: {_fmt_date(rec.received_at)}")
    pdf.ln(4)

    widths = (85, 30, 30, 20, 25)
    headers = ("Product", "Expected", "Received", "Unit", "Status")
    pdf.set_font("Helvetica", "B", 10)
    for w, h in zip(widths, headers):
        pdf.cell(w, 8, h, border=1)
    pdf.ln()

    pdf.set_font("Helvetica", size=10)
    if not lines:
        pdf.cell(sum(widths), 8, "No lines", border=1)
        pdf.ln()
    for detail, product_label in lines:
        cells = (
            product_label,
            f"{detail.quantity_expected:g}",
            f"{detail.quantity_received:g}",
            detail.unit,
            detail.status.value,
        )
        for w, text in zip(widths, cells):
            pdf.cell(w, 8, _latin1(text)[:45], border=1)
        pdf.ln()
    pdf.ln(10)

    if rec.notes:
        pdf.set_font("Helvetica", "I", 10)
        pdf.multi_cell(0, 6, _latin1(f"Notes: {rec.notes}"))

    return bytes(pdf.output())


def render_table_pdf(title: str, df: pd.DataFrame, *, subtitle: str | None = None) -> bytes:
    pdf = _new_pdf()

    pdf.set_font("Helvetica", "B", 14)
    pdf.cell(0, 10, _latin1(title), align="C", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    if subtitle:
        pdf.set_font("Helvetica", "I", 9)
        pdf.cell(0, 6, _latin1(subtitle), align="C", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.ln(4)

    if df.empty:
        pdf.set_font("Helvetica", size=10)
        _line(pdf, "No data")
        return bytes(pdf.output())

    col_w = pdf.epw / len(df.columns)
    pdf.set_font("Helvetica", "B", 9)
    for col in df.columns:
        pdf.cell(col_w, 7, _latin1(col), border=1)
    pdf.ln()

    pdf.set_font("Helvetica", size=9)
    for row in df.itertuples(index=False):
        for value in row:
            text = f"{value:.2f}" if isinstance(value, float) else value
            pdf.cell(col_w, 7, _latin1(text)[:30], border=1)
        pdf.ln()

    return bytes(pdf.output())
