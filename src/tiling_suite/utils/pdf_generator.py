"""PDF generation for quotations and invoices."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from xml.sax.saxutils import escape

from reportlab.graphics.barcode.qr import QrCodeWidget
from reportlab.graphics.shapes import Drawing
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from tiling_suite.domain.models import Document, Invoice, Quotation, Settings
from tiling_suite.services.calculation import (
    calculate_totals,
    material_cost,
    resolve_flag,
    tile_cost,
    to_number,
)
from tiling_suite.utils.documents import cost_summary_rows, format_currency, group_tiles

QR_SIZE = 30 * mm


def _format_date(value: str | None) -> str:
    if not value:
        return "-"
    try:
        return datetime.fromisoformat(value).strftime("%d/%m/%Y")
    except ValueError:
        return value


def _accent(settings: Settings) -> colors.Color:
    try:
        return colors.HexColor(settings.accent_color or "#D4AF37")
    except ValueError:
        return colors.HexColor("#D4AF37")


def _styles(accent: colors.Color):
    styles = getSampleStyleSheet()
    styles.add(
        ParagraphStyle(
            name="SectionTitle",
            parent=styles["Heading3"],
            textColor=accent,
            spaceBefore=12,
            spaceAfter=6,
        )
    )
    styles.add(ParagraphStyle(name="SmallText", parent=styles["Normal"], fontSize=9, leading=12))
    styles.add(
        ParagraphStyle(
            name="Slogan",
            parent=styles["Normal"],
            fontName="Helvetica-Oblique",
            textColor=accent,
        )
    )
    return styles


def _grid(data: list[list[str]], widths: list[float], accent: colors.Color) -> Table:
    table = Table(data, colWidths=widths, repeatRows=1)
    table.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), accent),
                ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
                ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
                ("ALIGN", (1, 1), (-1, -1), "RIGHT"),
                ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
            ]
        )
    )
    return table


def _qr_code(url: str) -> Drawing:
    widget = QrCodeWidget(url)
    left, bottom, right, top = widget.getBounds()
    drawing = Drawing(
        QR_SIZE,
        QR_SIZE,
        transform=[QR_SIZE / (right - left), 0, 0, QR_SIZE / (top - bottom), 0, 0],
    )
    drawing.add(widget)
    return drawing


def _tile_rows(document: Document, settings: Settings) -> tuple[list[list[str]], list[float]]:
    symbol = settings.currency_symbol
    header = ["Category", "m²", "Cartons"]
    widths = [50 * mm, 18 * mm, 18 * mm]
    if settings.show_tile_size:
        header.append("Size")
        widths.append(20 * mm)
    header.append("Type")
    widths.append(22 * mm)
    if settings.show_unit_price:
        header.append("Unit Price")
        widths.append(26 * mm)
    if settings.show_subtotal:
        header.append("Subtotal")
        widths.append(28 * mm)

    rows = [header]
    for group, tiles in group_tiles(document).items():
        rows.append([group] + [""] * (len(header) - 1))
        for tile in tiles:
            row = [
                f"  {tile.category}",
                f"{to_number(tile.sqm):.2f}",
                f"{to_number(tile.cartons):g}",
            ]
            if settings.show_tile_size:
                row.append(tile.size or "N/A")
            row.append(tile.tile_type.value)
            if settings.show_unit_price:
                row.append(format_currency(tile.unit_price, symbol))
            if settings.show_subtotal:
                row.append(format_currency(tile_cost(tile), symbol))
            rows.append(row)
    return rows, widths


def generate_document_pdf(document: Document, settings: Settings, output_path: Path) -> Path:
    """Render a quotation or an invoice to ``output_path``."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    totals = calculate_totals(document, settings)
    symbol = settings.currency_symbol
    accent = _accent(settings)
    styles = _styles(accent)
    is_invoice = isinstance(document, Invoice)
    title = "INVOICE" if is_invoice else settings.document_title.upper()

    doc = SimpleDocTemplate(
        str(output_path),
        pagesize=A4,
        rightMargin=18 * mm,
        leftMargin=18 * mm,
        topMargin=16 * mm,
        bottomMargin=16 * mm,
        title=title,
        author=settings.company_name,
    )

    elements: list[object] = []
    elements.append(Paragraph(f"<b>{escape(settings.company_name)}</b>", styles["Title"]))
    if settings.company_slogan:
        elements.append(Paragraph(escape(settings.company_slogan), styles["Slogan"]))
    contact = [
        escape(part)
        for part in (settings.company_address, settings.company_phone, settings.company_email)
        if part
    ]
    if contact:
        elements.append(Paragraph(" | ".join(contact), styles["SmallText"]))
    elements.append(Spacer(1, 8))
    elements.append(Paragraph(title, styles["Heading2"]))

    if is_invoice:
        meta = [
            ["Invoice No.", document.invoice_number],
            ["Invoice Date", _format_date(document.invoice_date)],
            ["Due Date", _format_date(document.due_date)],
            ["Status", document.status.value],
            ["Payment Terms", document.payment_terms],
        ]
    else:
        meta = [
            ["Date", _format_date(document.date)],
            ["Status", document.status.value],
        ]
    meta_table = Table(meta, colWidths=[35 * mm, 80 * mm])
    meta_table.setStyle(TableStyle([("FONTNAME", (0, 0), (0, -1), "Helvetica-Bold")]))
    elements.append(meta_table)
    elements.append(Spacer(1, 8))

    details = document.client_details
    client_lines = ["<b>Client</b>"]
    if details.show_client_name and details.client_name:
        client_lines.append(f"Name: {escape(details.client_name)}")
    if details.show_client_address and details.client_address:
        client_lines.append(f"Address: {escape(details.client_address)}")
    if details.show_client_phone and details.client_phone:
        client_lines.append(f"Phone: {escape(details.client_phone)}")
    if details.show_project_name and details.project_name:
        client_lines.append(f"Project: {escape(details.project_name)}")
    elements.append(Paragraph("<br/>".join(client_lines), styles["Normal"]))

    tile_rows, tile_widths = _tile_rows(document, settings)
    elements.append(Paragraph("Tile Details", styles["SectionTitle"]))
    elements.append(_grid(tile_rows, tile_widths, accent))

    if resolve_flag(document, settings, "materials") and document.materials:
        material_rows = [["Item", "Quantity", "Unit Price", "Total"]]
        for material in document.materials:
            material_rows.append(
                [
                    material.item,
                    f"{to_number(material.quantity):g} {material.unit}",
                    format_currency(material.unit_price, symbol),
                    format_currency(material_cost(material), symbol),
                ]
            )
        elements.append(Paragraph("Materials", styles["SectionTitle"]))
        elements.append(_grid(material_rows, [70 * mm, 30 * mm, 32 * mm, 32 * mm], accent))

    adjustments = document.adjustments or []
    if adjustments and resolve_flag(document, settings, "adjustments"):
        adjustment_rows = [["Description", "Amount"]]
        adjustment_rows.extend(
            [adjustment.description, format_currency(adjustment.amount, symbol)]
            for adjustment in adjustments
        )
        elements.append(Paragraph("Adjustments", styles["SectionTitle"]))
        elements.append(_grid(adjustment_rows, [110 * mm, 40 * mm], accent))

    summary_rows = [["Cost Summary", ""]]
    bold_rows: list[int] = []
    for row in cost_summary_rows(document, settings, totals):
        if row.amount is None:
            summary_rows.append(["Cost Summary Hidden", ""])
            continue
        label = f"{row.label} ({row.note})" if row.note else row.label
        summary_rows.append([label, format_currency(row.amount, symbol)])
        if row.emphasis:
            bold_rows.append(len(summary_rows) - 1)
    summary_table = _grid(summary_rows, [110 * mm, 40 * mm], accent)
    for index in bold_rows:
        summary_table.setStyle(TableStyle([("FONTNAME", (0, index), (-1, index), "Helvetica-Bold")]))
    elements.append(Spacer(1, 10))
    elements.append(summary_table)

    if isinstance(document, Quotation):
        if resolve_flag(document, settings, "checklist") and document.checklist:
            mark = "[x]" if document.add_checkmate else "-"
            lines = [
                f"{mark if entry.checked else '[ ]'} {escape(entry.item)}"
                for entry in document.checklist
            ]
            elements.append(Paragraph("Project Checklist", styles["SectionTitle"]))
            elements.append(Paragraph("<br/>".join(lines), styles["SmallText"]))
        if resolve_flag(document, settings, "terms") and document.terms_and_conditions:
            elements.append(Paragraph("Terms &amp; Conditions", styles["SectionTitle"]))
            elements.append(Paragraph(escape(document.terms_and_conditions), styles["SmallText"]))
    else:
        if resolve_flag(document, settings, "bank_details") and document.bank_details:
            elements.append(Paragraph("Bank Details", styles["SectionTitle"]))
            elements.append(
                Paragraph(escape(document.bank_details).replace("\n", "<br/>"), styles["SmallText"])
            )
        if document.invoice_notes:
            elements.append(Paragraph("Notes", styles["SectionTitle"]))
            elements.append(Paragraph(escape(document.invoice_notes), styles["SmallText"]))

    if settings.payment_url:
        elements.append(Spacer(1, 8))
        elements.append(
            Paragraph(f"Pay online: {escape(settings.payment_url)}", styles["SmallText"])
        )
        if settings.show_qr_code:
            elements.append(_qr_code(settings.payment_url))

    if settings.footer_text:
        elements.append(Spacer(1, 12))
        elements.append(Paragraph(escape(settings.footer_text), styles["SmallText"]))

    doc.build(elements)
    return output_path
