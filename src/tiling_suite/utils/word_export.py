"""Word (.docx) export for quotations."""

from __future__ import annotations

from pathlib import Path

from docx import Document as WordDocument
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.shared import Pt, RGBColor
from docx.table import Table

from tiling_suite.domain.models import Document, Quotation, Settings
from tiling_suite.services.calculation import (
    calculate_totals,
    material_cost,
    resolve_flag,
    tile_cost,
    to_number,
)
from tiling_suite.utils.documents import cost_summary_rows, format_currency, group_tiles

TABLE_STYLE = "Table Grid"


def _accent(settings: Settings) -> RGBColor:
    try:
        return RGBColor.from_string((settings.accent_color or "").lstrip("#").upper())
    except ValueError:
        return RGBColor(0xB8, 0x86, 0x0B)


def _table(document, headers: list[str]) -> Table:
    table = document.add_table(rows=1, cols=len(headers))
    table.style = TABLE_STYLE
    for cell, header in zip(table.rows[0].cells, headers):
        cell.text = ""
        run = cell.paragraphs[0].add_run(header)
        run.bold = True
    return table


def _add_row(table: Table, values: list[str], right_from: int = 1) -> None:
    cells = table.add_row().cells
    for index, (cell, value) in enumerate(zip(cells, values)):
        cell.text = value
        if index >= right_from:
            cell.paragraphs[0].alignment = WD_ALIGN_PARAGRAPH.RIGHT


def _section_heading(document, text: str, accent: RGBColor) -> None:
    paragraph = document.add_paragraph()
    run = paragraph.add_run(text)
    run.bold = True
    run.font.size = Pt(12)
    run.font.color.rgb = accent


def write_quotation_docx(document: Document, settings: Settings, output_path: Path) -> Path:
    totals = calculate_totals(document, settings)
    symbol = settings.currency_symbol
    accent = _accent(settings)
    word = WordDocument()

    name = word.add_paragraph()
    name_run = name.add_run(settings.company_name)
    name_run.bold = True
    name_run.font.size = Pt(16)
    if settings.company_slogan:
        slogan = word.add_paragraph().add_run(settings.company_slogan)
        slogan.italic = True
        slogan.font.color.rgb = accent
    contact = " | ".join(
        part
        for part in (settings.company_address, settings.company_phone, settings.company_email)
        if part
    )
    if contact:
        word.add_paragraph(contact)

    title = word.add_paragraph()
    title_run = title.add_run(settings.document_title.upper())
    title_run.bold = True
    title_run.font.size = Pt(14)
    title_run.font.color.rgb = accent

    details = document.client_details
    client_lines = []
    if details.show_client_name and details.client_name:
        client_lines.append(f"Client: {details.client_name}")
    if details.show_client_address and details.client_address:
        client_lines.append(f"Address: {details.client_address}")
    if details.show_client_phone and details.client_phone:
        client_lines.append(f"Phone: {details.client_phone}")
    if details.show_project_name and details.project_name:
        client_lines.append(f"Project: {details.project_name}")
    for line in client_lines:
        word.add_paragraph(line)

    _section_heading(word, "Tile Details", accent)
    headers = ["Category", "m²", "Cartons"]
    if settings.show_tile_size:
        headers.append("Size")
    headers.append("Tile Type")
    if settings.show_unit_price:
        headers.append("Unit Price")
    if settings.show_subtotal:
        headers.append("Subtotal")
    tiles_table = _table(word, headers)
    for group, tiles in group_tiles(document).items():
        _add_row(tiles_table, [group] + [""] * (len(headers) - 1))
        for tile in tiles:
            values = [
                tile.category,
                f"{to_number(tile.sqm):.2f}",
                f"{to_number(tile.cartons):g}",
            ]
            if settings.show_tile_size:
                values.append(tile.size or "N/A")
            values.append(tile.tile_type.value)
            if settings.show_unit_price:
                values.append(format_currency(tile.unit_price, symbol))
            if settings.show_subtotal:
                values.append(format_currency(tile_cost(tile), symbol))
            _add_row(tiles_table, values)

    if resolve_flag(document, settings, "materials") and document.materials:
        _section_heading(word, "Materials", accent)
        headers = ["Item", "Quantity"]
        if settings.show_unit_price:
            headers.append("Unit Price")
        if settings.show_subtotal:
            headers.append("Total")
        materials_table = _table(word, headers)
        for material in document.materials:
            values = [material.item, f"{to_number(material.quantity):g} {material.unit}"]
            if settings.show_unit_price:
                values.append(format_currency(material.unit_price, symbol))
            if settings.show_subtotal:
                values.append(format_currency(material_cost(material), symbol))
            _add_row(materials_table, values)

    adjustments = document.adjustments or []
    if adjustments and resolve_flag(document, settings, "adjustments"):
        _section_heading(word, "Adjustments", accent)
        adjustments_table = _table(word, ["Description", "Amount"])
        for adjustment in adjustments:
            _add_row(adjustments_table, [adjustment.description, format_currency(adjustment.amount, symbol)])

    _section_heading(word, "Cost Summary", accent)
    summary_table = _table(word, ["Item", "Amount"])
    for row in cost_summary_rows(document, settings, totals):
        if row.amount is None:
            _add_row(summary_table, ["Cost Summary Hidden", ""])
            continue
        label = f"{row.label} ({row.note})" if row.note else row.label
        _add_row(summary_table, [label, format_currency(row.amount, symbol)])
        if row.emphasis:
            for cell in summary_table.rows[-1].cells:
                for run in cell.paragraphs[0].runs:
                    run.bold = True

    if isinstance(document, Quotation):
        if resolve_flag(document, settings, "checklist") and document.checklist:
            _section_heading(word, "Project Checklist", accent)
            for entry in document.checklist:
                mark = "[x]" if entry.checked else "[ ]"
                word.add_paragraph(f"{mark} {entry.item}", style="List Bullet")
        if resolve_flag(document, settings, "terms") and document.terms_and_conditions:
            _section_heading(word, "Terms & Conditions", accent)
            word.add_paragraph(document.terms_and_conditions)

    if settings.footer_text:
        footer = word.sections[0].footer.paragraphs[0]
        footer.text = settings.footer_text
        footer.alignment = WD_ALIGN_PARAGRAPH.CENTER

    output_path.parent.mkdir(parents=True, exist_ok=True)
    word.save(str(output_path))
    return output_path
