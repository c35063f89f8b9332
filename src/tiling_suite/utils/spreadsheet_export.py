"""Excel workbook export for quotations."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from tiling_suite.domain.models import Document, Settings
from tiling_suite.services.calculation import (
    calculate_totals,
    material_cost,
    resolve_flag,
    tile_cost,
    to_number,
)
from tiling_suite.utils.documents import cost_summary_rows, group_tiles

MONEY_FORMAT = "#,##0.00"
HEADER_FONT = Font(bold=True, color="FFFFFF", size=11)
BORDER = Border(
    left=Side(style="thin"), right=Side(style="thin"),
    top=Side(style="thin"), bottom=Side(style="thin"),
)
GROUP_FONT = Font(bold=True, italic=True)


def _header_fill(settings: Settings) -> PatternFill:
    color = (settings.accent_color or "#D4AF37").lstrip("#").upper()
    return PatternFill(start_color=color, end_color=color, fill_type="solid")


def _write_header(ws: Worksheet, row: int, headers: list[str], fill: PatternFill) -> None:
    for col, header in enumerate(headers, 1):
        cell = ws.cell(row=row, column=col, value=header)
        cell.fill = fill
        cell.font = HEADER_FONT
        cell.alignment = Alignment(horizontal="center")
        cell.border = BORDER


def _write_row(ws: Worksheet, row: int, values: list, money_columns: tuple[int, ...] = ()) -> None:
    for col, value in enumerate(values, 1):
        cell = ws.cell(row=row, column=col, value=value)
        cell.border = BORDER
        if col in money_columns:
            cell.number_format = MONEY_FORMAT
            cell.alignment = Alignment(horizontal="right")


def _autosize(ws: Worksheet) -> None:
    for col in range(1, ws.max_column + 1):
        max_len = max(
            (len(str(ws.cell(row=r, column=col).value or "")) for r in range(1, ws.max_row + 1)),
            default=10,
        )
        ws.column_dimensions[get_column_letter(col)].width = min(max(max_len + 2, 12), 50)


def _document_date(document: Document) -> str:
    raw = getattr(document, "date", None) or getattr(document, "invoice_date", "")
    try:
        return datetime.fromisoformat(raw).strftime("%d/%m/%Y")
    except (TypeError, ValueError):
        return raw or ""


def write_quotation_workbook(document: Document, settings: Settings, output_path: Path) -> Path:
    """Tiles, materials, adjustments and a cost summary, one sheet each."""
    totals = calculate_totals(document, settings)
    fill = _header_fill(settings)

    wb = Workbook()
    wb.remove(wb.active)

    ws = wb.create_sheet("Tiles")
    _write_header(ws, 1, ["Category", "SQM", "Cartons", "Size", "Tile Type", "Unit Price", "Subtotal"], fill)
    row = 2
    for group, tiles in group_tiles(document).items():
        ws.cell(row=row, column=1, value=group).font = GROUP_FONT
        row += 1
        for tile in tiles:
            _write_row(
                ws,
                row,
                [
                    tile.category,
                    to_number(tile.sqm),
                    to_number(tile.cartons),
                    tile.size or "",
                    tile.tile_type.value,
                    to_number(tile.unit_price),
                    tile_cost(tile),
                ],
                money_columns=(6, 7),
            )
            row += 1
    _autosize(ws)

    if resolve_flag(document, settings, "materials"):
        ws = wb.create_sheet("Materials")
        _write_header(ws, 1, ["Item", "Quantity", "Unit", "Unit Price", "Total", "Calculation"], fill)
        for row, material in enumerate(document.materials, 2):
            _write_row(
                ws,
                row,
                [
                    material.item,
                    to_number(material.quantity),
                    material.unit,
                    to_number(material.unit_price),
                    material_cost(material),
                    material.calculation_logic or "",
                ],
                money_columns=(4, 5),
            )
        _autosize(ws)

    adjustments = document.adjustments or []
    if adjustments and resolve_flag(document, settings, "adjustments"):
        ws = wb.create_sheet("Adjustments")
        _write_header(ws, 1, ["Description", "Amount"], fill)
        for row, adjustment in enumerate(adjustments, 2):
            _write_row(ws, row, [adjustment.description, to_number(adjustment.amount)], money_columns=(2,))
        _autosize(ws)

    ws = wb.create_sheet("Summary")
    _write_header(ws, 1, ["Item", "Value"], fill)
    details = document.client_details
    info = [
        ("Client Name", details.client_name),
        ("Project Name", details.project_name),
        ("Date", _document_date(document)),
    ]
    row = 2
    for label, value in info:
        _write_row(ws, row, [label, value])
        row += 1
    row += 1
    for summary_row in cost_summary_rows(document, settings, totals):
        if summary_row.amount is None:
            _write_row(ws, row, [summary_row.label, "Hidden"])
        else:
            _write_row(ws, row, [summary_row.label, summary_row.amount], money_columns=(2,))
            if summary_row.emphasis:
                ws.cell(row=row, column=1).font = Font(bold=True)
                ws.cell(row=row, column=2).font = Font(bold=True)
        row += 1
    _autosize(ws)

    output_path.parent.mkdir(parents=True, exist_ok=True)
    wb.save(output_path)
    return output_path
