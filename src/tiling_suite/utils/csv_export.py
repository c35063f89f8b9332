"""CSV exports: single documents, quotation history and dashboard analytics."""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Iterable

from tiling_suite.domain.models import Document, Invoice, Quotation, Settings
from tiling_suite.services.calculation import (
    calculate_totals,
    material_cost,
    resolve_flag,
    tile_cost,
    to_number,
)
from tiling_suite.services.dashboard import DashboardMetrics
from tiling_suite.utils.documents import (
    DEFAULT_TILE_GROUP,
    cost_summary_rows,
    format_currency,
)

DOCUMENT_HEADER = ["Section", "Item", "Quantity", "Unit", "Unit Price", "Total"]
HISTORY_HEADER = [
    "Quotation ID",
    "Date",
    "Client Name",
    "Project Name",
    "Status",
    "Total Amount",
    "Invoice ID",
]
CSV_ENCODING = "utf-8-sig"


def write_document_csv(document: Document, settings: Settings, output_path: Path) -> Path:
    """Line items followed by the cost summary."""
    totals = calculate_totals(document, settings)
    with open(output_path, "w", newline="", encoding=CSV_ENCODING) as handle:
        writer = csv.writer(handle)
        if isinstance(document, Invoice):
            writer.writerow(["Invoice", document.invoice_number, "", "", "", ""])
        writer.writerow(DOCUMENT_HEADER)
        for tile in document.tiles:
            writer.writerow(
                [
                    f"Tiles - {tile.group or DEFAULT_TILE_GROUP}",
                    tile.category,
                    to_number(tile.cartons),
                    "cartons",
                    to_number(tile.unit_price),
                    tile_cost(tile),
                ]
            )
        if resolve_flag(document, settings, "materials"):
            for material in document.materials:
                writer.writerow(
                    [
                        "Materials",
                        material.item,
                        to_number(material.quantity),
                        material.unit,
                        to_number(material.unit_price),
                        material_cost(material),
                    ]
                )
        if resolve_flag(document, settings, "adjustments"):
            for adjustment in document.adjustments or []:
                amount = to_number(adjustment.amount)
                writer.writerow(
                    ["Adjustments", adjustment.description, 1, "", amount, amount]
                )
        writer.writerow([])
        for row in cost_summary_rows(document, settings, totals):
            value = "Hidden" if row.amount is None else row.amount
            writer.writerow(["Summary", row.label, "", "", "", value])
    return output_path


def write_history_csv(
    quotations: Iterable[Quotation], settings: Settings, output_path: Path
) -> Path:
    with open(output_path, "w", newline="", encoding=CSV_ENCODING) as handle:
        writer = csv.writer(handle)
        writer.writerow(HISTORY_HEADER)
        for quotation in quotations:
            details = quotation.client_details
            writer.writerow(
                [
                    quotation.id,
                    (quotation.date or "")[:10],
                    details.client_name,
                    details.project_name,
                    quotation.status.value,
                    calculate_totals(quotation, settings).grand_total,
                    quotation.invoice_id or "N/A",
                ]
            )
    return output_path


def write_analytics_csv(
    metrics: DashboardMetrics, settings: Settings, output_path: Path
) -> Path:
    symbol = settings.currency_symbol
    rows: list[list[str]] = [
        ["Analytics Summary"],
        [],
        ["Metric", "Value"],
        ["Total Quoted Value", format_currency(metrics.total_quoted, symbol)],
        ["Quotations Sent", str(metrics.total_quotations)],
        ["Acceptance Rate", f"{metrics.acceptance_rate:.1f}%"],
        [],
        ["Invoices Generated", str(metrics.invoices_generated)],
        ["Paid This Month", format_currency(metrics.paid_this_month, symbol)],
        ["Total Revenue", format_currency(metrics.total_revenue, symbol)],
        ["Total Expenses", format_currency(metrics.total_expenses, symbol)],
        ["Net Profit", format_currency(metrics.net_profit, symbol)],
    ]
    if metrics.expense_breakdown:
        rows.append([])
        rows.append(["Expense Category", "Amount"])
        rows.extend(
            [entry.label, format_currency(entry.value, symbol)]
            for entry in metrics.expense_breakdown
        )
    with open(output_path, "w", newline="", encoding=CSV_ENCODING) as handle:
        csv.writer(handle).writerows(rows)
    return output_path
