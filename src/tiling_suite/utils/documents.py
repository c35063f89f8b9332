"""Helpers shared by every document exporter."""

from __future__ import annotations

import os
import re
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from tiling_suite.domain.models import Document, Settings
from tiling_suite.services.calculation import TotalsBreakdown, resolve_flag, to_number

DEFAULT_TILE_GROUP = "General"


@dataclass(frozen=True, slots=True)
class SummaryRow:
    """One line of a cost summary; ``amount`` is None for the hidden marker."""

    label: str
    amount: Optional[float]
    note: str = ""
    emphasis: bool = False


def sanitize_filename(value: str) -> str:
    """Normalize text to be safe for filenames."""
    cleaned = "_".join(value.strip().split())
    cleaned = re.sub(r"[^A-Za-z0-9_.-]", "", cleaned)
    return cleaned or "document"


def build_export_filename(document_title: str, document_id: str, extension: str) -> str:
    """``<title>-<id>.<ext>`` with the title lower-cased."""
    title = sanitize_filename((document_title or "document").lower())
    return f"{title}-{sanitize_filename(document_id)}.{extension.lstrip('.')}"


def format_currency(amount: float, symbol: str = "₦") -> str:
    amount = to_number(amount)
    sign = "-" if amount < 0 else ""
    return f"{sign}{symbol}{abs(amount):,.2f}"


def format_percentage(value: float) -> str:
    number = to_number(value)
    return f"{number:g}%"


def group_tiles(document: Document) -> dict[str, list]:
    """Tiles keyed by their group label, in first-seen order."""
    groups: dict[str, list] = {}
    for tile in document.tiles:
        groups.setdefault(tile.group or DEFAULT_TILE_GROUP, []).append(tile)
    return groups


def cost_summary_rows(
    document: Document, settings: Settings, totals: TotalsBreakdown
) -> list[SummaryRow]:
    """Rows of the cost summary table as every export renders it."""
    if not resolve_flag(document, settings, "cost_summary"):
        return [SummaryRow("Cost Summary", None)]

    symbol = settings.currency_symbol
    rows = [SummaryRow("Tiles Cost", totals.total_tile_cost)]
    if resolve_flag(document, settings, "materials"):
        rows.append(SummaryRow("Materials Cost", totals.total_material_cost))
    if resolve_flag(document, settings, "workmanship"):
        note = (
            f"{format_currency(document.workmanship_rate, symbol)}/m² × "
            f"{totals.total_sqm:.2f}m²"
        )
        rows.append(SummaryRow("Workmanship", totals.workmanship_cost, note=note))
    maintenance = to_number(document.maintenance)
    if resolve_flag(document, settings, "maintenance") and maintenance > 0:
        rows.append(SummaryRow("Maintenance", maintenance))
    profit_label = "Profit"
    if document.profit_percentage:
        profit_label = f"Profit ({format_percentage(document.profit_percentage)})"
    rows.append(SummaryRow(profit_label, totals.profit_amount))
    rows.append(SummaryRow("Subtotal", totals.subtotal, emphasis=True))
    if resolve_flag(document, settings, "adjustments"):
        rows.append(SummaryRow("Adjustments", totals.total_adjustments))
    if resolve_flag(document, settings, "tax"):
        rows.append(
            SummaryRow(f"Tax ({format_percentage(settings.tax_percentage)})", totals.tax_amount)
        )
    rows.append(SummaryRow("Grand Total", totals.grand_total, emphasis=True))
    deposit_percentage = getattr(document, "deposit_percentage", None)
    if settings.show_deposit and totals.deposit_amount:
        rows.append(
            SummaryRow(
                f"Deposit ({format_percentage(deposit_percentage)})",
                totals.deposit_amount,
            )
        )
    return rows


@contextmanager
def atomic_output(target: Path) -> Iterator[Path]:
    """Yield a temporary path that replaces ``target`` only if the block succeeds."""
    target.parent.mkdir(parents=True, exist_ok=True)
    handle, temp_name = tempfile.mkstemp(
        prefix=f".{target.stem}-", suffix=target.suffix, dir=target.parent
    )
    os.close(handle)
    temp_path = Path(temp_name)
    try:
        yield temp_path
        os.replace(temp_path, target)
    finally:
        if temp_path.exists():
            temp_path.unlink()
