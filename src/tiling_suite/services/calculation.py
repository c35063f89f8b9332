"""Financial totals for quotations and invoices.

Every screen, export and dashboard figure reads its money values from
:func:`calculate_totals`, so the staged arithmetic below is the single source
of truth for what a document costs.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Any, Optional

from tiling_suite.domain.models import Document, Material, Settings, Tile

# key -> (document attribute, settings attribute or None)
FLAG_FIELDS: dict[str, tuple[str, Optional[str]]] = {
    "materials": ("show_materials", "show_materials_default"),
    "adjustments": ("show_adjustments", "show_adjustments_default"),
    "tax": ("show_tax", "show_tax"),
    "maintenance": ("show_maintenance", "show_maintenance"),
    "checklist": ("show_checklist", "show_checklist_default"),
    "terms": ("show_terms", "show_terms_and_conditions"),
    "workmanship": ("show_workmanship", None),
    "cost_summary": ("show_cost_summary", None),
    "bank_details": ("show_bank_details", None),
}


@dataclass(frozen=True, slots=True)
class TotalsBreakdown:
    """Cost breakdown of a single document."""

    total_sqm: float = 0.0
    total_tile_cost: float = 0.0
    total_material_cost: float = 0.0
    workmanship_cost: float = 0.0
    workmanship_and_maintenance: float = 0.0
    profit_amount: float = 0.0
    subtotal: float = 0.0
    total_adjustments: float = 0.0
    tax_amount: float = 0.0
    grand_total: float = 0.0
    deposit_amount: float = 0.0

    @property
    def maintenance_amount(self) -> float:
        return self.workmanship_and_maintenance - self.workmanship_cost

    def as_dict(self) -> dict[str, float]:
        return asdict(self)


def to_number(value: Any) -> float:
    """Coerce ``value`` to a float, treating missing or non-numeric input as 0."""
    if value is None:
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number):
        return 0.0
    return number


def resolve_flag(
    document: Any,
    settings: Optional[Settings],
    key: str,
    default: bool = True,
) -> bool:
    """Resolve a visibility flag: document value, then settings, then ``default``."""
    try:
        document_attr, settings_attr = FLAG_FIELDS[key]
    except KeyError as exc:
        raise ValueError(f"Unknown visibility flag: {key}") from exc

    value = getattr(document, document_attr, None) if document is not None else None
    if value is not None:
        return bool(value)
    if settings is not None and settings_attr is not None:
        setting = getattr(settings, settings_attr, None)
        if setting is not None:
            return bool(setting)
    return default


def tile_cost(tile: Tile) -> float:
    return to_number(getattr(tile, "cartons", None)) * to_number(
        getattr(tile, "unit_price", None)
    )


def material_cost(material: Material) -> float:
    return to_number(getattr(material, "quantity", None)) * to_number(
        getattr(material, "unit_price", None)
    )


def _as_list(value: Any) -> list[Any]:
    if isinstance(value, (list, tuple)):
        return list(value)
    return []


def calculate_totals(
    document: Optional[Document], settings: Settings
) -> TotalsBreakdown:
    """Compute the full cost breakdown of ``document``.

    A ``None`` document yields an all-zero breakdown.
    """
    if document is None:
        return TotalsBreakdown()

    tiles = _as_list(getattr(document, "tiles", None))
    materials = _as_list(getattr(document, "materials", None))

    show_materials = resolve_flag(document, settings, "materials")
    show_adjustments = resolve_flag(document, settings, "adjustments")
    show_workmanship = resolve_flag(document, settings, "workmanship")
    show_maintenance = resolve_flag(document, settings, "maintenance")
    show_tax = resolve_flag(document, settings, "tax")

    total_sqm = sum((to_number(getattr(tile, "sqm", None)) for tile in tiles), 0.0)
    total_tile_cost = sum((tile_cost(tile) for tile in tiles), 0.0)
    total_material_cost = (
        sum((material_cost(material) for material in materials), 0.0)
        if show_materials
        else 0.0
    )

    workmanship_cost = (
        total_sqm * to_number(getattr(document, "workmanship_rate", None))
        if show_workmanship
        else 0.0
    )
    maintenance = (
        to_number(getattr(document, "maintenance", None)) if show_maintenance else 0.0
    )
    workmanship_and_maintenance = workmanship_cost + maintenance

    pre_profit_total = total_tile_cost + total_material_cost + workmanship_and_maintenance
    profit_percentage = getattr(document, "profit_percentage", None)
    profit_amount = (
        pre_profit_total * (to_number(profit_percentage) / 100)
        if profit_percentage
        else 0.0
    )
    subtotal = pre_profit_total + profit_amount

    total_adjustments = 0.0
    adjustments = getattr(document, "adjustments", None)
    if show_adjustments and isinstance(adjustments, (list, tuple)):
        total_adjustments = sum(
            (to_number(getattr(adjustment, "amount", None)) for adjustment in adjustments),
            0.0,
        )

    post_adjustment_subtotal = subtotal + total_adjustments
    tax_amount = (
        post_adjustment_subtotal
        * (to_number(getattr(settings, "tax_percentage", None)) / 100)
        if show_tax
        else 0.0
    )
    grand_total = post_adjustment_subtotal + tax_amount

    deposit_percentage = getattr(document, "deposit_percentage", None)
    deposit_amount = (
        grand_total * (to_number(deposit_percentage) / 100)
        if deposit_percentage
        else 0.0
    )

    return TotalsBreakdown(
        total_sqm=total_sqm,
        total_tile_cost=total_tile_cost,
        total_material_cost=total_material_cost,
        workmanship_cost=workmanship_cost,
        workmanship_and_maintenance=workmanship_and_maintenance,
        profit_amount=profit_amount,
        subtotal=subtotal,
        total_adjustments=total_adjustments,
        tax_amount=tax_amount,
        grand_total=grand_total,
        deposit_amount=deposit_amount,
    )
