"""Domain models for Tiling Suite."""

from tiling_suite.domain.models import (
    Adjustment,
    ChecklistItem,
    Client,
    ClientDetails,
    Document,
    Expense,
    Invoice,
    InvoiceStatus,
    Material,
    Quotation,
    QuotationStatus,
    Settings,
    Tile,
    TileType,
)

__all__ = [
    "Adjustment",
    "ChecklistItem",
    "Client",
    "ClientDetails",
    "Document",
    "Expense",
    "Invoice",
    "InvoiceStatus",
    "Material",
    "Quotation",
    "QuotationStatus",
    "Settings",
    "Tile",
    "TileType",
]
