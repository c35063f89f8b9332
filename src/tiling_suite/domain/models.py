"""Domain dataclasses and enums."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union


class QuotationStatus(str, Enum):
    PENDING = "Pending"
    ACCEPTED = "Accepted"
    REJECTED = "Rejected"
    INVOICED = "Invoiced"


class InvoiceStatus(str, Enum):
    UNPAID = "Unpaid"
    PAID = "Paid"
    OVERDUE = "Overdue"


class TileType(str, Enum):
    WALL = "Wall"
    FLOOR = "Floor"
    EXTERNAL_WALL = "External Wall"
    STEP = "Step"
    UNKNOWN = "Unknown"


class HeaderLayout(str, Enum):
    MODERN = "modern"
    CLASSIC = "classic"
    MINIMALIST = "minimalist"


@dataclass(slots=True)
class Tile:
    category: str
    cartons: float
    sqm: float
    unit_price: float
    tile_type: TileType = TileType.UNKNOWN
    size: Optional[str] = None
    group: Optional[str] = None


@dataclass(slots=True)
class Material:
    item: str
    quantity: float
    unit: str
    unit_price: float
    is_calculated: bool = False
    calculation_logic: Optional[str] = None


@dataclass(slots=True)
class Adjustment:
    description: str
    amount: float


@dataclass(slots=True)
class ChecklistItem:
    item: str
    checked: bool = False


@dataclass(slots=True)
class ClientDetails:
    client_name: str = ""
    client_address: str = ""
    client_phone: str = ""
    project_name: str = ""
    client_email: Optional[str] = None
    show_client_name: bool = True
    show_client_address: bool = True
    show_client_phone: bool = True
    show_project_name: bool = True
    client_id: Optional[str] = None


@dataclass(slots=True)
class Client:
    id: str
    name: str
    address: str = ""
    phone: str = ""
    email: Optional[str] = None


@dataclass(slots=True)
class Expense:
    id: str
    date: str
    category: str
    description: str
    amount: float
    quotation_id: Optional[str] = None


@dataclass(slots=True)
class Quotation:
    """A priced proposal for a tiling job.

    Visibility flags left as ``None`` have not been set on the quotation and
    fall back to the settings defaults when resolved.
    """

    id: str
    date: str
    client_details: ClientDetails
    status: QuotationStatus = QuotationStatus.PENDING
    tiles: list[Tile] = field(default_factory=list)
    materials: list[Material] = field(default_factory=list)
    workmanship_rate: float = 0.0
    maintenance: float = 0.0
    profit_percentage: Optional[float] = None
    adjustments: list[Adjustment] = field(default_factory=list)
    deposit_percentage: Optional[float] = None
    terms_and_conditions: Optional[str] = None
    invoice_id: Optional[str] = None
    invoice_number: Optional[str] = None
    due_date: Optional[str] = None
    is_bulk_generated: bool = False
    checklist: list[ChecklistItem] = field(default_factory=list)
    add_checkmate: Optional[bool] = None
    show_checklist: Optional[bool] = None
    show_materials: Optional[bool] = None
    show_adjustments: Optional[bool] = None
    show_bank_details: Optional[bool] = None
    show_terms: Optional[bool] = None
    show_workmanship: Optional[bool] = None
    show_maintenance: Optional[bool] = None
    show_tax: Optional[bool] = None
    show_cost_summary: Optional[bool] = None
    pro_tips: list[str] = field(default_factory=list)
    site_analysis: Optional[str] = None
    ai_refinement_history: list[str] = field(default_factory=list)


@dataclass(slots=True)
class Invoice:
    """A bill raised from an accepted quotation."""

    id: str
    quotation_id: str
    invoice_number: str
    invoice_date: str
    due_date: str
    client_details: ClientDetails
    status: InvoiceStatus = InvoiceStatus.UNPAID
    tiles: list[Tile] = field(default_factory=list)
    materials: list[Material] = field(default_factory=list)
    workmanship_rate: float = 0.0
    maintenance: float = 0.0
    profit_percentage: Optional[float] = None
    payment_terms: str = ""
    bank_details: str = ""
    invoice_notes: str = ""
    payment_date: Optional[str] = None
    adjustments: Optional[list[Adjustment]] = None
    show_materials: Optional[bool] = None
    show_adjustments: Optional[bool] = None
    show_workmanship: Optional[bool] = None
    show_maintenance: Optional[bool] = None
    show_tax: Optional[bool] = None
    show_cost_summary: Optional[bool] = None
    show_bank_details: Optional[bool] = None


Document = Union[Quotation, Invoice]


@dataclass(slots=True)
class SizePrice:
    size: str
    price: float


@dataclass(frozen=True, slots=True)
class Settings:
    """Process-wide pricing defaults, display toggles and branding."""

    wall_tile_price: float = 9500.0
    floor_tile_price: float = 10500.0
    sitting_room_tile_price: float = 14000.0
    external_wall_tile_price: float = 9000.0
    step_tile_price: float = 12000.0
    bedroom_tile_price: float = 11000.0
    toilet_wall_tile_price: float = 9500.0
    toilet_floor_tile_price: float = 9000.0
    kitchen_wall_tile_price: float = 9500.0
    kitchen_floor_tile_price: float = 10000.0
    cement_price: float = 10000.0
    white_cement_price: float = 7000.0
    sharp_sand_price: float = 45000.0
    workmanship_rate: float = 1500.0
    wastage_factor: float = 1.05
    tile_prices_by_size: tuple[SizePrice, ...] = (
        SizePrice("60x60", 14000.0),
        SizePrice("40x40", 10500.0),
        SizePrice("30x60", 9500.0),
        SizePrice("25x40", 9000.0),
    )
    wall_tile_m2_per_carton: float = 1.5
    floor_tile_m2_per_carton: float = 1.6
    sitting_room_tile_m2_per_carton: float = 1.44
    room_tile_m2_per_carton: float = 1.6
    external_wall_tile_m2_per_carton: float = 1.5
    step_tile_m2_per_carton: float = 1.2
    toilet_wall_tile_m2_per_carton: float = 1.5
    toilet_floor_tile_m2_per_carton: float = 1.6
    kitchen_wall_tile_m2_per_carton: float = 1.5
    kitchen_floor_tile_m2_per_carton: float = 1.6
    default_toilet_wall_size: str = "25x40"
    default_toilet_floor_size: str = "40x40"
    default_room_floor_size: str = "40x40"
    default_sitting_room_size: str = "60x60"
    default_kitchen_wall_size: str = "30x60"
    default_kitchen_floor_size: str = "40x40"
    tax_percentage: float = 7.5
    show_terms_and_conditions: bool = True
    show_unit_price: bool = True
    show_subtotal: bool = True
    show_maintenance: bool = True
    show_tile_size: bool = True
    show_tax: bool = False
    show_checklist_default: bool = True
    show_materials_default: bool = True
    show_adjustments_default: bool = True
    show_deposit: bool = True
    company_name: str = "Tiling Suite"
    company_slogan: str = "Quality tiling, every time"
    company_address: str = ""
    company_email: str = ""
    company_phone: str = ""
    document_title: str = "Quotation"
    company_logo: str = ""
    company_signature: str = ""
    accent_color: str = "#D4AF37"
    header_layout: HeaderLayout = HeaderLayout.MODERN
    footer_text: str = "Thank you for your business."
    custom_material_units: tuple[str, ...] = ("bags", "pcs", "tons", "litres")
    default_terms_and_conditions: str = (
        "Quotation valid for 14 days. A deposit is required before work begins. "
        "Tiles remain the property of the contractor until paid in full."
    )
    default_expense_categories: tuple[str, ...] = (
        "Materials",
        "Transport",
        "Labour",
        "Tools",
        "Other",
    )
    add_checkmate_default: bool = False
    default_deposit_percentage: float = 70.0
    invoice_prefix: str = "INV"
    default_bank_details: str = ""
    default_invoice_notes: str = "Thank you for your business."
    payment_url: str = ""
    show_qr_code: bool = False
    currency_symbol: str = "₦"
