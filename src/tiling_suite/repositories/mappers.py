"""JSON record mappers for domain models.

Entities are stored as camelCase JSON blobs, the same shape the hosted backend
keeps in its ``data`` column. ``None`` values are left out when encoding so
that unset visibility flags stay unset after a round trip.
"""

from __future__ import annotations

from dataclasses import MISSING, fields, is_dataclass
from enum import Enum
from typing import Any, Callable, Dict, Type, TypeVar

from tiling_suite.domain.models import (
    Adjustment,
    ChecklistItem,
    Client,
    ClientDetails,
    Expense,
    HeaderLayout,
    Invoice,
    InvoiceStatus,
    Material,
    Quotation,
    QuotationStatus,
    Settings,
    SizePrice,
    Tile,
    TileType,
)
from tiling_suite.services.calculation import to_number

E = TypeVar("E", bound=Enum)
M = TypeVar("M")

_KEY_OVERRIDES = {"show_qr_code": "showQRCode"}
_REQUIRED_FALLBACKS: Dict[str, Any] = {"str": "", "float": 0.0}

Converter = Callable[[Any], Any]


def to_camel(name: str) -> str:
    if name in _KEY_OVERRIDES:
        return _KEY_OVERRIDES[name]
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def encode(value: Any) -> Any:
    """Convert dataclasses, enums and tuples into JSON-ready values."""
    if isinstance(value, Enum):
        return value.value
    if is_dataclass(value) and not isinstance(value, type):
        payload: Dict[str, Any] = {}
        for item in fields(value):
            raw = getattr(value, item.name)
            if raw is None:
                continue
            payload[to_camel(item.name)] = encode(raw)
        return payload
    if isinstance(value, (list, tuple)):
        return [encode(item) for item in value]
    return value


def _coerce(type_name: str, value: Any) -> Any:
    """Numbers arrive as strings or null from hand-edited and AI records."""
    if type_name == "float":
        return to_number(value)
    if type_name == "Optional[float]":
        return None if value is None else to_number(value)
    if type_name == "str":
        return "" if value is None else str(value)
    return value


def _decode(cls: Type[M], data: Any, converters: Dict[str, Converter] | None = None) -> M:
    if not isinstance(data, dict):
        data = {}
    converters = converters or {}
    kwargs: Dict[str, Any] = {}
    for item in fields(cls):
        key = to_camel(item.name)
        required = item.default is MISSING and item.default_factory is MISSING
        if key in data:
            value = data[key]
        elif item.name in converters and required:
            value = None
        elif required:
            value = _REQUIRED_FALLBACKS.get(str(item.type))
        else:
            continue
        if item.name in converters:
            value = converters[item.name](value)
        else:
            value = _coerce(str(item.type), value)
        kwargs[item.name] = value
    return cls(**kwargs)


def _enum(enum_cls: Type[E], default: E) -> Converter:
    def convert(value: Any) -> E:
        try:
            return enum_cls(value)
        except ValueError:
            return default

    return convert


def _list_of(decoder: Callable[[Any], M]) -> Converter:
    def convert(value: Any) -> list[M]:
        if not isinstance(value, list):
            return []
        return [decoder(item) for item in value if isinstance(item, dict)]

    return convert


def _optional_list_of(decoder: Callable[[Any], M]) -> Converter:
    inner = _list_of(decoder)

    def convert(value: Any) -> list[M] | None:
        if value is None:
            return None
        return inner(value)

    return convert


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(item) for item in value]


def tile_from_data(data: Any) -> Tile:
    return _decode(Tile, data, {"tile_type": _enum(TileType, TileType.UNKNOWN)})


def material_from_data(data: Any) -> Material:
    return _decode(Material, data, {"is_calculated": bool})


def adjustment_from_data(data: Any) -> Adjustment:
    return _decode(Adjustment, data)


def checklist_item_from_data(data: Any) -> ChecklistItem:
    return _decode(ChecklistItem, data, {"checked": bool})


def client_details_from_data(data: Any) -> ClientDetails:
    return _decode(ClientDetails, data)


def _document_converters() -> Dict[str, Converter]:
    return {
        "client_details": client_details_from_data,
        "tiles": _list_of(tile_from_data),
        "materials": _list_of(material_from_data),
    }


def quotation_from_data(data: Any) -> Quotation:
    converters = _document_converters()
    converters.update(
        {
            "status": _enum(QuotationStatus, QuotationStatus.PENDING),
            "adjustments": _list_of(adjustment_from_data),
            "checklist": _list_of(checklist_item_from_data),
            "pro_tips": _string_list,
            "ai_refinement_history": _string_list,
        }
    )
    return _decode(Quotation, data, converters)


def invoice_from_data(data: Any) -> Invoice:
    converters = _document_converters()
    converters.update(
        {
            "status": _enum(InvoiceStatus, InvoiceStatus.UNPAID),
            "adjustments": _optional_list_of(adjustment_from_data),
        }
    )
    return _decode(Invoice, data, converters)


def client_from_data(data: Any) -> Client:
    return _decode(Client, data)


def expense_from_data(data: Any) -> Expense:
    return _decode(Expense, data)


def settings_from_data(data: Any) -> Settings:
    def sizes(value: Any) -> tuple[SizePrice, ...]:
        if not isinstance(value, list):
            return Settings().tile_prices_by_size
        return tuple(_decode(SizePrice, item) for item in value if isinstance(item, dict))

    def strings(value: Any) -> tuple[str, ...]:
        return tuple(_string_list(value))

    return _decode(
        Settings,
        data,
        {
            "tile_prices_by_size": sizes,
            "custom_material_units": strings,
            "default_expense_categories": strings,
            "header_layout": _enum(HeaderLayout, HeaderLayout.MODERN),
        },
    )


def quotation_to_data(quotation: Quotation) -> Dict[str, Any]:
    return encode(quotation)


def invoice_to_data(invoice: Invoice) -> Dict[str, Any]:
    return encode(invoice)


def client_to_data(client: Client) -> Dict[str, Any]:
    return encode(client)


def expense_to_data(expense: Expense) -> Dict[str, Any]:
    return encode(expense)


def settings_to_data(settings: Settings) -> Dict[str, Any]:
    return encode(settings)
