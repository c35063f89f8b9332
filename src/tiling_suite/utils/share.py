"""WhatsApp share links for quotations and invoices."""

from __future__ import annotations

import re
from urllib.parse import quote

from dateutil import parser as date_parser

from tiling_suite.domain.models import Document, Invoice, Settings
from tiling_suite.services.calculation import calculate_totals
from tiling_suite.utils.documents import format_currency

WHATSAPP_URL = "https://wa.me/{phone}?text={text}"
COUNTRY_PREFIX = "234"


def normalize_phone(phone: str) -> str:
    """Digits only, with a leading trunk ``0`` replaced by the country prefix."""
    cleaned = re.sub(r"\D", "", phone or "")
    if cleaned.startswith("0"):
        cleaned = COUNTRY_PREFIX + cleaned[1:]
    return cleaned


def _display_date(value: str) -> str:
    try:
        return date_parser.isoparse(value).strftime("%d/%m/%Y")
    except (TypeError, ValueError):
        return value or "-"


def share_message(document: Document, settings: Settings) -> str:
    totals = calculate_totals(document, settings)
    details = document.client_details
    total = format_currency(totals.grand_total, settings.currency_symbol)
    company = settings.company_name
    if isinstance(document, Invoice):
        return (
            f"Hello {details.client_name},\n\n"
            f"This is a professional invoice (*{document.invoice_number}*) from *{company}*.\n\n"
            "*Invoice Summary:*\n"
            f"- Project: {details.project_name}\n"
            f"- Amount Due: *{total}*\n"
            f"- Due Date: {_display_date(document.due_date)}\n\n"
            "Thank you for your business!\n\n"
            f"Best regards,\n{company}"
        )
    return (
        f"Hello {details.client_name},\n\n"
        f"This is a professional quotation from *{company}* for the "
        f"*{details.project_name}* project.\n\n"
        "*Estimate Details:*\n"
        f"- Total Area: {totals.total_sqm:.2f} m²\n"
        f"- Grand Total: *{total}*\n\n"
        "Please let us know if you have any questions.\n\n"
        f"Best regards,\n{company}"
    )


def build_whatsapp_share_url(document: Document, settings: Settings) -> str:
    phone = normalize_phone(document.client_details.client_phone)
    return WHATSAPP_URL.format(phone=phone, text=quote(share_message(document, settings), safe=""))
