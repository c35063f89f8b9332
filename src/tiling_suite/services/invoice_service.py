"""Invoice numbering, conversion from quotations and invoice lifecycle."""

from __future__ import annotations

import copy
import logging
import re
import sqlite3
import uuid
from datetime import date, datetime, timedelta
from typing import Any, Iterable, Optional

from dateutil import parser as date_parser

from tiling_suite.domain.models import (
    Invoice,
    InvoiceStatus,
    Quotation,
    QuotationStatus,
    Settings,
)
from tiling_suite.repositories.invoice_repo import InvoiceRepo
from tiling_suite.repositories.mappers import invoice_to_data, quotation_to_data
from tiling_suite.repositories.quotation_repo import QuotationRepo
from tiling_suite.services.errors import NotFoundError, ValidationError
from tiling_suite.services.sync_service import INVOICES, QUOTATIONS, RemoteSync

logger = logging.getLogger(__name__)

DEFAULT_INVOICE_PREFIX = "INV"
DEFAULT_PAYMENT_TERMS = "Due on Receipt"
PAYMENT_DUE_DAYS = 7


def generate_invoice_number(
    invoices: Iterable[Invoice],
    settings: Settings,
    today: Optional[date] = None,
) -> str:
    """Next ``PREFIX-YEAR-NNNN`` number for the current year.

    Numbers from other years or with another prefix do not affect the sequence.
    """
    prefix = settings.invoice_prefix or DEFAULT_INVOICE_PREFIX
    year = (today or date.today()).year
    pattern = re.compile(rf"^{re.escape(prefix)}-{year}-(\d+)")
    next_sequence = 1
    for invoice in invoices:
        match = pattern.match(invoice.invoice_number or "")
        if match:
            next_sequence = max(next_sequence, int(match.group(1)) + 1)
    return f"{prefix}-{year}-{next_sequence:04d}"


def create_invoice_from_quotation(
    quotation: Quotation,
    settings: Settings,
    invoice_number: str,
    now: Optional[datetime] = None,
) -> Invoice:
    """Build an unpaid invoice priced exactly like ``quotation``."""
    now = now or datetime.now()
    return Invoice(
        id=str(uuid.uuid4()),
        quotation_id=quotation.id,
        invoice_number=invoice_number,
        invoice_date=now.isoformat(timespec="seconds"),
        due_date=(now + timedelta(days=PAYMENT_DUE_DAYS)).isoformat(timespec="seconds"),
        status=InvoiceStatus.UNPAID,
        client_details=copy.deepcopy(quotation.client_details),
        tiles=copy.deepcopy(quotation.tiles),
        materials=copy.deepcopy(quotation.materials),
        workmanship_rate=quotation.workmanship_rate,
        maintenance=quotation.maintenance,
        profit_percentage=quotation.profit_percentage,
        payment_terms=DEFAULT_PAYMENT_TERMS,
        bank_details=settings.default_bank_details,
        invoice_notes=settings.default_invoice_notes,
        adjustments=copy.deepcopy(quotation.adjustments),
        show_materials=quotation.show_materials,
        show_adjustments=quotation.show_adjustments,
        show_workmanship=quotation.show_workmanship,
        show_maintenance=quotation.show_maintenance,
        show_tax=quotation.show_tax,
        show_cost_summary=quotation.show_cost_summary,
        show_bank_details=quotation.show_bank_details,
    )


def _as_date(value: str) -> Optional[date]:
    try:
        return date_parser.isoparse(value).date()
    except (TypeError, ValueError):
        return None


class InvoiceService:
    """Service for invoice operations."""

    _EDITABLE_FIELDS = frozenset(
        {
            "due_date",
            "payment_terms",
            "bank_details",
            "invoice_notes",
            "client_details",
            "show_bank_details",
        }
    )

    def __init__(
        self, connection: sqlite3.Connection, sync: Optional[RemoteSync] = None
    ) -> None:
        self._connection = connection
        self._repo = InvoiceRepo(connection)
        self._quotations = QuotationRepo(connection)
        self._sync = sync

    def list_invoices(self) -> list[Invoice]:
        return self._repo.list_all()

    def get_invoice(self, invoice_id: str) -> Invoice:
        invoice = self._repo.get_by_id(invoice_id)
        if invoice is None:
            raise NotFoundError("Invoice not found.")
        return invoice

    def convert_quotation(
        self,
        quotation_id: str,
        settings: Settings,
        now: Optional[datetime] = None,
    ) -> Invoice:
        """Raise an invoice for a quotation and mark the quotation invoiced."""
        quotation = self._quotations.get_by_id(quotation_id)
        if quotation is None:
            raise NotFoundError("Quotation not found.")
        if quotation.invoice_id or quotation.status == QuotationStatus.INVOICED:
            raise ValidationError("This quotation has already been invoiced.")

        now = now or datetime.now()
        number = generate_invoice_number(self._repo.list_all(), settings, now.date())
        invoice = create_invoice_from_quotation(quotation, settings, number, now)

        quotation.status = QuotationStatus.INVOICED
        quotation.invoice_id = invoice.id
        quotation.invoice_number = invoice.invoice_number
        with self._connection:
            self._repo.upsert(invoice)
            self._quotations.upsert(quotation)
        logger.info("Invoice %s created from quotation %s", number, quotation_id)

        if self._sync is not None:
            self._sync.upsert(INVOICES, invoice.id, invoice_to_data(invoice))
            self._sync.upsert(QUOTATIONS, quotation.id, quotation_to_data(quotation))
        return invoice

    def update_invoice(self, invoice_id: str, **changes: Any) -> Invoice:
        unknown = sorted(set(changes) - self._EDITABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Invoice fields cannot be edited: {', '.join(unknown)}")
        invoice = self.get_invoice(invoice_id)
        for name, value in changes.items():
            setattr(invoice, name, value)
        return self._save(invoice)

    def mark_paid(self, invoice_id: str, paid_on: Optional[datetime] = None) -> Invoice:
        invoice = self.get_invoice(invoice_id)
        invoice.status = InvoiceStatus.PAID
        invoice.payment_date = (paid_on or datetime.now()).isoformat(timespec="seconds")
        return self._save(invoice)

    def mark_unpaid(self, invoice_id: str) -> Invoice:
        invoice = self.get_invoice(invoice_id)
        invoice.status = InvoiceStatus.UNPAID
        invoice.payment_date = None
        return self._save(invoice)

    def refresh_overdue(self, today: Optional[date] = None) -> list[Invoice]:
        """Flag unpaid invoices whose due date has passed; return those changed."""
        today = today or date.today()
        changed: list[Invoice] = []
        for invoice in self._repo.list_all():
            if invoice.status != InvoiceStatus.UNPAID:
                continue
            due = _as_date(invoice.due_date)
            if due is not None and due < today:
                invoice.status = InvoiceStatus.OVERDUE
                changed.append(invoice)
        if changed:
            with self._connection:
                for invoice in changed:
                    self._repo.upsert(invoice)
            if self._sync is not None:
                for invoice in changed:
                    self._sync.upsert(INVOICES, invoice.id, invoice_to_data(invoice))
        return changed

    def delete_invoice(self, invoice_id: str) -> bool:
        """Delete an invoice; its quotation goes back to Accepted."""
        invoice = self.get_invoice(invoice_id)
        quotation = self._quotations.get_by_id(invoice.quotation_id)
        if quotation is not None and quotation.invoice_id == invoice_id:
            quotation.invoice_id = None
            quotation.invoice_number = None
            quotation.status = QuotationStatus.ACCEPTED
        else:
            quotation = None
        with self._connection:
            deleted = self._repo.delete(invoice_id)
            if quotation is not None:
                self._quotations.upsert(quotation)
        if self._sync is not None:
            self._sync.delete(INVOICES, invoice_id)
            if quotation is not None:
                self._sync.upsert(QUOTATIONS, quotation.id, quotation_to_data(quotation))
        return deleted

    def _save(self, invoice: Invoice) -> Invoice:
        with self._connection:
            self._repo.upsert(invoice)
        if self._sync is not None:
            self._sync.upsert(INVOICES, invoice.id, invoice_to_data(invoice))
        return invoice
