"""Tests for invoice numbering, conversion and lifecycle."""

from __future__ import annotations

from datetime import date, datetime

import pytest

from tiling_suite.domain.models import (
    ClientDetails,
    Invoice,
    InvoiceStatus,
    QuotationStatus,
    Settings,
)
from tiling_suite.repositories.quotation_repo import QuotationRepo
from tiling_suite.services.calculation import calculate_totals
from tiling_suite.services.errors import NotFoundError, ValidationError
from tiling_suite.services.invoice_service import (
    InvoiceService,
    create_invoice_from_quotation,
    generate_invoice_number,
)


def _invoice(number: str) -> Invoice:
    return Invoice(
        id=number,
        quotation_id="q",
        invoice_number=number,
        invoice_date="2024-01-01",
        due_date="2024-01-08",
        client_details=ClientDetails(),
    )


@pytest.fixture
def stored_quotation(connection, adjusted_quotation):
    with connection:
        QuotationRepo(connection).upsert(adjusted_quotation)
    return adjusted_quotation


@pytest.fixture
def service(connection) -> InvoiceService:
    return InvoiceService(connection)


class TestGenerateInvoiceNumber:
    """Sequential per-year numbering."""

    def test_first_number_of_year(self):
        assert generate_invoice_number([], Settings(invoice_prefix="INV"), date(2024, 3, 1)) == "INV-2024-0001"

    def test_increments_highest_sequence(self):
        invoices = [_invoice("INV-2024-0001"), _invoice("INV-2024-0007"), _invoice("INV-2024-0003")]
        assert generate_invoice_number(invoices, Settings(), date(2024, 6, 1)) == "INV-2024-0008"

    def test_ignores_other_years_and_prefixes(self):
        invoices = [_invoice("INV-2023-0042"), _invoice("BILL-2024-0009"), _invoice("junk")]
        assert generate_invoice_number(invoices, Settings(), date(2024, 1, 2)) == "INV-2024-0001"

    def test_custom_prefix_with_regex_characters(self):
        settings = Settings(invoice_prefix="A.B")
        invoices = [_invoice("A.B-2024-0002"), _invoice("AXB-2024-0009")]
        assert generate_invoice_number(invoices, settings, date(2024, 1, 2)) == "A.B-2024-0003"


class TestCreateInvoiceFromQuotation:
    def test_copies_pricing_inputs(self, adjusted_quotation, settings):
        adjusted_quotation.show_materials = False
        invoice = create_invoice_from_quotation(
            adjusted_quotation, settings, "INV-2024-0001", datetime(2024, 5, 1, 12, 0)
        )

        assert invoice.status == InvoiceStatus.UNPAID
        assert invoice.quotation_id == adjusted_quotation.id
        assert invoice.due_date == "2024-05-08T12:00:00"
        assert invoice.show_materials is False
        assert invoice.tiles == adjusted_quotation.tiles
        assert invoice.tiles is not adjusted_quotation.tiles
        assert calculate_totals(invoice, settings).grand_total == pytest.approx(
            calculate_totals(adjusted_quotation, settings).grand_total
        )

    def test_bank_details_and_notes_from_settings(self, sample_quotation):
        settings = Settings(default_bank_details="GTBank 0123456789", default_invoice_notes="Thanks")
        invoice = create_invoice_from_quotation(sample_quotation, settings, "INV-2024-0001")
        assert invoice.bank_details == "GTBank 0123456789"
        assert invoice.invoice_notes == "Thanks"
        assert invoice.payment_terms == "Due on Receipt"


class TestInvoiceService:
    """Invoice lifecycle against a real SQLite store."""

    def test_convert_quotation(self, service, connection, stored_quotation, settings):
        invoice = service.convert_quotation(stored_quotation.id, settings, datetime(2024, 5, 1))

        assert invoice.invoice_number == "INV-2024-0001"
        quotation = QuotationRepo(connection).get_by_id(stored_quotation.id)
        assert quotation.status == QuotationStatus.INVOICED
        assert quotation.invoice_id == invoice.id
        assert quotation.invoice_number == invoice.invoice_number
        assert service.get_invoice(invoice.id) == invoice

    def test_convert_twice_is_refused(self, service, stored_quotation, settings):
        service.convert_quotation(stored_quotation.id, settings)
        with pytest.raises(ValidationError):
            service.convert_quotation(stored_quotation.id, settings)
        assert len(service.list_invoices()) == 1

    def test_convert_missing_quotation(self, service, settings):
        with pytest.raises(NotFoundError):
            service.convert_quotation("missing", settings)

    def test_second_conversion_gets_next_number(self, service, connection, stored_quotation, settings):
        repo = QuotationRepo(connection)
        first = service.convert_quotation(stored_quotation.id, settings, datetime(2024, 5, 1))
        second_quotation = repo.get_by_id(stored_quotation.id)
        second_quotation.id = "q-2"
        second_quotation.invoice_id = None
        second_quotation.invoice_number = None
        second_quotation.status = QuotationStatus.ACCEPTED
        with connection:
            repo.upsert(second_quotation)
        second = service.convert_quotation("q-2", settings, datetime(2024, 5, 2))
        assert first.invoice_number == "INV-2024-0001"
        assert second.invoice_number == "INV-2024-0002"

    def test_mark_paid_and_unpaid(self, service, stored_quotation, settings):
        invoice = service.convert_quotation(stored_quotation.id, settings)
        paid = service.mark_paid(invoice.id, datetime(2024, 5, 3, 8, 0))
        assert paid.status == InvoiceStatus.PAID
        assert paid.payment_date == "2024-05-03T08:00:00"

        unpaid = service.mark_unpaid(invoice.id)
        assert unpaid.status == InvoiceStatus.UNPAID
        assert unpaid.payment_date is None

    def test_refresh_overdue(self, service, stored_quotation, settings):
        invoice = service.convert_quotation(stored_quotation.id, settings, datetime(2024, 5, 1))
        assert service.refresh_overdue(date(2024, 5, 8)) == []

        changed = service.refresh_overdue(date(2024, 5, 9))
        assert [item.id for item in changed] == [invoice.id]
        assert service.get_invoice(invoice.id).status == InvoiceStatus.OVERDUE

    def test_paid_invoices_never_become_overdue(self, service, stored_quotation, settings):
        invoice = service.convert_quotation(stored_quotation.id, settings, datetime(2024, 5, 1))
        service.mark_paid(invoice.id)
        assert service.refresh_overdue(date(2025, 1, 1)) == []

    def test_update_invoice_rejects_pricing_fields(self, service, stored_quotation, settings):
        invoice = service.convert_quotation(stored_quotation.id, settings)
        with pytest.raises(ValidationError):
            service.update_invoice(invoice.id, tiles=[])
        updated = service.update_invoice(invoice.id, payment_terms="Net 14")
        assert updated.payment_terms == "Net 14"

    def test_delete_invoice_reopens_quotation(self, service, connection, stored_quotation, settings):
        invoice = service.convert_quotation(stored_quotation.id, settings)
        assert service.delete_invoice(invoice.id) is True

        quotation = QuotationRepo(connection).get_by_id(stored_quotation.id)
        assert quotation.status == QuotationStatus.ACCEPTED
        assert quotation.invoice_id is None
        with pytest.raises(NotFoundError):
            service.get_invoice(invoice.id)
