"""Tests for dashboard metrics."""

from __future__ import annotations

import copy
from datetime import datetime

import pytest

from tiling_suite.domain.models import (
    ClientDetails,
    Expense,
    Invoice,
    InvoiceStatus,
    QuotationStatus,
    Tile,
)
from tiling_suite.services.dashboard import (
    ALL_TIME,
    THIS_MONTH,
    compute_metrics,
    expense_breakdown,
    filter_by_range,
    parse_timestamp,
    range_start,
)

NOW = datetime(2024, 5, 20, 12, 0)


def _invoice(invoice_id: str, status: InvoiceStatus, invoice_date: str, payment_date=None) -> Invoice:
    return Invoice(
        id=invoice_id,
        quotation_id="q",
        invoice_number=f"INV-2024-{invoice_id}",
        invoice_date=invoice_date,
        due_date=invoice_date,
        client_details=ClientDetails(),
        status=status,
        tiles=[Tile("Floor", 10, 10.0, 1000.0)],
        payment_date=payment_date,
    )


def _expense(expense_id: str, date: str, category: str, amount: float) -> Expense:
    return Expense(expense_id, date, category, "", amount)


class TestTimestamps:
    def test_parse_timestamp(self):
        assert parse_timestamp("2024-05-01") == datetime(2024, 5, 1)
        assert parse_timestamp("2024-05-01T10:00:00+01:00") == datetime(2024, 5, 1, 10, 0)
        assert parse_timestamp("yesterday") is None
        assert parse_timestamp(None) is None

    def test_range_start(self):
        assert range_start(ALL_TIME, NOW) is None
        assert range_start(THIS_MONTH, NOW) == datetime(2024, 5, 1)
        assert range_start("7", NOW) == datetime(2024, 5, 13, 12, 0)


class TestFiltering:
    def test_this_month_drops_older_and_malformed_records(self, sample_quotation):
        older = copy.deepcopy(sample_quotation)
        older.id, older.date = "old", "2024-04-30T23:59:59"
        broken = copy.deepcopy(sample_quotation)
        broken.id, broken.date = "broken", "not a date"

        records = filter_by_range([sample_quotation, older, broken], [], [], THIS_MONTH, NOW)
        assert [quotation.id for quotation in records.quotations] == [sample_quotation.id]

    def test_all_time_keeps_everything(self, sample_quotation):
        records = filter_by_range([sample_quotation], [], [], ALL_TIME, NOW)
        assert records.quotations == [sample_quotation]


class TestComputeMetrics:
    @pytest.fixture
    def records(self, sample_quotation):
        accepted = copy.deepcopy(sample_quotation)
        accepted.id, accepted.status = "q-2", QuotationStatus.ACCEPTED
        invoiced = copy.deepcopy(sample_quotation)
        invoiced.id, invoiced.status = "q-3", QuotationStatus.INVOICED
        quotations = [sample_quotation, accepted, invoiced]
        invoices = [
            _invoice("0001", InvoiceStatus.PAID, "2024-05-02", "2024-05-03T10:00:00"),
            _invoice("0002", InvoiceStatus.PAID, "2024-03-01", "2024-03-05"),
            _invoice("0003", InvoiceStatus.UNPAID, "2024-05-10"),
        ]
        expenses = [
            _expense("e1", "2024-05-04", "Transport", 2000),
            _expense("e2", "2024-05-05", "Tools", 5000),
            _expense("e3", "2024-03-09", "Transport", 1000),
        ]
        return quotations, invoices, expenses

    def test_all_time(self, records, settings):
        metrics = compute_metrics(*records, settings, ALL_TIME, NOW)

        assert metrics.total_quotations == 3
        assert metrics.acceptance_rate == pytest.approx(200 / 3)
        assert metrics.total_revenue == 20000
        assert metrics.paid_this_month == 10000
        assert metrics.total_expenses == 8000
        assert metrics.net_profit == 12000
        assert metrics.invoices_generated == 3
        assert metrics.total_quoted == pytest.approx(3 * 93500)

    def test_breakdown_and_months(self, records, settings):
        metrics = compute_metrics(*records, settings, ALL_TIME, NOW)

        assert [(entry.label, entry.value) for entry in metrics.expense_breakdown] == [
            ("Tools", 5000),
            ("Transport", 3000),
        ]
        months = metrics.monthly_performance
        assert [month.key for month in months] == [
            "2023-12", "2024-01", "2024-02", "2024-03", "2024-04", "2024-05",
        ]
        assert months[-1].label == "May"
        assert months[-1].revenue == 10000
        assert months[-1].expenses == 7000
        assert months[3].revenue == 10000
        assert months[3].expenses == 1000

    def test_this_month(self, records, settings):
        metrics = compute_metrics(*records, settings, THIS_MONTH, NOW)
        assert metrics.total_revenue == 10000
        assert metrics.total_expenses == 7000
        assert metrics.invoices_generated == 2

    def test_empty(self, settings):
        metrics = compute_metrics([], [], [], settings, ALL_TIME, NOW)
        assert metrics.acceptance_rate == 0
        assert metrics.expense_breakdown == ()
        assert len(metrics.monthly_performance) == 6


class TestExpenseBreakdown:
    def test_blank_category_is_other(self):
        slices = expense_breakdown([_expense("e", "2024-05-01", "", 10)])
        assert slices[0].label == "Other"
        assert slices[0].color.startswith("#")
