"""Tests for document exports: every format reports the calculator's grand total."""

from __future__ import annotations

import copy
import csv
import dataclasses
import zipfile
from datetime import datetime

import pytest
from docx import Document as WordDocument
from openpyxl import load_workbook

from tiling_suite.domain.models import Expense, Settings
from tiling_suite.repositories.mappers import quotation_from_data
from tiling_suite.services import export_service
from tiling_suite.services.calculation import calculate_totals
from tiling_suite.services.dashboard import compute_metrics
from tiling_suite.services.errors import ExportError, ValidationError
from tiling_suite.services.export_service import ExportService
from tiling_suite.services.invoice_service import create_invoice_from_quotation
from tiling_suite.utils.csv_export import CSV_ENCODING
from tiling_suite.utils.documents import (
    build_export_filename,
    cost_summary_rows,
    format_currency,
)


@pytest.fixture
def exporter() -> ExportService:
    return ExportService()


def _summary_values(path):
    sheet = load_workbook(path)["Summary"]
    return {row[0]: row[1] for row in sheet.iter_rows(min_row=2, values_only=True) if row[0]}


class TestDocumentHelpers:
    def test_filename(self):
        assert build_export_filename("Quotation", "q-1", "pdf") == "quotation-q-1.pdf"
        assert build_export_filename("Tile Quote!", "a/b", ".xlsx") == "tile_quote-ab.xlsx"

    def test_format_currency(self):
        assert format_currency(93500) == "₦93,500.00"
        assert format_currency(-1500.5, "$") == "-$1,500.50"

    def test_summary_rows(self, adjusted_quotation, settings):
        totals = calculate_totals(adjusted_quotation, settings)
        rows = {row.label: row for row in cost_summary_rows(adjusted_quotation, settings, totals)}
        assert rows["Grand Total"].amount == pytest.approx(90000)
        assert rows["Adjustments"].amount == -3500
        assert rows["Profit (10%)"].amount == pytest.approx(8500)
        assert rows["Deposit (50%)"].amount == pytest.approx(45000)
        assert "Tax (0%)" not in rows

    def test_hidden_summary(self, sample_quotation, settings):
        sample_quotation.show_cost_summary = False
        totals = calculate_totals(sample_quotation, settings)
        rows = cost_summary_rows(sample_quotation, settings, totals)
        assert [(row.label, row.amount) for row in rows] == [("Cost Summary", None)]


class TestQuotationExports:
    """Grand totals read back from each format."""

    def test_excel(self, exporter, adjusted_quotation, settings, tmp_path):
        path = exporter.export_quotation(adjusted_quotation, settings, "xlsx", tmp_path)
        assert path == tmp_path / "quotation-q-1.xlsx"
        values = _summary_values(path)
        assert values["Grand Total"] == pytest.approx(calculate_totals(adjusted_quotation, settings).grand_total)
        assert values["Client Name"] == "Ada Obi"
        assert set(load_workbook(path).sheetnames) == {"Tiles", "Materials", "Adjustments", "Summary"}

    def test_excel_hidden_summary(self, exporter, sample_quotation, settings, tmp_path):
        sample_quotation.show_cost_summary = False
        path = exporter.export_quotation(sample_quotation, settings, "xlsx", tmp_path)
        values = _summary_values(path)
        assert values["Cost Summary"] == "Hidden"
        assert "Grand Total" not in values

    def test_csv(self, exporter, adjusted_quotation, settings, tmp_path):
        path = exporter.export_quotation(adjusted_quotation, settings, "csv", tmp_path)
        with open(path, newline="", encoding=CSV_ENCODING) as handle:
            rows = list(csv.reader(handle))
        assert rows[0] == ["Section", "Item", "Quantity", "Unit", "Unit Price", "Total"]
        grand = next(row for row in rows if row[:2] == ["Summary", "Grand Total"])
        assert float(grand[5]) == pytest.approx(calculate_totals(adjusted_quotation, settings).grand_total)
        assert ["Tiles - Kitchen", "Kitchen wall"] == rows[2][:2]

    def test_word(self, exporter, adjusted_quotation, settings, tmp_path):
        path = exporter.export_quotation(adjusted_quotation, settings, "docx", tmp_path)
        summary = WordDocument(str(path)).tables[-1]
        cells = {row.cells[0].text: row.cells[1].text for row in summary.rows}
        expected = calculate_totals(adjusted_quotation, settings).grand_total
        assert cells["Grand Total"] == format_currency(expected, settings.currency_symbol)

    def test_pdf(self, exporter, sample_quotation, settings, tmp_path):
        path = exporter.export_quotation(sample_quotation, settings, "pdf", tmp_path)
        assert path.read_bytes().startswith(b"%PDF")

    def test_pdf_with_payment_qr(self, exporter, sample_quotation, tmp_path):
        settings = Settings(payment_url="https://pay.example.com/tile-pros", show_qr_code=True)
        path = exporter.export_quotation(sample_quotation, settings, "PDF", tmp_path)
        assert path.suffix == ".pdf"
        assert path.stat().st_size > 0

    def test_unsupported_format(self, exporter, sample_quotation, settings, tmp_path):
        with pytest.raises(ValidationError):
            exporter.export_quotation(sample_quotation, settings, "odt", tmp_path)

    def test_failed_export_leaves_no_file(self, exporter, sample_quotation, settings, tmp_path, monkeypatch):
        def broken_writer(document, settings, output_path):
            output_path.write_text("partial", encoding="utf-8")
            raise OSError("disk full")

        monkeypatch.setitem(export_service.QUOTATION_WRITERS, "csv", broken_writer)
        with pytest.raises(ExportError):
            exporter.export_quotation(sample_quotation, settings, "csv", tmp_path)
        assert list(tmp_path.iterdir()) == []


class TestLooselyTypedDocuments:
    """Stored records may carry numbers as text or null."""

    @pytest.fixture
    def loose_quotation(self):
        return quotation_from_data(
            {
                "id": "q-loose",
                "date": "2024-05-10T09:30:00",
                "clientDetails": {"clientName": "Ada Obi"},
                "tiles": [
                    {"category": "Floor", "cartons": "10", "sqm": "15", "unitPrice": "500"},
                    {"category": None, "cartons": None, "sqm": None, "unitPrice": None},
                ],
                "materials": [{"item": "Cement", "quantity": "2", "unit": "bags", "unitPrice": None}],
                "adjustments": [{"description": "Discount", "amount": "-500"}],
            }
        )

    @pytest.mark.parametrize("fmt", ["pdf", "docx", "xlsx", "csv"])
    def test_every_format_exports(self, exporter, loose_quotation, settings, tmp_path, fmt):
        assert calculate_totals(loose_quotation, settings).grand_total == pytest.approx(4500)
        path = exporter.export_quotation(loose_quotation, settings, fmt, tmp_path)
        assert path.stat().st_size > 0

    def test_excel_cells_are_numbers(self, exporter, loose_quotation, settings, tmp_path):
        path = exporter.export_quotation(loose_quotation, settings, "xlsx", tmp_path)
        tiles = load_workbook(path)["Tiles"]
        floor = next(row for row in tiles.iter_rows(min_row=2, values_only=True) if row[0] == "Floor")
        assert floor[1:3] == (15.0, 10.0)
        assert floor[5] == 500.0
        assert _summary_values(path)["Grand Total"] == pytest.approx(4500)

    def test_csv_grand_total(self, exporter, loose_quotation, settings, tmp_path):
        path = exporter.export_quotation(loose_quotation, settings, "csv", tmp_path)
        with open(path, newline="", encoding=CSV_ENCODING) as handle:
            rows = list(csv.reader(handle))
        grand = next(row for row in rows if row[:2] == ["Summary", "Grand Total"])
        assert float(grand[5]) == pytest.approx(4500)


class TestInvoiceExports:
    @pytest.fixture
    def invoice(self, adjusted_quotation, settings):
        return create_invoice_from_quotation(
            adjusted_quotation, settings, "INV-2024-0001", datetime(2024, 5, 1)
        )

    def test_csv_matches_quotation_total(self, exporter, invoice, adjusted_quotation, settings, tmp_path):
        path = exporter.export_invoice(invoice, settings, "csv", tmp_path)
        assert path.name == "invoice-INV-2024-0001.csv"
        with open(path, newline="", encoding=CSV_ENCODING) as handle:
            rows = list(csv.reader(handle))
        assert rows[0][:2] == ["Invoice", "INV-2024-0001"]
        grand = next(row for row in rows if row[:2] == ["Summary", "Grand Total"])
        assert float(grand[5]) == pytest.approx(calculate_totals(adjusted_quotation, settings).grand_total)

    def test_pdf(self, exporter, invoice, settings, tmp_path):
        path = exporter.export_invoice(invoice, settings, "pdf", tmp_path)
        assert path.read_bytes().startswith(b"%PDF")

    def test_word_is_not_offered(self, exporter, invoice, settings, tmp_path):
        with pytest.raises(ValidationError):
            exporter.export_invoice(invoice, settings, "docx", tmp_path)


class TestBulkExports:
    def test_history_csv(self, exporter, sample_quotation, settings, tmp_path):
        path = exporter.export_history_csv([sample_quotation], settings, tmp_path)
        with open(path, newline="", encoding=CSV_ENCODING) as handle:
            rows = list(csv.reader(handle))
        assert rows[1][0] == "q-1"
        assert rows[1][1] == "2024-05-10"
        assert rows[1][-1] == "N/A"

    def test_analytics_and_chart(self, exporter, sample_quotation, settings, tmp_path):
        expenses = [Expense("e1", "2024-05-04", "Transport", "", 2000.0)]
        metrics = compute_metrics([sample_quotation], [], expenses, settings, now=datetime(2024, 5, 20))

        analytics = exporter.export_analytics_csv(metrics, settings, tmp_path)
        text = analytics.read_text(encoding=CSV_ENCODING)
        assert "Total Expenses,\"₦2,000.00\"" in text

        chart = exporter.export_dashboard_charts(metrics, settings, tmp_path)
        assert chart.read_bytes().startswith(b"\x89PNG")

    def test_zip(self, exporter, adjusted_quotation, settings, tmp_path):
        second = dataclasses.replace(copy.deepcopy(adjusted_quotation), id="q-2")
        path = exporter.export_quotations_zip([adjusted_quotation, second], settings, tmp_path)
        with zipfile.ZipFile(path) as archive:
            assert sorted(archive.namelist()) == [
                "Quotations/quotation-q-1.pdf",
                "Quotations/quotation-q-2.pdf",
            ]

    def test_zip_requires_quotations(self, exporter, settings, tmp_path):
        with pytest.raises(ValidationError):
            exporter.export_quotations_zip([], settings, tmp_path)
