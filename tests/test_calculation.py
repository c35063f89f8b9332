"""Tests for the totals calculator."""

from __future__ import annotations

import dataclasses

import pytest

from tiling_suite.domain.models import Adjustment, ClientDetails, Invoice, Quotation, Settings, Tile
from tiling_suite.services.calculation import (
    TotalsBreakdown,
    calculate_totals,
    resolve_flag,
    to_number,
)


def _bare_quotation(**overrides) -> Quotation:
    values = dict(id="q", date="2024-01-01T00:00:00", client_details=ClientDetails())
    values.update(overrides)
    return Quotation(**values)


class TestToNumber:
    """Numeric coercion."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [(None, 0.0), ("12.5", 12.5), ("abc", 0.0), (float("nan"), 0.0), (7, 7.0), ([], 0.0)],
    )
    def test_coercion(self, raw, expected):
        assert to_number(raw) == expected


class TestResolveFlag:
    """Visibility flag fallback order."""

    def test_document_value_wins(self):
        quotation = _bare_quotation(show_materials=False)
        assert resolve_flag(quotation, Settings(show_materials_default=True), "materials") is False

    def test_falls_back_to_settings(self):
        quotation = _bare_quotation()
        assert resolve_flag(quotation, Settings(show_tax=True), "tax") is True
        assert resolve_flag(quotation, Settings(show_tax=False), "tax") is False

    def test_falls_back_to_default_without_settings_field(self):
        quotation = _bare_quotation()
        assert resolve_flag(quotation, Settings(), "workmanship") is True
        assert resolve_flag(quotation, Settings(), "cost_summary", default=False) is False

    def test_unknown_flag_raises(self):
        with pytest.raises(ValueError):
            resolve_flag(_bare_quotation(), Settings(), "logo")


class TestCalculateTotals:
    """Staged cost arithmetic."""

    def test_none_document_is_all_zero(self):
        assert calculate_totals(None, Settings()) == TotalsBreakdown()

    def test_empty_document_is_all_zero(self):
        totals = calculate_totals(_bare_quotation(), Settings(tax_percentage=7.5, show_tax=True))
        assert all(value == 0 for value in totals.as_dict().values())
        assert isinstance(totals.grand_total, float)

    def test_single_tile_and_adjustment(self):
        quotation = _bare_quotation(tiles=[Tile("Floor", 10, 0.0, 500.0)])
        settings = Settings(tax_percentage=0.0)

        totals = calculate_totals(quotation, settings)
        assert totals.total_tile_cost == 5000
        assert totals.grand_total == 5000

        quotation.adjustments = [Adjustment("Discount", -500.0)]
        assert calculate_totals(quotation, settings).grand_total == 4500

    def test_sample_breakdown(self, sample_quotation, settings):
        totals = calculate_totals(sample_quotation, settings)

        assert totals.total_sqm == 10
        assert totals.total_tile_cost == 50000
        assert totals.total_material_cost == 20000
        assert totals.workmanship_cost == 15000
        assert totals.profit_amount == pytest.approx(8500)
        assert totals.subtotal == pytest.approx(93500)
        assert totals.grand_total == pytest.approx(93500)
        assert totals.deposit_amount == pytest.approx(46750)

    def test_grand_total_is_sum_of_parts(self, adjusted_quotation):
        settings = Settings(tax_percentage=7.5, show_tax=True)
        adjusted_quotation.maintenance = 2000.0
        totals = calculate_totals(adjusted_quotation, settings)

        expected = (
            totals.total_tile_cost
            + totals.total_material_cost
            + totals.workmanship_and_maintenance
            + totals.profit_amount
            + totals.total_adjustments
            + totals.tax_amount
        )
        assert totals.grand_total == pytest.approx(expected)
        assert totals.maintenance_amount == pytest.approx(2000)

    def test_tax_applies_after_adjustments(self, adjusted_quotation):
        totals = calculate_totals(adjusted_quotation, Settings(tax_percentage=10.0, show_tax=True))
        assert totals.tax_amount == pytest.approx((93500 - 3500) * 0.10)

    def test_hidden_sections_contribute_nothing(self, adjusted_quotation, settings):
        adjusted_quotation.maintenance = 5000.0
        adjusted_quotation.show_materials = False
        adjusted_quotation.show_workmanship = False
        adjusted_quotation.show_maintenance = False
        adjusted_quotation.show_adjustments = False
        totals = calculate_totals(adjusted_quotation, settings)

        assert totals.total_material_cost == 0
        assert totals.workmanship_cost == 0
        assert totals.workmanship_and_maintenance == 0
        assert totals.total_adjustments == 0
        assert totals.total_sqm == 10
        assert totals.grand_total == pytest.approx(55000)

    def test_zero_or_missing_percentages(self, sample_quotation, settings):
        sample_quotation.profit_percentage = None
        sample_quotation.deposit_percentage = 0
        totals = calculate_totals(sample_quotation, settings)
        assert totals.profit_amount == 0
        assert totals.deposit_amount == 0

    def test_malformed_numbers_count_as_zero(self, settings):
        quotation = _bare_quotation(
            tiles=[Tile("Floor", "ten", "abc", 500.0), Tile("Wall", 2, 3.0, "100")],
            workmanship_rate="oops",
            profit_percentage="x",
        )
        totals = calculate_totals(quotation, settings)
        assert totals.total_tile_cost == 200
        assert totals.total_sqm == 3
        assert totals.workmanship_cost == 0
        assert totals.profit_amount == 0

    def test_non_list_containers_are_empty(self, settings):
        quotation = _bare_quotation(tiles=None, materials="none", adjustments=42)
        assert calculate_totals(quotation, settings) == TotalsBreakdown()

    def test_invoice_without_adjustments(self, sample_quotation, settings):
        invoice = Invoice(
            id="i",
            quotation_id=sample_quotation.id,
            invoice_number="INV-2024-0001",
            invoice_date="2024-05-11T00:00:00",
            due_date="2024-05-18T00:00:00",
            client_details=sample_quotation.client_details,
            tiles=sample_quotation.tiles,
            materials=sample_quotation.materials,
            workmanship_rate=sample_quotation.workmanship_rate,
            profit_percentage=sample_quotation.profit_percentage,
        )
        assert invoice.adjustments is None
        assert calculate_totals(invoice, settings).grand_total == pytest.approx(93500)

    def test_settings_are_not_mutated(self, sample_quotation, settings):
        before = dataclasses.asdict(settings)
        calculate_totals(sample_quotation, settings)
        assert dataclasses.asdict(settings) == before
