"""Tests for the command line front end."""

from __future__ import annotations

from pathlib import Path

import pytest

from tiling_suite.app import _coerce_setting, build_parser, run_command
from tiling_suite.app_services import build_services
from tiling_suite.config import AiConfig, RemoteConfig
from tiling_suite.domain.models import QuotationStatus
from tiling_suite.services.errors import NotFoundError, ValidationError


@pytest.fixture
def services(connection, config_path):
    built = build_services(
        connection, config_path, remote_config=RemoteConfig(), ai_config=AiConfig()
    )
    yield built
    built.sync.close()


def _run(services, *argv: str) -> int:
    return run_command(build_parser().parse_args(list(argv)), services)


class TestParser:
    def test_invoiced_is_not_a_status_choice(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["status", "q-1", "Invoiced"])

    def test_export_defaults_to_pdf(self):
        args = build_parser().parse_args(["export", "q-1"])
        assert args.fmt == "pdf"
        assert args.invoice is False


class TestCoerceSetting:
    def test_types_follow_defaults(self):
        assert _coerce_setting("tax_percentage", "5") == 5.0
        assert _coerce_setting("show_qr_code", "yes") is True
        assert _coerce_setting("invoice_prefix", "TIL") == "TIL"

    def test_bad_values(self):
        with pytest.raises(ValidationError):
            _coerce_setting("tax_percentage", "five")
        with pytest.raises(ValidationError):
            _coerce_setting("no_such_field", "1")
        with pytest.raises(ValidationError):
            _coerce_setting("tile_prices_by_size", "60x60")


class TestCommands:
    def test_quote_invoice_and_pay(self, services, capsys):
        assert _run(services, "quote", "Kitchen floor 12m2", "--client", "Ada Obi") == 0
        quotation = services.quotation_service.list_quotations()[0]
        assert quotation.client_details.client_name == "Ada Obi"
        assert [client.name for client in services.client_service.list_clients()] == ["Ada Obi"]

        assert _run(services, "status", quotation.id, "Accepted") == 0
        assert _run(services, "invoice", quotation.id) == 0
        invoice = services.invoice_service.list_invoices()[0]
        assert _run(services, "pay", invoice.id) == 0
        assert services.invoice_service.get_invoice(invoice.id).status.value == "Paid"
        assert (
            services.quotation_service.get_quotation(quotation.id).status
            == QuotationStatus.INVOICED
        )

        output = capsys.readouterr().out
        assert quotation.id in output
        assert invoice.invoice_number in output

    def test_quote_without_notes_is_refused(self, services):
        with pytest.raises(ValidationError):
            _run(services, "quote")

    def test_show_unknown_quotation(self, services):
        with pytest.raises(NotFoundError):
            _run(services, "show", "missing")

    def test_export_to_output_dir(self, services, tmp_path, capsys):
        _run(services, "quote", "Toilet wall 22m2")
        quotation = services.quotation_service.list_quotations()[0]
        capsys.readouterr()

        assert _run(services, "export", quotation.id, "--format", "csv", "--output", str(tmp_path)) == 0
        printed = capsys.readouterr().out.strip()
        assert printed.endswith(".csv")
        assert Path(printed).exists()
        assert Path(printed).parent == tmp_path

    def test_settings_update(self, services, capsys):
        assert _run(services, "settings", "tax_percentage=5", "invoice_prefix=TIL") == 0
        assert services.settings_service.settings.tax_percentage == 5.0
        assert services.settings_service.settings.invoice_prefix == "TIL"
        assert "invoice_prefix = TIL" in capsys.readouterr().out

    def test_settings_needs_assignment(self, services):
        with pytest.raises(ValidationError):
            _run(services, "settings", "tax_percentage")

    def test_theme(self, services, capsys):
        assert _run(services, "theme", "dark") == 0
        assert capsys.readouterr().out.strip() == "dark (dark)"
        assert _run(services, "theme", "toggle") == 0
        assert capsys.readouterr().out.strip() == "light (light)"
