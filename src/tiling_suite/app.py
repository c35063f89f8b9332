"""Command-line entry point."""

from __future__ import annotations

import argparse
import dataclasses
import logging
import sys
from pathlib import Path
from typing import Any, Optional, Sequence

from tiling_suite.app_services import AppServices, build_services
from tiling_suite.config import AppConfig
from tiling_suite.db.connection import get_connection
from tiling_suite.db.migrations import apply_migrations
from tiling_suite.domain.models import ClientDetails, QuotationStatus, Settings
from tiling_suite.logging_config import configure_logging, get_logger
from tiling_suite.paths import get_config_path, get_db_path, get_exports_dir
from tiling_suite.services.assistant import ImageData
from tiling_suite.services.calculation import calculate_totals
from tiling_suite.services.dashboard import ALL_TIME, THIS_MONTH, compute_metrics
from tiling_suite.services.errors import ServiceError, ValidationError
from tiling_suite.services.export_service import INVOICE_FORMATS, QUOTATION_FORMATS
from tiling_suite.utils.documents import format_currency
from tiling_suite.utils.share import build_whatsapp_share_url
from tiling_suite.utils.theme import THEME_CHOICES, load_theme_settings, set_theme, toggle_theme

_SETTINGS_FIELDS = {item.name: item for item in dataclasses.fields(Settings)}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tiling-suite",
        description="Tiling quotations, invoices and business records.",
    )
    parser.add_argument("--verbose", action="store_true", help="log debug output")
    commands = parser.add_subparsers(dest="command", required=True)

    quote = commands.add_parser("quote", help="draft a quotation from measurement notes")
    quote.add_argument("notes", nargs="*", help="measurement lines, e.g. 'Kitchen floor 12m2'")
    quote.add_argument("--notes-file", type=Path, help="read measurement lines from a file")
    quote.add_argument("--scan", type=Path, help="photo of handwritten notes to transcribe")
    quote.add_argument("--site-image", type=Path, help="site photo to check for issues")
    quote.add_argument("--client", default="", help="client name")
    quote.add_argument("--phone", default="", help="client phone")
    quote.add_argument("--address", default="", help="client address")
    quote.add_argument("--project", default="", help="project name")

    listing = commands.add_parser("list", help="list stored records")
    listing.add_argument(
        "collection",
        nargs="?",
        default="quotations",
        choices=("quotations", "invoices", "clients", "expenses"),
    )

    show = commands.add_parser("show", help="print the cost breakdown of a quotation")
    show.add_argument("quotation_id")

    status = commands.add_parser("status", help="set a quotation status")
    status.add_argument("quotation_id")
    status.add_argument(
        "status",
        choices=[item.value for item in QuotationStatus if item != QuotationStatus.INVOICED],
    )

    refine = commands.add_parser("refine", help="ask the assistant to rework a quotation")
    refine.add_argument("quotation_id")
    refine.add_argument("instruction")

    invoice = commands.add_parser("invoice", help="convert a quotation into an invoice")
    invoice.add_argument("quotation_id")

    pay = commands.add_parser("pay", help="mark an invoice as paid")
    pay.add_argument("invoice_id")
    pay.add_argument("--undo", action="store_true", help="mark the invoice unpaid again")

    export = commands.add_parser("export", help="export a quotation or invoice")
    export.add_argument("document_id")
    export.add_argument(
        "--format",
        dest="fmt",
        default="pdf",
        choices=sorted(set(QUOTATION_FORMATS) | set(INVOICE_FORMATS)),
    )
    export.add_argument("--invoice", action="store_true", help="document_id is an invoice")
    export.add_argument("--output", type=Path, help="output directory")

    history = commands.add_parser("history", help="export the quotation history as CSV")
    history.add_argument("--output", type=Path, help="output directory")

    share = commands.add_parser("share", help="print a WhatsApp share link")
    share.add_argument("document_id")
    share.add_argument("--invoice", action="store_true", help="document_id is an invoice")

    expense = commands.add_parser("expense", help="record a business expense")
    expense.add_argument("date", help="ISO date, e.g. 2024-05-01")
    expense.add_argument("category")
    expense.add_argument("amount", type=float)
    expense.add_argument("--description", default="")
    expense.add_argument("--quotation", dest="quotation_id", help="linked quotation id")

    dashboard = commands.add_parser("dashboard", help="print business metrics")
    dashboard.add_argument("--range", dest="date_range", default=ALL_TIME, choices=(ALL_TIME, THIS_MONTH))
    dashboard.add_argument("--csv", action="store_true", help="also export an analytics CSV")
    dashboard.add_argument("--chart", action="store_true", help="also export a chart image")
    dashboard.add_argument("--output", type=Path, help="output directory")

    settings = commands.add_parser("settings", help="show or change settings")
    settings.add_argument("assignments", nargs="*", help="field=value pairs")

    theme = commands.add_parser("theme", help="show or change the theme preference")
    theme.add_argument("choice", nargs="?", choices=THEME_CHOICES + ("toggle",))

    return parser


def _read_notes(args: argparse.Namespace, services: AppServices) -> list[str]:
    notes = [line.strip() for line in args.notes if line.strip()]
    if args.notes_file:
        text = args.notes_file.read_text(encoding="utf-8")
        notes.extend(line.strip() for line in text.splitlines() if line.strip())
    if args.scan:
        text = services.quotation_service.scan_notes(ImageData.from_path(args.scan))
        notes.extend(line.strip() for line in text.splitlines() if line.strip())
    return notes


def _coerce_setting(name: str, raw: str) -> Any:
    if name not in _SETTINGS_FIELDS:
        raise ValidationError(f"Unknown settings: {name}")
    default = getattr(Settings(), name)
    if isinstance(default, bool):
        return raw.strip().lower() in {"1", "true", "yes", "on"}
    if isinstance(default, float):
        try:
            return float(raw)
        except ValueError:
            raise ValidationError(f"{name} must be a number.") from None
    if isinstance(default, tuple) and all(isinstance(item, str) for item in default):
        return tuple(part.strip() for part in raw.split(",") if part.strip())
    if isinstance(default, tuple):
        raise ValidationError(f"{name} cannot be changed from the command line.")
    return raw


def _output_dir(args: argparse.Namespace) -> Path:
    return args.output or get_exports_dir()


def run_command(args: argparse.Namespace, services: AppServices) -> int:
    settings = services.settings_service.settings
    symbol = settings.currency_symbol

    if args.command == "quote":
        details = ClientDetails(
            client_name=args.client,
            client_address=args.address,
            client_phone=args.phone,
            project_name=args.project,
        )
        if args.client:
            services.client_service.save_from_details(details)
        site_image = ImageData.from_path(args.site_image) if args.site_image else None
        quotation = services.quotation_service.generate_quotation(
            _read_notes(args, services), details, settings, site_image
        )
        total = calculate_totals(quotation, settings).grand_total
        print(f"{quotation.id}  {format_currency(total, symbol)}")
        if quotation.site_analysis:
            print(f"Site analysis: {quotation.site_analysis}")
        return 0

    if args.command == "list":
        if args.collection == "quotations":
            for quotation in services.quotation_service.list_quotations():
                total = calculate_totals(quotation, settings).grand_total
                print(
                    f"{quotation.id}  {quotation.date[:10]}  {quotation.status.value:<9}  "
                    f"{quotation.client_details.client_name}  {format_currency(total, symbol)}"
                )
        elif args.collection == "invoices":
            services.invoice_service.refresh_overdue()
            for invoice in services.invoice_service.list_invoices():
                total = calculate_totals(invoice, settings).grand_total
                print(
                    f"{invoice.id}  {invoice.invoice_number}  {invoice.status.value:<7}  "
                    f"due {invoice.due_date[:10]}  {format_currency(total, symbol)}"
                )
        elif args.collection == "clients":
            counts = services.client_service.quote_counts(
                services.quotation_service.list_quotations()
            )
            for client in services.client_service.list_clients():
                print(f"{client.id}  {client.name}  {client.phone}  quotes: {counts.get(client.id, 0)}")
        else:
            for expense in services.expense_service.list_all():
                print(
                    f"{expense.id}  {expense.date[:10]}  {expense.category}  "
                    f"{format_currency(expense.amount, symbol)}  {expense.description}"
                )
        return 0

    if args.command == "show":
        quotation = services.quotation_service.get_quotation(args.quotation_id)
        for name, value in calculate_totals(quotation, settings).as_dict().items():
            shown = f"{value:.2f}" if name == "total_sqm" else format_currency(value, symbol)
            print(f"{name:<28} {shown}")
        return 0

    if args.command == "status":
        quotation = services.quotation_service.set_status(
            args.quotation_id, QuotationStatus(args.status)
        )
        print(f"{quotation.id}  {quotation.status.value}")
        return 0

    if args.command == "refine":
        quotation = services.quotation_service.refine_quotation(args.quotation_id, args.instruction)
        total = calculate_totals(quotation, settings).grand_total
        print(f"{quotation.id}  {format_currency(total, symbol)}")
        return 0

    if args.command == "invoice":
        invoice = services.invoice_service.convert_quotation(args.quotation_id, settings)
        print(f"{invoice.id}  {invoice.invoice_number}  due {invoice.due_date[:10]}")
        return 0

    if args.command == "pay":
        if args.undo:
            invoice = services.invoice_service.mark_unpaid(args.invoice_id)
        else:
            invoice = services.invoice_service.mark_paid(args.invoice_id)
        print(f"{invoice.invoice_number}  {invoice.status.value}")
        return 0

    if args.command == "export":
        if args.invoice:
            invoice = services.invoice_service.get_invoice(args.document_id)
            path = services.export_service.export_invoice(invoice, settings, args.fmt, _output_dir(args))
        else:
            quotation = services.quotation_service.get_quotation(args.document_id)
            path = services.export_service.export_quotation(
                quotation, settings, args.fmt, _output_dir(args)
            )
        print(path)
        return 0

    if args.command == "history":
        path = services.export_service.export_history_csv(
            services.quotation_service.list_quotations(), settings, _output_dir(args)
        )
        print(path)
        return 0

    if args.command == "share":
        if args.invoice:
            document = services.invoice_service.get_invoice(args.document_id)
        else:
            document = services.quotation_service.get_quotation(args.document_id)
        print(build_whatsapp_share_url(document, settings))
        return 0

    if args.command == "expense":
        expense = services.expense_service.create_expense(
            args.date, args.category, args.description, args.amount, args.quotation_id
        )
        print(expense.id)
        return 0

    if args.command == "dashboard":
        services.invoice_service.refresh_overdue()
        metrics = compute_metrics(
            services.quotation_service.list_quotations(),
            services.invoice_service.list_invoices(),
            services.expense_service.list_all(),
            settings,
            args.date_range,
        )
        print(f"Total quoted      {format_currency(metrics.total_quoted, symbol)}")
        print(f"Quotations        {metrics.total_quotations}")
        print(f"Acceptance rate   {metrics.acceptance_rate:.1f}%")
        print(f"Invoices          {metrics.invoices_generated}")
        print(f"Revenue           {format_currency(metrics.total_revenue, symbol)}")
        print(f"Paid this month   {format_currency(metrics.paid_this_month, symbol)}")
        print(f"Expenses          {format_currency(metrics.total_expenses, symbol)}")
        print(f"Net profit        {format_currency(metrics.net_profit, symbol)}")
        if args.csv:
            print(services.export_service.export_analytics_csv(metrics, settings, _output_dir(args)))
        if args.chart:
            print(services.export_service.export_dashboard_charts(metrics, settings, _output_dir(args)))
        return 0

    if args.command == "settings":
        if args.assignments:
            changes: dict[str, Any] = {}
            for assignment in args.assignments:
                name, separator, raw = assignment.partition("=")
                if not separator:
                    raise ValidationError(f"Expected field=value, got '{assignment}'.")
                changes[name.strip()] = _coerce_setting(name.strip(), raw)
            settings = services.settings_service.update(**changes)
        for name in _SETTINGS_FIELDS:
            print(f"{name} = {getattr(settings, name)}")
        return 0

    if args.command == "theme":
        if args.choice == "toggle":
            theme = toggle_theme(services.config_path)
        elif args.choice:
            theme = set_theme(services.config_path, args.choice)
        else:
            theme = load_theme_settings(services.config_path)
        print(f"{theme.theme} ({theme.resolved})")
        return 0

    return 2


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the tiling-suite command line."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(logging.DEBUG if args.verbose else logging.INFO)
    logger = get_logger(__name__)

    connection = get_connection(get_db_path())
    apply_migrations(connection)
    logger.info("Starting %s", AppConfig().app_name)
    services = build_services(connection, get_config_path())
    try:
        return run_command(args, services)
    except ServiceError as exc:
        print(str(exc), file=sys.stderr)
        return 1
    except OSError as exc:
        logger.exception("Command %s failed", args.command)
        print(str(exc), file=sys.stderr)
        return 1
    finally:
        services.close()


if __name__ == "__main__":
    raise SystemExit(main())
