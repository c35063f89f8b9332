"""Export orchestration for documents, history, analytics and charts."""

from __future__ import annotations

import logging
import tempfile
import zipfile
from pathlib import Path
from typing import Callable, Iterable

from reportlab.platypus.doctemplate import LayoutError

from tiling_suite.domain.models import Document, Invoice, Quotation, Settings
from tiling_suite.services.dashboard import DashboardMetrics
from tiling_suite.services.errors import ExportError, ValidationError
from tiling_suite.utils.charts import save_dashboard_chart
from tiling_suite.utils.csv_export import (
    write_analytics_csv,
    write_document_csv,
    write_history_csv,
)
from tiling_suite.utils.documents import (
    atomic_output,
    build_export_filename,
    sanitize_filename,
)
from tiling_suite.utils.pdf_generator import generate_document_pdf
from tiling_suite.utils.spreadsheet_export import write_quotation_workbook
from tiling_suite.utils.word_export import write_quotation_docx

logger = logging.getLogger(__name__)

Writer = Callable[[Document, Settings, Path], Path]

QUOTATION_WRITERS: dict[str, Writer] = {
    "pdf": generate_document_pdf,
    "docx": write_quotation_docx,
    "xlsx": write_quotation_workbook,
    "csv": write_document_csv,
}
INVOICE_WRITERS: dict[str, Writer] = {
    "pdf": generate_document_pdf,
    "csv": write_document_csv,
}
QUOTATION_FORMATS = tuple(QUOTATION_WRITERS)
INVOICE_FORMATS = tuple(INVOICE_WRITERS)

HISTORY_FILENAME = "quotation_history.csv"
ANALYTICS_FILENAME = "analytics_summary.csv"
CHARTS_FILENAME = "dashboard_charts.png"

_EXPORT_ERRORS = (OSError, ValueError, TypeError, KeyError, LayoutError, zipfile.BadZipFile)


class ExportService:
    """Writes export files atomically and reports failures as ExportError."""

    def export_quotation(
        self, quotation: Quotation, settings: Settings, fmt: str, output_dir: Path
    ) -> Path:
        writer = self._writer(QUOTATION_WRITERS, fmt, "quotation")
        target = output_dir / build_export_filename(settings.document_title, quotation.id, fmt)
        return self._write(target, lambda path: writer(quotation, settings, path))

    def export_invoice(
        self, invoice: Invoice, settings: Settings, fmt: str, output_dir: Path
    ) -> Path:
        writer = self._writer(INVOICE_WRITERS, fmt, "invoice")
        target = output_dir / build_export_filename("invoice", invoice.invoice_number, fmt)
        return self._write(target, lambda path: writer(invoice, settings, path))

    def export_history_csv(
        self, quotations: Iterable[Quotation], settings: Settings, output_dir: Path
    ) -> Path:
        records = list(quotations)
        return self._write(
            output_dir / HISTORY_FILENAME,
            lambda path: write_history_csv(records, settings, path),
        )

    def export_analytics_csv(
        self, metrics: DashboardMetrics, settings: Settings, output_dir: Path
    ) -> Path:
        return self._write(
            output_dir / ANALYTICS_FILENAME,
            lambda path: write_analytics_csv(metrics, settings, path),
        )

    def export_dashboard_charts(
        self, metrics: DashboardMetrics, settings: Settings, output_dir: Path
    ) -> Path:
        return self._write(
            output_dir / CHARTS_FILENAME,
            lambda path: save_dashboard_chart(metrics, path, settings.currency_symbol),
        )

    def export_quotations_zip(
        self, quotations: Iterable[Quotation], settings: Settings, output_dir: Path
    ) -> Path:
        """Bundle one PDF per quotation into a single archive."""
        records = list(quotations)
        if not records:
            raise ValidationError("Select at least one quotation to export.")
        archive_name = f"{sanitize_filename(settings.company_name)}_Quotations.zip"

        def build(path: Path) -> Path:
            with tempfile.TemporaryDirectory() as scratch:
                with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_DEFLATED) as archive:
                    for quotation in records:
                        name = build_export_filename(
                            settings.document_title, quotation.id, "pdf"
                        )
                        pdf_path = generate_document_pdf(
                            quotation, settings, Path(scratch) / name
                        )
                        archive.write(pdf_path, arcname=f"Quotations/{name}")
            return path

        return self._write(output_dir / archive_name, build)

    def _writer(self, writers: dict[str, Writer], fmt: str, kind: str) -> Writer:
        try:
            return writers[fmt.lower()]
        except KeyError:
            supported = ", ".join(writers)
            raise ValidationError(
                f"Unsupported {kind} export format '{fmt}'. Use one of: {supported}."
            ) from None

    def _write(self, target: Path, write: Callable[[Path], Path]) -> Path:
        try:
            with atomic_output(target) as temp_path:
                write(temp_path)
        except _EXPORT_ERRORS as exc:
            logger.exception("Export failed: %s", target.name)
            raise ExportError(f"Could not export {target.name}: {exc}") from exc
        logger.info("Exported %s", target)
        return target
