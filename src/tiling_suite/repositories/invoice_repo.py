"""Repository for invoice persistence."""

from __future__ import annotations

from typing import Optional

from tiling_suite.domain.models import Invoice
from tiling_suite.repositories.mappers import invoice_from_data, invoice_to_data
from tiling_suite.repositories.record_repo import JsonRecordRepo


class InvoiceRepo(JsonRecordRepo[Invoice]):
    table = "invoices"
    from_data = staticmethod(invoice_from_data)
    to_data = staticmethod(invoice_to_data)

    def get_by_quotation(self, quotation_id: str) -> Optional[Invoice]:
        try:
            row = self._connection.execute(
                """
                SELECT data
                FROM invoices
                WHERE json_extract(data, '$.quotationId') = ?
                LIMIT 1
                """,
                (quotation_id,),
            ).fetchone()
        except Exception:
            self._logger.exception(
                "Failed to fetch invoice for quotation id=%s", quotation_id
            )
            raise
        return self._row_to_entity(row) if row else None
