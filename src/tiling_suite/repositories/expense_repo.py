"""Repository for expense persistence."""

from __future__ import annotations

from tiling_suite.domain.models import Expense
from tiling_suite.repositories.mappers import expense_from_data, expense_to_data
from tiling_suite.repositories.record_repo import JsonRecordRepo

_DATE = "date(json_extract(data, '$.date'))"


class ExpenseRepo(JsonRecordRepo[Expense]):
    table = "expenses"
    from_data = staticmethod(expense_from_data)
    to_data = staticmethod(expense_to_data)

    def list_by_period(self, start_date: str, end_date: str) -> list[Expense]:
        try:
            rows = self._connection.execute(
                f"""
                SELECT data
                FROM expenses
                WHERE {_DATE} >= ?
                  AND {_DATE} <= ?
                ORDER BY {_DATE} DESC, id DESC
                """,
                (start_date, end_date),
            ).fetchall()
        except Exception:
            self._logger.exception(
                "Failed to list expenses period=%s..%s", start_date, end_date
            )
            raise
        return [self._row_to_entity(row) for row in rows]

    def list_categories(self) -> list[str]:
        try:
            rows = self._connection.execute(
                """
                SELECT DISTINCT json_extract(data, '$.category') AS category
                FROM expenses
                WHERE trim(coalesce(json_extract(data, '$.category'), '')) != ''
                ORDER BY category
                """
            ).fetchall()
        except Exception:
            self._logger.exception("Failed to list expense categories")
            raise
        return [row["category"] for row in rows]

    def get_total_by_period(self, start_date: str, end_date: str) -> float:
        try:
            row = self._connection.execute(
                f"""
                SELECT COALESCE(SUM(json_extract(data, '$.amount')), 0) AS total_expenses
                FROM expenses
                WHERE {_DATE} >= ?
                  AND {_DATE} <= ?
                """,
                (start_date, end_date),
            ).fetchone()
        except Exception:
            self._logger.exception("Failed to calculate expense total by period")
            raise
        return float(row["total_expenses"] or 0) if row else 0.0
