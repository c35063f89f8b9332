"""Expense service for business rules."""

from __future__ import annotations

import sqlite3
import uuid
from typing import Optional

from tiling_suite.domain.models import Expense, Settings
from tiling_suite.repositories.expense_repo import ExpenseRepo
from tiling_suite.repositories.mappers import expense_to_data
from tiling_suite.services.errors import NotFoundError, ValidationError
from tiling_suite.services.sync_service import EXPENSES, RemoteSync

DEFAULT_CATEGORY = "Other"


class ExpenseService:
    """Service for expense operations."""

    def __init__(
        self, connection: sqlite3.Connection, sync: Optional[RemoteSync] = None
    ) -> None:
        self._connection = connection
        self._repo = ExpenseRepo(connection)
        self._sync = sync

    def list_expenses(self, start_date: str, end_date: str) -> list[Expense]:
        return self._repo.list_by_period(start_date, end_date)

    def list_all(self) -> list[Expense]:
        return self._repo.list_all()

    def list_categories(self, settings: Settings) -> list[str]:
        """Configured categories first, then any others already in use."""
        categories = list(settings.default_expense_categories)
        for category in self._repo.list_categories():
            if category not in categories:
                categories.append(category)
        return categories

    def get_total_by_period(self, start_date: str, end_date: str) -> float:
        return self._repo.get_total_by_period(start_date, end_date)

    def get_expense(self, expense_id: str) -> Expense:
        expense = self._repo.get_by_id(expense_id)
        if expense is None:
            raise NotFoundError("Expense not found.")
        return expense

    def create_expense(
        self,
        date: str,
        category: Optional[str],
        description: Optional[str],
        amount: float,
        quotation_id: Optional[str] = None,
    ) -> Expense:
        self._validate(date, amount)
        expense = Expense(
            id=str(uuid.uuid4()),
            date=date,
            category=(category or "").strip() or DEFAULT_CATEGORY,
            description=(description or "").strip(),
            amount=float(amount),
            quotation_id=quotation_id or None,
        )
        return self._save(expense)

    def update_expense(
        self,
        expense_id: str,
        date: str,
        category: Optional[str],
        description: Optional[str],
        amount: float,
        quotation_id: Optional[str] = None,
    ) -> Expense:
        self._validate(date, amount)
        self.get_expense(expense_id)
        expense = Expense(
            id=expense_id,
            date=date,
            category=(category or "").strip() or DEFAULT_CATEGORY,
            description=(description or "").strip(),
            amount=float(amount),
            quotation_id=quotation_id or None,
        )
        return self._save(expense)

    def delete_expense(self, expense_id: str) -> bool:
        self.get_expense(expense_id)
        with self._connection:
            deleted = self._repo.delete(expense_id)
        if self._sync is not None:
            self._sync.delete(EXPENSES, expense_id)
        return deleted

    def _save(self, expense: Expense) -> Expense:
        with self._connection:
            self._repo.upsert(expense)
        if self._sync is not None:
            self._sync.upsert(EXPENSES, expense.id, expense_to_data(expense))
        return expense

    def _validate(self, date: str, amount: float) -> None:
        if not date:
            raise ValidationError("Expense date is required.")
        if amount is None or amount <= 0:
            raise ValidationError("Expense amount must be greater than zero.")
