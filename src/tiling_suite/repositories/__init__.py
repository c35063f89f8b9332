"""Repositories for data access."""

from tiling_suite.repositories.client_repo import ClientRepo
from tiling_suite.repositories.expense_repo import ExpenseRepo
from tiling_suite.repositories.invoice_repo import InvoiceRepo
from tiling_suite.repositories.quotation_repo import QuotationRepo
from tiling_suite.repositories.record_repo import JsonRecordRepo

__all__ = [
    "ClientRepo",
    "ExpenseRepo",
    "InvoiceRepo",
    "JsonRecordRepo",
    "QuotationRepo",
]
