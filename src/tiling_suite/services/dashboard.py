"""Business metrics over quotations, invoices and expenses."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Optional, Sequence

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

from tiling_suite.domain.models import (
    Expense,
    Invoice,
    InvoiceStatus,
    Quotation,
    QuotationStatus,
    Settings,
)
from tiling_suite.services.calculation import calculate_totals, to_number

ALL_TIME = "all"
THIS_MONTH = "this_month"

EXPENSE_COLORS = ("#3B82F6", "#8B5CF6", "#EC4899", "#F59E0B", "#10B981", "#6366F1", "#14B8A6")
REVENUE_COLOR = "#EAB308"
EXPENSES_COLOR = "#94A3B8"
MONTHS_TO_SHOW = 6
UNCATEGORISED = "Other"


@dataclass(frozen=True)
class BreakdownSlice:
    label: str
    value: float
    color: str


@dataclass(frozen=True)
class MonthlyPerformance:
    key: str
    label: str
    revenue: float = 0.0
    expenses: float = 0.0


@dataclass(frozen=True)
class DashboardMetrics:
    total_quotations: int = 0
    acceptance_rate: float = 0.0
    total_revenue: float = 0.0
    paid_this_month: float = 0.0
    total_expenses: float = 0.0
    net_profit: float = 0.0
    expense_breakdown: tuple[BreakdownSlice, ...] = ()
    monthly_performance: tuple[MonthlyPerformance, ...] = ()
    total_quoted: float = 0.0
    invoices_generated: int = 0


@dataclass(frozen=True)
class FilteredRecords:
    quotations: list[Quotation] = field(default_factory=list)
    invoices: list[Invoice] = field(default_factory=list)
    expenses: list[Expense] = field(default_factory=list)


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO date or datetime; ``None`` when missing or malformed."""
    if not value:
        return None
    try:
        parsed = date_parser.isoparse(value)
    except (TypeError, ValueError):
        return None
    return parsed.replace(tzinfo=None)


def range_start(date_range: str, now: datetime) -> Optional[datetime]:
    """First instant included by ``date_range``; ``None`` means no lower bound.

    ``date_range`` is ``all``, ``this_month`` or a number of days.
    """
    if date_range == ALL_TIME:
        return None
    if date_range == THIS_MONTH:
        return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    try:
        days = int(date_range)
    except (TypeError, ValueError):
        days = 0
    return now - relativedelta(days=days)


def _on_or_after(value: Optional[str], start: datetime) -> bool:
    timestamp = parse_timestamp(value)
    return timestamp is not None and timestamp >= start


def filter_by_range(
    quotations: Sequence[Quotation],
    invoices: Sequence[Invoice],
    expenses: Sequence[Expense],
    date_range: str = ALL_TIME,
    now: Optional[datetime] = None,
) -> FilteredRecords:
    start = range_start(date_range, now or datetime.now())
    if start is None:
        return FilteredRecords(list(quotations), list(invoices), list(expenses))
    return FilteredRecords(
        [quotation for quotation in quotations if _on_or_after(quotation.date, start)],
        [invoice for invoice in invoices if _on_or_after(invoice.invoice_date, start)],
        [expense for expense in expenses if _on_or_after(expense.date, start)],
    )


def _month_key(moment: datetime) -> str:
    return f"{moment.year}-{moment.month:02d}"


def _paid_at(invoice: Invoice) -> Optional[datetime]:
    return parse_timestamp(invoice.payment_date) or parse_timestamp(invoice.invoice_date)


def expense_breakdown(expenses: Iterable[Expense]) -> tuple[BreakdownSlice, ...]:
    """Spend per category, largest first, each with a palette colour."""
    totals: dict[str, float] = defaultdict(float)
    for expense in expenses:
        totals[expense.category or UNCATEGORISED] += to_number(expense.amount)
    ordered = sorted(totals.items(), key=lambda item: item[1], reverse=True)
    return tuple(
        BreakdownSlice(label, value, EXPENSE_COLORS[index % len(EXPENSE_COLORS)])
        for index, (label, value) in enumerate(ordered)
    )


def monthly_performance(
    paid_invoices: Iterable[Invoice],
    expenses: Iterable[Expense],
    settings: Settings,
    now: datetime,
    months: int = MONTHS_TO_SHOW,
) -> tuple[MonthlyPerformance, ...]:
    first_of_month = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    month_starts = [first_of_month - relativedelta(months=offset) for offset in range(months - 1, -1, -1)]
    revenue = {_month_key(start): 0.0 for start in month_starts}
    spent = dict.fromkeys(revenue, 0.0)

    for invoice in paid_invoices:
        paid_at = _paid_at(invoice)
        if paid_at is not None and _month_key(paid_at) in revenue:
            revenue[_month_key(paid_at)] += calculate_totals(invoice, settings).grand_total
    for expense in expenses:
        spent_on = parse_timestamp(expense.date)
        if spent_on is not None and _month_key(spent_on) in spent:
            spent[_month_key(spent_on)] += to_number(expense.amount)

    return tuple(
        MonthlyPerformance(
            key=_month_key(start),
            label=start.strftime("%b"),
            revenue=revenue[_month_key(start)],
            expenses=spent[_month_key(start)],
        )
        for start in month_starts
    )


def compute_metrics(
    quotations: Sequence[Quotation],
    invoices: Sequence[Invoice],
    expenses: Sequence[Expense],
    settings: Settings,
    date_range: str = ALL_TIME,
    now: Optional[datetime] = None,
) -> DashboardMetrics:
    """All dashboard figures for the records inside ``date_range``."""
    now = now or datetime.now()
    records = filter_by_range(quotations, invoices, expenses, date_range, now)
    start_of_month = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)

    total_quotations = len(records.quotations)
    accepted = sum(
        1
        for quotation in records.quotations
        if quotation.status in (QuotationStatus.ACCEPTED, QuotationStatus.INVOICED)
    )
    acceptance_rate = accepted / total_quotations * 100 if total_quotations else 0.0

    paid = [invoice for invoice in records.invoices if invoice.status == InvoiceStatus.PAID]
    total_revenue = sum((calculate_totals(invoice, settings).grand_total for invoice in paid), 0.0)
    paid_this_month = 0.0
    for invoice in paid:
        paid_at = _paid_at(invoice)
        if paid_at is not None and paid_at >= start_of_month:
            paid_this_month += calculate_totals(invoice, settings).grand_total

    total_expenses = sum((to_number(expense.amount) for expense in records.expenses), 0.0)
    total_quoted = sum(
        (calculate_totals(quotation, settings).grand_total for quotation in records.quotations),
        0.0,
    )

    return DashboardMetrics(
        total_quotations=total_quotations,
        acceptance_rate=acceptance_rate,
        total_revenue=total_revenue,
        paid_this_month=paid_this_month,
        total_expenses=total_expenses,
        net_profit=total_revenue - total_expenses,
        expense_breakdown=expense_breakdown(records.expenses),
        monthly_performance=monthly_performance(paid, records.expenses, settings, now),
        total_quoted=total_quoted,
        invoices_generated=len(records.invoices),
    )
