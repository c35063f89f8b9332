"""Dashboard charts rendered off-screen with matplotlib."""

from __future__ import annotations

from pathlib import Path

from matplotlib.backends.backend_agg import FigureCanvasAgg
from matplotlib.figure import Figure
from matplotlib.ticker import FuncFormatter

from tiling_suite.services.dashboard import EXPENSES_COLOR, REVENUE_COLOR, DashboardMetrics
from tiling_suite.utils.documents import format_currency

BAR_WIDTH = 0.38
CHART_DPI = 120


def build_dashboard_figure(metrics: DashboardMetrics, currency_symbol: str = "₦") -> Figure:
    """Monthly revenue/expense bars beside the expense breakdown pie."""
    figure = Figure(figsize=(11, 4.2))
    FigureCanvasAgg(figure)
    bars_axis, pie_axis = figure.subplots(1, 2, gridspec_kw={"width_ratios": [3, 2]})

    months = metrics.monthly_performance
    positions = range(len(months))
    bars_axis.bar(
        [index - BAR_WIDTH / 2 for index in positions],
        [month.revenue for month in months],
        width=BAR_WIDTH,
        color=REVENUE_COLOR,
        label="Revenue",
    )
    bars_axis.bar(
        [index + BAR_WIDTH / 2 for index in positions],
        [month.expenses for month in months],
        width=BAR_WIDTH,
        color=EXPENSES_COLOR,
        label="Expenses",
    )
    bars_axis.set_xticks(list(positions))
    bars_axis.set_xticklabels([month.label for month in months])
    bars_axis.set_ylim(bottom=0)
    bars_axis.yaxis.set_major_formatter(
        FuncFormatter(lambda value, _: format_currency(value, currency_symbol))
    )
    bars_axis.set_title("Monthly Performance")
    bars_axis.legend(loc="upper left")

    slices = [entry for entry in metrics.expense_breakdown if entry.value > 0]
    pie_axis.set_title("Expense Breakdown")
    if slices:
        pie_axis.pie(
            [entry.value for entry in slices],
            labels=[entry.label for entry in slices],
            colors=[entry.color for entry in slices],
            autopct="%1.0f%%",
            startangle=90,
        )
        pie_axis.axis("equal")
    else:
        pie_axis.axis("off")
        pie_axis.text(0.5, 0.5, "No expenses", ha="center", va="center")

    figure.tight_layout()
    return figure


def save_dashboard_chart(
    metrics: DashboardMetrics, output_path: Path, currency_symbol: str = "₦"
) -> Path:
    figure = build_dashboard_figure(metrics, currency_symbol)
    figure.savefig(str(output_path), format="png", dpi=CHART_DPI)
    return output_path
