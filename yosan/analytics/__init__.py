"""
Analytics Package

Pure derived views, the rebalancing/analytics engine and currency
formatting. Everything here works on rows already read from the store.
"""

from yosan.analytics.views import (
    coerce_id,
    filter_expenses_in_window,
    filter_tasks_by_project,
    get_completed_count,
    get_expenses_by_category,
    get_month_date_range,
    get_overdue_tasks,
    get_pending_count,
    get_spent_by_category,
    get_today_tasks,
    get_total_spent,
    sort_tasks,
    validate_month_start_day,
)
from yosan.analytics.engine import (
    TIME_RANGES,
    active_project_count,
    allocation_for,
    budget_progress,
    build_summary,
    category_breakdown,
    daily_totals,
    productivity_score,
    rebalance_allocations,
    round_half_up,
    savings_rate,
    spending_overview,
    top_categories,
    weekly_spending,
)
from yosan.analytics.formatting import format_currency

__all__ = [
    # Views
    "coerce_id",
    "filter_expenses_in_window",
    "filter_tasks_by_project",
    "get_completed_count",
    "get_expenses_by_category",
    "get_month_date_range",
    "get_overdue_tasks",
    "get_pending_count",
    "get_spent_by_category",
    "get_today_tasks",
    "get_total_spent",
    "sort_tasks",
    "validate_month_start_day",
    # Engine
    "TIME_RANGES",
    "active_project_count",
    "allocation_for",
    "budget_progress",
    "build_summary",
    "category_breakdown",
    "daily_totals",
    "productivity_score",
    "rebalance_allocations",
    "round_half_up",
    "savings_rate",
    "spending_overview",
    "top_categories",
    "weekly_spending",
    # Formatting
    "format_currency",
]
