"""
Rebalancing and Analytics Engine

Pure computations over rows delivered by live queries. Each function takes
the current collections and returns fresh values; nothing is cached, so
re-running after every write is always correct.

DESIGN DECISION: No NaN or Infinity ever leaves this module.
Every division has an explicit fallback:
- rebalancing with zero total percentage -> equal split
- percent spent with zero allocation -> 0
- savings rate / progress with zero budget -> 0
- productivity with zero tasks -> 100 (nothing tracked counts as done)
"""

import math
from collections import defaultdict
from datetime import date, datetime, timedelta
from typing import Iterable, Optional, Sequence

from yosan.analytics.views import (
    coerce_id,
    get_completed_count,
    get_pending_count,
    get_spent_by_category,
    get_total_spent,
)
from yosan.models.analytics import (
    AnalyticsSummary,
    CategoryBreakdown,
    CategoryShare,
    DailyTotal,
    MonthWindow,
    SpendingOverview,
    WeeklySpend,
)
from yosan.models.entities import (
    AppSettings,
    BudgetCategory,
    Expense,
    Project,
    ProjectStatus,
    Task,
)
from yosan.store.interface import InvalidRangeError

TIME_RANGES: dict[str, int] = {"7d": 7, "30d": 30, "90d": 90}
UNCATEGORIZED = "Other"
WEEKS_SHOWN = 4


# =============================================================================
# NUMERIC HELPERS
# =============================================================================

def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves toward positive infinity (2.5 -> 3, -2.5 -> -2)."""
    if not math.isfinite(value):
        return 0
    return math.floor(value + 0.5)


def _finite(value: float) -> float:
    return value if math.isfinite(value) else 0.0


def _as_date(value: Optional[date | datetime]) -> date:
    if value is None:
        return date.today()
    if isinstance(value, datetime):
        return value.date()
    return value


# =============================================================================
# REBALANCING
# =============================================================================

def allocation_for(percentage: float, total_budget: float) -> int:
    """Allocated amount for one category's share of the budget."""
    return round_half_up(percentage * total_budget / 100)


def rebalance_allocations(
    categories: Sequence[BudgetCategory],
    total_budget: float,
) -> list[BudgetCategory]:
    """
    Normalize percentages to sum to 100 and recompute allocations.

    Each category gets percentage / P * 100 where P is the current sum.
    When P is already 100 (within float noise) percentages are kept as-is,
    which makes rebalancing a fixed point. When P is 0 every category
    gets an equal share.

    Returns updated copies in input order; inputs are not modified.
    """
    if not categories:
        return []

    total_percentage = sum(c.percentage for c in categories)
    if total_percentage <= 0:
        equal = 100 / len(categories)
        percentages = [equal] * len(categories)
    elif math.isclose(total_percentage, 100, rel_tol=0, abs_tol=1e-9):
        percentages = [c.percentage for c in categories]
    else:
        # Float noise can push a lone share just past 100
        percentages = [min(100.0, c.percentage * 100 / total_percentage) for c in categories]

    return [
        category.model_copy(update={
            "percentage": percentage,
            "allocated": allocation_for(percentage, total_budget),
        })
        for category, percentage in zip(categories, percentages)
    ]


# =============================================================================
# CATEGORY SPEND
# =============================================================================

def category_breakdown(
    categories: Iterable[BudgetCategory],
    expenses: Sequence[Expense],
) -> list[CategoryBreakdown]:
    """Spent, remaining and percent spent for every category."""
    rows = []
    for category in categories:
        spent = get_spent_by_category(expenses, category.id)
        allocated = _finite(category.allocated)
        rows.append(CategoryBreakdown(
            category=category,
            spent=spent,
            remaining=allocated - spent,
            percent_spent=_finite(spent / allocated * 100) if allocated else 0.0,
        ))
    return rows


def savings_rate(total_budget: float, total_spent: float) -> float:
    """Unspent share of the budget in percent; 0 without a budget."""
    if total_budget <= 0:
        return 0.0
    return _finite((total_budget - total_spent) / total_budget * 100)


def budget_progress(total_budget: float, total_spent: float) -> float:
    """Spent share of the budget in percent; 0 without a budget."""
    if total_budget <= 0:
        return 0.0
    return _finite(total_spent / total_budget * 100)


def _category_names(categories: Iterable[BudgetCategory]) -> dict[int, str]:
    return {c.id: c.name for c in categories if c.id is not None}


def _shares(
    expenses: Iterable[Expense],
    categories: Iterable[BudgetCategory],
) -> list[CategoryShare]:
    names = _category_names(categories)
    totals: dict[str, float] = defaultdict(float)
    for expense in expenses:
        name = names.get(coerce_id(expense.category_id), UNCATEGORIZED)
        totals[name] += expense.amount
    grand_total = sum(totals.values())
    shares = [
        CategoryShare(
            name=name,
            value=value,
            percent=_finite(value / grand_total * 100) if grand_total else 0.0,
        )
        for name, value in totals.items()
    ]
    shares.sort(key=lambda s: (-s.value, s.name))
    return shares


def top_categories(
    expenses: Iterable[Expense],
    categories: Iterable[BudgetCategory],
    limit: int = 4,
) -> list[CategoryShare]:
    """Categories ranked by spend; expenses with unknown categories count as 'Other'."""
    return _shares(expenses, categories)[: max(0, limit)]


# =============================================================================
# TIME BUCKETS
# =============================================================================

def weekly_spending(
    expenses: Iterable[Expense],
    today: Optional[date | datetime] = None,
) -> list[WeeklySpend]:
    """
    Spend for the trailing four Sunday-aligned weeks.

    'Week 4' is the week containing today; 'Week 1' started 21 days
    before it. Each week covers Sunday 00:00 through Saturday 23:59:59.
    """
    day = _as_date(today)
    days_since_sunday = (day.weekday() + 1) % 7
    current_week_start = day - timedelta(days=days_since_sunday)

    expense_list = list(expenses)
    weeks = []
    for offset in range(WEEKS_SHOWN - 1, -1, -1):
        start = current_week_start - timedelta(days=7 * offset)
        end = start + timedelta(days=6)
        spent = sum(
            (e.amount for e in expense_list if start <= e.date.date() <= end),
            0.0,
        )
        weeks.append(WeeklySpend(
            week=f"Week {WEEKS_SHOWN - offset}",
            start=start,
            end=end,
            spent=spent,
        ))
    return weeks


def daily_totals(
    expenses: Iterable[Expense],
    days: int,
    today: Optional[date | datetime] = None,
) -> list[DailyTotal]:
    """
    Spend per calendar day for the trailing `days` days, oldest first.

    Days without spend are present with amount 0.
    """
    if days < 1:
        raise InvalidRangeError(f"Day count must be positive, got {days}")
    last = _as_date(today)
    first = last - timedelta(days=days - 1)
    totals: dict[date, float] = {first + timedelta(days=i): 0.0 for i in range(days)}
    for expense in expenses:
        key = expense.date.date()
        if key in totals:
            totals[key] += expense.amount
    return [DailyTotal(day=key, amount=amount) for key, amount in totals.items()]


def spending_overview(
    expenses: Iterable[Expense],
    categories: Iterable[BudgetCategory],
    time_range: str = "30d",
    today: Optional[date | datetime] = None,
) -> SpendingOverview:
    """
    Spend statistics over a trailing 7, 30 or 90 day range.

    Raises:
        InvalidRangeError: For a time range other than 7d, 30d or 90d
    """
    if time_range not in TIME_RANGES:
        raise InvalidRangeError(
            f"Unknown time range {time_range!r}; expected one of {sorted(TIME_RANGES)}"
        )
    days = TIME_RANGES[time_range]
    expense_list = list(expenses)
    daily = daily_totals(expense_list, days, today)
    first, last = daily[0].day, daily[-1].day
    in_range = [e for e in expense_list if first <= e.date.date() <= last]

    total = sum(d.amount for d in daily)
    return SpendingOverview(
        time_range=time_range,
        total_spend=total,
        average_daily=total / len(daily),
        highest_day=max((d.amount for d in daily), default=0.0),
        daily=daily,
        categories=_shares(in_range, categories),
    )


# =============================================================================
# TASKS AND PROJECTS
# =============================================================================

def productivity_score(tasks: Sequence[Task]) -> int:
    """
    Completed share of all tasks, 0-100.

    With no tasks at all the score is 100: nothing tracked means nothing
    left undone.
    """
    total = len(tasks)
    if total == 0:
        return 100
    return round_half_up(get_completed_count(tasks) / total * 100)


def active_project_count(projects: Iterable[Project]) -> int:
    return sum(1 for p in projects if p.status == ProjectStatus.ACTIVE)


# =============================================================================
# SUMMARY
# =============================================================================

def build_summary(
    settings: Optional[AppSettings],
    categories: Sequence[BudgetCategory],
    expenses: Sequence[Expense],
    tasks: Sequence[Task],
    today: Optional[date | datetime] = None,
    month_window: Optional[MonthWindow] = None,
) -> AnalyticsSummary:
    """
    Compute every dashboard figure from one consistent set of rows.

    `expenses` should already be limited to the budgeting month; the
    window is carried through to the result for display only.
    """
    total_budget = _finite(settings.total_budget) if settings is not None else 0.0
    total_spent = get_total_spent(expenses)
    return AnalyticsSummary(
        total_budget=total_budget,
        total_spent=total_spent,
        total_saved=total_budget - total_spent,
        savings_rate=savings_rate(total_budget, total_spent),
        category_breakdown=category_breakdown(categories, expenses),
        weekly_data=weekly_spending(expenses, today),
        productivity_score=productivity_score(tasks),
        completed_tasks=get_completed_count(tasks),
        pending_tasks=get_pending_count(tasks),
        month_window=month_window,
    )
