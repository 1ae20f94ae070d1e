"""
Derived-View Functions

Pure functions over rows already delivered by live queries:
category spend lookups, the budgeting month window, and task filters.
None of them touch the store.

DESIGN DECISION: Ids are integers everywhere in the store. Values coming
from other layers (form fields, URL params, a sync backend) may arrive as
strings, so every comparison goes through `coerce_id`. A value that is not
a whole number never matches anything, which makes an unknown category
spend 0 instead of raising.
"""

import re
from datetime import date, datetime, time, timedelta
from typing import Any, Iterable, Optional

from dateutil.relativedelta import relativedelta

from yosan.models.analytics import MonthWindow
from yosan.models.entities import Expense, Task
from yosan.store.interface import InvalidRangeError

_INT_PATTERN = re.compile(r"-?[0-9]+")


# =============================================================================
# ID COERCION
# =============================================================================

def coerce_id(value: Any) -> Optional[int]:
    """
    Canonicalize an id to int.

    - ints pass through (bools are rejected, True is not id 1)
    - integral floats convert (3.0 -> 3)
    - numeric strings convert after stripping (" 7 " -> 7)
    - anything else returns None
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        text = value.strip()
        if _INT_PATTERN.fullmatch(text):
            return int(text)
        return None
    return None


# =============================================================================
# EXPENSE VIEWS
# =============================================================================

def get_expenses_by_category(expenses: Iterable[Expense], category_id: Any) -> list[Expense]:
    """Expenses whose category matches after id coercion."""
    target = coerce_id(category_id)
    if target is None:
        return []
    return [e for e in expenses if coerce_id(e.category_id) == target]


def get_spent_by_category(expenses: Iterable[Expense], category_id: Any) -> float:
    """Sum of amounts for one category; 0 for unknown or malformed ids."""
    return sum((e.amount for e in get_expenses_by_category(expenses, category_id)), 0.0)


def get_total_spent(expenses: Iterable[Expense]) -> float:
    return sum((e.amount for e in expenses), 0.0)


# =============================================================================
# MONTH WINDOW
# =============================================================================

def validate_month_start_day(value: Any) -> int:
    """
    Check a month start day is a whole number in 1..31.

    Raises:
        InvalidRangeError: For anything else
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidRangeError(f"Month start day must be an integer, got {value!r}")
    if not 1 <= value <= 31:
        raise InvalidRangeError(f"Month start day must be between 1 and 31, got {value}")
    return value


def _window_start(first_of_month: date, start_day: int, months: int = 0) -> date:
    # relativedelta clamps day=31 to the last day of shorter months
    return first_of_month + relativedelta(months=months, day=start_day)


def get_month_date_range(
    month_start_day: int = 1,
    today: Optional[date | datetime] = None,
) -> MonthWindow:
    """
    Resolve the budgeting month containing `today`.

    If today is on or after this calendar month's start day, the window
    runs from that day to the day before next month's start day.
    Otherwise it runs from the previous month's start day to the day
    before this month's start day.

    A start day beyond a month's length clamps to the month's last day
    (31 -> Feb 28/29, Apr 30), so consecutive windows always tile the
    calendar with no gaps or overlaps.

    Raises:
        InvalidRangeError: If month_start_day is outside 1..31
    """
    start_day = validate_month_start_day(month_start_day)
    if today is None:
        today = date.today()
    elif isinstance(today, datetime):
        today = today.date()

    first_of_month = today.replace(day=1)
    this_start = _window_start(first_of_month, start_day)
    if today >= this_start:
        start = this_start
        end = _window_start(first_of_month, start_day, months=1) - timedelta(days=1)
    else:
        start = _window_start(first_of_month, start_day, months=-1)
        end = this_start - timedelta(days=1)
    return MonthWindow(start=start, end=end)


def filter_expenses_in_window(expenses: Iterable[Expense], window: MonthWindow) -> list[Expense]:
    return [e for e in expenses if window.contains(e.date)]


# =============================================================================
# TASK VIEWS
# =============================================================================

def _midnight(now: Optional[datetime]) -> datetime:
    now = now or datetime.now()
    return datetime.combine(now.date(), time.min)


def get_today_tasks(tasks: Iterable[Task], now: Optional[datetime] = None) -> list[Task]:
    """Tasks due in [today 00:00, tomorrow 00:00), completed or not."""
    start = _midnight(now)
    end = start + timedelta(days=1)
    return [t for t in tasks if t.due_date is not None and start <= t.due_date < end]


def get_overdue_tasks(tasks: Iterable[Task], now: Optional[datetime] = None) -> list[Task]:
    """Incomplete tasks due before today 00:00."""
    start = _midnight(now)
    return [
        t for t in tasks
        if not t.completed and t.due_date is not None and t.due_date < start
    ]


def get_completed_count(tasks: Iterable[Task]) -> int:
    return sum(1 for t in tasks if t.completed)


def get_pending_count(tasks: Iterable[Task]) -> int:
    return sum(1 for t in tasks if not t.completed)


def filter_tasks_by_project(tasks: Iterable[Task], project_id: Any) -> list[Task]:
    target = coerce_id(project_id)
    if target is None:
        return []
    return [t for t in tasks if coerce_id(t.project_id) == target]


def sort_tasks(tasks: Iterable[Task]) -> list[Task]:
    """Manual order first, id as tie-break."""
    return sorted(tasks, key=lambda t: (t.order, t.id if t.id is not None else 0))
