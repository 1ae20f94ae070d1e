"""
Query Catalog

Every read the UI needs, as pure functions of the database plus
dependencies, and a LiveQueries facade that subscribes them.

The functions are usable directly for one-off reads:
    expenses = query_all_expenses(db)
"""

from datetime import date, datetime, time
from typing import Any, Callable, Optional

from yosan.analytics.engine import build_summary
from yosan.analytics.views import coerce_id, filter_expenses_in_window, get_month_date_range
from yosan.models.analytics import AnalyticsSummary
from yosan.models.entities import AppSettings, BudgetCategory, Expense, Project, Task
from yosan.queries.live import Listener, LiveQueryManager, Subscription
from yosan.store import Database

DEFAULT_MONTH_START_DAY = 1


# =============================================================================
# QUERY FUNCTIONS
# =============================================================================

def query_settings(db: Database) -> Optional[AppSettings]:
    return db.settings.first()


def query_categories(db: Database) -> list[BudgetCategory]:
    return db.categories.list()


def _day_bound(value: date | datetime, end: bool) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time.max if end else time.min)


def query_expenses_in_range(
    db: Database,
    start: date | datetime,
    end: date | datetime,
) -> list[Expense]:
    """Expenses dated within [start, end], newest first. Plain dates cover whole days."""
    return db.expenses.list(
        between=("date", _day_bound(start, end=False), _day_bound(end, end=True)),
        order_by="date",
        descending=True,
    )


def query_month_expenses(db: Database, today: Optional[date | datetime] = None) -> list[Expense]:
    """
    Expenses in the budgeting month containing today.

    The window follows the settings row's month start day, so changing
    that setting re-runs this query.
    """
    settings = db.settings.first()
    start_day = settings.month_start_day if settings is not None else DEFAULT_MONTH_START_DAY
    window = get_month_date_range(start_day, today or db.now())
    return query_expenses_in_range(db, window.start, window.end)


def query_all_expenses(db: Database) -> list[Expense]:
    return db.expenses.list(order_by="date", descending=True)


def query_projects(db: Database) -> list[Project]:
    return db.projects.list(order_by="created_at", descending=True)


def query_tasks(db: Database, project_id: Any = None) -> list[Task]:
    """Tasks in manual order, optionally limited to one project."""
    if project_id is None:
        return db.tasks.list(order_by="order")
    target = coerce_id(project_id)
    if target is None:
        return []
    return db.tasks.list(where={"project_id": target}, order_by="order")


def query_all_tasks(db: Database) -> list[Task]:
    return db.tasks.list()


def query_analytics(db: Database, today: Optional[date | datetime] = None) -> AnalyticsSummary:
    """Dashboard summary for the current budgeting month."""
    now = today or db.now()
    settings = db.settings.first()
    start_day = settings.month_start_day if settings is not None else DEFAULT_MONTH_START_DAY
    window = get_month_date_range(start_day, now)
    expenses = filter_expenses_in_window(db.expenses.list(), window)
    return build_summary(
        settings,
        db.categories.list(),
        expenses,
        db.tasks.list(),
        today=now,
        month_window=window,
    )


# =============================================================================
# LIVE ENTRY POINTS
# =============================================================================

class LiveQueries:
    """
    One live entry point per derived read.

    Usage:
        live = LiveQueries(manager)
        sub = live.categories(listener=render_categories)
        sub.current   # [] until the first result arrives
    """

    def __init__(self, manager: LiveQueryManager):
        self.manager = manager

    def _subscribe(
        self,
        query_fn: Callable[..., Any],
        deps: tuple[Any, ...],
        listener: Optional[Listener],
        default_factory: Optional[Callable[[], Any]],
    ) -> Subscription[Any]:
        return self.manager.subscribe(
            query_fn,
            deps=deps,
            listener=listener,
            default_factory=default_factory,
            name=query_fn.__name__.removeprefix("query_"),
        )

    def settings(self, listener: Optional[Listener] = None) -> Subscription[AppSettings]:
        return self._subscribe(query_settings, (), listener, None)

    def categories(self, listener: Optional[Listener] = None) -> Subscription[list[BudgetCategory]]:
        return self._subscribe(query_categories, (), listener, list)

    def expenses_in_range(
        self,
        start: date | datetime,
        end: date | datetime,
        listener: Optional[Listener] = None,
    ) -> Subscription[list[Expense]]:
        return self._subscribe(query_expenses_in_range, (start, end), listener, list)

    def month_expenses(self, listener: Optional[Listener] = None) -> Subscription[list[Expense]]:
        return self._subscribe(query_month_expenses, (), listener, list)

    def all_expenses(self, listener: Optional[Listener] = None) -> Subscription[list[Expense]]:
        return self._subscribe(query_all_expenses, (), listener, list)

    def projects(self, listener: Optional[Listener] = None) -> Subscription[list[Project]]:
        return self._subscribe(query_projects, (), listener, list)

    def tasks(
        self,
        project_id: Any = None,
        listener: Optional[Listener] = None,
    ) -> Subscription[list[Task]]:
        return self._subscribe(query_tasks, (project_id,), listener, list)

    def all_tasks(self, listener: Optional[Listener] = None) -> Subscription[list[Task]]:
        return self._subscribe(query_all_tasks, (), listener, list)

    def analytics(
        self,
        today: Optional[date | datetime] = None,
        listener: Optional[Listener] = None,
    ) -> Subscription[AnalyticsSummary]:
        return self._subscribe(query_analytics, (today,), listener, None)
