from yosan.queries.catalog import (
    LiveQueries,
    query_all_expenses,
    query_all_tasks,
    query_analytics,
    query_categories,
    query_expenses_in_range,
    query_month_expenses,
    query_projects,
    query_settings,
    query_tasks,
)
from yosan.queries.live import LiveQueryManager, Subscription

__all__ = [
    "LiveQueries",
    "LiveQueryManager",
    "Subscription",
    "query_all_expenses",
    "query_all_tasks",
    "query_analytics",
    "query_categories",
    "query_expenses_in_range",
    "query_month_expenses",
    "query_projects",
    "query_settings",
    "query_tasks",
]
