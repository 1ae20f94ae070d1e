"""
Data Models Package

This package contains all Pydantic models used by the Yosan store.
Every row, change event and derived result conforms to these schemas.
"""

from yosan.models.entities import (
    AppSettings,
    BudgetCategory,
    Expense,
    Priority,
    Project,
    ProjectStatus,
    Record,
    Task,
)
from yosan.models.events import ChangeEvent, ChangeType
from yosan.models.analytics import (
    AnalyticsSummary,
    CategoryBreakdown,
    CategoryShare,
    DailyTotal,
    MonthWindow,
    SpendingOverview,
    WeeklySpend,
)
from yosan.models.validation import ValidationIssue, ValidationResult

__all__ = [
    # Entities
    "AppSettings",
    "BudgetCategory",
    "Expense",
    "Priority",
    "Project",
    "ProjectStatus",
    "Record",
    "Task",
    # Change events
    "ChangeEvent",
    "ChangeType",
    # Analytics results
    "AnalyticsSummary",
    "CategoryBreakdown",
    "CategoryShare",
    "DailyTotal",
    "MonthWindow",
    "SpendingOverview",
    "WeeklySpend",
    # Validation
    "ValidationIssue",
    "ValidationResult",
]
