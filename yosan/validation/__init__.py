"""Budget validation package."""

from yosan.analytics.views import validate_month_start_day
from yosan.validation.validator import BudgetValidator

__all__ = [
    "BudgetValidator",
    "validate_month_start_day",
]
