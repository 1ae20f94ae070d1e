"""Expense service."""

from datetime import date, datetime
from typing import Any, Optional

from yosan.analytics.views import coerce_id
from yosan.models.entities import Expense
from yosan.queries.catalog import (
    query_all_expenses,
    query_expenses_in_range,
    query_month_expenses,
)
from yosan.services.base import EntityService
from yosan.store import EXPENSES_TABLE


class ExpenseService(EntityService[Expense]):
    table_name = EXPENSES_TABLE.name

    def list_all(self) -> list[Expense]:
        """Every expense, newest first."""
        return query_all_expenses(self.db)

    def list_in_range(self, start: date | datetime, end: date | datetime) -> list[Expense]:
        """Expenses dated within [start, end], newest first."""
        return query_expenses_in_range(self.db, start, end)

    def list_for_month(self, today: Optional[date | datetime] = None) -> list[Expense]:
        """Expenses in the budgeting month containing today."""
        return query_month_expenses(self.db, today)

    def list_by_category(self, category_id: Any) -> list[Expense]:
        key = coerce_id(category_id)
        if key is None:
            return []
        return self.table.list(
            where={"category_id": key},
            order_by="date",
            descending=True,
        )
