"""
Budget category service.

Percentages and allocations are kept in step here: every write that
changes a percentage or the budget recomputes the affected allocations
from the same rounding rule the analytics engine uses.
"""

from __future__ import annotations

from typing import Any, Optional

from yosan.analytics.engine import allocation_for, rebalance_allocations
from yosan.models.entities import BudgetCategory
from yosan.services.base import EntityService
from yosan.store import CATEGORIES_TABLE


class CategoryService(EntityService[BudgetCategory]):
    table_name = CATEGORIES_TABLE.name

    def list(self) -> list[BudgetCategory]:
        return self.table.list()

    def _budget(self, total_budget: Optional[float]) -> float:
        if total_budget is not None:
            return total_budget
        settings = self.db.settings.first()
        return settings.total_budget if settings is not None else 0.0

    def rebalance(self, total_budget: Optional[float] = None) -> list[BudgetCategory]:
        """
        Normalize percentages to 100 and recompute every allocation.

        Uses the settings budget unless one is given. All rows are
        rewritten inside one batch, so observers see a single change.
        """
        categories = self.table.list()
        if not categories:
            return []

        rebalanced = rebalance_allocations(categories, self._budget(total_budget))
        with self.db.batch():
            return [
                self.table.update(category.id, {
                    "percentage": category.percentage,
                    "allocated": category.allocated,
                })
                for category in rebalanced
            ]

    def set_percentage(
        self,
        category_id: Any,
        percentage: float,
        total_budget: Optional[float] = None,
    ) -> Optional[BudgetCategory]:
        """Change one category's share and its allocation, leaving the others alone."""
        return self.update(
            category_id,
            percentage=percentage,
            allocated=allocation_for(percentage, self._budget(total_budget)),
        )

    def recalculate_allocations(self, total_budget: Optional[float] = None) -> list[BudgetCategory]:
        """Recompute allocations from current percentages without normalizing them."""
        budget = self._budget(total_budget)
        with self.db.batch():
            return [
                self.table.update(category.id, {
                    "allocated": allocation_for(category.percentage, budget),
                })
                for category in self.table.list()
            ]
