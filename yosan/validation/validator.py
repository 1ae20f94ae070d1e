"""
Two-Stage Budget Validation

DESIGN DECISION: Budget invariants are soft. The store accepts any
percentage sum and any allocation so that the user can edit one category at a
time; drift is fixed only by an explicit rebalance. This module REPORTS
drift so the UI can prompt for that rebalance.

STAGE 1 - ROW CHECKS:
- Non-positive expense amounts (percentages are bounded by the model)

STAGE 2 - AGGREGATE CHECKS:
- Percentages not summing to 100
- Allocations drifting from their percentage of the budget
- Expenses pointing at categories that no longer exist

IMPORTANT: Validation NEVER silently fixes issues.
"""

import math
from datetime import datetime
from typing import Callable, Optional, Sequence

from yosan.analytics.views import coerce_id
from yosan.models.entities import BudgetCategory, Expense
from yosan.models.validation import ValidationIssue, ValidationResult
from yosan.store import Database

PERCENTAGE_TOLERANCE = 0.01
ALLOCATION_TOLERANCE = 1.0


class BudgetValidator:
    """
    Checks categories and expenses against the budget's soft invariants.

    Usage:
        result = BudgetValidator().validate_store(db)
        if result.warning_count:
            ...
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self._clock = clock or datetime.now

    def _validate_rows(
        self,
        categories: Sequence[BudgetCategory],
        expenses: Sequence[Expense],
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 1: each row on its own.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        for expense in expenses:
            if expense.amount <= 0:
                issues.append(ValidationIssue(
                    field="amount",
                    issue_type="non_positive_amount",
                    message=f"Expense {expense.id} has a non-positive amount ({expense.amount})",
                    severity="warning",
                    entity_id=expense.id,
                    suggested_fix="Check the amount was entered correctly",
                ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def _validate_aggregates(
        self,
        categories: Sequence[BudgetCategory],
        expenses: Sequence[Expense],
        total_budget: float,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 2: sums across rows and references between tables.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        if categories:
            total_percentage = sum(c.percentage for c in categories)
            if not math.isclose(total_percentage, 100, rel_tol=0, abs_tol=PERCENTAGE_TOLERANCE):
                issues.append(ValidationIssue(
                    field="percentage",
                    issue_type="percentage_sum",
                    message=f"Category percentages sum to {total_percentage:g}, not 100",
                    severity="warning",
                    suggested_fix="Rebalance the categories",
                ))

        for category in categories:
            expected = category.percentage / 100 * total_budget
            if abs(category.allocated - expected) > ALLOCATION_TOLERANCE:
                issues.append(ValidationIssue(
                    field="allocated",
                    issue_type="allocation_drift",
                    message=(
                        f"Category '{category.name}' has {category.allocated:g} allocated "
                        f"but {category.percentage:g}% of the budget is {expected:g}"
                    ),
                    severity="warning",
                    entity_id=category.id,
                    suggested_fix="Recalculate allocations",
                ))

        known_ids = {c.id for c in categories}
        for expense in expenses:
            if coerce_id(expense.category_id) not in known_ids:
                issues.append(ValidationIssue(
                    field="category_id",
                    issue_type="dangling_reference",
                    message=f"Expense {expense.id} refers to missing category {expense.category_id}",
                    severity="info",
                    entity_id=expense.id,
                    suggested_fix="It is reported under 'Other' until re-assigned",
                ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def validate(
        self,
        categories: Sequence[BudgetCategory],
        expenses: Sequence[Expense],
        total_budget: float,
    ) -> ValidationResult:
        """
        Run both stages over the given rows.

        Unlike a schema check, stage 2 always runs: aggregate drift is
        worth reporting even when a row is broken.
        """
        rows_valid, row_issues = self._validate_rows(categories, expenses)
        aggregates_valid, aggregate_issues = self._validate_aggregates(
            categories, expenses, total_budget
        )
        return ValidationResult(
            validated_at=self._clock(),
            rows_valid=rows_valid,
            aggregates_valid=aggregates_valid,
            issues=row_issues + aggregate_issues,
        )

    def validate_store(self, db: Database, total_budget: Optional[float] = None) -> ValidationResult:
        """Validate everything in the store against the settings budget."""
        if total_budget is None:
            settings = db.settings.first()
            total_budget = settings.total_budget if settings is not None else 0.0
        return self.validate(db.categories.list(), db.expenses.list(), total_budget)

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """One line per issue, grouped by severity, for display."""
        if not result.issues:
            return "✅ Budget is balanced."

        lines = []
        for severity, marker in (("error", "❌"), ("warning", "⚠️"), ("info", "ℹ️")):
            for issue in result.issues:
                if issue.severity == severity:
                    line = f"{marker} {issue.message}"
                    if issue.suggested_fix:
                        line += f" ({issue.suggested_fix})"
                    lines.append(line)
        return "\n".join(lines)
