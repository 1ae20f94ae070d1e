"""
Validation Result Models

Used by the budget validator to REPORT soft-invariant drift.
Nothing here fixes data; rebalancing is an explicit user action.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class ValidationIssue(BaseModel):
    """A single validation issue."""

    field: str = Field(
        ...,
        description="Field or aggregate with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'percentage_sum', 'allocation_drift', 'dangling_reference')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    entity_id: Optional[int] = Field(
        default=None,
        description="Row the issue was found on, if any"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """
    Result of checking the budget's soft invariants.

    Stage 1: Row checks (each category/expense on its own)
    Stage 2: Aggregate checks (sums across rows, references between tables)
    """

    validated_at: datetime = Field(
        default_factory=datetime.now
    )
    rows_valid: bool = Field(
        ...,
        description="Did row-level checks pass?"
    )
    aggregates_valid: bool = Field(
        ...,
        description="Did aggregate checks pass?"
    )
    issues: list[ValidationIssue] = Field(
        default_factory=list,
        description="All validation issues found"
    )

    @property
    def is_valid(self) -> bool:
        return self.rows_valid and self.aggregates_valid

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def warning_count(self) -> int:
        return sum(1 for issue in self.issues if issue.severity == "warning")
