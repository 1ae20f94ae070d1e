"""
Core Data Models for Yosan

These models define the schemas for the five tables of the store:
settings, categories, expenses, projects and tasks.
They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Be serializable for snapshots and logging
4. Carry the created/updated timestamps the store stamps on every write

DESIGN DECISION: Relations between entities (expense -> category,
task -> project) are plain integer fields. Nothing enforces that the
referenced row exists; readers resolve them with lookup-or-default.
"""

from datetime import date, datetime, time
from enum import Enum
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class Priority(str, Enum):
    """Priority shared by projects and tasks."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ProjectStatus(str, Enum):
    """Project lifecycle status."""
    ACTIVE = "active"
    COMPLETED = "completed"
    ARCHIVED = "archived"


def _as_datetime(value: Any) -> Any:
    """Promote bare dates to midnight datetimes; leave everything else to pydantic."""
    if isinstance(value, date) and not isinstance(value, datetime):
        return datetime.combine(value, time.min)
    return value


def _as_naive_local(value: Optional[datetime]) -> Optional[datetime]:
    """Convert aware datetimes to naive local time so every stored date compares."""
    if value is not None and value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


# =============================================================================
# BASE RECORD
# =============================================================================

class Record(BaseModel):
    """
    Base for every stored row.

    `id` stays None until the store persists the row. The store owns
    `created_at` and `updated_at`; values passed by callers are overwritten.
    """
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    id: Optional[int] = Field(
        default=None,
        description="Auto-incremented identifier, assigned on insert"
    )
    created_at: Optional[datetime] = Field(
        default=None,
        description="When the row was inserted"
    )
    updated_at: Optional[datetime] = Field(
        default=None,
        description="When the row was last written"
    )


# =============================================================================
# ENTITIES
# =============================================================================

class AppSettings(Record):
    """
    User-level budget settings.

    Only the first row is treated as current. An empty table is valid;
    callers fall back to configured defaults.
    """
    total_budget: float = Field(
        default=0.0,
        ge=0,
        description="Total monthly budget in currency units"
    )
    currency: str = Field(
        default="INR",
        min_length=1,
        max_length=10,
        description="ISO currency code"
    )
    currency_symbol: str = Field(
        default="₹",
        min_length=1,
        max_length=5,
        description="Symbol shown before amounts"
    )
    month_start_day: int = Field(
        default=1,
        ge=1,
        le=31,
        description="Day of month the budgeting month starts on"
    )


class BudgetCategory(Record):
    """
    A budget bucket with a share of the total budget.

    `percentage` across all categories should sum to 100 and `allocated`
    should equal percentage/100 * total budget, but only rebalancing
    enforces this. Manual edits may leave them drifted.
    """
    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Category name"
    )
    icon: str = Field(
        default="📦",
        max_length=20,
        description="Emoji or icon key"
    )
    color: str = Field(
        default="#a78bfa",
        max_length=20,
        description="Display color"
    )
    allocated: float = Field(
        default=0.0,
        description="Allocated amount in currency units"
    )
    percentage: float = Field(
        default=0.0,
        ge=0,
        le=100,
        description="Share of the total budget (0-100)"
    )


class Expense(Record):
    """A single spend against a category."""
    category_id: int = Field(
        ...,
        description="Weak reference to BudgetCategory.id"
    )
    amount: float = Field(
        ...,
        description="Amount spent (positive expected, not enforced)"
    )
    note: str = Field(
        default="",
        max_length=500,
    )
    date: datetime = Field(
        ...,
        description="When the money was spent"
    )

    @field_validator('date', mode='before')
    @classmethod
    def promote_date(cls, v: Any) -> Any:
        """Accept plain dates for convenience."""
        return _as_datetime(v)

    @field_validator('date')
    @classmethod
    def drop_timezone(cls, v: datetime) -> datetime:
        return _as_naive_local(v)


class Project(Record):
    """A group of tasks."""
    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
    )
    description: str = Field(
        default="",
        max_length=1000,
    )
    color: str = Field(
        default="#84cc16",
        max_length=20,
    )
    priority: Priority = Priority.MEDIUM
    status: ProjectStatus = ProjectStatus.ACTIVE


class Task(Record):
    """
    A to-do item, optionally attached to a project.

    `completed` and `completed_at` move in lockstep when toggled through
    the task service. `order` is the manual sort position.
    """
    project_id: Optional[int] = Field(
        default=None,
        description="Weak reference to Project.id"
    )
    title: str = Field(
        ...,
        min_length=1,
        max_length=200,
    )
    description: str = Field(
        default="",
        max_length=1000,
    )
    priority: Priority = Priority.MEDIUM
    due_date: Optional[datetime] = None
    completed: bool = False
    completed_at: Optional[datetime] = None
    order: int = Field(
        default=0,
        description="Manual sort position"
    )

    @field_validator('due_date', 'completed_at', mode='before')
    @classmethod
    def promote_dates(cls, v: Any) -> Any:
        return _as_datetime(v)

    @field_validator('due_date', 'completed_at')
    @classmethod
    def drop_timezones(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _as_naive_local(v)
