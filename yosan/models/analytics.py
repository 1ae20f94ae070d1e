"""
Analytics Result Models

Immutable results produced by the derived-view and analytics functions.
They are plain values: computing them never touches the store.
"""

from datetime import date, datetime, time
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from yosan.models.entities import BudgetCategory


class MonthWindow(BaseModel):
    """
    The budgeting month: an inclusive range of calendar days.

    `end` is the day before the next window starts.
    """
    model_config = ConfigDict(frozen=True)

    start: date
    end: date

    @model_validator(mode='after')
    def validate_order(self) -> 'MonthWindow':
        if self.end < self.start:
            raise ValueError("Month window end cannot be before start")
        return self

    @property
    def start_at(self) -> datetime:
        """First instant of the window."""
        return datetime.combine(self.start, time.min)

    @property
    def end_at(self) -> datetime:
        """Last instant of the window."""
        return datetime.combine(self.end, time.max)

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1

    def contains(self, moment: datetime | date) -> bool:
        """Check whether a date or datetime falls inside the window."""
        day = moment.date() if isinstance(moment, datetime) else moment
        return self.start <= day <= self.end


class CategoryBreakdown(BaseModel):
    """Spend against one category's allocation."""
    model_config = ConfigDict(frozen=True)

    category: BudgetCategory
    spent: float = 0.0
    remaining: float = Field(
        ...,
        description="allocated - spent; negative when overspent"
    )
    percent_spent: float = Field(
        ...,
        description="spent / allocated * 100, 0 when nothing is allocated"
    )

    @property
    def is_overspent(self) -> bool:
        return self.remaining < 0


class WeeklySpend(BaseModel):
    """Total spend for one Sunday-aligned week."""
    model_config = ConfigDict(frozen=True)

    week: str = Field(..., description="Label, 'Week 1' is the oldest")
    start: date
    end: date
    spent: float = 0.0


class DailyTotal(BaseModel):
    """Total spend on one calendar day."""
    model_config = ConfigDict(frozen=True)

    day: date
    amount: float = 0.0


class CategoryShare(BaseModel):
    """A category's slice of the spend in a time range."""
    model_config = ConfigDict(frozen=True)

    name: str
    value: float
    percent: float = Field(
        ...,
        description="Share of total spend, 0 when nothing was spent"
    )


class SpendingOverview(BaseModel):
    """Spend statistics over a trailing time range (7d/30d/90d)."""
    model_config = ConfigDict(frozen=True)

    time_range: str
    total_spend: float
    average_daily: float
    highest_day: float
    daily: list[DailyTotal] = Field(default_factory=list)
    categories: list[CategoryShare] = Field(default_factory=list)


class AnalyticsSummary(BaseModel):
    """
    Everything the dashboard shows, computed from one set of rows.
    """
    model_config = ConfigDict(frozen=True)

    total_budget: float
    total_spent: float
    total_saved: float
    savings_rate: float
    category_breakdown: list[CategoryBreakdown] = Field(default_factory=list)
    weekly_data: list[WeeklySpend] = Field(default_factory=list)
    productivity_score: int = Field(..., ge=0, le=100)
    completed_tasks: int = Field(..., ge=0)
    pending_tasks: int = Field(..., ge=0)
    month_window: Optional[MonthWindow] = None
