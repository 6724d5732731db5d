"""
Analytics read models derived from a plan.
"""

from datetime import date
from uuid import UUID

from pydantic import BaseModel, Field

from app.models.enums import TaskCategory


class PlanStats(BaseModel):
    """Time allocation summary for one plan. Never persisted."""

    plan_id: UUID
    plan_date: date
    total_day_minutes: int
    category_minutes: dict[TaskCategory, int]
    allocated_minutes: int
    wasted_minutes: int
    productive_percentage: float
    completed_tasks: int
    total_tasks: int
    completion_percentage: float
    formatted: dict[str, str] = Field(
        default_factory=dict,
        description="H.MM renderings keyed by category name and 'wasted'",
    )
