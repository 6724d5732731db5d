"""
Plan model definitions.

A plan is one user's schedule for one calendar date. Its tasks are embedded
and kept sorted by start time.
"""

from datetime import date, datetime
from typing import Annotated, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, field_validator

from app.models.enums import TaskCategory
from app.utils.datetime_utils import TIME_PATTERN

TimeOfDay = Annotated[str, Field(pattern=TIME_PATTERN, description="HH:MM (24h)")]


def _strip_name(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    stripped = value.strip()
    if not stripped:
        raise ValueError("name must not be empty")
    return stripped


class PlanTask(BaseModel):
    """A named, time-boxed block inside a plan."""

    id: UUID = Field(default_factory=uuid4)
    name: str = Field(..., min_length=1, max_length=500)
    start_time: TimeOfDay
    end_time: TimeOfDay
    category: TaskCategory
    is_completed: bool = False
    actual_end_time: Optional[TimeOfDay] = Field(
        None, description="Real finish time recorded when completing with adjustment"
    )
    order: int = Field(0, ge=0, description="Position in the start-time ordering")


class TaskCreate(BaseModel):
    """Schema for adding a task to a plan."""

    name: str = Field(..., min_length=1, max_length=500)
    start_time: TimeOfDay
    end_time: TimeOfDay
    category: TaskCategory

    @field_validator("name")
    @classmethod
    def normalize_name(cls, value: Optional[str]) -> Optional[str]:
        return _strip_name(value)


class TaskUpdate(BaseModel):
    """Schema for editing a task. Omitted fields are left unchanged."""

    name: Optional[str] = Field(None, min_length=1, max_length=500)
    start_time: Optional[TimeOfDay] = None
    end_time: Optional[TimeOfDay] = None
    category: Optional[TaskCategory] = None

    @field_validator("name")
    @classmethod
    def normalize_name(cls, value: Optional[str]) -> Optional[str]:
        return _strip_name(value)


class TaskComplete(BaseModel):
    """Schema for marking a task done, optionally with its real end time."""

    actual_end_time: Optional[TimeOfDay] = None


class PlanCreate(BaseModel):
    """Schema for creating a plan."""

    plan_date: date
    day_start_time: TimeOfDay
    day_end_time: TimeOfDay


class Plan(PlanCreate):
    """Stored plan with its embedded tasks."""

    id: UUID
    user_id: str
    tasks: list[PlanTask] = Field(default_factory=list)
    version: int = Field(1, ge=1, description="Bumped on every write")
    created_at: datetime
    updated_at: datetime
