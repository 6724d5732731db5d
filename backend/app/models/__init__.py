"""Pydantic models (schemas) for the application."""

from app.models.enums import TaskCategory
from app.models.plan import Plan, PlanCreate, PlanTask, TaskComplete, TaskCreate, TaskUpdate
from app.models.plan_stats import PlanStats

__all__ = [
    # Enums
    "TaskCategory",
    # Plan models
    "Plan",
    "PlanCreate",
    "PlanTask",
    "TaskCreate",
    "TaskUpdate",
    "TaskComplete",
    # Analytics
    "PlanStats",
]
