"""
Plan analytics.

Derives time allocation figures from a stored plan. Nothing here writes.
"""

from datetime import date, datetime
from typing import Optional

from app.models.enums import TaskCategory
from app.models.plan import Plan, PlanTask
from app.models.plan_stats import PlanStats
from app.utils.datetime_utils import format_duration, to_minutes


def category_minutes(plan: Plan) -> dict[TaskCategory, int]:
    """
    Sum task minutes per category.

    Task ends are capped at the day end and tasks starting at or after the
    day end contribute nothing.
    """
    day_end = to_minutes(plan.day_end_time)
    totals = {category: 0 for category in TaskCategory}
    for task in plan.tasks:
        start = to_minutes(task.start_time)
        if start >= day_end:
            continue
        end = min(to_minutes(task.end_time), day_end)
        totals[task.category] += max(0, end - start)
    return totals


def compute_plan_stats(plan: Plan) -> PlanStats:
    """Build the analytics summary for one plan."""
    total_day_minutes = to_minutes(plan.day_end_time) - to_minutes(plan.day_start_time)
    per_category = category_minutes(plan)
    allocated = sum(per_category.values())
    wasted = total_day_minutes - allocated

    productive_percentage = 0.0
    if total_day_minutes > 0:
        productive_percentage = round(
            per_category[TaskCategory.PRODUCTIVE] / total_day_minutes * 100, 1
        )

    completed = sum(1 for task in plan.tasks if task.is_completed)
    formatted = {category.value: format_duration(minutes) for category, minutes in per_category.items()}
    formatted["wasted"] = format_duration(wasted)

    return PlanStats(
        plan_id=plan.id,
        plan_date=plan.plan_date,
        total_day_minutes=total_day_minutes,
        category_minutes=per_category,
        allocated_minutes=allocated,
        wasted_minutes=wasted,
        productive_percentage=productive_percentage,
        completed_tasks=completed,
        total_tasks=len(plan.tasks),
        completion_percentage=completion_percentage(plan),
        formatted=formatted,
    )


def completion_percentage(plan: Plan) -> float:
    """Share of tasks marked complete, 0-100."""
    if not plan.tasks:
        return 0.0
    completed = sum(1 for task in plan.tasks if task.is_completed)
    return completed / len(plan.tasks) * 100


def is_task_overdue(
    plan: Plan,
    task: PlanTask,
    now: datetime,
    today: Optional[date] = None,
) -> bool:
    """
    Check whether a pending task's end time has passed.

    Only today's plan can have overdue tasks. Comparison is at minute
    resolution in the caller's local wall-clock time.

    Args:
        plan: Plan owning the task
        task: Task to check
        now: Current local time
        today: Local date (defaults to now.date())
    """
    if task.is_completed:
        return False
    if plan.plan_date != (today or now.date()):
        return False
    return now.hour * 60 + now.minute > to_minutes(task.end_time)
