"""
Day plan API endpoints.
"""

from datetime import date, datetime
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status

from app.api.deps import CurrentUser, PlanSvc
from app.core.exceptions import (
    DuplicateError,
    NotFoundError,
    PersistenceError,
    PlannerError,
    SchedulingError,
    ValidationError,
)
from app.models.plan import Plan, PlanCreate, PlanTask, TaskComplete, TaskCreate, TaskUpdate
from app.models.plan_stats import PlanStats

router = APIRouter()


def _to_http_error(error: PlannerError) -> HTTPException:
    """Map a domain error to the HTTP status the client sees."""
    if isinstance(error, NotFoundError):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(error, ValidationError):
        code = status.HTTP_400_BAD_REQUEST
    elif isinstance(error, (DuplicateError, SchedulingError)):
        code = status.HTTP_409_CONFLICT
    elif isinstance(error, PersistenceError):
        code = status.HTTP_503_SERVICE_UNAVAILABLE
    else:
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return HTTPException(status_code=code, detail=error.message)


@router.post("", response_model=Plan, status_code=status.HTTP_201_CREATED)
async def create_plan(payload: PlanCreate, user: CurrentUser, service: PlanSvc) -> Plan:
    """Create an empty plan for a day."""
    try:
        return await service.create_plan(user.id, payload)
    except PlannerError as e:
        raise _to_http_error(e) from e


@router.get("", response_model=list[Plan])
async def list_plans(user: CurrentUser, service: PlanSvc) -> list[Plan]:
    """List all plans, newest date first."""
    try:
        return await service.list_plans(user.id)
    except PlannerError as e:
        raise _to_http_error(e) from e


@router.get("/stats", response_model=list[PlanStats])
async def list_plan_stats(user: CurrentUser, service: PlanSvc) -> list[PlanStats]:
    """Analytics for every plan."""
    try:
        return await service.list_plan_stats(user.id)
    except PlannerError as e:
        raise _to_http_error(e) from e


@router.get("/{plan_date}", response_model=Plan)
async def get_plan_by_date(plan_date: date, user: CurrentUser, service: PlanSvc) -> Plan:
    """Get the plan for a calendar date (YYYY-MM-DD)."""
    try:
        return await service.get_plan_by_date(user.id, plan_date)
    except PlannerError as e:
        raise _to_http_error(e) from e


@router.get("/{plan_id}/stats", response_model=PlanStats)
async def get_plan_stats(plan_id: UUID, user: CurrentUser, service: PlanSvc) -> PlanStats:
    try:
        return await service.get_plan_stats(user.id, plan_id)
    except PlannerError as e:
        raise _to_http_error(e) from e


@router.get("/{plan_id}/overdue", response_model=list[PlanTask])
async def list_overdue_tasks(
    plan_id: UUID,
    user: CurrentUser,
    service: PlanSvc,
    now: Optional[datetime] = Query(None, description="Client local time (defaults to server time)"),
) -> list[PlanTask]:
    """Pending tasks of today's plan whose end time has passed."""
    try:
        return await service.list_overdue_tasks(user.id, plan_id, now or datetime.now())
    except PlannerError as e:
        raise _to_http_error(e) from e


@router.delete("/{plan_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_plan(plan_id: UUID, user: CurrentUser, service: PlanSvc) -> None:
    """Delete a plan and all of its tasks."""
    try:
        await service.delete_plan(user.id, plan_id)
    except PlannerError as e:
        raise _to_http_error(e) from e


@router.post("/{plan_id}/tasks", response_model=Plan, status_code=status.HTTP_201_CREATED)
async def add_task(
    plan_id: UUID,
    payload: TaskCreate,
    user: CurrentUser,
    service: PlanSvc,
) -> Plan:
    """Add a task, shifting later tasks to make room."""
    try:
        return await service.add_task(user.id, plan_id, payload)
    except PlannerError as e:
        raise _to_http_error(e) from e


@router.put("/{plan_id}/tasks/{task_id}", response_model=Plan)
async def update_task(
    plan_id: UUID,
    task_id: UUID,
    payload: TaskUpdate,
    user: CurrentUser,
    service: PlanSvc,
) -> Plan:
    """Edit a task; time changes cascade to the surrounding tasks."""
    try:
        return await service.update_task(user.id, plan_id, task_id, payload)
    except PlannerError as e:
        raise _to_http_error(e) from e


@router.put("/{plan_id}/tasks/{task_id}/complete", response_model=Plan)
async def complete_task(
    plan_id: UUID,
    task_id: UUID,
    user: CurrentUser,
    service: PlanSvc,
    payload: Optional[TaskComplete] = None,
) -> Plan:
    """Mark a task complete, optionally recording when it really ended."""
    actual_end_time = payload.actual_end_time if payload else None
    try:
        return await service.complete_task(user.id, plan_id, task_id, actual_end_time)
    except PlannerError as e:
        raise _to_http_error(e) from e


@router.delete("/{plan_id}/tasks/{task_id}", response_model=Plan)
async def delete_task(
    plan_id: UUID,
    task_id: UUID,
    user: CurrentUser,
    service: PlanSvc,
) -> Plan:
    try:
        return await service.delete_task(user.id, plan_id, task_id)
    except PlannerError as e:
        raise _to_http_error(e) from e
