"""
Plan service.

Orchestrates the plan repository and the task scheduler. Each task mutation
is a read-modify-write guarded by the plan's version; the scheduler works on
a snapshot so a rejected mutation leaves the stored plan untouched.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Awaitable, Callable, Optional
from uuid import UUID

from app.core.exceptions import (
    ConcurrentModificationError,
    PlanNotFoundError,
    SchedulingError,
    ValidationError,
)
from app.core.logger import setup_logger
from app.interfaces.plan_repository import IPlanRepository
from app.models.plan import Plan, PlanCreate, PlanTask, TaskCreate, TaskUpdate
from app.models.plan_stats import PlanStats
from app.services import plan_analytics, task_scheduler
from app.utils.datetime_utils import to_minutes

logger = setup_logger(__name__)

TaskMutation = Callable[[Plan], list[PlanTask]]


class PlanService:
    """Use cases for day plans and their tasks."""

    def __init__(
        self,
        plan_repo: IPlanRepository,
        max_write_attempts: int = 3,
        max_iteration_factor: int = task_scheduler.DEFAULT_MAX_ITERATION_FACTOR,
    ):
        self.plan_repo = plan_repo
        self.max_write_attempts = max_write_attempts
        self.max_iteration_factor = max_iteration_factor

    # ===========================================
    # Plans
    # ===========================================

    async def create_plan(self, user_id: str, plan: PlanCreate) -> Plan:
        """Create an empty plan. Fails with DuplicatePlanError for a taken date."""
        if to_minutes(plan.day_end_time) <= to_minutes(plan.day_start_time):
            raise ValidationError(
                "Day end time must be after day start time",
                details={
                    "day_start_time": plan.day_start_time,
                    "day_end_time": plan.day_end_time,
                },
            )
        created = await self.plan_repo.create(user_id, plan)
        logger.info(f"Created plan {created.id} for {user_id} on {created.plan_date}")
        return created

    async def list_plans(self, user_id: str) -> list[Plan]:
        """All of the user's plans, newest date first."""
        return await self.plan_repo.list(user_id)

    async def get_plan(self, user_id: str, plan_id: UUID) -> Plan:
        plan = await self.plan_repo.get(user_id, plan_id)
        if not plan:
            raise PlanNotFoundError(f"Plan {plan_id} not found", details={"plan_id": str(plan_id)})
        return plan

    async def get_plan_by_date(self, user_id: str, plan_date: date) -> Plan:
        plan = await self.plan_repo.get_by_date(user_id, plan_date)
        if not plan:
            raise PlanNotFoundError(
                "No plan found for this date",
                details={"plan_date": plan_date.isoformat()},
            )
        return plan

    async def delete_plan(self, user_id: str, plan_id: UUID) -> None:
        """Delete a plan with all of its tasks."""
        deleted = await self.plan_repo.delete(user_id, plan_id)
        if not deleted:
            raise PlanNotFoundError(f"Plan {plan_id} not found", details={"plan_id": str(plan_id)})
        logger.info(f"Deleted plan {plan_id} for {user_id}")

    # ===========================================
    # Tasks
    # ===========================================

    async def add_task(self, user_id: str, plan_id: UUID, task: TaskCreate) -> Plan:
        return await self._mutate(
            user_id,
            plan_id,
            "add task",
            lambda plan: task_scheduler.insert_task(plan, task, self.max_iteration_factor),
        )

    async def update_task(
        self,
        user_id: str,
        plan_id: UUID,
        task_id: UUID,
        changes: TaskUpdate,
    ) -> Plan:
        return await self._mutate(
            user_id,
            plan_id,
            "update task",
            lambda plan: task_scheduler.update_task(plan, task_id, changes),
        )

    async def complete_task(
        self,
        user_id: str,
        plan_id: UUID,
        task_id: UUID,
        actual_end_time: Optional[str] = None,
    ) -> Plan:
        return await self._mutate(
            user_id,
            plan_id,
            "complete task",
            lambda plan: task_scheduler.complete_task(plan, task_id, actual_end_time),
        )

    async def delete_task(self, user_id: str, plan_id: UUID, task_id: UUID) -> Plan:
        return await self._mutate(
            user_id,
            plan_id,
            "delete task",
            lambda plan: task_scheduler.delete_task(plan, task_id),
        )

    async def _mutate(
        self,
        user_id: str,
        plan_id: UUID,
        action: str,
        mutation: TaskMutation,
    ) -> Plan:
        """
        Load, apply a pure scheduler mutation and save conditionally.

        A version conflict means another write landed between our read and
        write; the whole cycle is retried from a fresh read.
        """
        for attempt in range(1, self.max_write_attempts + 1):
            plan = await self.get_plan(user_id, plan_id)
            try:
                tasks = mutation(plan)
            except (SchedulingError, ValidationError) as e:
                logger.warning(f"Rejected {action} on plan {plan_id}: {e.message}")
                raise

            if tasks == plan.tasks:
                return plan

            try:
                saved = await self.plan_repo.save_tasks(user_id, plan_id, tasks, plan.version)
            except ConcurrentModificationError:
                logger.warning(
                    f"Version conflict on plan {plan_id} ({action}), "
                    f"attempt {attempt}/{self.max_write_attempts}"
                )
                continue
            if saved is None:
                raise PlanNotFoundError(f"Plan {plan_id} not found", details={"plan_id": str(plan_id)})
            logger.info(f"Applied {action} on plan {plan_id} (version {saved.version})")
            return saved

        raise ConcurrentModificationError(
            "Plan is being modified concurrently, please retry",
            details={"plan_id": str(plan_id), "attempts": self.max_write_attempts},
        )

    # ===========================================
    # Analytics
    # ===========================================

    async def get_plan_stats(self, user_id: str, plan_id: UUID) -> PlanStats:
        plan = await self.get_plan(user_id, plan_id)
        return plan_analytics.compute_plan_stats(plan)

    async def list_plan_stats(self, user_id: str) -> list[PlanStats]:
        """Analytics for every plan, newest date first."""
        plans = await self.plan_repo.list(user_id)
        return [plan_analytics.compute_plan_stats(plan) for plan in plans]

    async def list_overdue_tasks(
        self,
        user_id: str,
        plan_id: UUID,
        now: datetime,
    ) -> list[PlanTask]:
        """Pending tasks of today's plan whose end time has passed."""
        plan = await self.get_plan(user_id, plan_id)
        return [task for task in plan.tasks if plan_analytics.is_task_overdue(plan, task, now)]
