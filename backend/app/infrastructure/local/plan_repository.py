"""
SQLite implementation of Plan repository.
"""

from __future__ import annotations

from datetime import date
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from app.core.exceptions import (
    ConcurrentModificationError,
    DuplicatePlanError,
    PersistenceError,
)
from app.core.logger import setup_logger
from app.infrastructure.local.database import PlanORM, get_session_factory
from app.interfaces.plan_repository import IPlanRepository
from app.models.plan import Plan, PlanCreate, PlanTask
from app.utils.datetime_utils import now_utc

logger = setup_logger(__name__)


class SqlitePlanRepository(IPlanRepository):
    """SQLite implementation of plan repository."""

    def __init__(self, session_factory=None):
        """
        Initialize repository.

        Args:
            session_factory: Optional session factory (for testing)
        """
        self._session_factory = session_factory or get_session_factory()

    def _orm_to_model(self, orm: PlanORM) -> Plan:
        """Convert ORM object to Pydantic model."""
        tasks = [PlanTask(**entry) for entry in (orm.tasks_json or [])]
        return Plan(
            id=UUID(orm.id),
            user_id=orm.user_id,
            plan_date=orm.plan_date,
            day_start_time=orm.day_start_time,
            day_end_time=orm.day_end_time,
            tasks=sorted(tasks, key=lambda task: task.order),
            version=orm.version,
            created_at=orm.created_at,
            updated_at=orm.updated_at,
        )

    async def create(self, user_id: str, plan: PlanCreate) -> Plan:
        """Create an empty plan."""
        now = now_utc()
        try:
            async with self._session_factory() as session:
                orm = PlanORM(
                    id=str(uuid4()),
                    user_id=user_id,
                    plan_date=plan.plan_date,
                    day_start_time=plan.day_start_time,
                    day_end_time=plan.day_end_time,
                    tasks_json=[],
                    version=1,
                    created_at=now,
                    updated_at=now,
                )
                session.add(orm)
                await session.commit()
                await session.refresh(orm)
                return self._orm_to_model(orm)
        except IntegrityError as e:
            raise DuplicatePlanError(
                "Plan already exists for this date",
                details={"plan_date": plan.plan_date.isoformat()},
            ) from e
        except SQLAlchemyError as e:
            logger.error(f"Failed to create plan for {user_id}: {e}")
            raise PersistenceError("Failed to create plan") from e

    async def get(self, user_id: str, plan_id: UUID) -> Optional[Plan]:
        """Get a plan by ID."""
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(PlanORM).where(
                        PlanORM.id == str(plan_id),
                        PlanORM.user_id == user_id,
                    )
                )
                orm = result.scalar_one_or_none()
                return self._orm_to_model(orm) if orm else None
        except SQLAlchemyError as e:
            logger.error(f"Failed to load plan {plan_id}: {e}")
            raise PersistenceError("Failed to load plan") from e

    async def get_by_date(self, user_id: str, plan_date: date) -> Optional[Plan]:
        """Get the user's plan for a date."""
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(PlanORM).where(
                        PlanORM.user_id == user_id,
                        PlanORM.plan_date == plan_date,
                    )
                )
                orm = result.scalar_one_or_none()
                return self._orm_to_model(orm) if orm else None
        except SQLAlchemyError as e:
            logger.error(f"Failed to load plan for {plan_date}: {e}")
            raise PersistenceError("Failed to load plan") from e

    async def list(self, user_id: str) -> list[Plan]:
        """List plans newest date first."""
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(PlanORM)
                    .where(PlanORM.user_id == user_id)
                    .order_by(PlanORM.plan_date.desc())
                )
                return [self._orm_to_model(orm) for orm in result.scalars().all()]
        except SQLAlchemyError as e:
            logger.error(f"Failed to list plans for {user_id}: {e}")
            raise PersistenceError("Failed to list plans") from e

    async def save_tasks(
        self,
        user_id: str,
        plan_id: UUID,
        tasks: list[PlanTask],
        expected_version: int,
    ) -> Optional[Plan]:
        """Conditionally replace the task list, bumping the version."""
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    update(PlanORM)
                    .where(
                        PlanORM.id == str(plan_id),
                        PlanORM.user_id == user_id,
                        PlanORM.version == expected_version,
                    )
                    .values(
                        tasks_json=[task.model_dump(mode="json") for task in tasks],
                        version=expected_version + 1,
                        updated_at=now_utc(),
                    )
                )
                if result.rowcount == 0:
                    await session.rollback()
                    exists = await session.execute(
                        select(PlanORM.version).where(
                            PlanORM.id == str(plan_id),
                            PlanORM.user_id == user_id,
                        )
                    )
                    current_version = exists.scalar_one_or_none()
                    if current_version is None:
                        return None
                    raise ConcurrentModificationError(
                        "Plan was modified concurrently",
                        details={
                            "plan_id": str(plan_id),
                            "expected_version": expected_version,
                            "current_version": current_version,
                        },
                    )
                await session.commit()

                refreshed = await session.execute(
                    select(PlanORM).where(PlanORM.id == str(plan_id))
                )
                return self._orm_to_model(refreshed.scalar_one())
        except SQLAlchemyError as e:
            logger.error(f"Failed to save tasks for plan {plan_id}: {e}")
            raise PersistenceError("Failed to save plan") from e

    async def delete(self, user_id: str, plan_id: UUID) -> bool:
        """Delete a plan and its embedded tasks in one statement."""
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    delete(PlanORM).where(
                        PlanORM.id == str(plan_id),
                        PlanORM.user_id == user_id,
                    )
                )
                await session.commit()
                return result.rowcount > 0
        except SQLAlchemyError as e:
            logger.error(f"Failed to delete plan {plan_id}: {e}")
            raise PersistenceError("Failed to delete plan") from e
