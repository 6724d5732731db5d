"""
Plan repository interface.

Defines the contract for plan persistence operations.
Implementations: SQLite
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date
from typing import Optional
from uuid import UUID

from app.models.plan import Plan, PlanCreate, PlanTask


class IPlanRepository(ABC):
    """Abstract interface for plan persistence."""

    @abstractmethod
    async def create(self, user_id: str, plan: PlanCreate) -> Plan:
        """
        Create an empty plan.

        Args:
            user_id: Owner user ID
            plan: Date and day boundaries

        Returns:
            Created plan with version 1

        Raises:
            DuplicatePlanError: A plan already exists for (user_id, plan_date)
        """
        pass

    @abstractmethod
    async def get(self, user_id: str, plan_id: UUID) -> Optional[Plan]:
        """Get a plan by ID, scoped to its owner."""
        pass

    @abstractmethod
    async def get_by_date(self, user_id: str, plan_date: date) -> Optional[Plan]:
        """Get the user's plan for a calendar date."""
        pass

    @abstractmethod
    async def list(self, user_id: str) -> list[Plan]:
        """List all of the user's plans, newest date first."""
        pass

    @abstractmethod
    async def save_tasks(
        self,
        user_id: str,
        plan_id: UUID,
        tasks: list[PlanTask],
        expected_version: int,
    ) -> Optional[Plan]:
        """
        Replace the plan's task list if nobody else wrote it in the meantime.

        Args:
            user_id: Owner user ID
            plan_id: Plan ID
            tasks: Complete new task list
            expected_version: Version the caller read

        Returns:
            Updated plan, or None if the plan no longer exists

        Raises:
            ConcurrentModificationError: The stored version differs
        """
        pass

    @abstractmethod
    async def delete(self, user_id: str, plan_id: UUID) -> bool:
        """
        Delete a plan together with its tasks.

        Returns:
            True if a plan was deleted
        """
        pass
