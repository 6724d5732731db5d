"""
Custom exceptions for the application.
"""

from typing import Any, Optional


class PlannerError(Exception):
    """Base exception for the day planner."""

    def __init__(self, message: str, details: Optional[Any] = None):
        self.message = message
        self.details = details
        super().__init__(message)


class NotFoundError(PlannerError):
    """Resource not found."""

    pass


class PlanNotFoundError(NotFoundError):
    """No plan matches the given identifier or date for this user."""

    pass


class TaskNotFoundError(NotFoundError):
    """No task with the given identifier exists in the plan."""

    pass


class DuplicateError(PlannerError):
    """Duplicate resource detected."""

    pass


class DuplicatePlanError(DuplicateError):
    """A plan already exists for this user and date."""

    pass


class ValidationError(PlannerError):
    """Validation error."""

    pass


class InvalidTimeFormatError(ValidationError):
    """Time value is not a valid HH:MM wall-clock time."""

    pass


class AuthenticationError(PlannerError):
    """Authentication failed."""

    pass


class InfrastructureError(PlannerError):
    """Infrastructure-related error (DB, external services, etc.)."""

    pass


class PersistenceError(InfrastructureError):
    """Plan store read or write failed. Nothing was committed."""

    pass


class ConcurrentModificationError(PersistenceError):
    """The plan changed between read and write."""

    pass


class BusinessLogicError(PlannerError):
    """Business logic constraint violation."""

    pass


class SchedulingError(BusinessLogicError):
    """A mutation would break the timeline invariants and was rejected."""

    pass


class DayOverflowError(SchedulingError):
    """Shifting tasks to make room would push one past the day end."""

    pass


class CascadeOverflowError(SchedulingError):
    """A cascaded shift would move a task outside the day window."""

    def __init__(self, message: str, task_name: str, details: Optional[Any] = None):
        super().__init__(message, details={"task_name": task_name, **(details or {})})
        self.task_name = task_name


class ScheduleConflictError(SchedulingError):
    """Tasks would still overlap after the mutation."""

    pass


class OutOfDayBoundsError(ValidationError, DayOverflowError):
    """Requested task times fall outside the plan's day window.

    This is both a request validation failure and a day overflow, so callers
    handling either one see it.
    """

    pass
