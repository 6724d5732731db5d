"""
Dependency injection for API endpoints.

This module provides FastAPI dependencies that inject the correct
infrastructure implementations based on environment configuration.
"""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Header, HTTPException, status

from app.core.config import get_settings
from app.core.exceptions import AuthenticationError
from app.interfaces.auth_provider import IAuthProvider, User
from app.interfaces.plan_repository import IPlanRepository
from app.services.plan_service import PlanService


# ===========================================
# Repository Dependencies
# ===========================================


@lru_cache()
def get_plan_repository() -> IPlanRepository:
    """Get plan repository instance."""
    from app.infrastructure.local.plan_repository import SqlitePlanRepository
    return SqlitePlanRepository()


def get_plan_service(
    repo: IPlanRepository = Depends(get_plan_repository),
) -> PlanService:
    """Get plan service bound to the configured repository."""
    settings = get_settings()
    return PlanService(
        plan_repo=repo,
        max_write_attempts=settings.PLAN_WRITE_MAX_ATTEMPTS,
        max_iteration_factor=settings.SCHEDULER_MAX_ITERATION_FACTOR,
    )


# ===========================================
# Provider Dependencies
# ===========================================


@lru_cache()
def get_auth_provider() -> IAuthProvider:
    """Get auth provider instance."""
    from app.infrastructure.local.mock_auth import MockAuthProvider
    return MockAuthProvider(enabled=get_settings().AUTH_ENABLED)


# ===========================================
# User Authentication
# ===========================================


async def get_current_user(
    authorization: Annotated[str | None, Header()] = None,
    auth_provider: IAuthProvider = Depends(get_auth_provider),
) -> User:
    """
    Get current authenticated user.

    When authentication is disabled, returns the development user.
    """
    if not auth_provider.is_enabled():
        from app.infrastructure.local.mock_auth import DEV_USER
        return DEV_USER

    if not authorization:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header required",
        )

    # Extract token from "Bearer <token>"
    try:
        scheme, token = authorization.split()
        if scheme.lower() != "bearer":
            raise ValueError("Invalid scheme")
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authorization header format",
        )

    try:
        return await auth_provider.verify_token(token)
    except AuthenticationError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.message,
        )


# ===========================================
# Type Aliases for Dependency Injection
# ===========================================

PlanSvc = Annotated[PlanService, Depends(get_plan_service)]
CurrentUser = Annotated[User, Depends(get_current_user)]
