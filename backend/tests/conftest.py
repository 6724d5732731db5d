"""
Shared fixtures: in-memory SQLite, repositories and the API client.
"""

import os
from datetime import date

import pytest

# Settings are cached on first use; keep tests off the on-disk database.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("DEBUG", "false")

from app.infrastructure.local.plan_repository import SqlitePlanRepository  # noqa: E402
from app.models.plan import PlanCreate  # noqa: E402
from app.services.plan_service import PlanService  # noqa: E402


@pytest.fixture
def test_user_id() -> str:
    return "test_user"


@pytest.fixture
async def session_factory():
    """Session factory bound to a fresh in-memory database."""
    from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
    from sqlalchemy.orm import sessionmaker
    from sqlalchemy.pool import StaticPool

    from app.infrastructure.local.database import Base

    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture
async def plan_repo(session_factory):
    return SqlitePlanRepository(session_factory=session_factory)


@pytest.fixture
async def plan_service(plan_repo):
    return PlanService(plan_repo=plan_repo)


@pytest.fixture
def day_plan_create() -> PlanCreate:
    return PlanCreate(
        plan_date=date(2026, 3, 2),
        day_start_time="06:00",
        day_end_time="23:00",
    )
