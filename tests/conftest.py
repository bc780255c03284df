"""
Shared test fixtures.

Uses a file-backed SQLite database (via aiosqlite) so tests run without
Docker / PostgreSQL / Redis.  SQLite ignores ``FOR UPDATE``; the
compare-and-set claim in ``ErrandRepository.claim`` still serialises
concurrent accepts through SQLite's database-level write lock.
"""

from __future__ import annotations

from decimal import Decimal
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from errandhub.config import Settings
from errandhub.domain.entities import ErrandDetails
from errandhub.domain.enums import Category, Urgency, UserType
from errandhub.infrastructure.database import Base
from errandhub.infrastructure.models import RunnerModel, UserModel
from errandhub.services.lifecycle import ErrandLifecycleEngine


class RecordingEmitter:
    """Collects emitted lifecycle events in memory."""

    def __init__(self):
        self.events = []

    async def emit(self, event) -> None:
        self.events.append(event)


# ── Fixtures ──────────────────────────────────────────────────────────


@pytest.fixture
def test_settings() -> Settings:
    return Settings(_env_file=None, business_timezone="UTC")


@pytest_asyncio.fixture
async def session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker, None]:
    """Create tables in a fresh database, yield a session factory, dispose."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'errands.db'}",
        echo=False,
        poolclass=NullPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture
def emitter() -> RecordingEmitter:
    return RecordingEmitter()


@pytest.fixture
def lifecycle(session_factory, emitter, test_settings) -> ErrandLifecycleEngine:
    return ErrandLifecycleEngine.from_settings(session_factory, emitter, test_settings)


@pytest_asyncio.fixture
async def make_user(session_factory):
    async def _make(
        full_name: str = "Test Customer",
        user_type: UserType = UserType.CUSTOMER,
        is_active: bool = True,
    ) -> int:
        async with session_factory() as session:
            user = UserModel(full_name=full_name, user_type=user_type, is_active=is_active)
            session.add(user)
            await session.commit()
            return user.id

    return _make


@pytest_asyncio.fixture
async def make_runner(session_factory, make_user):
    async def _make(
        full_name: str = "Test Runner",
        is_available: bool = True,
        is_approved: bool = True,
        rating: float = 5.0,
        completed_errands: int = 0,
    ) -> int:
        user_id = await make_user(full_name, UserType.RUNNER)
        async with session_factory() as session:
            session.add(
                RunnerModel(
                    user_id=user_id,
                    is_available=is_available,
                    is_approved=is_approved,
                    rating=rating,
                    completed_errands=completed_errands,
                    earnings=Decimal("0"),
                )
            )
            await session.commit()
        return user_id

    return _make


def errand_details(**overrides) -> ErrandDetails:
    fields = dict(
        title="Pick up lunch",
        category=Category.FOOD_DELIVERY,
        urgency=Urgency.STANDARD,
        location_from="Cafeteria",
        location_to="Hall 5",
        base_price=Decimal("20"),
        distance_km=5.2,
    )
    fields.update(overrides)
    return ErrandDetails(**fields)


@pytest.fixture
def details():
    return errand_details
