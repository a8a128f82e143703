"""
Shared test fixtures.

Uses an in-memory SQLite database (via aiosqlite) so tests run without
Docker / PostgreSQL / Redis.  The production models are used as-is; the
``UTCDateTime`` column type keeps timestamps timezone-aware on SQLite.

Services receive a ``FixedClock`` so "now" is deterministic.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from src.domain.enums import AdminActionType, RideStatus, UserRole
from src.infrastructure.database import Base
from src.infrastructure.models import AdminActionModel, RideModel, UserModel
from src.infrastructure.repositories import (
    AdminActionRepository,
    RideRepository,
)
from src.services.lifecycle import RideLifecycleService
from src.services.reporting import ReportingService
from src.services.simulation import CompletionSimulator

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"

# Wednesday 18 March 2026, 15:00 UTC
NOW = datetime(2026, 3, 18, 15, 0, tzinfo=timezone.utc)


class FixedClock:
    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@dataclass
class People:
    admin: UserModel
    alice: UserModel
    bob: UserModel


# ── Database ──────────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def engine():
    test_engine = create_async_engine(TEST_DB_URL, echo=False, poolclass=StaticPool)
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest_asyncio.fixture
async def people(db_session: AsyncSession) -> People:
    admin = UserModel(
        name="Admin User", email="admin@rapido.com", company="Rapido", role=UserRole.ADMIN
    )
    alice = UserModel(name="Alice Rao", email="alice@techcorp.com", company="Tech Corp")
    bob = UserModel(name="Bob Stone", email="bob@innovation.io", company="Innovation Inc")
    db_session.add_all([admin, alice, bob])
    await db_session.commit()
    return People(admin=admin, alice=alice, bob=bob)


# ── Services ──────────────────────────────────────────────────────────


@pytest.fixture
def lifecycle(db_session, clock) -> RideLifecycleService:
    return RideLifecycleService(
        RideRepository(db_session), AdminActionRepository(db_session), clock=clock
    )


@pytest.fixture
def simulator(db_session, clock) -> CompletionSimulator:
    return CompletionSimulator(RideRepository(db_session), clock=clock)


@pytest.fixture
def reporting(db_session, clock) -> ReportingService:
    return ReportingService(
        RideRepository(db_session), AdminActionRepository(db_session), clock=clock
    )


# ── Factories ─────────────────────────────────────────────────────────


async def make_ride(
    session: AsyncSession,
    user: UserModel | str,
    *,
    status: RideStatus = RideStatus.PENDING,
    scheduled_time: datetime | None = None,
    created_at: datetime | None = None,
    pickup_location: str = "123 Main Street, Downtown",
    drop_location: str = "456 Business Park, Tech District",
    purpose: str | None = "Client Meeting",
) -> RideModel:
    ride = RideModel(
        user_id=getattr(user, "id", user),
        pickup_location=pickup_location,
        drop_location=drop_location,
        scheduled_time=scheduled_time or NOW + timedelta(days=1),
        purpose=purpose,
        status=status,
    )
    if created_at is not None:
        ride.created_at = created_at
    session.add(ride)
    await session.commit()
    return ride


async def make_action(
    session: AsyncSession,
    admin: UserModel,
    ride: RideModel,
    action: AdminActionType = AdminActionType.APPROVE,
    *,
    created_at: datetime,
    reason: str | None = None,
) -> AdminActionModel:
    entry = AdminActionModel(
        admin_id=admin.id,
        ride_id=ride.id,
        action=action,
        reason=reason,
        created_at=created_at,
    )
    session.add(entry)
    await session.commit()
    return entry
