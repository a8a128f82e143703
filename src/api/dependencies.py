"""FastAPI dependency injection helpers."""

from datetime import datetime
from typing import Callable, Optional
from zoneinfo import ZoneInfo

from fastapi import Depends, Header, Query
from sqlalchemy.ext.asyncio import AsyncSession

from src.config import settings
from src.domain.dates import get_zone, utcnow
from src.domain.errors import InvalidTimezone, Unauthenticated, Unauthorized
from src.infrastructure.database import async_session_factory
from src.infrastructure.models import UserModel
from src.infrastructure.repositories import (
    AdminActionRepository,
    RideRepository,
    UserRepository,
)
from src.services.lifecycle import RideLifecycleService
from src.services.reporting import ReportingService
from src.services.simulation import CompletionSimulator


async def get_db() -> AsyncSession:  # type: ignore[misc]
    """Yield an async DB session; commit on success, rollback on error."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def get_clock() -> Callable[[], datetime]:
    return utcnow


def get_timezone(
    tz: Optional[str] = Query(
        None, description="IANA timezone the date filters are expressed in."
    ),
) -> ZoneInfo:
    try:
        return get_zone(tz or settings.default_timezone)
    except ValueError as exc:
        raise InvalidTimezone(str(exc)) from None


# ── Identity ──────────────────────────────────────────────────────────


async def get_current_user(
    x_user_id: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db),
) -> UserModel:
    """Resolve the caller forwarded by the upstream auth gateway."""
    if not x_user_id:
        raise Unauthenticated()
    user = await UserRepository(db).get_by_id(x_user_id)
    if user is None:
        raise Unauthenticated()
    return user


async def require_admin(
    user: UserModel = Depends(get_current_user),
) -> UserModel:
    if not user.is_admin:
        raise Unauthorized()
    return user


# ── Services ──────────────────────────────────────────────────────────


def get_lifecycle(
    db: AsyncSession = Depends(get_db),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> RideLifecycleService:
    return RideLifecycleService(
        RideRepository(db), AdminActionRepository(db), clock=clock
    )


def get_simulator(
    db: AsyncSession = Depends(get_db),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> CompletionSimulator:
    return CompletionSimulator(RideRepository(db), clock=clock)


def get_reporting(
    db: AsyncSession = Depends(get_db),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> ReportingService:
    return ReportingService(
        RideRepository(db),
        AdminActionRepository(db),
        clock=clock,
        history_window_days=settings.history_window_days,
        recent_limit=settings.recent_items_limit,
    )
