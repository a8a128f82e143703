"""
Repository Pattern -- abstracts DB access so domain logic stays DB-agnostic.

Each repository receives an ``AsyncSession`` (unit-of-work) and exposes
domain-relevant queries only.  Status changes go through
``RideRepository.update_if_status`` which re-checks the expected status in
the UPDATE itself, so two requests racing on one ride cannot both win.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy import desc, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from .models import AdminActionModel, RideModel, UserModel
from src.domain.dates import DateRange, utcnow
from src.domain.enums import AdminActionType, RideStatus


@dataclass(frozen=True)
class RideFilter:
    status: Optional[RideStatus] = None
    user_id: Optional[str] = None
    scheduled: DateRange = DateRange()
    search: Optional[str] = None


def _in_range(column, date_range: DateRange) -> list:
    conditions = []
    if date_range.start is not None:
        conditions.append(column >= date_range.start)
    if date_range.end is not None:
        conditions.append(column <= date_range.end)
    return conditions


def _ride_details():
    return (
        selectinload(RideModel.user),
        selectinload(RideModel.admin_actions).selectinload(AdminActionModel.admin),
    )


def _action_details():
    return (
        selectinload(AdminActionModel.admin),
        selectinload(AdminActionModel.ride).selectinload(RideModel.user),
    )


class RideRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self,
        *,
        user_id: str,
        pickup_location: str,
        drop_location: str,
        scheduled_time: datetime,
        purpose: str | None = None,
        notes: str | None = None,
        status: RideStatus = RideStatus.PENDING,
    ) -> RideModel:
        ride = RideModel(
            user_id=user_id,
            pickup_location=pickup_location,
            drop_location=drop_location,
            scheduled_time=scheduled_time,
            purpose=purpose,
            notes=notes,
            status=status,
        )
        self.session.add(ride)
        await self.session.flush()
        return ride

    async def get_by_id(self, ride_id: str) -> Optional[RideModel]:
        return await self.session.get(RideModel, ride_id)

    async def get_detailed(
        self, ride_id: str, user_id: str | None = None
    ) -> Optional[RideModel]:
        """Fresh read with requester and action history loaded."""
        query = (
            select(RideModel)
            .where(RideModel.id == ride_id)
            .options(*_ride_details())
            .execution_options(populate_existing=True)
        )
        if user_id is not None:
            query = query.where(RideModel.user_id == user_id)
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def update_if_status(
        self,
        ride_id: str,
        expected: Iterable[RideStatus],
        **values,
    ) -> bool:
        """UPDATE ... WHERE status IN (expected).  Returns True if a row changed."""
        result = await self.session.execute(
            update(RideModel)
            .where(RideModel.id == ride_id, RideModel.status.in_(list(expected)))
            .values(updated_at=utcnow(), **values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def _conditions(self, filters: RideFilter) -> list:
        conditions = []
        if filters.status is not None:
            conditions.append(RideModel.status == filters.status)
        if filters.user_id is not None:
            conditions.append(RideModel.user_id == filters.user_id)
        conditions.extend(_in_range(RideModel.scheduled_time, filters.scheduled))
        if filters.search:
            term = filters.search
            conditions.append(
                or_(
                    RideModel.pickup_location.icontains(term, autoescape=True),
                    RideModel.drop_location.icontains(term, autoescape=True),
                    RideModel.purpose.icontains(term, autoescape=True),
                    RideModel.user.has(
                        or_(
                            UserModel.name.icontains(term, autoescape=True),
                            UserModel.email.icontains(term, autoescape=True),
                            UserModel.company.icontains(term, autoescape=True),
                        )
                    ),
                )
            )
        return conditions

    async def find(
        self, filters: RideFilter, offset: int = 0, limit: int = 10
    ) -> tuple[list[RideModel], int]:
        conditions = self._conditions(filters)
        rows = await self.session.execute(
            select(RideModel)
            .where(*conditions)
            .options(*_ride_details())
            .order_by(RideModel.scheduled_time.desc(), RideModel.id)
            .offset(offset)
            .limit(limit)
        )
        total = await self.session.execute(
            select(func.count()).select_from(RideModel).where(*conditions)
        )
        return list(rows.scalars().all()), total.scalar() or 0

    async def get_with_status(
        self, ride_ids: Iterable[str], status: RideStatus
    ) -> list[RideModel]:
        result = await self.session.execute(
            select(RideModel).where(
                RideModel.id.in_(list(ride_ids)), RideModel.status == status
            )
        )
        return list(result.scalars().all())

    async def get_eligible_for_completion(self, now: datetime) -> list[RideModel]:
        result = await self.session.execute(
            select(RideModel)
            .where(
                RideModel.status == RideStatus.APPROVED,
                RideModel.scheduled_time <= now,
            )
            .options(selectinload(RideModel.user))
            .order_by(RideModel.scheduled_time.desc())
        )
        return list(result.scalars().all())

    # ── Aggregates ────────────────────────────────────────────────

    async def count(
        self,
        scheduled: DateRange = DateRange(),
        status: RideStatus | None = None,
    ) -> int:
        conditions = self._conditions(RideFilter(status=status, scheduled=scheduled))
        result = await self.session.execute(
            select(func.count()).select_from(RideModel).where(*conditions)
        )
        return result.scalar() or 0

    async def count_by_status(
        self, scheduled: DateRange = DateRange()
    ) -> dict[RideStatus, int]:
        result = await self.session.execute(
            select(RideModel.status, func.count(RideModel.id))
            .where(*_in_range(RideModel.scheduled_time, scheduled))
            .group_by(RideModel.status)
        )
        return {RideStatus(status): count for status, count in result.all()}

    async def scheduled_times(self, scheduled: DateRange) -> list[datetime]:
        result = await self.session.execute(
            select(RideModel.scheduled_time).where(
                *_in_range(RideModel.scheduled_time, scheduled)
            )
        )
        return list(result.scalars().all())

    async def top_requesters(
        self, scheduled: DateRange, limit: int
    ) -> list[tuple[UserModel, int]]:
        """Inner join on users: rides whose requester is gone are skipped."""
        ride_count = func.count(RideModel.id).label("ride_count")
        result = await self.session.execute(
            select(UserModel, ride_count)
            .join(RideModel, RideModel.user_id == UserModel.id)
            .where(*_in_range(RideModel.scheduled_time, scheduled))
            .group_by(UserModel.id)
            .order_by(desc(ride_count), UserModel.id)
            .limit(limit)
        )
        return [(user, count) for user, count in result.all()]

    async def most_recent(self, limit: int) -> list[RideModel]:
        result = await self.session.execute(
            select(RideModel)
            .options(selectinload(RideModel.user))
            .order_by(RideModel.created_at.desc(), RideModel.id)
            .limit(limit)
        )
        return list(result.scalars().all())


class AdminActionRepository:
    """Append-only: no update or delete."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def append(
        self,
        *,
        admin_id: str,
        ride_id: str,
        action: AdminActionType,
        reason: str | None = None,
        created_at: datetime | None = None,
    ) -> AdminActionModel:
        entry = AdminActionModel(
            admin_id=admin_id, ride_id=ride_id, action=action, reason=reason
        )
        if created_at is not None:
            entry.created_at = created_at
        self.session.add(entry)
        await self.session.flush()
        return entry

    async def for_ride(self, ride_id: str) -> list[AdminActionModel]:
        result = await self.session.execute(
            select(AdminActionModel)
            .where(AdminActionModel.ride_id == ride_id)
            .order_by(AdminActionModel.created_at.desc())
        )
        return list(result.scalars().all())

    async def recent(
        self, created: DateRange = DateRange(), limit: int = 10
    ) -> list[AdminActionModel]:
        result = await self.session.execute(
            select(AdminActionModel)
            .where(*_in_range(AdminActionModel.created_at, created))
            .options(*_action_details())
            .order_by(AdminActionModel.created_at.desc(), AdminActionModel.id)
            .limit(limit)
        )
        return list(result.scalars().all())


class UserRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, user_id: str) -> Optional[UserModel]:
        return await self.session.get(UserModel, user_id)
