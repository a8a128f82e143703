"""
Ride Lifecycle Engine
=====================

Validates and executes ride status transitions.

* Requesters create rides, edit them while PENDING and cancel them while
  PENDING or APPROVED.  Self-service cancellation writes no audit record.
* Admins approve / reject / cancel PENDING rides.  The status change and its
  ``AdminAction`` row are written in the same unit of work; the caller's
  session commits both or neither.

Every status write is an ``UPDATE ... WHERE status IN (...)`` so the guard
is re-checked inside the transaction, not only against the snapshot read
earlier in the request.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable

from src.domain.dates import as_utc, utcnow
from src.domain.entities import (
    Page,
    decision_status,
    ensure_transition,
    parse_admin_action,
)
from src.domain.enums import ADMIN_DECIDABLE, REQUESTER_CANCELLABLE, RideStatus
from src.domain.errors import InvalidSchedule, InvalidState, NotFound, Unauthorized
from src.infrastructure.models import RideModel, UserModel
from src.infrastructure.repositories import (
    AdminActionRepository,
    RideFilter,
    RideRepository,
)

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    "pickup_location",
    "drop_location",
    "scheduled_time",
    "purpose",
    "notes",
)


class RideLifecycleService:
    def __init__(
        self,
        rides: RideRepository,
        actions: AdminActionRepository,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.rides = rides
        self.actions = actions
        self.clock = clock

    def _check_future(self, scheduled_time: datetime) -> datetime:
        scheduled_time = as_utc(scheduled_time)
        if scheduled_time <= self.clock():
            raise InvalidSchedule()
        return scheduled_time

    async def _get_owned(self, requester: UserModel, ride_id: str) -> RideModel:
        ride = await self.rides.get_by_id(ride_id)
        if ride is None or ride.user_id != requester.id:
            raise NotFound()
        return ride

    # ── Requester operations ──────────────────────────────────────

    async def create(
        self,
        requester: UserModel,
        *,
        pickup_location: str,
        drop_location: str,
        scheduled_time: datetime,
        purpose: str | None = None,
        notes: str | None = None,
    ) -> RideModel:
        ride = await self.rides.create(
            user_id=requester.id,
            pickup_location=pickup_location,
            drop_location=drop_location,
            scheduled_time=self._check_future(scheduled_time),
            purpose=purpose,
            notes=notes,
        )
        logger.info("Ride %s requested by user %s", ride.id, requester.id)
        return await self.rides.get_detailed(ride.id)

    async def list_own(
        self,
        requester: UserModel,
        status: RideStatus | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> Page:
        rows, total = await self.rides.find(
            RideFilter(status=status, user_id=requester.id),
            offset=(page - 1) * limit,
            limit=limit,
        )
        return Page(items=rows, page=page, limit=limit, total=total)

    async def get_own(self, requester: UserModel, ride_id: str) -> RideModel:
        ride = await self.rides.get_detailed(ride_id, user_id=requester.id)
        if ride is None:
            raise NotFound()
        return ride

    async def requester_update(
        self, requester: UserModel, ride_id: str, fields: dict[str, Any]
    ) -> RideModel:
        """Apply the supplied, non-null fields to a PENDING ride."""
        ride = await self._get_owned(requester, ride_id)
        if RideStatus(ride.status) != RideStatus.PENDING:
            raise InvalidState("Can only update pending rides")

        changes = {
            key: value
            for key, value in fields.items()
            if key in EDITABLE_FIELDS and value is not None
        }
        if "scheduled_time" in changes:
            changes["scheduled_time"] = self._check_future(changes["scheduled_time"])

        if changes and not await self.rides.update_if_status(
            ride_id, {RideStatus.PENDING}, **changes
        ):
            raise InvalidState("Can only update pending rides")
        return await self.rides.get_detailed(ride_id)

    async def requester_cancel(self, requester: UserModel, ride_id: str) -> RideModel:
        ride = await self._get_owned(requester, ride_id)
        current = RideStatus(ride.status)
        if current not in REQUESTER_CANCELLABLE:
            raise InvalidState("Can only cancel pending or approved rides")
        ensure_transition(current, RideStatus.CANCELLED)

        if not await self.rides.update_if_status(
            ride_id, REQUESTER_CANCELLABLE, status=RideStatus.CANCELLED
        ):
            raise InvalidState("Can only cancel pending or approved rides")
        logger.info("Ride %s cancelled by requester %s", ride_id, requester.id)
        return await self.rides.get_detailed(ride_id)

    # ── Admin operations ──────────────────────────────────────────

    async def admin_list(
        self, filters: RideFilter, page: int = 1, limit: int = 10
    ) -> Page:
        rows, total = await self.rides.find(
            filters, offset=(page - 1) * limit, limit=limit
        )
        return Page(items=rows, page=page, limit=limit, total=total)

    async def admin_decide(
        self,
        admin: UserModel,
        ride_id: str,
        action: str,
        reason: str | None = None,
    ) -> RideModel:
        """Move a PENDING ride and append exactly one audit record."""
        if not admin.is_admin:
            raise Unauthorized()
        decision = parse_admin_action(action)

        ride = await self.rides.get_by_id(ride_id)
        if ride is None:
            raise NotFound()
        if RideStatus(ride.status) not in ADMIN_DECIDABLE:
            raise InvalidState("Can only approve/reject pending rides")

        target = decision_status(decision)
        ensure_transition(RideStatus(ride.status), target)

        # The snapshot above may be stale; the conditional UPDATE is authoritative.
        if not await self.rides.update_if_status(
            ride_id, ADMIN_DECIDABLE, status=target
        ):
            raise InvalidState("Can only approve/reject pending rides")
        await self.actions.append(
            admin_id=admin.id,
            ride_id=ride_id,
            action=decision,
            reason=reason,
            created_at=self.clock(),
        )

        logger.info(
            "Ride %s %s by admin %s (-> %s)",
            ride_id,
            decision.value,
            admin.id,
            target.value,
        )
        return await self.rides.get_detailed(ride_id)
