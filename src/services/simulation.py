"""
Completion Simulator
====================

Advances APPROVED rides to COMPLETED on demand, standing in for the
time-driven completion that ``src.workers.completer`` performs in
production.  No ``AdminAction`` is written on any of these paths.

Bulk completion is a fan-out of independent single-ride transitions: ids
that are not APPROVED are skipped rather than reported as errors, and one
ride losing a race never affects the others.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Iterable

from src.domain.dates import utcnow
from src.domain.entities import BulkCompletionResult, ensure_transition
from src.domain.enums import RideStatus
from src.domain.errors import InvalidState, NoEligibleRides, NotFound, Unauthorized
from src.infrastructure.models import RideModel, UserModel
from src.infrastructure.repositories import RideRepository

logger = logging.getLogger(__name__)

_COMPLETABLE = {RideStatus.APPROVED}


class CompletionSimulator:
    def __init__(
        self, rides: RideRepository, clock: Callable[[], datetime] = utcnow
    ):
        self.rides = rides
        self.clock = clock

    async def eligible_for_completion(self) -> list[RideModel]:
        """APPROVED rides whose scheduled time has passed, newest first."""
        return await self.rides.get_eligible_for_completion(self.clock())

    async def _complete(self, ride_id: str) -> bool:
        return await self.rides.update_if_status(
            ride_id, _COMPLETABLE, status=RideStatus.COMPLETED
        )

    async def simulate_completion(self, admin: UserModel, ride_id: str) -> RideModel:
        if not admin.is_admin:
            raise Unauthorized()

        ride = await self.rides.get_by_id(ride_id)
        if ride is None:
            raise NotFound()
        if RideStatus(ride.status) not in _COMPLETABLE:
            raise InvalidState("Can only complete approved rides")
        ensure_transition(RideStatus(ride.status), RideStatus.COMPLETED)

        if not await self._complete(ride_id):
            raise InvalidState("Can only complete approved rides")
        logger.info("Ride %s completed (simulation) by admin %s", ride_id, admin.id)
        return await self.rides.get_detailed(ride_id)

    async def simulate_bulk_completion(
        self, admin: UserModel, ride_ids: Iterable[str]
    ) -> BulkCompletionResult:
        if not admin.is_admin:
            raise Unauthorized()

        requested = list(dict.fromkeys(ride_ids))
        eligible = await self.rides.get_with_status(requested, RideStatus.APPROVED)
        if not eligible:
            raise NoEligibleRides()

        result = BulkCompletionResult()
        done: set[str] = set()
        for ride in eligible:
            if await self._complete(ride.id):
                done.add(ride.id)
                result.completed.append(await self.rides.get_detailed(ride.id))
        result.skipped = [ride_id for ride_id in requested if ride_id not in done]

        logger.info(
            "Bulk completion (simulation) by admin %s: %d completed, %d skipped",
            admin.id,
            result.count,
            len(result.skipped),
        )
        return result

    async def complete_overdue(self) -> int:
        """Complete every eligible ride.  Used by the auto-completion worker."""
        completed = 0
        for ride in await self.eligible_for_completion():
            if await self._complete(ride.id):
                completed += 1
        return completed
