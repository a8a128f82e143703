"""
Reporting Engine
================

Read-only aggregation over rides and admin actions.

All filters take a ``DateRange`` of absolute instants, normally produced by
``src.domain.dates.normalize_range`` from the caller's local calendar dates.
Ride statistics filter on ``scheduled_time``; admin-action listings filter
on the action's own ``created_at``.

Empty inputs produce zero counts and empty lists, never errors.
"""

from __future__ import annotations

from collections import Counter
from datetime import datetime, timedelta
from typing import Callable
from zoneinfo import ZoneInfo

from src.domain.dates import (
    DateRange,
    local_date,
    month_window,
    today_window,
    utcnow,
    week_window,
)
from src.domain.entities import (
    Analytics,
    DailyCount,
    Dashboard,
    PeriodSummary,
    RequesterCount,
    StatusCount,
)
from src.domain.enums import RideStatus
from src.infrastructure.repositories import AdminActionRepository, RideRepository

# Fixed output order for status breakdowns
_STATUS_ORDER = list(RideStatus)


class ReportingService:
    def __init__(
        self,
        rides: RideRepository,
        actions: AdminActionRepository,
        clock: Callable[[], datetime] = utcnow,
        history_window_days: int = 30,
        recent_limit: int = 5,
    ):
        self.rides = rides
        self.actions = actions
        self.clock = clock
        self.history_window_days = history_window_days
        self.recent_limit = recent_limit

    async def count_by_status(
        self, date_range: DateRange = DateRange()
    ) -> dict[RideStatus, int]:
        return await self.rides.count_by_status(date_range)

    async def daily_histogram(
        self, tz: ZoneInfo, date_range: DateRange = DateRange()
    ) -> list[DailyCount]:
        """Sparse per-local-day counts, newest day first.

        Without an explicit start the window begins ``history_window_days``
        before now; the end stays open unless given.
        """
        start = date_range.start or self.clock() - timedelta(
            days=self.history_window_days
        )
        times = await self.rides.scheduled_times(DateRange(start, date_range.end))
        buckets = Counter(local_date(t, tz) for t in times)
        return [
            DailyCount(date=day, count=count)
            for day, count in sorted(buckets.items(), reverse=True)
        ]

    async def top_requesters(
        self, date_range: DateRange = DateRange(), limit: int = 10
    ) -> list[RequesterCount]:
        rows = await self.rides.top_requesters(date_range, limit)
        return [RequesterCount(user=user, ride_count=count) for user, count in rows]

    async def recent_admin_actions(
        self, date_range: DateRange = DateRange(), limit: int = 10
    ) -> list:
        return await self.actions.recent(date_range, limit)

    async def dashboard_summary(self, tz: ZoneInfo) -> Dashboard:
        now = self.clock()
        summary = PeriodSummary(
            today_rides=await self.rides.count(today_window(now, tz)),
            week_rides=await self.rides.count(week_window(now, tz)),
            month_rides=await self.rides.count(month_window(now, tz)),
            total_rides=await self.rides.count(),
            pending_rides=await self.rides.count(status=RideStatus.PENDING),
            approved_rides=await self.rides.count(status=RideStatus.APPROVED),
        )
        return Dashboard(
            summary=summary,
            recent_rides=await self.rides.most_recent(self.recent_limit),
            recent_actions=await self.actions.recent(limit=self.recent_limit),
        )

    async def analytics(
        self,
        tz: ZoneInfo,
        date_range: DateRange = DateRange(),
        limit: int = 10,
    ) -> Analytics:
        by_status = await self.count_by_status(date_range)
        return Analytics(
            total_rides=await self.rides.count(date_range),
            rides_by_status=[
                StatusCount(status=status, count=by_status[status])
                for status in _STATUS_ORDER
                if by_status.get(status)
            ],
            rides_per_day=await self.daily_histogram(tz, date_range),
            top_users=await self.top_requesters(date_range, limit),
            recent_admin_actions=await self.recent_admin_actions(date_range, limit),
        )
