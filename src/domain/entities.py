"""
Domain rules and value objects.

Patterns used
-------------
- **State Pattern** on ride status: ``ensure_transition`` enforces the
  lifecycle (PENDING -> APPROVED | REJECTED | CANCELLED,
  APPROVED -> CANCELLED | COMPLETED).
- Value objects carry reporting rows between services and the API layer.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from .enums import ADMIN_DECISIONS, RIDE_TRANSITIONS, AdminActionType, RideStatus
from .errors import InvalidAction, InvalidState


def can_transition(current: RideStatus, target: RideStatus) -> bool:
    return target in RIDE_TRANSITIONS.get(RideStatus(current), set())


def ensure_transition(current: RideStatus, target: RideStatus) -> None:
    """Raise ``InvalidState`` unless *current* -> *target* is a lifecycle edge."""
    if not can_transition(current, target):
        raise InvalidState(
            f"Cannot transition ride from {RideStatus(current).value} "
            f"to {RideStatus(target).value}"
        )


def parse_admin_action(action: str | AdminActionType) -> AdminActionType:
    try:
        return AdminActionType(getattr(action, "value", action))
    except ValueError:
        raise InvalidAction(f"Invalid action: {action!r}") from None


def decision_status(action: AdminActionType) -> RideStatus:
    """Status an admin decision moves a PENDING ride into."""
    return ADMIN_DECISIONS[action]


# ── Value Objects ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class StatusCount:
    status: RideStatus
    count: int


@dataclass(frozen=True)
class DailyCount:
    date: date
    count: int


@dataclass(frozen=True)
class RequesterCount:
    user: Any
    ride_count: int


@dataclass(frozen=True)
class PeriodSummary:
    today_rides: int = 0
    week_rides: int = 0
    month_rides: int = 0
    total_rides: int = 0
    pending_rides: int = 0
    approved_rides: int = 0


@dataclass
class Dashboard:
    summary: PeriodSummary
    recent_rides: list = field(default_factory=list)
    recent_actions: list = field(default_factory=list)


@dataclass
class Analytics:
    total_rides: int = 0
    rides_by_status: list[StatusCount] = field(default_factory=list)
    rides_per_day: list[DailyCount] = field(default_factory=list)
    top_users: list[RequesterCount] = field(default_factory=list)
    recent_admin_actions: list = field(default_factory=list)


@dataclass
class BulkCompletionResult:
    """Per-ride outcome of a bulk completion; partial success is normal."""

    completed: list = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.completed)


@dataclass
class Page:
    items: list
    page: int
    limit: int
    total: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0
