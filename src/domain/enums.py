"""Domain enumerations and state-transition rules."""

import enum


class RideStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"


class AdminActionType(str, enum.Enum):
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    CANCEL = "CANCEL"


class UserRole(str, enum.Enum):
    USER = "USER"
    ADMIN = "ADMIN"


# State machine: maps current status -> set of valid next statuses
RIDE_TRANSITIONS: dict[RideStatus, set[RideStatus]] = {
    RideStatus.PENDING: {
        RideStatus.APPROVED,
        RideStatus.REJECTED,
        RideStatus.CANCELLED,
    },
    RideStatus.APPROVED: {RideStatus.CANCELLED, RideStatus.COMPLETED},
    RideStatus.REJECTED: set(),
    RideStatus.CANCELLED: set(),
    RideStatus.COMPLETED: set(),
}

# Admin decision -> resulting ride status
ADMIN_DECISIONS: dict[AdminActionType, RideStatus] = {
    AdminActionType.APPROVE: RideStatus.APPROVED,
    AdminActionType.REJECT: RideStatus.REJECTED,
    AdminActionType.CANCEL: RideStatus.CANCELLED,
}

# Admins only decide on requests that are still waiting
ADMIN_DECIDABLE: frozenset[RideStatus] = frozenset({RideStatus.PENDING})

REQUESTER_CANCELLABLE: frozenset[RideStatus] = frozenset(
    {RideStatus.PENDING, RideStatus.APPROVED}
)

TERMINAL_STATUSES: frozenset[RideStatus] = frozenset(
    status for status, targets in RIDE_TRANSITIONS.items() if not targets
)
