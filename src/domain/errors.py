"""
Domain error taxonomy.

Every rejected lifecycle or reporting operation raises one of these.  Each
kind carries a stable ``code`` so clients branch on the kind, never on the
message text.  The HTTP layer maps kinds to status codes in
``src.api.errors``.
"""

from __future__ import annotations


class RideServiceError(Exception):
    """Base class for all expected, caller-visible failures."""

    code = "RIDE_SERVICE_ERROR"
    default_message = "Ride operation failed"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self.args[0])


class InvalidSchedule(RideServiceError):
    code = "INVALID_SCHEDULE"
    default_message = "Scheduled time must be in the future"


class InvalidState(RideServiceError):
    """The ride's current status does not permit the operation."""

    code = "INVALID_STATE"
    default_message = "Operation not permitted in the ride's current status"


class InvalidAction(RideServiceError):
    code = "INVALID_ACTION"
    default_message = "Invalid action"


class NotFound(RideServiceError):
    """Entity missing, or not owned by the caller."""

    code = "NOT_FOUND"
    default_message = "Ride not found"


class Unauthorized(RideServiceError):
    code = "UNAUTHORIZED"
    default_message = "Admin access required"


class Unauthenticated(RideServiceError):
    code = "UNAUTHENTICATED"
    default_message = "Missing or unknown user identity"


class NoEligibleRides(RideServiceError):
    code = "NO_ELIGIBLE_RIDES"
    default_message = "No eligible rides found for completion"


class InvalidTimezone(RideServiceError):
    code = "INVALID_TIMEZONE"
    default_message = "Unknown timezone"
