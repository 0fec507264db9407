"""Domain errors raised by the scheduling and subscription services.

Endpoints translate these into HTTP responses; services never raise
``HTTPException`` themselves.
"""


class SalonHubError(Exception):
    """Base class for every error raised by the salonhub services."""

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class SlotUnavailable(SalonHubError):
    """The requested [start, end) overlaps an appointment or a blocked period."""


class InvalidRange(SalonHubError):
    """A time range whose end is not strictly after its start."""


class TenantNotEntitled(SalonHubError):
    """The salon's subscription does not currently allow using the system."""


class InvalidTransition(SalonHubError):
    """A subscription status change that is not allowed from the current state."""


class NotFound(SalonHubError):
    """A salon, service, appointment or blocked time that does not exist."""


class GatewayUnavailable(SalonHubError):
    """The datastore could not serve the call and no usable cached copy exists."""


class EmailAlreadyRegistered(SalonHubError):
    """Another salon already uses this owner email."""
