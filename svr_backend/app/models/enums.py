"""
Request and trip enumerations.

Values are the display strings stored in the datastore.
"""

import enum


class RequestStatus(str, enum.Enum):
    """
    Service request status.

    Only PENDING requests can be approved into a trip.
    """
    PENDING = "Pending"
    APPROVED = "Approved"
    RESCHEDULED = "Rescheduled"
    CANCELLED = "Cancelled"


class TripStatus(str, enum.Enum):
    """Trip status. Changes only through an explicit admin action."""
    NOT_FULFILLED = "Not Fulfilled"
    FULFILLED = "Fulfilled"


class DriverRequested(str, enum.Enum):
    """Whether the requester asked for a driver."""
    YES = "Yes"
    NO = "No"


# Listing order for requests: Pending first, unknown statuses last
REQUEST_STATUS_RANK = {
    RequestStatus.PENDING.value: 1,
    RequestStatus.APPROVED.value: 2,
    RequestStatus.RESCHEDULED.value: 3,
    RequestStatus.CANCELLED.value: 4,
}
UNKNOWN_STATUS_RANK = 99
