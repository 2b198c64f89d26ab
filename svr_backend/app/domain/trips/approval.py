"""
Approval/Merge Engine (Domain Logic).

Decides how a pending request becomes part of a trip:

1. ``new`` decision: the request seeds a brand-new trip. Decision values
   override the request's own vehicle, date-time and driver.
2. ``existing`` decision: the request is folded into the trip carrying the
   decision's trip code. The request conforms to the trip (never the
   reverse); personnel and purpose are unioned in append order and the
   destination is merged as a "; "-joined list.

The engine is pure: it reads request/trip attributes and returns an
``ApprovalPlan`` of field values. Applying the plan atomically is the
caller's job (see ``ApprovalService``).
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from svr_backend.app.core.exceptions import InvalidStateError, ValidationError
from svr_backend.app.domain.requests.rules import driver_flag, normalize_request_fields
from svr_backend.app.domain.trips.trip_code import is_valid_trip_code
from svr_backend.app.models.enums import DriverRequested, RequestStatus, TripStatus

DESTINATION_SEPARATOR = "; "

# Request fields an approval writes back
RECONCILED_FIELDS = (
    "status",
    "requested_date_time",
    "requested_vehicle",
    "is_driver_requested",
    "delegated_driver_name",
    "completed_date",
)


@dataclass(frozen=True)
class NewTripDecision:
    trip_code: str
    vehicle: Optional[str] = None
    driver_name: Optional[str] = None
    date_time: Optional[datetime] = None


@dataclass(frozen=True)
class ExistingTripDecision:
    trip_code: str


ApprovalDecision = Union[NewTripDecision, ExistingTripDecision]


@dataclass(frozen=True)
class ApprovalPlan:
    """
    Field values produced by one approval.

    ``request_changes`` is applied to the request; ``trip_fields`` holds the
    full field set of a new trip or the changed fields of an existing one.
    """
    trip_code: str
    creates_trip: bool
    request_changes: Dict[str, Any]
    trip_fields: Dict[str, Any]

    @property
    def message(self) -> str:
        if self.creates_trip:
            return f"Request approved and new trip {self.trip_code} created!"
        return f"Request approved and added to existing trip {self.trip_code}!"


def _present(value: Any) -> bool:
    return value is not None and not (isinstance(value, str) and not value.strip())


def _first_present(*values: Any) -> Any:
    for value in values:
        if _present(value):
            return value
    return None


class ApprovalEngine:

    @staticmethod
    def ensure_approvable(request) -> None:
        """Only Pending requests can be approved."""
        if request.status != RequestStatus.PENDING.value:
            raise InvalidStateError(
                message=f"Request {request.id} is {request.status}; only Pending requests can be approved",
                details={"request_id": request.id, "status": request.status}
            )

    @staticmethod
    def validate_trip_code(trip_code: str) -> None:
        if not is_valid_trip_code(trip_code):
            raise ValidationError(
                message="Trip code must match YYMMDD-XXXX (e.g., 250806-0001)",
                details={"trip_code": trip_code}
            )

    @staticmethod
    def requested_driver(request) -> Optional[str]:
        """The request's own delegated driver, if it asked for one."""
        if request.is_driver_requested == DriverRequested.YES.value and _present(request.delegated_driver_name):
            return request.delegated_driver_name
        return None

    @staticmethod
    def append_unique(values: Optional[List[str]], value: str) -> List[str]:
        """Append ``value`` unless an exact (case-sensitive) match is already present."""
        merged = list(values or [])
        if value not in merged:
            merged.append(value)
        return merged

    @staticmethod
    def merge_destination(current: Optional[str], incoming: Optional[str]) -> Optional[str]:
        """
        Merge a request destination into a trip destination.

        Blank incoming leaves the trip unchanged; a trip without destination
        adopts the incoming one; otherwise the incoming destination is
        appended unless it already appears (case-insensitive substring).
        """
        if not _present(incoming):
            return current
        if not _present(current):
            return incoming
        if incoming.lower() in current.lower():
            return current
        return f"{current}{DESTINATION_SEPARATOR}{incoming}"

    @staticmethod
    def _reconciled_request(request, date_time, vehicle, driver) -> Dict[str, Any]:
        approved = normalize_request_fields({
            "remarks": request.remarks,
            "completed_date": request.completed_date,
            "status": RequestStatus.APPROVED.value,
            "requested_date_time": date_time,
            "requested_vehicle": vehicle,
            "is_driver_requested": driver_flag(driver),
            "delegated_driver_name": driver,
        })
        return {field: approved[field] for field in RECONCILED_FIELDS}

    @staticmethod
    def plan_new_trip(request, decision: NewTripDecision) -> ApprovalPlan:
        """
        Plan approval of ``request`` as the first member of a new trip.

        Decision values win; missing ones fall back to the request's own
        values. The driver falls back to the request's delegated driver only
        when the request asked for one.
        """
        ApprovalEngine.ensure_approvable(request)
        ApprovalEngine.validate_trip_code(decision.trip_code)

        date_time = decision.date_time or request.requested_date_time
        vehicle = _first_present(decision.vehicle, request.requested_vehicle)
        driver = _first_present(decision.driver_name, ApprovalEngine.requested_driver(request))

        request_changes = ApprovalEngine._reconciled_request(request, date_time, vehicle, driver)
        trip_fields = {
            "trip_code": decision.trip_code,
            "date_time": date_time,
            "vehicle_assigned": vehicle,
            "driver_name": driver,
            "personnel": [request.requester_name],
            "purpose": [request.purpose],
            "destination": request.destination,
            "request_ids": [request.id],
            "status": TripStatus.NOT_FULFILLED.value,
        }
        return ApprovalPlan(
            trip_code=decision.trip_code,
            creates_trip=True,
            request_changes=request_changes,
            trip_fields=trip_fields,
        )

    @staticmethod
    def plan_merge(request, trip, decision: ExistingTripDecision) -> ApprovalPlan:
        """
        Plan approval of ``request`` into the existing ``trip``.

        The trip keeps its date-time, vehicle and driver; any of them still
        unset is backfilled from the request. The request is then reconciled
        to the resulting trip values.
        """
        ApprovalEngine.ensure_approvable(request)
        ApprovalEngine.validate_trip_code(decision.trip_code)

        date_time = trip.date_time or request.requested_date_time
        vehicle = _first_present(trip.vehicle_assigned, request.requested_vehicle)
        driver = _first_present(trip.driver_name, ApprovalEngine.requested_driver(request))

        request_changes = ApprovalEngine._reconciled_request(request, date_time, vehicle, driver)
        trip_fields = {
            "request_ids": list(trip.request_ids or []) + [request.id],
            "personnel": ApprovalEngine.append_unique(trip.personnel, request.requester_name),
            "purpose": ApprovalEngine.append_unique(trip.purpose, request.purpose),
            "destination": ApprovalEngine.merge_destination(trip.destination, request.destination),
            "date_time": date_time,
            "vehicle_assigned": vehicle,
            "driver_name": driver,
        }
        return ApprovalPlan(
            trip_code=decision.trip_code,
            creates_trip=False,
            request_changes=request_changes,
            trip_fields=trip_fields,
        )
