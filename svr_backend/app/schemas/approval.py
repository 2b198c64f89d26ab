"""
Approval schemas.

The body selects the approval mode: ``new`` creates a trip, ``existing``
folds the request into the trip that already carries ``trip_code``.
"""

from pydantic import BaseModel
from typing import Literal, Optional, Union
from datetime import datetime

from svr_backend.app.domain.trips.approval import ExistingTripDecision, NewTripDecision
from svr_backend.app.schemas.service_request import RequestRecord
from svr_backend.app.schemas.trip import TripRecord


class NewTripApproval(BaseModel):
    mode: Literal["new"]
    trip_code: str
    vehicle: Optional[str] = None
    driver_name: Optional[str] = None
    date_time: Optional[datetime] = None

    def to_decision(self) -> NewTripDecision:
        return NewTripDecision(
            trip_code=self.trip_code.strip(),
            vehicle=self.vehicle,
            driver_name=self.driver_name,
            date_time=self.date_time,
        )


class ExistingTripApproval(BaseModel):
    mode: Literal["existing"]
    trip_code: str

    def to_decision(self) -> ExistingTripDecision:
        return ExistingTripDecision(trip_code=self.trip_code.strip())


ApprovalRequest = Union[NewTripApproval, ExistingTripApproval]


class ApprovalResponse(BaseModel):
    """Response after an approval batch commits."""
    message: str
    created_trip: bool
    request: RequestRecord
    trip: TripRecord
