"""
Service request schemas.

Submission and edit payloads are deliberately lenient (every field optional)
so that missing or blank fields surface as a single ValidationError from
the request field rules rather than as a generic 422.
"""

from pydantic import BaseModel
from typing import List, Optional
from datetime import date, datetime

from svr_backend.app.models.enums import DriverRequested, RequestStatus


class RequestCreate(BaseModel):
    """Schema for a requester submission."""
    requester_name: Optional[str] = None
    department: Optional[str] = None
    requested_vehicle: Optional[str] = None
    is_driver_requested: Optional[DriverRequested] = None
    delegated_driver_name: Optional[str] = None
    purpose: Optional[str] = None
    destination: Optional[str] = None
    requested_date_time: Optional[datetime] = None
    estimated_arrival: Optional[datetime] = None
    remarks: Optional[str] = None


class RequestUpdate(BaseModel):
    """Schema for an admin edit. Only the fields sent are changed."""
    requester_name: Optional[str] = None
    department: Optional[str] = None
    requested_vehicle: Optional[str] = None
    is_driver_requested: Optional[DriverRequested] = None
    delegated_driver_name: Optional[str] = None
    purpose: Optional[str] = None
    destination: Optional[str] = None
    requested_date_time: Optional[datetime] = None
    estimated_arrival: Optional[datetime] = None
    remarks: Optional[str] = None
    completed_date: Optional[date] = None
    status: Optional[RequestStatus] = None
    issue_faced: Optional[str] = None
    action_taken: Optional[str] = None


class RequestRecord(BaseModel):
    """Immutable view of one request document."""
    id: str
    requester_name: str
    department: str
    requested_vehicle: Optional[str] = None
    is_driver_requested: str
    delegated_driver_name: Optional[str] = None
    purpose: str
    destination: str
    requested_date_time: datetime
    estimated_arrival: Optional[datetime] = None
    remarks: Optional[str] = None
    completed_date: Optional[date] = None
    issue_faced: Optional[str] = None
    action_taken: Optional[str] = None
    status: str
    trip_id: Optional[str] = None
    timestamp: Optional[datetime] = None

    class Config:
        from_attributes = True
        frozen = True


class RequestListResponse(BaseModel):
    requests: List[RequestRecord]
    total: int
