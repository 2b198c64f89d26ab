"""
Trip schemas.
"""

from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime

from svr_backend.app.models.enums import TripStatus


class TripRecord(BaseModel):
    """Immutable view of one trip document."""
    id: str
    trip_code: str
    date_time: Optional[datetime] = None
    vehicle_assigned: Optional[str] = None
    driver_name: Optional[str] = None
    personnel: List[str] = []
    purpose: List[str] = []
    destination: Optional[str] = None
    request_ids: List[str] = []
    status: str
    completed_date: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
        frozen = True


class TripListResponse(BaseModel):
    trips: List[TripRecord]
    total: int


class TripStatusUpdate(BaseModel):
    status: TripStatus


class NextTripCodeResponse(BaseModel):
    trip_code: str
    date_prefix: str
