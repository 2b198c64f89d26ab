"""
Service request database model.

One transportation ask submitted by personnel.
"""

import uuid
from sqlalchemy import Column, String, Text, Date, DateTime
from svr_backend.app.db.session import Base, utcnow


def _new_id() -> str:
    return str(uuid.uuid4())


class ServiceRequest(Base):
    """
    Service vehicle request.

    Created by a requester with status Pending. Admin edits and the approval
    engine mutate it; approval overwrites the vehicle, date-time and driver
    fields so they match the assigned trip.
    """
    __tablename__ = "requests"

    id = Column(String(36), primary_key=True, default=_new_id)

    # Requester
    requester_name = Column(String(255), nullable=False)
    department = Column(String(100), nullable=False)

    # Vehicle may be decided at approval time
    requested_vehicle = Column(String(100), nullable=True)

    # Driver ("Yes"/"No"); delegated name only when a driver is requested
    is_driver_requested = Column(String(3), nullable=False, default="No")
    delegated_driver_name = Column(String(255), nullable=True)

    purpose = Column(Text, nullable=False)
    destination = Column(Text, nullable=False)

    requested_date_time = Column(DateTime(timezone=True), nullable=False)
    estimated_arrival = Column(DateTime(timezone=True), nullable=True)

    # Completed date is kept only while the remarks say "completed"
    remarks = Column(Text, nullable=True)
    completed_date = Column(Date, nullable=True)

    # Admin-only fields
    issue_faced = Column(Text, nullable=True)
    action_taken = Column(Text, nullable=True)

    status = Column(String(20), nullable=False, default="Pending", index=True)

    # Set when the request is approved into a trip
    trip_id = Column(String(36), nullable=True, index=True)

    timestamp = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)

    def __repr__(self):
        return f"<ServiceRequest(id={self.id}, requester='{self.requester_name}', status='{self.status}')>"
