"""
Trip database model.

A trip bundles one or more approved requests sharing a vehicle and time slot.
"""

import uuid
from sqlalchemy import Column, String, Text, DateTime, JSON
from svr_backend.app.db.session import Base, utcnow


def _new_id() -> str:
    return str(uuid.uuid4())


class Trip(Base):
    """
    Trip model.

    Created when the first request is approved as a new trip and extended
    each time another request is approved into it. Personnel and purpose
    keep append order without duplicates; destination is a "; "-joined
    union of member destinations; request_ids lists member request ids.
    """
    __tablename__ = "trips"

    id = Column(String(36), primary_key=True, default=_new_id)

    # YYMMDD-XXXX, not unique at the store level
    trip_code = Column(String(11), nullable=False, index=True)

    date_time = Column(DateTime(timezone=True), nullable=True)
    vehicle_assigned = Column(String(100), nullable=True)
    driver_name = Column(String(255), nullable=True)

    personnel = Column(JSON, nullable=False, default=list)
    purpose = Column(JSON, nullable=False, default=list)
    destination = Column(Text, nullable=True)
    request_ids = Column(JSON, nullable=False, default=list)

    status = Column(String(20), nullable=False, default="Not Fulfilled", index=True)
    completed_date = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    def __repr__(self):
        return f"<Trip(id={self.id}, trip_code='{self.trip_code}', status='{self.status}')>"
