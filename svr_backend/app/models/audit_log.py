"""
Audit Log Database Model.

Tracks approvals and admin actions on requests and trips.
"""

from sqlalchemy import Column, Integer, String, DateTime, JSON
from svr_backend.app.db.session import Base, utcnow


class AuditLog(Base):
    """
    Audit log model.

    Events logged:
    - REQUEST_SUBMITTED / REQUEST_APPROVED (written in the same batch as the change)
    - REQUEST_UPDATED / REQUEST_DELETED
    - TRIP_STATUS_CHANGED / TRIP_DELETED
    - CATALOG_ENTRY_ADDED
    """
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Who performed the action (identity provider subject)
    actor_email = Column(String(255), nullable=True, index=True)

    # What action was performed
    action = Column(String(100), nullable=False, index=True)

    # Which record was affected
    target_collection = Column(String(50), nullable=True)
    target_id = Column(String(100), nullable=True, index=True)

    # Additional context (JSON for flexibility)
    meta_data = Column(JSON, nullable=True)

    timestamp = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)

    def __repr__(self):
        return f"<AuditLog(id={self.id}, action='{self.action}', actor={self.actor_email}, target={self.target_id})>"
