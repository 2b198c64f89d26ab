"""
Audit logging service for approvals and admin actions.

Entries are added to the caller's session and flushed; the caller commits,
so an audit row lands in the same transaction as the change it describes.
"""

from typing import Any, Dict, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc
from svr_backend.app.models.audit_log import AuditLog


# Audit event constants
class AuditAction:
    """Standardized audit action constants."""
    REQUEST_SUBMITTED = "REQUEST_SUBMITTED"
    REQUEST_UPDATED = "REQUEST_UPDATED"
    REQUEST_DELETED = "REQUEST_DELETED"
    REQUEST_APPROVED = "REQUEST_APPROVED"

    TRIP_STATUS_CHANGED = "TRIP_STATUS_CHANGED"
    TRIP_DELETED = "TRIP_DELETED"

    CATALOG_ENTRY_ADDED = "CATALOG_ENTRY_ADDED"


async def log_event(
    db: AsyncSession,
    action: str,
    actor_email: Optional[str] = None,
    target_collection: Optional[str] = None,
    target_id: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None
) -> AuditLog:
    """
    Add an audit entry to the current transaction.

    Args:
        db: Session of the batch being written
        action: Action being performed (use AuditAction constants)
        actor_email: Principal performing the action
        target_collection: Collection of the affected record
        target_id: ID of the affected record
        metadata: Additional context as JSON

    Returns:
        The pending AuditLog instance
    """
    audit_log = AuditLog(
        actor_email=actor_email,
        action=action,
        target_collection=target_collection,
        target_id=target_id,
        meta_data=metadata
    )

    db.add(audit_log)
    await db.flush()

    return audit_log


async def get_audit_trail(
    db: AsyncSession,
    target_id: Optional[str] = None,
    action: Optional[str] = None,
    limit: int = 100
) -> List[AuditLog]:
    """
    Retrieve audit trail with optional filtering, most recent first.
    """
    query = select(AuditLog).order_by(desc(AuditLog.timestamp), desc(AuditLog.id))

    if target_id:
        query = query.where(AuditLog.target_id == target_id)

    if action:
        query = query.where(AuditLog.action == action)

    query = query.limit(limit)

    result = await db.execute(query)
    return result.scalars().all()
