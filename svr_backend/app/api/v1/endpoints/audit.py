"""
Audit Trail API Endpoints.
"""

from fastapi import APIRouter, Depends, Query

from svr_backend.app.core.dependencies import get_store
from svr_backend.app.core.guards import require_admin
from svr_backend.app.schemas.audit import AuditLogResponse, AuditTrailResponse
from svr_backend.app.services.audit import get_audit_trail
from svr_backend.app.services.document_store import DocumentStore

router = APIRouter(prefix="/audit-logs", tags=["Audit"])


@router.get("", response_model=AuditTrailResponse)
async def get_audit_logs(
    target_id: str = Query(None, description="Filter by affected record ID"),
    action: str = Query(None, description="Filter by action type"),
    limit: int = Query(100, ge=1, le=500, description="Maximum records to return"),
    admin: dict = Depends(require_admin),
    store: DocumentStore = Depends(get_store)
):
    """Get the audit trail, most recent first (Admin only)."""
    async with store.session() as db:
        logs = await get_audit_trail(db=db, target_id=target_id, action=action, limit=limit)

    return AuditTrailResponse(
        logs=[AuditLogResponse.model_validate(log) for log in logs],
        total=len(logs)
    )
