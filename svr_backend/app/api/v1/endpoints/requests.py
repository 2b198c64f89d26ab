"""
Service Request API Endpoints.

Personnel submit requests; admins edit, delete and approve them into trips.
Every write goes through the document store so live views see it.
"""

import enum
import logging
from fastapi import APIRouter, Depends, Path, status
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from svr_backend.app.core.clock import local_today, to_local
from svr_backend.app.core.dependencies import (
    get_current_user, get_notification_center, get_reference_cache, get_store
)
from svr_backend.app.core.exceptions import NotFoundError, ValidationError
from svr_backend.app.core.guards import require_admin
from svr_backend.app.domain.requests.rules import (
    missing_fields, normalize_request_fields, require_catalog_value, require_submission_fields
)
from svr_backend.app.models.enums import RequestStatus
from svr_backend.app.models.service_request import ServiceRequest
from svr_backend.app.schemas.approval import ApprovalRequest, ApprovalResponse
from svr_backend.app.schemas.service_request import (
    RequestCreate, RequestListResponse, RequestRecord, RequestUpdate
)
from svr_backend.app.services.approval_service import ApprovalService
from svr_backend.app.services.audit import AuditAction, log_event
from svr_backend.app.services.csv_export import EXPORT_FILENAME, NO_DATA_MESSAGE, export_requests_csv
from svr_backend.app.services.document_store import REQUESTS, DocumentStore
from svr_backend.app.services.live_sync import sort_requests
from svr_backend.app.services.notification_service import NotificationCenter, NotificationType
from svr_backend.app.services.reference_cache import ReferenceCache

logger = logging.getLogger("svr.requests")

router = APIRouter(prefix="/requests", tags=["Requests"])

# Fields whose stored value may change as a consequence of another field
_DERIVED_FIELDS = ("is_driver_requested", "delegated_driver_name", "completed_date")


def _plain(value):
    return value.value if isinstance(value, enum.Enum) else value


async def _load_requests(store: DocumentStore):
    async with store.session() as db:
        result = await db.execute(select(ServiceRequest))
        return sort_requests(RequestRecord.model_validate(row) for row in result.scalars().all())


async def _check_catalogs(fields: dict, cache: ReferenceCache, db: AsyncSession) -> None:
    if "department" in fields:
        require_catalog_value("department", fields["department"], await cache.departments(db))
    if "requested_vehicle" in fields:
        require_catalog_value("requested_vehicle", fields["requested_vehicle"], await cache.vehicles(db))


@router.post("", response_model=RequestRecord, status_code=status.HTTP_201_CREATED)
async def submit_request(
    payload: RequestCreate,
    current_user: dict = Depends(get_current_user),
    store: DocumentStore = Depends(get_store),
    notifications: NotificationCenter = Depends(get_notification_center),
    cache: ReferenceCache = Depends(get_reference_cache)
):
    """
    Submit a new service request.

    Status is always Pending and the timestamp is set by the server.
    Required fields are checked before anything is written.
    """
    fields = payload.model_dump()
    label = f"request \"{payload.requested_vehicle}\" by {payload.requester_name}"

    with notifications.record_failure(NotificationType.ADD_ATTEMPT, f"Failed to add {label}."):
        require_submission_fields(fields)
        async with store.session() as db:
            await _check_catalogs(fields, cache, db)
        fields = normalize_request_fields(fields)

        async with store.batch(REQUESTS) as session:
            service_request = ServiceRequest(**fields, status=RequestStatus.PENDING.value)
            session.add(service_request)
            await session.flush()
            await log_event(
                db=session,
                action=AuditAction.REQUEST_SUBMITTED,
                actor_email=current_user.get("email"),
                target_collection=REQUESTS,
                target_id=service_request.id,
                metadata={"requester_name": service_request.requester_name}
            )

    logger.info("Request %s submitted by %s", service_request.id, current_user.get("email"))
    return RequestRecord.model_validate(service_request)


@router.get("", response_model=RequestListResponse)
async def list_requests(
    current_user: dict = Depends(get_current_user),
    store: DocumentStore = Depends(get_store)
):
    """List all requests, Pending first, newest first within a status."""
    requests = await _load_requests(store)
    return RequestListResponse(requests=requests, total=len(requests))


@router.get("/today", response_model=RequestListResponse)
async def list_todays_requests(
    current_user: dict = Depends(get_current_user),
    store: DocumentStore = Depends(get_store)
):
    """Requests submitted today (business timezone)."""
    today = local_today()
    requests = [
        request for request in await _load_requests(store)
        if request.timestamp is not None and to_local(request.timestamp).date() == today
    ]
    return RequestListResponse(requests=requests, total=len(requests))


@router.get("/export")
async def export_requests(
    current_user: dict = Depends(get_current_user),
    store: DocumentStore = Depends(get_store)
):
    """Download all requests as ``service_vehicle_requests.csv``."""
    content = export_requests_csv(await _load_requests(store))
    if content is None:
        return {"message": NO_DATA_MESSAGE}

    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f"attachment; filename=\"{EXPORT_FILENAME}\""}
    )


@router.patch("/{request_id}", response_model=RequestRecord)
async def update_request(
    payload: RequestUpdate,
    request_id: str = Path(..., description="Request ID"),
    admin: dict = Depends(require_admin),
    store: DocumentStore = Depends(get_store),
    notifications: NotificationCenter = Depends(get_notification_center),
    cache: ReferenceCache = Depends(get_reference_cache)
):
    """
    Edit a request (Admin only).

    Only the fields sent are changed. Turning the driver flag to "No"
    clears the delegated driver; removing "completed" from the remarks
    clears the completed date.
    """
    changes = payload.model_dump(exclude_unset=True)

    with notifications.record_failure(NotificationType.UPDATE_ATTEMPT, f"Failed to update request {request_id}."):
        async with store.batch(REQUESTS) as session:
            service_request = await session.get(ServiceRequest, request_id)
            if service_request is None:
                raise NotFoundError("Request", request_id)

            current = RequestRecord.model_validate(service_request).model_dump()
            merged = normalize_request_fields({**current, **changes})

            blanked = [field for field in missing_fields(merged) if field in changes]
            if blanked:
                raise ValidationError(missing_fields=blanked)
            await _check_catalogs(changes, cache, session)

            for field in set(changes) | set(_DERIVED_FIELDS):
                setattr(service_request, field, _plain(merged[field]))

            await log_event(
                db=session,
                action=AuditAction.REQUEST_UPDATED,
                actor_email=admin.get("email"),
                target_collection=REQUESTS,
                target_id=request_id,
                metadata={"fields": sorted(changes)}
            )

    return RequestRecord.model_validate(service_request)


@router.delete("/{request_id}")
async def delete_request(
    request_id: str = Path(..., description="Request ID"),
    admin: dict = Depends(require_admin),
    store: DocumentStore = Depends(get_store),
    notifications: NotificationCenter = Depends(get_notification_center)
):
    """Delete a request (Admin only). Trips that list it are not changed."""
    with notifications.record_failure(NotificationType.DELETE_ATTEMPT, f"Failed to delete request {request_id}."):
        async with store.batch(REQUESTS) as session:
            service_request = await session.get(ServiceRequest, request_id)
            if service_request is None:
                raise NotFoundError("Request", request_id)

            await session.delete(service_request)
            await log_event(
                db=session,
                action=AuditAction.REQUEST_DELETED,
                actor_email=admin.get("email"),
                target_collection=REQUESTS,
                target_id=request_id,
                metadata={"requester_name": service_request.requester_name, "status": service_request.status}
            )

    return {"message": "Request deleted successfully!", "id": request_id}


@router.post("/{request_id}/approve", response_model=ApprovalResponse)
async def approve_request(
    payload: ApprovalRequest,
    request_id: str = Path(..., description="Request ID"),
    admin: dict = Depends(require_admin),
    store: DocumentStore = Depends(get_store),
    notifications: NotificationCenter = Depends(get_notification_center)
):
    """
    Approve a Pending request (Admin only).

    ``mode: new`` creates a trip with the given code; ``mode: existing``
    adds the request to the trip that carries the code. The request update,
    the trip write and the audit entry commit together.
    """
    with notifications.record_failure(NotificationType.UPDATE_ATTEMPT, f"Failed to approve request {request_id}."):
        result = await ApprovalService(store).approve(
            request_id,
            payload.to_decision(),
            actor_email=admin.get("email")
        )

    return ApprovalResponse(
        message=result.message,
        created_trip=result.created_trip,
        request=result.request,
        trip=result.trip
    )
