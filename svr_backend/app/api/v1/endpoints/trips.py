"""
Trip API Endpoints.

Trips are created and extended only by request approval; these endpoints
list them, suggest the next trip code and let admins mark a trip
fulfilled or delete it.
"""

from fastapi import APIRouter, Depends, Path
from sqlalchemy import select

from svr_backend.app.core.clock import local_today
from svr_backend.app.core.dependencies import get_current_user, get_store
from svr_backend.app.core.exceptions import NotFoundError
from svr_backend.app.core.guards import require_admin
from svr_backend.app.db.session import utcnow
from svr_backend.app.domain.trips.approval import ApprovalEngine
from svr_backend.app.domain.trips.trip_code import date_prefix, next_trip_code
from svr_backend.app.models.enums import TripStatus
from svr_backend.app.models.trip import Trip
from svr_backend.app.schemas.trip import (
    NextTripCodeResponse, TripListResponse, TripRecord, TripStatusUpdate
)
from svr_backend.app.services.audit import AuditAction, log_event
from svr_backend.app.services.document_store import TRIPS, DocumentStore
from svr_backend.app.services.live_sync import sort_trips

router = APIRouter(prefix="/trips", tags=["Trips"])


@router.get("", response_model=TripListResponse)
async def list_trips(
    current_user: dict = Depends(get_current_user),
    store: DocumentStore = Depends(get_store)
):
    """List trips, most recent trip code first."""
    async with store.session() as db:
        result = await db.execute(select(Trip))
        trips = sort_trips(TripRecord.model_validate(row) for row in result.scalars().all())
    return TripListResponse(trips=trips, total=len(trips))


@router.get("/next-code", response_model=NextTripCodeResponse)
async def get_next_trip_code(
    current_user: dict = Depends(get_current_user),
    store: DocumentStore = Depends(get_store)
):
    """
    Suggest the next trip code for today.

    Nothing is reserved: two admins asking at the same time get the same code.
    """
    today = local_today()
    prefix = date_prefix(today)
    async with store.session() as db:
        result = await db.execute(select(Trip.trip_code).where(Trip.trip_code.startswith(prefix)))
        codes = result.scalars().all()
    return NextTripCodeResponse(
        trip_code=next_trip_code(codes, today),
        date_prefix=prefix
    )


@router.get("/by-code/{trip_code}", response_model=TripRecord)
async def get_trip_by_code(
    trip_code: str = Path(..., description="Trip code (YYMMDD-XXXX)"),
    current_user: dict = Depends(get_current_user),
    store: DocumentStore = Depends(get_store)
):
    """Look up a trip by its code."""
    ApprovalEngine.validate_trip_code(trip_code)
    async with store.session() as db:
        result = await db.execute(
            select(Trip).where(Trip.trip_code == trip_code).order_by(Trip.created_at).limit(1)
        )
        trip = result.scalars().first()
    if trip is None:
        raise NotFoundError("Trip", trip_code)
    return TripRecord.model_validate(trip)


@router.patch("/{trip_id}/status", response_model=TripRecord)
async def update_trip_status(
    payload: TripStatusUpdate,
    trip_id: str = Path(..., description="Trip ID"),
    admin: dict = Depends(require_admin),
    store: DocumentStore = Depends(get_store)
):
    """
    Mark a trip Fulfilled or Not Fulfilled (Admin only).

    Fulfilled stamps the completion date; reverting clears it.
    """
    async with store.batch(TRIPS) as session:
        trip = await session.get(Trip, trip_id)
        if trip is None:
            raise NotFoundError("Trip", trip_id)

        old_status = trip.status
        trip.status = payload.status.value
        if payload.status == TripStatus.FULFILLED:
            if old_status != TripStatus.FULFILLED.value or trip.completed_date is None:
                trip.completed_date = utcnow()
        else:
            trip.completed_date = None

        await log_event(
            db=session,
            action=AuditAction.TRIP_STATUS_CHANGED,
            actor_email=admin.get("email"),
            target_collection=TRIPS,
            target_id=trip_id,
            metadata={"trip_code": trip.trip_code, "old_status": old_status, "new_status": trip.status}
        )

    return TripRecord.model_validate(trip)


@router.delete("/{trip_id}")
async def delete_trip(
    trip_id: str = Path(..., description="Trip ID"),
    admin: dict = Depends(require_admin),
    store: DocumentStore = Depends(get_store)
):
    """Delete a trip (Admin only). Its member requests keep their Approved status."""
    async with store.batch(TRIPS) as session:
        trip = await session.get(Trip, trip_id)
        if trip is None:
            raise NotFoundError("Trip", trip_id)

        await session.delete(trip)
        await log_event(
            db=session,
            action=AuditAction.TRIP_DELETED,
            actor_email=admin.get("email"),
            target_collection=TRIPS,
            target_id=trip_id,
            metadata={"trip_code": trip.trip_code, "request_ids": list(trip.request_ids or [])}
        )

    return {"message": f"Trip {trip.trip_code} deleted successfully!", "id": trip_id}
