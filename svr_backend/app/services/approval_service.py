"""
Approval Service.

Applies an ApprovalPlan to the request and trip records in one atomic
batch, together with the REQUEST_APPROVED audit entry. Either the request
update, the trip create/update and the audit row all commit, or none does.

Concurrent approvals into the same trip are not serialized: each batch
reads the trip, computes merged personnel/purpose/destination and writes
them back, so the later commit wins.
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select

from svr_backend.app.core.exceptions import NotFoundError
from svr_backend.app.domain.trips.approval import (
    ApprovalDecision, ApprovalEngine, ExistingTripDecision, NewTripDecision
)
from svr_backend.app.models.service_request import ServiceRequest
from svr_backend.app.models.trip import Trip
from svr_backend.app.schemas.service_request import RequestRecord
from svr_backend.app.schemas.trip import TripRecord
from svr_backend.app.services.audit import AuditAction, log_event
from svr_backend.app.services.document_store import REQUESTS, TRIPS, DocumentStore

logger = logging.getLogger("svr.approval")


@dataclass(frozen=True)
class ApprovalResult:
    """Outcome of a committed approval (the "request approved into trip X" event)."""
    message: str
    created_trip: bool
    request: RequestRecord
    trip: TripRecord


class ApprovalService:

    def __init__(self, store: DocumentStore):
        self.store = store

    async def approve(
        self,
        request_id: str,
        decision: ApprovalDecision,
        actor_email: Optional[str] = None
    ) -> ApprovalResult:
        """
        Approve a pending request into a new or existing trip.

        Raises:
            NotFoundError: request missing, or no trip carries the decision's trip code
            InvalidStateError: request is not Pending, or is already being approved
            ValidationError: malformed trip code
            TransientStoreError: the batch could not be committed
        """
        async with self.store.claim(f"{REQUESTS}/{request_id}"):
            async with self.store.batch(REQUESTS, TRIPS) as db:
                service_request = await db.get(ServiceRequest, request_id)
                if service_request is None:
                    raise NotFoundError("Request", request_id)

                if isinstance(decision, NewTripDecision):
                    plan = ApprovalEngine.plan_new_trip(service_request, decision)
                    trip = Trip(id=str(uuid.uuid4()), **plan.trip_fields)
                    db.add(trip)
                elif isinstance(decision, ExistingTripDecision):
                    ApprovalEngine.ensure_approvable(service_request)
                    trip = await self._find_trip_by_code(db, decision.trip_code)
                    plan = ApprovalEngine.plan_merge(service_request, trip, decision)
                    for field, value in plan.trip_fields.items():
                        setattr(trip, field, value)
                else:
                    raise TypeError(f"Unsupported approval decision: {decision!r}")

                for field, value in plan.request_changes.items():
                    setattr(service_request, field, value)
                service_request.trip_id = trip.id

                await log_event(
                    db=db,
                    action=AuditAction.REQUEST_APPROVED,
                    actor_email=actor_email,
                    target_collection=REQUESTS,
                    target_id=service_request.id,
                    metadata={
                        "trip_id": trip.id,
                        "trip_code": plan.trip_code,
                        "created_trip": plan.creates_trip,
                        "requester_name": service_request.requester_name,
                    }
                )

        logger.info(
            "%s Request approved for trip %s (request=%s, new_trip=%s)",
            service_request.requester_name, plan.trip_code, request_id, plan.creates_trip
        )
        return ApprovalResult(
            message=plan.message,
            created_trip=plan.creates_trip,
            request=RequestRecord.model_validate(service_request),
            trip=TripRecord.model_validate(trip),
        )

    @staticmethod
    async def _find_trip_by_code(db, trip_code: str) -> Trip:
        ApprovalEngine.validate_trip_code(trip_code)
        result = await db.execute(
            select(Trip).where(Trip.trip_code == trip_code).order_by(Trip.created_at).limit(1)
        )
        trip = result.scalars().first()
        if trip is None:
            raise NotFoundError(
                "Trip",
                trip_code,
                message=f"Trip {trip_code} not found! Refresh the trip list and retry."
            )
        return trip
