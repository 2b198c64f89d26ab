"""
Approval service tests against the document store.
"""

import pytest
from sqlalchemy import select

from svr_backend.app.core.exceptions import InvalidStateError, NotFoundError
from svr_backend.app.domain.trips.approval import ExistingTripDecision, NewTripDecision
from svr_backend.app.models.audit_log import AuditLog
from svr_backend.app.models.service_request import ServiceRequest
from svr_backend.app.models.trip import Trip
from svr_backend.app.services.approval_service import ApprovalService


async def fetch(session_factory, model, record_id):
    async with session_factory() as session:
        return await session.get(model, record_id)


async def all_trips(session_factory):
    async with session_factory() as session:
        result = await session.execute(select(Trip))
        return result.scalars().all()


async def test_new_trip_approval_writes_request_trip_and_audit(store, session_factory, create_request):
    service_request = await create_request()

    result = await ApprovalService(store).approve(
        service_request.id, NewTripDecision(trip_code="250101-0001"), actor_email="admin@example.org"
    )

    assert result.created_trip
    assert result.trip.trip_code == "250101-0001"
    assert result.trip.request_ids == [service_request.id]
    assert result.request.status == "Approved"
    assert result.request.trip_id == result.trip.id

    stored_request = await fetch(session_factory, ServiceRequest, service_request.id)
    assert stored_request.status == "Approved"
    assert stored_request.trip_id == result.trip.id

    async with session_factory() as session:
        audit = (await session.execute(select(AuditLog))).scalars().all()
    assert [entry.action for entry in audit] == ["REQUEST_APPROVED"]
    assert audit[0].meta_data["trip_code"] == "250101-0001"


async def test_merge_into_existing_trip(store, session_factory, create_request, create_trip):
    trip = await create_trip(destination="Site A", personnel=["Zed"], purpose=["Delivery"])
    service_request = await create_request(requester_name="Bob", destination="Site B", requested_vehicle="SAA 7858")

    result = await ApprovalService(store).approve(service_request.id, ExistingTripDecision("250101-0001"))

    assert not result.created_trip
    stored_trip = await fetch(session_factory, Trip, trip.id)
    stored_request = await fetch(session_factory, ServiceRequest, service_request.id)

    assert stored_trip.destination == "Site A; Site B"
    assert stored_trip.personnel == ["Zed", "Bob"]
    assert stored_trip.request_ids == ["existing-request", service_request.id]
    assert stored_request.requested_vehicle == stored_trip.vehicle_assigned == "SKU 532"
    assert stored_request.requested_date_time == stored_trip.date_time
    assert stored_request.delegated_driver_name == "Dan"


async def test_unknown_trip_code_leaves_request_pending(store, session_factory, create_request):
    service_request = await create_request()

    with pytest.raises(NotFoundError) as exc_info:
        await ApprovalService(store).approve(service_request.id, ExistingTripDecision("250101-0042"))

    assert "Trip 250101-0042 not found" in exc_info.value.message
    stored = await fetch(session_factory, ServiceRequest, service_request.id)
    assert stored.status == "Pending"
    assert stored.trip_id is None


async def test_unknown_request_is_not_found(store):
    with pytest.raises(NotFoundError):
        await ApprovalService(store).approve("missing", NewTripDecision(trip_code="250101-0001"))


@pytest.mark.parametrize("status", ["Approved", "Cancelled", "Rescheduled"])
async def test_non_pending_request_leaves_records_unchanged(status, store, session_factory, create_request, create_trip):
    trip = await create_trip()
    service_request = await create_request(status=status, destination="Site Z")

    with pytest.raises(InvalidStateError):
        await ApprovalService(store).approve(service_request.id, ExistingTripDecision("250101-0001"))

    stored_trip = await fetch(session_factory, Trip, trip.id)
    assert stored_trip.destination == "Site A"
    assert stored_trip.request_ids == ["existing-request"]
    assert (await fetch(session_factory, ServiceRequest, service_request.id)).status == status


async def test_second_approval_of_same_request_is_rejected(store, create_request):
    service_request = await create_request()
    service = ApprovalService(store)

    await service.approve(service_request.id, NewTripDecision(trip_code="250101-0001"))

    with pytest.raises(InvalidStateError):
        await service.approve(service_request.id, NewTripDecision(trip_code="250101-0002"))


async def test_request_already_being_approved_is_rejected(store, session_factory, create_request):
    service_request = await create_request()

    async with store.claim(f"requests/{service_request.id}"):
        with pytest.raises(InvalidStateError) as exc_info:
            await ApprovalService(store).approve(service_request.id, NewTripDecision(trip_code="250101-0001"))

    assert "already in progress" in exc_info.value.message
    assert await all_trips(session_factory) == []
