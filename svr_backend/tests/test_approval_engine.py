"""
Approval/merge engine tests.

The engine is pure, so plain namespaces stand in for records.
"""

import pytest
from datetime import date, datetime, timezone
from types import SimpleNamespace

from svr_backend.app.core.exceptions import InvalidStateError, ValidationError
from svr_backend.app.domain.trips.approval import (
    RECONCILED_FIELDS, ApprovalEngine, ExistingTripDecision, NewTripDecision
)

REQUESTED_AT = datetime(2025, 1, 1, 8, 0, tzinfo=timezone.utc)
TRIP_AT = datetime(2025, 1, 1, 13, 0, tzinfo=timezone.utc)


def make_request(**overrides):
    fields = {
        "id": "req-1",
        "requester_name": "Alice",
        "requested_vehicle": "V",
        "is_driver_requested": "No",
        "delegated_driver_name": None,
        "purpose": "Survey",
        "destination": "Site A",
        "requested_date_time": REQUESTED_AT,
        "remarks": None,
        "completed_date": None,
        "status": "Pending",
    }
    fields.update(overrides)
    return SimpleNamespace(**fields)


def make_trip(**overrides):
    fields = {
        "trip_code": "250101-0001",
        "date_time": TRIP_AT,
        "vehicle_assigned": "SKU 532",
        "driver_name": "Dan",
        "personnel": ["Alice"],
        "purpose": ["Survey"],
        "destination": "Site A",
        "request_ids": ["req-1"],
    }
    fields.update(overrides)
    return SimpleNamespace(**fields)


def merge(request, trip):
    """Apply a merge plan to namespaces, the way the service applies it to rows."""
    plan = ApprovalEngine.plan_merge(request, trip, ExistingTripDecision(trip.trip_code))
    for field, value in plan.trip_fields.items():
        setattr(trip, field, value)
    for field, value in plan.request_changes.items():
        setattr(request, field, value)
    return plan


class TestNewTrip:

    def test_new_trip_without_overrides_copies_request(self):
        request = make_request()
        plan = ApprovalEngine.plan_new_trip(request, NewTripDecision(trip_code="250101-0001"))

        assert plan.creates_trip
        assert plan.trip_fields["vehicle_assigned"] == "V"
        assert plan.trip_fields["personnel"] == ["Alice"]
        assert plan.trip_fields["purpose"] == ["Survey"]
        assert plan.trip_fields["destination"] == "Site A"
        assert plan.trip_fields["request_ids"] == ["req-1"]
        assert plan.trip_fields["status"] == "Not Fulfilled"
        assert plan.trip_fields["date_time"] == REQUESTED_AT
        assert plan.request_changes["status"] == "Approved"
        assert plan.request_changes["requested_vehicle"] == "V"
        assert plan.request_changes["requested_date_time"] == REQUESTED_AT
        assert plan.message == "Request approved and new trip 250101-0001 created!"

    def test_decision_values_override_request(self):
        request = make_request()
        decision = NewTripDecision(trip_code="250101-0002", vehicle="SAB 6182", driver_name="Ray", date_time=TRIP_AT)
        plan = ApprovalEngine.plan_new_trip(request, decision)

        assert plan.trip_fields["vehicle_assigned"] == "SAB 6182"
        assert plan.trip_fields["driver_name"] == "Ray"
        assert plan.trip_fields["date_time"] == TRIP_AT
        assert plan.request_changes["is_driver_requested"] == "Yes"
        assert plan.request_changes["delegated_driver_name"] == "Ray"

    def test_request_driver_used_when_decision_has_none(self):
        request = make_request(is_driver_requested="Yes", delegated_driver_name="Mia")
        plan = ApprovalEngine.plan_new_trip(request, NewTripDecision(trip_code="250101-0001"))

        assert plan.trip_fields["driver_name"] == "Mia"
        assert plan.request_changes["is_driver_requested"] == "Yes"
        assert plan.request_changes["delegated_driver_name"] == "Mia"

    def test_no_driver_anywhere_means_flag_no(self):
        plan = ApprovalEngine.plan_new_trip(make_request(), NewTripDecision(trip_code="250101-0001"))

        assert plan.trip_fields["driver_name"] is None
        assert plan.request_changes["is_driver_requested"] == "No"
        assert plan.request_changes["delegated_driver_name"] is None

    def test_completed_date_survives_only_with_completed_remarks(self):
        kept = make_request(remarks="completed early", completed_date=date(2025, 1, 2))
        dropped = make_request(remarks="n/a", completed_date=date(2025, 1, 2))

        decision = NewTripDecision(trip_code="250101-0001")
        assert ApprovalEngine.plan_new_trip(kept, decision).request_changes["completed_date"] == date(2025, 1, 2)
        assert ApprovalEngine.plan_new_trip(dropped, decision).request_changes["completed_date"] is None

    def test_request_changes_never_touch_remarks(self):
        plan = ApprovalEngine.plan_new_trip(
            make_request(remarks="completed early", completed_date=date(2025, 1, 2)),
            NewTripDecision(trip_code="250101-0001")
        )

        assert set(plan.request_changes) == set(RECONCILED_FIELDS)
        assert "remarks" not in plan.request_changes

    def test_malformed_trip_code_is_rejected(self):
        with pytest.raises(ValidationError):
            ApprovalEngine.plan_new_trip(make_request(), NewTripDecision(trip_code="2501-1"))


class TestMerge:

    def test_destination_union_and_duplicate(self):
        trip = make_trip(destination="Site A")

        merge(make_request(id="r2", destination="Site B"), trip)
        assert trip.destination == "Site A; Site B"

        merge(make_request(id="r3", destination="site a"), trip)
        assert trip.destination == "Site A; Site B"

    def test_blank_destination_leaves_trip_unchanged(self):
        trip = make_trip(destination="Site A")
        merge(make_request(id="r2", destination="  "), trip)
        assert trip.destination == "Site A"

    def test_trip_without_destination_adopts_request_destination(self):
        trip = make_trip(destination=None)
        merge(make_request(id="r2", destination="Site C"), trip)
        assert trip.destination == "Site C"

    def test_personnel_and_purpose_dedup(self):
        trip = make_trip(personnel=[], purpose=[], request_ids=[])

        merge(make_request(id="b1", requester_name="Bob", purpose="Inspection"), trip)
        merge(make_request(id="b2", requester_name="Bob", purpose="Inspection"), trip)

        assert trip.personnel == ["Bob"]
        assert trip.purpose == ["Inspection"]
        assert trip.request_ids == ["b1", "b2"]

    def test_dedup_is_case_sensitive(self):
        trip = make_trip(personnel=["Bob"], purpose=["Inspection"])
        merge(make_request(id="r2", requester_name="bob", purpose="inspection"), trip)

        assert trip.personnel == ["Bob", "bob"]
        assert trip.purpose == ["Inspection", "inspection"]

    def test_request_conforms_to_trip(self):
        trip = make_trip()
        request = make_request(id="r2", requested_vehicle="Other", requested_date_time=REQUESTED_AT)
        plan = merge(request, trip)

        assert request.requested_vehicle == trip.vehicle_assigned == "SKU 532"
        assert request.requested_date_time == trip.date_time == TRIP_AT
        assert request.is_driver_requested == "Yes"
        assert request.delegated_driver_name == "Dan"
        assert request.status == "Approved"
        assert plan.message == "Request approved and added to existing trip 250101-0001!"

    def test_trip_without_driver_sets_flag_no(self):
        trip = make_trip(driver_name=None)
        request = make_request(id="r2")
        merge(request, trip)

        assert request.is_driver_requested == "No"
        assert request.delegated_driver_name is None

    def test_unset_trip_fields_are_backfilled(self):
        trip = make_trip(date_time=None, vehicle_assigned=None, driver_name=None)
        request = make_request(id="r2", is_driver_requested="Yes", delegated_driver_name="Mia")
        merge(request, trip)

        assert trip.date_time == REQUESTED_AT
        assert trip.vehicle_assigned == "V"
        assert trip.driver_name == "Mia"
        assert request.delegated_driver_name == "Mia"

    def test_trip_personnel_is_superset_of_members(self):
        trip = make_trip(personnel=[], purpose=[], request_ids=[])
        members = [
            make_request(id=f"r{n}", requester_name=name, purpose=purpose)
            for n, (name, purpose) in enumerate([("Ann", "Audit"), ("Ben", "Audit"), ("Ann", "Repair")])
        ]
        for member in members:
            merge(member, trip)

        assert {m.requester_name for m in members} <= set(trip.personnel)
        assert {m.purpose for m in members} <= set(trip.purpose)


@pytest.mark.parametrize("status", ["Approved", "Cancelled", "Rescheduled"])
def test_non_pending_requests_cannot_be_approved(status):
    request = make_request(status=status)

    with pytest.raises(InvalidStateError):
        ApprovalEngine.plan_new_trip(request, NewTripDecision(trip_code="250101-0001"))
    with pytest.raises(InvalidStateError):
        ApprovalEngine.plan_merge(request, make_trip(), ExistingTripDecision("250101-0001"))
