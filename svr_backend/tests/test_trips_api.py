"""
Integration tests for the trip endpoints.
"""

from svr_backend.app.core.clock import local_today
from svr_backend.app.domain.trips.trip_code import date_prefix


async def test_next_code_for_empty_day(client, user_headers):
    response = await client.get("/v1/trips/next-code", headers=user_headers)

    prefix = date_prefix(local_today())
    assert response.status_code == 200
    assert response.json() == {"trip_code": f"{prefix}-0001", "date_prefix": prefix}


async def test_next_code_follows_todays_trips(client, user_headers, create_trip):
    prefix = date_prefix(local_today())
    await create_trip(trip_code=f"{prefix}-0001")
    await create_trip(trip_code=f"{prefix}-0003")
    await create_trip(trip_code="990101-0007")

    response = await client.get("/v1/trips/next-code", headers=user_headers)

    assert response.json()["trip_code"] == f"{prefix}-0004"


async def test_list_trips_code_descending(client, user_headers, create_trip):
    await create_trip(trip_code="250101-0001")
    await create_trip(trip_code="250102-0001")
    await create_trip(trip_code="250101-0002")

    response = await client.get("/v1/trips", headers=user_headers)

    assert [t["trip_code"] for t in response.json()["trips"]] == ["250102-0001", "250101-0002", "250101-0001"]


async def test_get_trip_by_code(client, user_headers, create_trip):
    await create_trip(trip_code="250101-0005")

    found = await client.get("/v1/trips/by-code/250101-0005", headers=user_headers)
    missing = await client.get("/v1/trips/by-code/250101-0006", headers=user_headers)
    malformed = await client.get("/v1/trips/by-code/nope", headers=user_headers)

    assert found.status_code == 200
    assert found.json()["trip_code"] == "250101-0005"
    assert missing.status_code == 404
    assert malformed.status_code == 400


async def test_fulfil_and_revert_trip(client, admin_headers, create_trip):
    trip = await create_trip()

    fulfilled = await client.patch(f"/v1/trips/{trip.id}/status", json={"status": "Fulfilled"}, headers=admin_headers)
    assert fulfilled.status_code == 200
    assert fulfilled.json()["status"] == "Fulfilled"
    assert fulfilled.json()["completed_date"] is not None

    reverted = await client.patch(f"/v1/trips/{trip.id}/status", json={"status": "Not Fulfilled"}, headers=admin_headers)
    assert reverted.json()["status"] == "Not Fulfilled"
    assert reverted.json()["completed_date"] is None


async def test_trip_status_requires_admin(client, user_headers, create_trip):
    trip = await create_trip()

    response = await client.patch(f"/v1/trips/{trip.id}/status", json={"status": "Fulfilled"}, headers=user_headers)

    assert response.status_code == 403


async def test_unknown_trip_status_is_rejected(client, admin_headers, create_trip):
    trip = await create_trip()

    response = await client.patch(f"/v1/trips/{trip.id}/status", json={"status": "Done"}, headers=admin_headers)

    assert response.status_code == 422


async def test_delete_trip(client, admin_headers, create_trip):
    trip = await create_trip()

    response = await client.delete(f"/v1/trips/{trip.id}", headers=admin_headers)
    assert response.status_code == 200

    listing = await client.get("/v1/trips", headers=admin_headers)
    assert listing.json()["total"] == 0
