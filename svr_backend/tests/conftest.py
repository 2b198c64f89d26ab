"""
Centralized Test Configuration.
"""

import pytest
from datetime import datetime, timezone
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from svr_backend.app.main import app
from svr_backend.app.db.session import Base
from svr_backend.app.core.dependencies import get_notification_center, get_reference_cache, get_store
from svr_backend.app.core.jwt import create_access_token
from svr_backend.app.models.service_request import ServiceRequest
from svr_backend.app.models.trip import Trip
from svr_backend.app.services.document_store import DocumentStore
from svr_backend.app.services.notification_service import NotificationCenter
from svr_backend.app.services.reference_cache import ReferenceCache

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

ADMIN_EMAIL = "admin@example.org"
USER_EMAIL = "requester@example.org"


@pytest.fixture
async def engine():
    """Fresh in-memory database per test, bound to the test's event loop."""
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


# Shared session for fixture data creation
@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def store(session_factory):
    return DocumentStore(session_factory)


@pytest.fixture
def notifications():
    return NotificationCenter(limit=5)


@pytest.fixture
def reference_cache():
    return ReferenceCache()


@pytest.fixture
async def client(store, notifications, reference_cache):
    """Async client for testing, wired to the per-test store and database."""
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_notification_center] = lambda: notifications
    app.dependency_overrides[get_reference_cache] = lambda: reference_cache

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides = {}


def make_token(email: str, admin: bool) -> str:
    return create_access_token(data={"sub": email, "email": email, "admin": admin})


@pytest.fixture
def admin_headers():
    return {"Authorization": f"Bearer {make_token(ADMIN_EMAIL, admin=True)}"}


@pytest.fixture
def user_headers():
    return {"Authorization": f"Bearer {make_token(USER_EMAIL, admin=False)}"}


def request_fields(**overrides) -> dict:
    """Column values for a valid Pending request."""
    fields = {
        "requester_name": "Alice",
        "department": "EOD",
        "requested_vehicle": "SAA 7857",
        "is_driver_requested": "No",
        "delegated_driver_name": None,
        "purpose": "Survey",
        "destination": "Site A",
        "requested_date_time": datetime(2025, 1, 1, 8, 0, tzinfo=timezone.utc),
        "status": "Pending",
    }
    fields.update(overrides)
    return fields


@pytest.fixture
def create_request(db_session):
    """Insert a request directly and return it."""
    async def _create(**overrides) -> ServiceRequest:
        service_request = ServiceRequest(**request_fields(**overrides))
        db_session.add(service_request)
        await db_session.commit()
        return service_request
    return _create


@pytest.fixture
def create_trip(db_session):
    """Insert a trip directly and return it."""
    async def _create(**overrides) -> Trip:
        fields = {
            "trip_code": "250101-0001",
            "date_time": datetime(2025, 1, 1, 9, 0, tzinfo=timezone.utc),
            "vehicle_assigned": "SKU 532",
            "driver_name": "Dan",
            "personnel": ["Zed"],
            "purpose": ["Delivery"],
            "destination": "Site A",
            "request_ids": ["existing-request"],
            "status": "Not Fulfilled",
        }
        fields.update(overrides)
        trip = Trip(**fields)
        db_session.add(trip)
        await db_session.commit()
        return trip
    return _create
