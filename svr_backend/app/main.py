"""
FastAPI Application Entry Point.

This is the main application file for the Service Vehicle Requests Backend.
The lifespan owns the document store, the live request/trip views, the
notification center and the reference cache.
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from svr_backend.app.core.config import settings
from svr_backend.app.api.v1.router import router as api_v1_router
from svr_backend.app.core.observability import ObservabilityMiddleware, configure_logging
from svr_backend.app.db.session import engine, Base, AsyncSessionLocal
from svr_backend.app.core.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)
from svr_backend.app.services.document_store import DocumentStore, REQUESTS, TRIPS
from svr_backend.app.services.live_sync import LiveCollection, sort_requests, sort_trips
from svr_backend.app.services.notification_service import NotificationCenter
from svr_backend.app.services.reference_cache import ReferenceCache

# Import models to ensure they are registered with Base
from svr_backend.app.models.service_request import ServiceRequest
from svr_backend.app.models.trip import Trip
from svr_backend.app.models.reference import Department, ServiceVehicle
from svr_backend.app.models.audit_log import AuditLog

logger = logging.getLogger("svr")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup/shutdown.

    1. Configures logging and creates database tables.
    2. Builds the shared store, caches and live views.
    3. Closes the live views on shutdown (in-flight writes still finish).
    """
    configure_logging()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    store = DocumentStore(AsyncSessionLocal)
    notifications = NotificationCenter(limit=settings.notification_history_limit)

    request_view = LiveCollection(store, REQUESTS, sort_requests, on_change=notifications.on_request_change)
    trip_view = LiveCollection(store, TRIPS, sort_trips)
    await request_view.start()
    await trip_view.start()

    app.state.store = store
    app.state.notifications = notifications
    app.state.reference_cache = ReferenceCache()
    logger.info("%s started", settings.app_name)

    yield

    await request_view.close()
    await trip_view.close()
    await engine.dispose()


# Initialize FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.debug,
    description="Service vehicle requests and trip approvals",
    lifespan=lifespan,
)

app.add_middleware(ObservabilityMiddleware)

# Register global exception handlers
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint.

    Returns:
        dict: Status and application information
    """
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.api_version,
    }


# Include API v1 router
app.include_router(api_v1_router, prefix=f"/{settings.api_version}")


@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint.

    Returns:
        dict: Welcome message and API documentation links
    """
    return {
        "message": "Welcome to Service Vehicle Requests API",
        "docs": "/docs",
        "health": "/health",
    }
