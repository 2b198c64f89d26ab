"""
Reference Catalog API Endpoints.

Departments and service vehicles offered on the request form.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.exc import IntegrityError

from svr_backend.app.core.dependencies import get_current_user, get_reference_cache, get_store
from svr_backend.app.core.exceptions import InvalidStateError, ValidationError
from svr_backend.app.core.guards import require_admin
from svr_backend.app.models.reference import Department, ServiceVehicle
from svr_backend.app.schemas.reference import CatalogEntryCreate, CatalogResponse
from svr_backend.app.services.audit import AuditAction, log_event
from svr_backend.app.services.document_store import DocumentStore
from svr_backend.app.services.reference_cache import DEPARTMENTS, VEHICLES, ReferenceCache

router = APIRouter(prefix="/reference", tags=["Reference"])


async def _add_entry(store: DocumentStore, cache: ReferenceCache, catalog: str, model, name: str, actor_email: str):
    if not name:
        raise ValidationError(message="Name must not be blank", details={"catalog": catalog})
    try:
        async with store.batch(catalog) as session:
            session.add(model(name=name))
            try:
                await session.flush()
            except IntegrityError:
                raise InvalidStateError(
                    message=f"{name} already exists in {catalog}",
                    details={"catalog": catalog, "name": name}
                )
            await log_event(
                db=session,
                action=AuditAction.CATALOG_ENTRY_ADDED,
                actor_email=actor_email,
                target_collection=catalog,
                target_id=name
            )
    finally:
        cache.invalidate(catalog)


async def _entries(store: DocumentStore, cache: ReferenceCache, catalog: str):
    async with store.session() as db:
        if catalog == DEPARTMENTS:
            names = await cache.departments(db)
        else:
            names = await cache.vehicles(db)
    return CatalogResponse(names=names)


@router.get("/departments", response_model=CatalogResponse)
async def list_departments(
    current_user: dict = Depends(get_current_user),
    cache: ReferenceCache = Depends(get_reference_cache),
    store: DocumentStore = Depends(get_store)
):
    return await _entries(store, cache, DEPARTMENTS)


@router.get("/vehicles", response_model=CatalogResponse)
async def list_vehicles(
    current_user: dict = Depends(get_current_user),
    cache: ReferenceCache = Depends(get_reference_cache),
    store: DocumentStore = Depends(get_store)
):
    return await _entries(store, cache, VEHICLES)


@router.post("/departments", response_model=CatalogResponse, status_code=status.HTTP_201_CREATED)
async def add_department(
    payload: CatalogEntryCreate,
    admin: dict = Depends(require_admin),
    cache: ReferenceCache = Depends(get_reference_cache),
    store: DocumentStore = Depends(get_store)
):
    """Add a department (Admin only)."""
    await _add_entry(store, cache, DEPARTMENTS, Department, payload.name.strip(), admin.get("email"))
    return await _entries(store, cache, DEPARTMENTS)


@router.post("/vehicles", response_model=CatalogResponse, status_code=status.HTTP_201_CREATED)
async def add_vehicle(
    payload: CatalogEntryCreate,
    admin: dict = Depends(require_admin),
    cache: ReferenceCache = Depends(get_reference_cache),
    store: DocumentStore = Depends(get_store)
):
    """Add a service vehicle (Admin only)."""
    await _add_entry(store, cache, VEHICLES, ServiceVehicle, payload.name.strip(), admin.get("email"))
    return await _entries(store, cache, VEHICLES)
