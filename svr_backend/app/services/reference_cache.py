"""
Reference catalog cache.

Departments and service vehicles rarely change, so they are read once and
kept until an admin adds an entry. One instance is owned by the
application and handed to endpoints through a dependency.
"""

import logging
from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from svr_backend.app.models.reference import Department, ServiceVehicle

logger = logging.getLogger("svr.reference")

DEPARTMENTS = "departments"
VEHICLES = "vehicles"

_CATALOG_MODELS = {
    DEPARTMENTS: Department,
    VEHICLES: ServiceVehicle,
}


class ReferenceCache:

    def __init__(self):
        self._entries: Dict[str, List[str]] = {}

    async def departments(self, db: AsyncSession) -> List[str]:
        return await self._load(db, DEPARTMENTS)

    async def vehicles(self, db: AsyncSession) -> List[str]:
        return await self._load(db, VEHICLES)

    def invalidate(self, catalog: Optional[str] = None) -> None:
        """Drop one catalog, or all of them."""
        if catalog is None:
            self._entries.clear()
        else:
            self._entries.pop(catalog, None)

    async def _load(self, db: AsyncSession, catalog: str) -> List[str]:
        cached = self._entries.get(catalog)
        if cached is not None:
            return list(cached)

        model = _CATALOG_MODELS[catalog]
        result = await db.execute(select(model.name).order_by(model.id))
        names = list(result.scalars().all())
        self._entries[catalog] = names
        logger.debug("Loaded %d %s", len(names), catalog)
        return list(names)
