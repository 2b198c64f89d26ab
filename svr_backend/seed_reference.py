"""
Database seeding script for the reference catalogs.

Creates the departments and service vehicles offered on the request form.
Run this script after database is set up but before first use:

    python -m svr_backend.seed_reference
"""

import asyncio

from sqlalchemy import select

from svr_backend.app.db.session import AsyncSessionLocal, Base, engine
from svr_backend.app.models.reference import Department, ServiceVehicle

DEPARTMENTS = ["EOD", "AGSD", "OGM", "FCSD"]

VEHICLES = [
    "SAA 7857", "SAA 7858", "SKU 532", "SKU 534", "SAB 6182",
    "131202", "131206", "SEH673", "SEH336",
    "0501494280 NO. 01", "0501494264 NO. 02", "0501494472 NO. 03", "0501494277 NO. 04",
    "494231", "MV287", "MV291", "MV231", "SBA 1045", "SBA 1406",
]


async def _seed_catalog(db, model, names) -> int:
    result = await db.execute(select(model.name))
    existing = set(result.scalars().all())
    added = 0
    for name in names:
        if name not in existing:
            db.add(model(name=name))
            added += 1
    return added


async def seed_reference():
    """
    Seed department and vehicle catalogs.

    Existing entries are kept; only missing names are added.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        print("🌱 Starting reference seeding...")

        departments = await _seed_catalog(db, Department, DEPARTMENTS)
        print(f"✅ Added {departments} department(s)")

        vehicles = await _seed_catalog(db, ServiceVehicle, VEHICLES)
        print(f"✅ Added {vehicles} vehicle(s)")

        await db.commit()

        print("\n🎉 Reference seeding completed successfully!")

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(seed_reference())
