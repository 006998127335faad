"""
Reference data seeding.

Runs at startup and is safe to repeat: every row goes through the same
upsert used at request time.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from registrar.core.logging import logger
from registrar.core.routing_config import RoutingConfig
from registrar.db.upsert import upsert_and_fetch
from registrar.models.request import RequestStatus, StatusLookup
from registrar.services.reference_data import ReferenceDataService


async def seed_statuses(db: AsyncSession) -> None:
    """Mirror the ``RequestStatus`` enum into the lookup table."""
    for status in RequestStatus:
        await upsert_and_fetch(db, StatusLookup, keys={"id": int(status)}, values={"status_name": status.name})


async def seed_level_departments(db: AsyncSession, config: RoutingConfig) -> None:
    """Create the fixed pre-college departments."""
    for name in config.level_departments.values():
        await ReferenceDataService.ensure_department(db, name)


async def bootstrap_reference_data(db: AsyncSession, config: RoutingConfig) -> None:
    await seed_statuses(db)
    await seed_level_departments(db, config)
    await db.commit()
    logger.info(
        f"Reference data ready: {len(RequestStatus)} statuses, "
        f"{len(config.level_departments)} pre-college departments"
    )
