"""Location directory and administrator settings."""

from typing import Any, Dict, List
import logging

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.exceptions import ConflictError, InvalidInputError, NotFoundError
from core.security import SessionContext, require_admin
from database.models.directory import AppSetting, Location

logger = logging.getLogger(__name__)

HOURLY_RATE_KEY = "hourly_rate"


async def list_locations(db: AsyncSession) -> List[Dict[str, Any]]:
    result = await db.execute(select(Location).order_by(Location.name))
    return [{"id": loc.id, "name": loc.name} for loc in result.scalars().all()]


async def create_location(
    db: AsyncSession, ctx: SessionContext, name: str
) -> Dict[str, Any]:
    require_admin(ctx)
    name = name.strip()
    if not name:
        raise InvalidInputError("Location name must not be empty")

    location = Location(name=name)
    db.add(location)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError(f"Location '{name}' already exists")

    logger.info(f"Location {location.id} created by user {ctx.user_id}")
    return {"id": location.id, "name": location.name}


async def delete_location(
    db: AsyncSession, ctx: SessionContext, location_id: int
) -> None:
    """Remove a location from the picker. Jobs keep their stored location text."""
    require_admin(ctx)
    result = await db.execute(delete(Location).where(Location.id == location_id))
    if not result.rowcount:
        await db.rollback()
        raise NotFoundError(f"Location {location_id} not found")
    await db.commit()
    logger.info(f"Location {location_id} deleted by user {ctx.user_id}")


async def get_hourly_rate(db: AsyncSession) -> int:
    """
    Current hourly rate in whole currency units.

    Falls back to the configured default when the setting is missing or not
    a non-negative integer.
    """
    value = await db.scalar(
        select(AppSetting.value).where(AppSetting.key == HOURLY_RATE_KEY)
    )
    if value is None:
        return settings.default_hourly_rate
    try:
        rate = int(value)
    except ValueError:
        logger.warning(f"Ignoring malformed hourly_rate setting: {value!r}")
        return settings.default_hourly_rate
    if rate < 0:
        logger.warning(f"Ignoring negative hourly_rate setting: {rate}")
        return settings.default_hourly_rate
    return rate


async def set_hourly_rate(db: AsyncSession, ctx: SessionContext, rate: int) -> int:
    require_admin(ctx)
    if rate < 0:
        raise InvalidInputError("Hourly rate must not be negative")

    setting = await db.get(AppSetting, HOURLY_RATE_KEY)
    if setting is None:
        db.add(AppSetting(key=HOURLY_RATE_KEY, value=str(rate)))
    else:
        setting.value = str(rate)
    await db.commit()

    logger.info(f"Hourly rate set to {rate} by user {ctx.user_id}")
    return rate
