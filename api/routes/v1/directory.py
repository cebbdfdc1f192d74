"""Location directory and settings endpoints."""

import logging
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_session_context, require_admin_session
from api.schemas.common import NameRequest, NamedItemResponse
from api.schemas.profiles import HourlyRateRequest, HourlyRateResponse
from api.services import directory as directory_service
from core.security import SessionContext
from database.engine import get_db

logger = logging.getLogger(__name__)

locations_router = APIRouter()
settings_router = APIRouter()


@locations_router.get("", response_model=list[NamedItemResponse], summary="List locations")
async def list_locations(
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db),
):
    return await directory_service.list_locations(db)


@locations_router.post(
    "",
    response_model=NamedItemResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a location",
)
async def create_location(
    request: NameRequest,
    ctx: SessionContext = Depends(require_admin_session),
    db: AsyncSession = Depends(get_db),
):
    return await directory_service.create_location(db, ctx, request.name)


@locations_router.delete(
    "/{location_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove a location",
)
async def delete_location(
    location_id: int,
    ctx: SessionContext = Depends(require_admin_session),
    db: AsyncSession = Depends(get_db),
):
    await directory_service.delete_location(db, ctx, location_id)


@settings_router.get("/hourly-rate", response_model=HourlyRateResponse, summary="Hourly rate")
async def get_hourly_rate(
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db),
):
    return HourlyRateResponse(hourly_rate=await directory_service.get_hourly_rate(db))


@settings_router.put(
    "/hourly-rate",
    response_model=HourlyRateResponse,
    summary="Change the hourly rate",
)
async def set_hourly_rate(
    request: HourlyRateRequest,
    ctx: SessionContext = Depends(require_admin_session),
    db: AsyncSession = Depends(get_db),
):
    rate = await directory_service.set_hourly_rate(db, ctx, request.hourly_rate)
    return HourlyRateResponse(hourly_rate=rate)
