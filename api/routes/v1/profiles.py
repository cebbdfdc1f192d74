"""Profile and session endpoints."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_session_context, require_admin_session
from api.schemas.profiles import (
    ProfileResponse,
    ProfileSummaryResponse,
    SessionResponse,
    StrikeAdjustRequest,
    StrikeResponse,
)
from api.services import profiles as profile_service
from core.security import SessionContext
from database.engine import get_db

logger = logging.getLogger(__name__)

router = APIRouter()
session_router = APIRouter()


@session_router.get("", response_model=SessionResponse, summary="Current session")
async def get_session(ctx: SessionContext = Depends(get_session_context)):
    """Restore the client session: who the token belongs to and their role."""
    return SessionResponse(
        user_id=ctx.user_id,
        full_name=ctx.full_name,
        role=ctx.role.value,
        is_admin=ctx.is_admin,
    )


@router.get("", response_model=list[ProfileResponse], summary="List staff profiles")
async def list_profiles(
    search: Optional[str] = Query(None, max_length=100),
    ctx: SessionContext = Depends(require_admin_session),
    db: AsyncSession = Depends(get_db),
):
    return await profile_service.list_profiles(db, ctx, search)


@router.get(
    "/me/summary",
    response_model=ProfileSummaryResponse,
    summary="Your statistics and schedule",
)
async def get_my_summary(
    year: Optional[int] = Query(None, ge=1970, le=9998),
    month: Optional[int] = Query(None, ge=1, le=12),
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db),
):
    """Statistics cover all time unless both ``year`` and ``month`` are given."""
    return await profile_service.get_profile_summary(db, ctx, None, year, month)


@router.get(
    "/{user_id}/summary",
    response_model=ProfileSummaryResponse,
    summary="A staff member's statistics and schedule",
)
async def get_profile_summary(
    user_id: int,
    year: Optional[int] = Query(None, ge=1970, le=9998),
    month: Optional[int] = Query(None, ge=1, le=12),
    ctx: SessionContext = Depends(require_admin_session),
    db: AsyncSession = Depends(get_db),
):
    return await profile_service.get_profile_summary(db, ctx, user_id, year, month)


@router.patch(
    "/{user_id}/strikes",
    response_model=StrikeResponse,
    summary="Adjust strikes",
)
async def adjust_strikes(
    user_id: int,
    request: StrikeAdjustRequest,
    ctx: SessionContext = Depends(require_admin_session),
    db: AsyncSession = Depends(get_db),
):
    """Add or remove strikes; the count never goes below zero."""
    strikes = await profile_service.adjust_strikes(db, ctx, user_id, request.delta)
    return StrikeResponse(user_id=user_id, strikes=strikes)
