"""Group and monthly release endpoints."""

import logging
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import require_admin_session
from api.schemas.common import NameRequest
from api.schemas.groups import (
    GroupResponse,
    MembershipResponse,
    ReleaseResponse,
    ReleaseUpdateRequest,
)
from api.services import groups as group_service
from api.services import releases as release_service
from core.security import SessionContext
from database.engine import get_db

logger = logging.getLogger(__name__)

router = APIRouter()
releases_router = APIRouter()


@router.get("", response_model=list[GroupResponse], summary="List groups")
async def list_groups(
    ctx: SessionContext = Depends(require_admin_session),
    db: AsyncSession = Depends(get_db),
):
    return await group_service.list_groups(db, ctx)


@router.post(
    "",
    response_model=GroupResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a group",
)
async def create_group(
    request: NameRequest,
    ctx: SessionContext = Depends(require_admin_session),
    db: AsyncSession = Depends(get_db),
):
    return await group_service.create_group(db, ctx, request.name)


@router.delete(
    "/{group_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a group",
)
async def delete_group(
    group_id: int,
    ctx: SessionContext = Depends(require_admin_session),
    db: AsyncSession = Depends(get_db),
):
    await group_service.delete_group(db, ctx, group_id)


@router.post(
    "/{group_id}/members/{user_id}/toggle",
    response_model=MembershipResponse,
    summary="Add or remove a member",
    description="Adding moves the user out of any other group",
)
async def toggle_membership(
    group_id: int,
    user_id: int,
    ctx: SessionContext = Depends(require_admin_session),
    db: AsyncSession = Depends(get_db),
):
    return await group_service.toggle_membership(db, ctx, group_id, user_id)


@releases_router.get(
    "",
    response_model=list[ReleaseResponse],
    summary="Release schedule of a month",
)
async def list_releases(
    year: int = Query(..., ge=1970, le=9998),
    month: int = Query(..., ge=1, le=12),
    ctx: SessionContext = Depends(require_admin_session),
    db: AsyncSession = Depends(get_db),
):
    return await release_service.list_releases(db, ctx, year, month)


@releases_router.put(
    "",
    response_model=ReleaseResponse | None,
    summary="Set or clear a group's release",
)
async def set_release(
    request: ReleaseUpdateRequest,
    ctx: SessionContext = Depends(require_admin_session),
    db: AsyncSession = Depends(get_db),
):
    return await release_service.set_release(
        db, ctx, request.year, request.month, request.group_id, request.release_at
    )
