"""Application endpoints addressed by application id."""

import logging
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_session_context, require_admin_session
from api.schemas.applications import ApplicationSummary, EmergencyResolutionResponse
from api.services import applications as application_service
from core.security import SessionContext
from database.engine import get_db

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/{application_id}/approve",
    response_model=ApplicationSummary,
    summary="Approve a pending application",
)
async def approve_application(
    application_id: int,
    ctx: SessionContext = Depends(require_admin_session),
    db: AsyncSession = Depends(get_db),
):
    return await application_service.approve_application(db, ctx, application_id)


@router.delete(
    "/{application_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Reject or withdraw an application",
)
async def delete_application(
    application_id: int,
    approved_only: bool = Query(
        False, description="Admin removal that only succeeds for approved assignees"
    ),
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db),
):
    """
    Delete an application so the user may apply again.

    Admins reject any application; staff withdraw their own.
    """
    if not ctx.is_admin:
        await application_service.decline_application(db, ctx, application_id)
    elif approved_only:
        await application_service.admin_remove_approved(db, ctx, application_id)
    else:
        await application_service.reject_application(db, ctx, application_id)


@router.post(
    "/{application_id}/approve-emergency",
    response_model=EmergencyResolutionResponse,
    summary="Approve an emergency giveaway",
)
async def approve_emergency_giveaway(
    application_id: int,
    ctx: SessionContext = Depends(require_admin_session),
    db: AsyncSession = Depends(get_db),
):
    return await application_service.approve_emergency_giveaway(db, ctx, application_id)


@router.post(
    "/{application_id}/decline-emergency",
    response_model=EmergencyResolutionResponse,
    summary="Decline an emergency giveaway",
)
async def decline_emergency_giveaway(
    application_id: int,
    ctx: SessionContext = Depends(require_admin_session),
    db: AsyncSession = Depends(get_db),
):
    return await application_service.decline_emergency_giveaway(db, ctx, application_id)
