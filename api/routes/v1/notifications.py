"""Notification inbox endpoints."""

import logging
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_session_context
from api.schemas.applications import ApplicationSummary
from api.schemas.common import MessageResponse
from api.schemas.profiles import MarkReadResponse, NotificationResponse, UnreadCountResponse
from api.services import notifications as notification_service
from core.security import SessionContext
from database.engine import get_db

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=list[NotificationResponse], summary="Your notifications")
async def list_notifications(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db),
):
    return await notification_service.list_notifications(db, ctx, limit, offset)


@router.get(
    "/unread-count",
    response_model=UnreadCountResponse,
    summary="Unread notification count",
    description="Cheap endpoint for the client's polling badge",
)
async def unread_count(
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db),
):
    return UnreadCountResponse(unread=await notification_service.unread_count(db, ctx))


@router.post("/mark-all-read", response_model=MarkReadResponse, summary="Mark all as read")
async def mark_all_read(
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db),
):
    return MarkReadResponse(updated=await notification_service.mark_all_read(db, ctx))


@router.delete(
    "/{notification_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a notification",
)
async def delete_notification(
    notification_id: int,
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db),
):
    await notification_service.delete_notification(db, ctx, notification_id)


@router.post(
    "/{notification_id}/accept-invite",
    response_model=ApplicationSummary,
    summary="Accept the invitation behind a notification",
)
async def accept_invite(
    notification_id: int,
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db),
):
    """A withdrawn invitation answers 409 NO_LONGER_VALID and the notification is gone."""
    return await notification_service.accept_invite_from_notification(
        db, ctx, notification_id
    )


@router.post(
    "/{notification_id}/decline-invite",
    response_model=MessageResponse,
    summary="Decline the invitation behind a notification",
)
async def decline_invite(
    notification_id: int,
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db),
):
    await notification_service.decline_invite_from_notification(db, ctx, notification_id)
    return MessageResponse(message="Invitation declined")
