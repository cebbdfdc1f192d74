"""Notification service functions."""

from typing import Any, Dict, List, Optional
import logging

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import NotFoundError, StaleStateError
from core.security import SessionContext
from database.models.notifications import Notification, NotificationType
from database.models.profiles import Profile, ProfileRole

logger = logging.getLogger(__name__)


def serialize_notification(notification: Notification) -> Dict[str, Any]:
    return {
        "id": notification.id,
        "type": notification.type.value,
        "message": notification.message,
        "related_job_id": notification.related_job_id,
        "related_application_id": notification.related_application_id,
        "read": notification.read,
        "created_at": notification.created_at,
    }


def notify(
    db: AsyncSession,
    user_id: int,
    message: str,
    type: NotificationType = NotificationType.INFO,
    related_job_id: Optional[int] = None,
    related_application_id: Optional[int] = None,
) -> Notification:
    """
    Queue a notification row on the session.

    The caller commits together with the state change it reports.
    """
    notification = Notification(
        user_id=user_id,
        type=type,
        message=message,
        related_job_id=related_job_id,
        related_application_id=related_application_id,
    )
    db.add(notification)
    return notification


async def notify_admins(
    db: AsyncSession,
    message: str,
    type: NotificationType = NotificationType.INFO,
    related_job_id: Optional[int] = None,
    related_application_id: Optional[int] = None,
) -> int:
    """Queue the same notification for every administrator. Returns the count."""
    result = await db.execute(select(Profile.id).where(Profile.role == ProfileRole.ADMIN))
    admin_ids = result.scalars().all()
    for admin_id in admin_ids:
        notify(
            db,
            admin_id,
            message,
            type=type,
            related_job_id=related_job_id,
            related_application_id=related_application_id,
        )
    return len(admin_ids)


async def list_notifications(
    db: AsyncSession,
    ctx: SessionContext,
    limit: int = 50,
    offset: int = 0,
) -> List[Dict[str, Any]]:
    """Caller's notifications, newest first."""
    result = await db.execute(
        select(Notification)
        .where(Notification.user_id == ctx.user_id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .limit(limit)
        .offset(offset)
    )
    return [serialize_notification(n) for n in result.scalars().all()]


async def unread_count(db: AsyncSession, ctx: SessionContext) -> int:
    result = await db.execute(
        select(func.count())
        .select_from(Notification)
        .where(Notification.user_id == ctx.user_id, Notification.read.is_(False))
    )
    return result.scalar() or 0


async def mark_all_read(db: AsyncSession, ctx: SessionContext) -> int:
    result = await db.execute(
        update(Notification)
        .where(Notification.user_id == ctx.user_id, Notification.read.is_(False))
        .values(read=True)
    )
    await db.commit()
    return result.rowcount or 0


async def get_own_notification(
    db: AsyncSession, ctx: SessionContext, notification_id: int
) -> Notification:
    """Load one of the caller's notifications or raise NotFoundError."""
    result = await db.execute(
        select(Notification).where(
            Notification.id == notification_id,
            Notification.user_id == ctx.user_id,
        )
    )
    notification = result.scalar_one_or_none()
    if notification is None:
        raise NotFoundError(f"Notification {notification_id} not found")
    return notification


async def delete_notification(
    db: AsyncSession, ctx: SessionContext, notification_id: int
) -> None:
    result = await db.execute(
        delete(Notification).where(
            Notification.id == notification_id,
            Notification.user_id == ctx.user_id,
        )
    )
    if not result.rowcount:
        await db.rollback()
        raise NotFoundError(f"Notification {notification_id} not found")
    await db.commit()


async def accept_invite_from_notification(
    db: AsyncSession, ctx: SessionContext, notification_id: int
) -> Dict[str, Any]:
    """
    Accept the invitation an ``invite`` notification points at.

    The notification is consumed either way; a withdrawn invitation deletes it
    and re-raises StaleStateError so the client drops the item.
    """
    from api.services.applications import accept_invite

    notification = await get_own_notification(db, ctx, notification_id)
    if notification.type != NotificationType.INVITE or notification.related_job_id is None:
        raise NotFoundError(f"Notification {notification_id} is not an invitation")

    job_id = notification.related_job_id
    try:
        application = await accept_invite(db, ctx, job_id)
    except StaleStateError:
        logger.info(
            f"Dropping stale invite notification {notification_id} for user {ctx.user_id}"
        )
        await delete_notification(db, ctx, notification_id)
        raise

    await delete_notification(db, ctx, notification_id)
    return application


async def decline_invite_from_notification(
    db: AsyncSession, ctx: SessionContext, notification_id: int
) -> None:
    """Decline the invitation and consume the notification."""
    from api.services.applications import decline_invite

    notification = await get_own_notification(db, ctx, notification_id)
    if notification.type != NotificationType.INVITE or notification.related_job_id is None:
        raise NotFoundError(f"Notification {notification_id} is not an invitation")

    try:
        await decline_invite(db, ctx, notification.related_job_id)
    except StaleStateError:
        logger.info(
            f"Invitation behind notification {notification_id} already gone"
        )
    await delete_notification(db, ctx, notification_id)
