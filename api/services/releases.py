"""Monthly release schedule and the visibility gate for staff."""

from datetime import datetime
from typing import Any, Dict, List, Optional
import logging

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.exceptions import InvalidInputError, NotFoundError
from core.scheduling.release_gate import ReleaseDecision, evaluate_release
from core.security import SessionContext, require_admin
from core.utils.datetime import now as utc_now, validate_month
from database.models.groups import Group, GroupMembership, MonthlyRelease

logger = logging.getLogger(__name__)


def _checked_month(year: int, month: int) -> None:
    try:
        validate_month(year, month)
    except ValueError as exc:
        raise InvalidInputError(str(exc)) from exc


async def release_times_for_user(
    db: AsyncSession, user_id: int, year: int, month: int
) -> List[datetime]:
    """``release_at`` of every release for the month in one of the user's groups."""
    result = await db.execute(
        select(MonthlyRelease.release_at)
        .join(GroupMembership, GroupMembership.group_id == MonthlyRelease.group_id)
        .where(
            GroupMembership.user_id == user_id,
            MonthlyRelease.year == year,
            MonthlyRelease.month == month,
        )
    )
    return list(result.scalars().all())


async def check_month_access(
    db: AsyncSession,
    ctx: SessionContext,
    year: int,
    month: int,
    now: Optional[datetime] = None,
) -> ReleaseDecision:
    """
    Evaluate the release gate for the caller.

    Administrators always pass. Evaluated fresh on every call.
    """
    _checked_month(year, month)
    if ctx.is_admin:
        return ReleaseDecision(granted=True, is_future_month=False)

    times = await release_times_for_user(db, ctx.user_id, year, month)
    decision = evaluate_release(
        year, month, times, now or utc_now(), settings.venue_timezone
    )
    if not decision.granted:
        logger.info(
            f"Release gate closed for user {ctx.user_id} on {year}-{month:02d}"
        )
    return decision


async def list_releases(
    db: AsyncSession, ctx: SessionContext, year: int, month: int
) -> List[Dict[str, Any]]:
    """Every group with its release time for the month (None when unscheduled)."""
    require_admin(ctx)
    _checked_month(year, month)

    groups = (await db.execute(select(Group).order_by(Group.name))).scalars().all()
    releases = await db.execute(
        select(MonthlyRelease).where(
            MonthlyRelease.year == year, MonthlyRelease.month == month
        )
    )
    by_group = {r.group_id: r.release_at for r in releases.scalars().all()}

    return [
        {
            "group_id": group.id,
            "group_name": group.name,
            "year": year,
            "month": month,
            "release_at": by_group.get(group.id),
        }
        for group in groups
    ]


async def set_release(
    db: AsyncSession,
    ctx: SessionContext,
    year: int,
    month: int,
    group_id: int,
    release_at: Optional[datetime],
) -> Optional[Dict[str, Any]]:
    """
    Upsert or clear one group's release for a month.

    Args:
        release_at: New release time, or None to remove the release

    Returns:
        The stored release, or None when cleared
    """
    require_admin(ctx)
    _checked_month(year, month)

    if await db.get(Group, group_id) is None:
        raise NotFoundError(f"Group {group_id} not found")

    if release_at is None:
        await db.execute(
            delete(MonthlyRelease).where(
                MonthlyRelease.year == year,
                MonthlyRelease.month == month,
                MonthlyRelease.group_id == group_id,
            )
        )
        await db.commit()
        logger.info(f"Release cleared for group {group_id} on {year}-{month:02d}")
        return None

    result = await db.execute(
        select(MonthlyRelease).where(
            MonthlyRelease.year == year,
            MonthlyRelease.month == month,
            MonthlyRelease.group_id == group_id,
        )
    )
    release = result.scalar_one_or_none()
    if release is None:
        release = MonthlyRelease(
            year=year, month=month, group_id=group_id, release_at=release_at
        )
        db.add(release)
    else:
        release.release_at = release_at
    await db.commit()

    logger.info(
        f"Release for group {group_id} on {year}-{month:02d} set to {release_at.isoformat()}"
    )
    return {
        "group_id": group_id,
        "year": year,
        "month": month,
        "release_at": release.release_at,
    }
