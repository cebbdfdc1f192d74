"""Profile service functions: staff directory, strikes and personal summary."""

from datetime import datetime
from typing import Any, Dict, List, Optional
import logging

from sqlalchemy import case, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from api.services.directory import get_hourly_rate
from core.config import settings
from core.exceptions import InvalidInputError, NotFoundError
from core.scheduling.lifecycle import shift_state
from core.scheduling.metrics import estimate_pay, effective_end, shift_duration_hours
from core.security import SessionContext, require_admin
from core.utils.datetime import ensure_utc, month_of, now as utc_now, validate_month
from database.models.applications import Application, ApplicationStatus
from database.models.groups import GroupMembership
from database.models.profiles import Profile
from database.models.quiz import QuizQuestion

logger = logging.getLogger(__name__)


def serialize_profile(profile: Profile, group_id: Optional[int] = None) -> Dict[str, Any]:
    return {
        "id": profile.id,
        "full_name": profile.full_name,
        "email": profile.email,
        "role": profile.role.value,
        "strikes": profile.strikes,
        "quiz_score": profile.quiz_score,
        "quiz_total": profile.quiz_total,
        "group_id": group_id,
        "created_at": profile.created_at,
    }


async def get_profile(db: AsyncSession, user_id: int) -> Profile:
    profile = await db.get(Profile, user_id)
    if profile is None:
        raise NotFoundError(f"User {user_id} not found")
    return profile


async def list_profiles(
    db: AsyncSession,
    ctx: SessionContext,
    search_query: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """All profiles by name, each with the group it belongs to (if any)."""
    require_admin(ctx)
    query = (
        select(Profile)
        .options(selectinload(Profile.memberships))
        .order_by(Profile.full_name, Profile.id)
    )
    if search_query:
        pattern = f"%{search_query}%"
        query = query.where(
            or_(Profile.full_name.ilike(pattern), Profile.email.ilike(pattern))
        )

    result = await db.execute(query)
    return [
        serialize_profile(
            p, p.memberships[0].group_id if p.memberships else None
        )
        for p in result.scalars().all()
    ]


async def adjust_strikes(
    db: AsyncSession, ctx: SessionContext, user_id: int, delta: int
) -> int:
    """
    Add ``delta`` strikes (may be negative). The count never drops below zero.

    Returns:
        The new strike count
    """
    require_admin(ctx)
    if delta == 0:
        raise InvalidInputError("Strike delta must not be zero")

    new_value = Profile.strikes + delta
    result = await db.execute(
        update(Profile)
        .where(Profile.id == user_id)
        .values(strikes=case((new_value < 0, 0), else_=new_value))
        .returning(Profile.strikes)
        .execution_options(synchronize_session=False)
    )
    strikes = result.scalar_one_or_none()
    if strikes is None:
        await db.rollback()
        raise NotFoundError(f"User {user_id} not found")
    await db.commit()

    logger.info(f"Strikes of user {user_id} adjusted by {delta} to {strikes} by user {ctx.user_id}")
    return strikes


def giveaway_queue_positions(
    queue: List[Application],
) -> Dict[int, Dict[str, int]]:
    """
    Rank giveaway requests per job by request time.

    Args:
        queue: Approved applications carrying either giveaway flag

    Returns:
        application id -> {"rank": 1-based position, "total": queue length}
    """
    by_job: Dict[int, List[Application]] = {}
    for application in queue:
        by_job.setdefault(application.job_id, []).append(application)

    positions: Dict[int, Dict[str, int]] = {}
    for entries in by_job.values():
        entries.sort(key=lambda a: (a.give_away_requested_at or a.created_at, a.id))
        for rank, application in enumerate(entries, start=1):
            positions[application.id] = {"rank": rank, "total": len(entries)}
    return positions


async def get_profile_summary(
    db: AsyncSession,
    ctx: SessionContext,
    user_id: Optional[int] = None,
    year: Optional[int] = None,
    month: Optional[int] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Personal statistics and schedule.

    Completed shifts, hours and estimated earnings cover all time, or only
    shifts starting in (year, month) when both are given. Upcoming and pending
    shifts are always listed in full.

    Args:
        db: Database session
        ctx: Caller; admins may pass another ``user_id``
        user_id: Profile to summarize (defaults to the caller)
        year: Optional statistics month year
        month: Optional statistics month
        now: Reference moment
    """
    target_id = user_id or ctx.user_id
    if target_id != ctx.user_id:
        require_admin(ctx)
    if (year is None) != (month is None):
        raise InvalidInputError("Year and month must be given together")
    if year is not None:
        try:
            validate_month(year, month)
        except ValueError as exc:
            raise InvalidInputError(str(exc)) from exc

    current = ensure_utc(now or utc_now())
    tz = settings.venue_timezone
    profile = await get_profile(db, target_id)
    hourly_rate = await get_hourly_rate(db)
    question_count = await db.scalar(select(func.count()).select_from(QuizQuestion)) or 0
    group_id = await db.scalar(
        select(GroupMembership.group_id).where(GroupMembership.user_id == target_id)
    )

    result = await db.execute(
        select(Application)
        .options(selectinload(Application.job))
        .where(Application.user_id == target_id)
        .execution_options(populate_existing=True)
    )
    applications = list(result.scalars().all())
    approved = [a for a in applications if a.status == ApplicationStatus.APPROVED]

    giveaway_job_ids = [a.job_id for a in approved if a.has_giveaway_request]
    positions: Dict[int, Dict[str, int]] = {}
    if giveaway_job_ids:
        queue_result = await db.execute(
            select(Application).where(
                Application.job_id.in_(giveaway_job_ids),
                Application.status == ApplicationStatus.APPROVED,
                or_(
                    Application.give_away_requested.is_(True),
                    Application.emergency_giveaway_requested.is_(True),
                ),
            )
        )
        positions = giveaway_queue_positions(list(queue_result.scalars().all()))

    def in_stats_month(application: Application) -> bool:
        if year is None:
            return True
        return month_of(application.job.starts_at, tz) == (year, month)

    completed = [
        a
        for a in approved
        if in_stats_month(a)
        and effective_end(a.job.starts_at, a.job.ends_at, settings.default_shift_hours) < current
    ]
    durations = [
        max(shift_duration_hours(a.job.starts_at, a.job.ends_at, settings.default_shift_hours), 0.0)
        for a in completed
    ]
    hours_worked = sum(durations)

    upcoming = sorted(
        (
            a
            for a in approved
            if effective_end(a.job.starts_at, a.job.ends_at, settings.default_shift_hours) >= current
        ),
        key=lambda a: (a.job.starts_at, a.job_id),
    )
    waiting = sorted(
        (a for a in applications if a.status != ApplicationStatus.APPROVED),
        key=lambda a: (a.job.starts_at, a.job_id),
    )

    def shift_entry(application: Application) -> Dict[str, Any]:
        job = application.job
        return {
            "application_id": application.id,
            "job_id": job.id,
            "title": job.title,
            "starts_at": job.starts_at,
            "ends_at": job.ends_at,
            "location": job.location,
            "state": shift_state(application).value,
            "giveaway_queue": positions.get(application.id),
        }

    return {
        "profile": serialize_profile(profile, group_id),
        "hourly_rate": hourly_rate,
        "stats": {
            "year": year,
            "month": month,
            "jobs_completed": len(completed),
            "hours_worked": round(hours_worked, 1),
            "estimated_earnings": estimate_pay(hours_worked, hourly_rate),
            "strikes": profile.strikes,
            "quiz_score": profile.quiz_score,
            "quiz_total": question_count,
        },
        "upcoming": [shift_entry(a) for a in upcoming],
        "pending": [shift_entry(a) for a in waiting],
    }
