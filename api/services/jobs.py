"""Job service functions."""

from datetime import datetime
from typing import Any, Dict, List, Optional
import logging

from sqlalchemy import delete, not_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from api.services.directory import get_hourly_rate
from api.services.releases import check_month_access
from core.config import settings
from core.exceptions import InvalidInputError, NotFoundError
from core.scheduling.lifecycle import shift_state
from core.scheduling.metrics import compute_shift_metrics
from core.security import SessionContext, require_admin
from core.utils.datetime import ensure_utc, month_bounds, month_of, now as utc_now
from database.models.applications import Application, ApplicationStatus
from database.models.jobs import Job

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    "title",
    "starts_at",
    "ends_at",
    "location",
    "slots_total",
    "description",
    "is_active",
)


def validate_schedule(starts_at: datetime, ends_at: Optional[datetime]) -> None:
    """Reject an end that is not strictly after the start."""
    if ends_at is not None and ensure_utc(ends_at) <= ensure_utc(starts_at):
        raise InvalidInputError("End time must be after start time")


def _validate_fields(fields: Dict[str, Any]) -> None:
    if "title" in fields and not (fields["title"] or "").strip():
        raise InvalidInputError("Title must not be empty")
    if "slots_total" in fields and (fields["slots_total"] is None or fields["slots_total"] < 1):
        raise InvalidInputError("A job needs at least one slot")
    if "starts_at" in fields and fields["starts_at"] is None:
        raise InvalidInputError("Start time is required")


def serialize_application(application: Application) -> Dict[str, Any]:
    return {
        "id": application.id,
        "job_id": application.job_id,
        "user_id": application.user_id,
        "full_name": application.user.full_name if application.user else None,
        "status": application.status.value,
        "state": shift_state(application).value,
        "give_away_requested": application.give_away_requested,
        "emergency_giveaway_requested": application.emergency_giveaway_requested,
        "give_away_requested_at": application.give_away_requested_at,
        "created_at": application.created_at,
    }


def build_job_view(
    job: Job,
    viewer_id: int,
    now: datetime,
    hourly_rate: int,
) -> Dict[str, Any]:
    """
    Job as shown in listings and detail views.

    ``job.applications`` must be loaded (with their users); the approved ones
    are counted here so ``slots_taken`` always reflects the rows as read.
    """
    approved = [a for a in job.applications if a.status == ApplicationStatus.APPROVED]
    metrics = compute_shift_metrics(
        job.starts_at,
        job.ends_at,
        job.slots_total,
        len(approved),
        now,
        hourly_rate,
        default_hours=settings.default_shift_hours,
        urgent_window_hours=settings.urgent_window_hours,
    )
    mine = next((a for a in job.applications if a.user_id == viewer_id), None)
    has_claimable = any(
        a.give_away_requested and a.user_id != viewer_id for a in approved
    )

    return {
        "id": job.id,
        "title": job.title,
        "starts_at": job.starts_at,
        "ends_at": job.ends_at,
        "effective_end": metrics.effective_end,
        "location": job.location,
        "description": job.description,
        "is_active": job.is_active,
        "slots_total": job.slots_total,
        "slots_taken": metrics.slots_taken,
        "slots_free": metrics.slots_free,
        "fill_ratio": metrics.fill_ratio,
        "duration_hours": metrics.duration_hours,
        "hours_until_start": metrics.hours_until_start,
        "is_full": metrics.is_full,
        "is_urgent": metrics.is_urgent,
        "is_ongoing": metrics.is_ongoing,
        "is_finished": metrics.is_finished,
        "estimated_pay": metrics.estimated_pay,
        "has_giveaway_requests": any(a.has_giveaway_request for a in approved),
        "can_claim": mine is None and has_claimable and job.is_active,
        "my_state": shift_state(mine).value,
        "my_application": serialize_application(mine) if mine else None,
        "assignees": [
            {
                "application_id": a.id,
                "user_id": a.user_id,
                "full_name": a.user.full_name if a.user else None,
                "give_away_requested": a.give_away_requested,
                "emergency_giveaway_requested": a.emergency_giveaway_requested,
            }
            for a in approved
        ],
        "created_by": job.created_by,
        "created_at": job.created_at,
        "updated_at": job.updated_at,
    }


def _with_applications(query):
    return query.options(selectinload(Job.applications).selectinload(Application.user))


async def load_job(db: AsyncSession, job_id: int, with_applications: bool = False) -> Job:
    """Load a job or raise NotFoundError."""
    query = select(Job).where(Job.id == job_id)
    if with_applications:
        query = _with_applications(query).execution_options(populate_existing=True)
    result = await db.execute(query)
    job = result.scalar_one_or_none()
    if job is None:
        raise NotFoundError(f"Job {job_id} not found")
    return job


async def ensure_job_visible(
    db: AsyncSession, ctx: SessionContext, job: Job, now: Optional[datetime] = None
) -> None:
    """
    Hide inactive and not-yet-released jobs from staff.

    Hidden jobs look missing so their existence does not leak early.
    """
    if ctx.is_admin:
        return
    if not job.is_active:
        raise NotFoundError(f"Job {job.id} not found")
    year, month = month_of(job.starts_at, settings.venue_timezone)
    decision = await check_month_access(db, ctx, year, month, now)
    if not decision.granted:
        raise NotFoundError(f"Job {job.id} not found")


async def get_job(
    db: AsyncSession,
    ctx: SessionContext,
    job_id: int,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    current = now or utc_now()
    job = await load_job(db, job_id, with_applications=True)
    await ensure_job_visible(db, ctx, job, current)
    hourly_rate = await get_hourly_rate(db)
    return build_job_view(job, ctx.user_id, current, hourly_rate)


async def list_jobs(
    db: AsyncSession,
    ctx: SessionContext,
    year: int,
    month: int,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    List the jobs of a calendar month, sorted by start time.

    Staff only see active jobs, and a future month only after one of their
    groups' releases has passed.

    Args:
        db: Database session
        ctx: Caller
        year: Calendar year
        month: Calendar month (1-12), in the venue timezone
        now: Reference moment (defaults to the current time)

    Returns:
        Dictionary with the gate outcome and the job views
    """
    current = now or utc_now()
    decision = await check_month_access(db, ctx, year, month, current)
    hourly_rate = await get_hourly_rate(db)

    payload: Dict[str, Any] = {
        "year": year,
        "month": month,
        "released": decision.granted,
        "next_release_at": decision.next_release_at,
        "hourly_rate": hourly_rate,
        "jobs": [],
    }
    if not decision.granted:
        return payload

    start, end = month_bounds(year, month, settings.venue_timezone)
    query = (
        select(Job)
        .where(Job.starts_at >= start, Job.starts_at < end)
        .order_by(Job.starts_at.asc(), Job.id.asc())
    )
    if not ctx.is_admin:
        query = query.where(Job.is_active.is_(True))

    result = await db.execute(
        _with_applications(query).execution_options(populate_existing=True)
    )
    payload["jobs"] = [
        build_job_view(job, ctx.user_id, current, hourly_rate)
        for job in result.scalars().all()
    ]
    return payload


async def create_job(
    db: AsyncSession,
    ctx: SessionContext,
    fields: Dict[str, Any],
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    require_admin(ctx)
    data = {k: v for k, v in fields.items() if k in EDITABLE_FIELDS}
    if "starts_at" not in data or "title" not in data:
        raise InvalidInputError("Title and start time are required")
    _validate_fields(data)
    validate_schedule(data["starts_at"], data.get("ends_at"))

    job = Job(created_by=ctx.user_id, **data)
    db.add(job)
    await db.commit()
    logger.info(f"Job {job.id} created by user {ctx.user_id}")
    return await get_job(db, ctx, job.id, now)


async def update_job(
    db: AsyncSession,
    ctx: SessionContext,
    job_id: int,
    fields: Dict[str, Any],
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Patch a job. The schedule check runs on the merged stored and patched values.
    """
    require_admin(ctx)
    patch = {k: v for k, v in fields.items() if k in EDITABLE_FIELDS}
    _validate_fields(patch)

    job = await load_job(db, job_id)
    validate_schedule(
        patch.get("starts_at", job.starts_at),
        patch["ends_at"] if "ends_at" in patch else job.ends_at,
    )

    for key, value in patch.items():
        setattr(job, key, value)
    await db.commit()

    logger.info(f"Job {job_id} updated by user {ctx.user_id}: {sorted(patch)}")
    return await get_job(db, ctx, job_id, now)


async def delete_job(db: AsyncSession, ctx: SessionContext, job_id: int) -> None:
    """Hard delete; the store cascades to applications and notifications."""
    require_admin(ctx)
    result = await db.execute(delete(Job).where(Job.id == job_id))
    if not result.rowcount:
        await db.rollback()
        raise NotFoundError(f"Job {job_id} not found")
    await db.commit()
    logger.info(f"Job {job_id} deleted by user {ctx.user_id}")


async def toggle_job_active(
    db: AsyncSession, ctx: SessionContext, job_id: int
) -> bool:
    """Flip ``is_active`` in the store and return the new value."""
    require_admin(ctx)
    result = await db.execute(
        update(Job)
        .where(Job.id == job_id)
        .values(is_active=not_(Job.is_active), updated_at=utc_now())
        .returning(Job.is_active)
        .execution_options(synchronize_session=False)
    )
    is_active = result.scalar_one_or_none()
    if is_active is None:
        await db.rollback()
        raise NotFoundError(f"Job {job_id} not found")
    await db.commit()
    logger.info(f"Job {job_id} active={is_active} (toggled by user {ctx.user_id})")
    return is_active


async def list_job_applications(
    db: AsyncSession, ctx: SessionContext, job_id: int
) -> List[Dict[str, Any]]:
    """All applications of a job, oldest first, for the admin detail panel."""
    require_admin(ctx)
    job = await load_job(db, job_id, with_applications=True)
    return [serialize_application(a) for a in job.applications]
