"""
Application service functions.

Every transition of the (job, user) lifecycle goes through here: the pure
guard from ``core.scheduling.lifecycle`` runs first, then a conditional
UPDATE/DELETE re-checks the expected state in the store. Zero affected rows
means someone else acted first and is reported as StaleStateError.
"""

from datetime import datetime
from typing import Any, Dict, Optional
import logging

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from api.services.jobs import ensure_job_visible, load_job
from api.services.notifications import notify, notify_admins
from core.config import settings
from core.exceptions import ConflictError, NotFoundError, PermissionDeniedError, StaleStateError
from core.scheduling import lifecycle
from core.scheduling.lifecycle import GiveawayKind, ShiftState, shift_state
from core.scheduling.metrics import hours_until
from core.security import SessionContext, require_admin
from core.utils.formatting import format_clock, format_shift_date_label
from core.utils.datetime import now as utc_now
from database.models.applications import Application, ApplicationStatus
from database.models.jobs import Job
from database.models.notifications import NotificationType
from database.models.profiles import Profile
from database.procedures import ClaimResult, claim_giveaway_spot

logger = logging.getLogger(__name__)


def application_summary(application: Application) -> Dict[str, Any]:
    return {
        "id": application.id,
        "job_id": application.job_id,
        "user_id": application.user_id,
        "status": application.status.value,
        "state": shift_state(application).value,
        "give_away_requested": application.give_away_requested,
        "emergency_giveaway_requested": application.emergency_giveaway_requested,
        "give_away_requested_at": application.give_away_requested_at,
        "created_at": application.created_at,
    }


def job_label(job: Job) -> str:
    """Short human label used in notification texts, e.g. ``Gala (06.05.csüt. 18:00)``."""
    tz = settings.venue_timezone
    return (
        f"{job.title} ({format_shift_date_label(job.starts_at, tz)} "
        f"{format_clock(job.starts_at, tz)})"
    )


async def find_application(
    db: AsyncSession, job_id: int, user_id: int
) -> Optional[Application]:
    result = await db.execute(
        select(Application)
        .where(Application.job_id == job_id, Application.user_id == user_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def load_application(db: AsyncSession, application_id: int) -> Application:
    """Load an application by id; a missing row means it was already removed."""
    result = await db.execute(
        select(Application)
        .where(Application.id == application_id)
        .execution_options(populate_existing=True)
    )
    application = result.scalar_one_or_none()
    if application is None:
        raise StaleStateError("Application no longer exists")
    return application


async def approved_count(db: AsyncSession, job_id: int) -> int:
    result = await db.execute(
        select(func.count())
        .select_from(Application)
        .where(
            Application.job_id == job_id,
            Application.status == ApplicationStatus.APPROVED,
        )
    )
    return result.scalar() or 0


async def _load_profile(db: AsyncSession, user_id: int) -> Profile:
    profile = await db.get(Profile, user_id)
    if profile is None:
        raise NotFoundError(f"User {user_id} not found")
    return profile


async def _commit_new_application(db: AsyncSession, application: Application) -> None:
    db.add(application)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("User has already applied to or been invited to this job")


# ==================== Joining a job ====================


async def apply_to_job(
    db: AsyncSession,
    ctx: SessionContext,
    job_id: int,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Apply the caller to a job. Applications are approved immediately.

    A caller holding an invitation accepts it instead.

    Raises:
        ConflictError: Already applied, job full or inactive
    """
    job = await load_job(db, job_id)
    await ensure_job_visible(db, ctx, job, now)

    existing = await find_application(db, job_id, ctx.user_id)
    state = shift_state(existing)
    if state == ShiftState.INVITED:
        return await accept_invite(db, ctx, job_id)

    try:
        lifecycle.ensure_can_apply(state)
    except ConflictError:
        logger.warning(f"User {ctx.user_id} re-applied to job {job_id} in state {state.value}")
        raise

    if not job.is_active:
        raise ConflictError("This job is not open for applications")
    if await approved_count(db, job_id) >= job.slots_total:
        logger.warning(f"User {ctx.user_id} applied to full job {job_id}")
        raise ConflictError("This job is already full")

    application = Application(
        job_id=job_id, user_id=ctx.user_id, status=ApplicationStatus.APPROVED
    )
    await _commit_new_application(db, application)

    logger.info(f"User {ctx.user_id} applied to job {job_id} (application {application.id})")
    return application_summary(application)


async def invite_user(
    db: AsyncSession,
    ctx: SessionContext,
    job_id: int,
    user_id: int,
) -> Dict[str, Any]:
    """Invite a staff member to a job and notify them."""
    require_admin(ctx)
    job = await load_job(db, job_id)
    await _load_profile(db, user_id)

    existing = await find_application(db, job_id, user_id)
    lifecycle.ensure_can_invite(shift_state(existing))

    application = Application(
        job_id=job_id, user_id=user_id, status=ApplicationStatus.INVITED
    )
    db.add(application)
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("User has already applied or been invited")

    notify(
        db,
        user_id,
        f"You have been invited to a job: {job_label(job)}",
        type=NotificationType.INVITE,
        related_job_id=job_id,
        related_application_id=application.id,
    )
    await db.commit()

    logger.info(f"User {user_id} invited to job {job_id} by user {ctx.user_id}")
    return application_summary(application)


async def accept_invite(
    db: AsyncSession, ctx: SessionContext, job_id: int
) -> Dict[str, Any]:
    """
    Turn the caller's invitation into an approved application.

    Accepting an already approved application changes nothing.

    Raises:
        StaleStateError: The invitation was withdrawn
    """
    existing = await find_application(db, job_id, ctx.user_id)
    state = shift_state(existing)
    lifecycle.ensure_can_accept_invite(state)
    if state == ShiftState.APPROVED:
        return application_summary(existing)

    result = await db.execute(
        update(Application)
        .where(
            Application.id == existing.id,
            Application.status == ApplicationStatus.INVITED,
        )
        .values(status=ApplicationStatus.APPROVED)
        .returning(Application.id)
        .execution_options(synchronize_session=False)
    )
    if result.scalar_one_or_none() is None:
        await db.rollback()
        raise StaleStateError("Invitation is no longer valid")
    await db.commit()

    logger.info(f"User {ctx.user_id} accepted invitation to job {job_id}")
    return application_summary(await load_application(db, existing.id))


async def decline_invite(db: AsyncSession, ctx: SessionContext, job_id: int) -> None:
    """Drop the caller's invitation to a job."""
    result = await db.execute(
        delete(Application).where(
            Application.job_id == job_id,
            Application.user_id == ctx.user_id,
            Application.status == ApplicationStatus.INVITED,
        )
    )
    if not result.rowcount:
        await db.rollback()
        raise StaleStateError("Invitation is no longer valid")
    await db.commit()
    logger.info(f"User {ctx.user_id} declined invitation to job {job_id}")


async def approve_application(
    db: AsyncSession, ctx: SessionContext, application_id: int
) -> Dict[str, Any]:
    """Approve a pending or invited application and tell the applicant."""
    require_admin(ctx)
    application = await load_application(db, application_id)
    state = shift_state(application)
    lifecycle.ensure_can_approve(state)
    if state == ShiftState.APPROVED:
        return application_summary(application)

    result = await db.execute(
        update(Application)
        .where(
            Application.id == application_id,
            Application.status.in_([ApplicationStatus.PENDING, ApplicationStatus.INVITED]),
        )
        .values(status=ApplicationStatus.APPROVED)
        .returning(Application.id)
        .execution_options(synchronize_session=False)
    )
    if result.scalar_one_or_none() is None:
        await db.rollback()
        raise StaleStateError("Application changed before it could be approved")

    job = await load_job(db, application.job_id)
    notify(
        db,
        application.user_id,
        f"Your application was approved: {job_label(job)}",
        related_job_id=job.id,
        related_application_id=application_id,
    )
    await db.commit()

    logger.info(f"Application {application_id} approved by user {ctx.user_id}")
    return application_summary(await load_application(db, application_id))


async def assign_user(
    db: AsyncSession,
    ctx: SessionContext,
    job_id: int,
    user_id: int,
) -> Dict[str, Any]:
    """
    Put a staff member directly on a job.

    Upserts the (job, user) row to approved; an existing row keeps its id.
    """
    require_admin(ctx)
    job = await load_job(db, job_id)
    await _load_profile(db, user_id)

    existing = await find_application(db, job_id, user_id)
    if existing is None:
        application = Application(
            job_id=job_id, user_id=user_id, status=ApplicationStatus.APPROVED
        )
        db.add(application)
        try:
            await db.flush()
        except IntegrityError:
            await db.rollback()
            raise ConflictError("User was added to this job concurrently")
        application_id = application.id
    else:
        application_id = existing.id
        if existing.status == ApplicationStatus.APPROVED:
            return application_summary(existing)
        await db.execute(
            update(Application)
            .where(Application.id == existing.id)
            .values(status=ApplicationStatus.APPROVED)
            .execution_options(synchronize_session=False)
        )

    notify(
        db,
        user_id,
        f"You have been assigned to a job: {job_label(job)}",
        related_job_id=job_id,
        related_application_id=application_id,
    )
    await db.commit()

    logger.info(f"User {user_id} assigned to job {job_id} by user {ctx.user_id}")
    return application_summary(await load_application(db, application_id))


# ==================== Leaving a job ====================


async def _delete_application(
    db: AsyncSession, application_id: int, *conditions
) -> None:
    result = await db.execute(
        delete(Application).where(Application.id == application_id, *conditions)
    )
    if not result.rowcount:
        await db.rollback()
        raise StaleStateError("Application no longer exists")
    await db.commit()


async def decline_application(
    db: AsyncSession, ctx: SessionContext, application_id: int
) -> None:
    """The applicant withdraws; the row is deleted so they may apply again."""
    application = await load_application(db, application_id)
    if application.user_id != ctx.user_id:
        raise PermissionDeniedError("You can only withdraw your own application")
    await _delete_application(db, application_id, Application.user_id == ctx.user_id)
    logger.info(f"User {ctx.user_id} withdrew application {application_id}")


async def reject_application(
    db: AsyncSession, ctx: SessionContext, application_id: int
) -> None:
    """Admin rejection. No history is kept; the user may apply again."""
    require_admin(ctx)
    await _delete_application(db, application_id)
    logger.info(f"Application {application_id} rejected by user {ctx.user_id}")


async def admin_remove_approved(
    db: AsyncSession, ctx: SessionContext, application_id: int
) -> None:
    """Remove an approved assignee, freeing the slot."""
    require_admin(ctx)
    await _delete_application(
        db, application_id, Application.status == ApplicationStatus.APPROVED
    )
    logger.info(f"Approved application {application_id} removed by user {ctx.user_id}")


# ==================== Giveaway ====================


async def request_giveaway(
    db: AsyncSession,
    ctx: SessionContext,
    job_id: int,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Offer the caller's approved shift to others.

    More than the urgent window ahead of the start the shift becomes claimable
    at once. Inside the window it is an emergency request that waits for an
    administrator, and every administrator is notified.

    Returns:
        Dictionary with the application id, giveaway kind and hours to start
    """
    current = now or utc_now()
    job = await load_job(db, job_id)
    application = await find_application(db, job_id, ctx.user_id)
    try:
        lifecycle.ensure_can_request_giveaway(shift_state(application))
    except (ConflictError, StaleStateError):
        logger.warning(f"Rejected giveaway request by user {ctx.user_id} on job {job_id}")
        raise

    until_start = hours_until(job.starts_at, current)
    kind = lifecycle.giveaway_kind(until_start, settings.urgent_window_hours)
    values: Dict[str, Any] = {"give_away_requested_at": current}
    if kind == GiveawayKind.NORMAL:
        values["give_away_requested"] = True
    else:
        values["emergency_giveaway_requested"] = True

    result = await db.execute(
        update(Application)
        .where(
            Application.id == application.id,
            Application.status == ApplicationStatus.APPROVED,
            Application.give_away_requested.is_(False),
            Application.emergency_giveaway_requested.is_(False),
        )
        .values(**values)
        .returning(Application.id)
        .execution_options(synchronize_session=False)
    )
    if result.scalar_one_or_none() is None:
        await db.rollback()
        raise StaleStateError("Your assignment changed; refresh and try again")

    if kind == GiveawayKind.EMERGENCY:
        await notify_admins(
            db,
            f"{ctx.full_name} requested an emergency giveaway: {job_label(job)}",
            type=NotificationType.EMERGENCY_GIVEAWAY,
            related_job_id=job_id,
            related_application_id=application.id,
        )
    await db.commit()

    logger.info(
        f"User {ctx.user_id} requested {kind.value} giveaway on job {job_id} "
        f"({until_start:.2f}h before start)"
    )
    return {
        "application_id": application.id,
        "kind": kind.value,
        "hours_until_start": until_start,
    }


async def cancel_giveaway(
    db: AsyncSession, ctx: SessionContext, job_id: int
) -> Dict[str, Any]:
    """Withdraw the caller's giveaway request; the shift stays theirs."""
    application = await find_application(db, job_id, ctx.user_id)
    lifecycle.ensure_can_cancel_giveaway(shift_state(application))

    result = await db.execute(
        update(Application)
        .where(
            Application.id == application.id,
            (Application.give_away_requested.is_(True))
            | (Application.emergency_giveaway_requested.is_(True)),
        )
        .values(
            give_away_requested=False,
            emergency_giveaway_requested=False,
            give_away_requested_at=None,
        )
        .returning(Application.id)
        .execution_options(synchronize_session=False)
    )
    if result.scalar_one_or_none() is None:
        await db.rollback()
        raise StaleStateError("The shift was already claimed or the request withdrawn")
    await db.commit()

    logger.info(f"User {ctx.user_id} cancelled giveaway on job {job_id}")
    return application_summary(await load_application(db, application.id))


async def _resolve_emergency(
    db: AsyncSession,
    ctx: SessionContext,
    application_id: int,
    approve: bool,
) -> Dict[str, Any]:
    require_admin(ctx)
    if approve:
        values = {"emergency_giveaway_requested": False, "give_away_requested": True}
    else:
        values = {"emergency_giveaway_requested": False, "give_away_requested_at": None}

    result = await db.execute(
        update(Application)
        .where(
            Application.id == application_id,
            Application.emergency_giveaway_requested.is_(True),
        )
        .values(**values)
        .returning(Application.user_id, Application.job_id)
        .execution_options(synchronize_session=False)
    )
    row = result.first()
    if row is None:
        # Already resolved: nothing to do unless the row itself is gone
        await db.rollback()
        application = await load_application(db, application_id)
        return {**application_summary(application), "changed": False}

    job = await load_job(db, row.job_id)
    if approve:
        message = f"Your emergency giveaway was approved; the shift can now be claimed: {job_label(job)}"
    else:
        message = f"Your emergency giveaway was declined; the shift stays yours: {job_label(job)}"
    notify(
        db,
        row.user_id,
        message,
        related_job_id=row.job_id,
        related_application_id=application_id,
    )
    await db.commit()

    verb = "approved" if approve else "declined"
    logger.info(f"Emergency giveaway {application_id} {verb} by user {ctx.user_id}")
    application = await load_application(db, application_id)
    return {**application_summary(application), "changed": True}


async def approve_emergency_giveaway(
    db: AsyncSession, ctx: SessionContext, application_id: int
) -> Dict[str, Any]:
    """
    Make an emergency giveaway claimable.

    Safe to repeat: an application without the emergency flag is left as is.
    """
    return await _resolve_emergency(db, ctx, application_id, approve=True)


async def decline_emergency_giveaway(
    db: AsyncSession, ctx: SessionContext, application_id: int
) -> Dict[str, Any]:
    """Refuse an emergency giveaway; the holder keeps the shift."""
    return await _resolve_emergency(db, ctx, application_id, approve=False)


async def claim_giveaway(
    db: AsyncSession,
    ctx: SessionContext,
    job_id: int,
    now: Optional[datetime] = None,
) -> ClaimResult:
    """
    Take over the oldest released slot of a job.

    Losing a race is not an error: the result carries ``success=False`` and a
    message for the claimant.
    """
    current = now or utc_now()
    job = await load_job(db, job_id)
    await ensure_job_visible(db, ctx, job, current)

    result = await claim_giveaway_spot(db, job_id, ctx.user_id, current)
    if not result.success:
        await db.rollback()
        logger.warning(
            f"Claim by user {ctx.user_id} on job {job_id} failed: {result.message}"
        )
        return result

    if result.previous_user_id is not None:
        notify(
            db,
            result.previous_user_id,
            f"{ctx.full_name} took over your shift: {job_label(job)}",
            related_job_id=job_id,
        )
    await db.commit()

    logger.info(
        f"User {ctx.user_id} claimed application {result.application_id} on job {job_id} "
        f"from user {result.previous_user_id}"
    )
    return result
