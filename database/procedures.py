"""
Store-side atomic operations.

``claim_giveaway_spot`` hands a released shift to a claimant with a
conditional UPDATE. The oldest claimable application of the job is picked with
``FOR UPDATE SKIP LOCKED`` and the outer WHERE re-checks the giveaway flag, so
of N concurrent claimants exactly one gets a row back; the others see zero
rows and nothing changes for them.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import exists, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from database.models.applications import Application, ApplicationStatus

logger = logging.getLogger(__name__)

CLAIM_SUCCESS_MESSAGE = "Shift claimed. It is now on your schedule."
CLAIM_UNAVAILABLE_MESSAGE = "This shift is no longer available."
CLAIM_ALREADY_ASSIGNED_MESSAGE = "You are already on this job."


@dataclass(frozen=True)
class ClaimResult:
    success: bool
    message: str
    application_id: Optional[int] = None
    previous_user_id: Optional[int] = None


def _oldest_candidate(job_id: int, claimant_id: int):
    """Id of the oldest claimable application, row-locked, skipping rows other claims hold."""
    candidate = aliased(Application, name="candidate")
    return (
        select(candidate.id)
        .where(
            candidate.job_id == job_id,
            candidate.status == ApplicationStatus.APPROVED,
            candidate.give_away_requested.is_(True),
            candidate.user_id != claimant_id,
        )
        .order_by(candidate.give_away_requested_at.asc(), candidate.id.asc())
        .limit(1)
        .with_for_update(skip_locked=True)
        .scalar_subquery()
    )


def _claimant_on_job(job_id: int, claimant_id: int):
    existing = aliased(Application, name="existing")
    return exists().where(
        existing.job_id == job_id,
        existing.user_id == claimant_id,
    )


async def claim_giveaway_spot(
    session: AsyncSession,
    job_id: int,
    claimant_id: int,
    claimed_at: datetime,
) -> ClaimResult:
    """
    Atomically transfer the oldest claimable application of a job.

    The caller owns the transaction: commit on success, roll back otherwise
    so the candidate lock is released.

    Args:
        session: Open session
        job_id: Job whose released slot is claimed
        claimant_id: Profile taking over the slot
        claimed_at: Moment of the claim (stored as the row's created_at so the
            claimant lands at the end of the roster order)

    Returns:
        ClaimResult; ``success`` is False when nothing was claimable
    """
    if await session.scalar(select(_claimant_on_job(job_id, claimant_id))):
        return ClaimResult(success=False, message=CLAIM_ALREADY_ASSIGNED_MESSAGE)

    # Locks the candidate for the rest of the transaction; concurrent claims skip it
    holder = await session.execute(
        select(Application.id, Application.user_id).where(
            Application.id == _oldest_candidate(job_id, claimant_id)
        )
    )
    candidate_row = holder.first()
    if candidate_row is None:
        return ClaimResult(success=False, message=CLAIM_UNAVAILABLE_MESSAGE)

    stmt = (
        update(Application)
        .where(
            Application.id == candidate_row.id,
            Application.job_id == job_id,
            Application.status == ApplicationStatus.APPROVED,
            Application.give_away_requested.is_(True),
            ~_claimant_on_job(job_id, claimant_id),
        )
        .values(
            user_id=claimant_id,
            status=ApplicationStatus.APPROVED,
            give_away_requested=False,
            emergency_giveaway_requested=False,
            give_away_requested_at=None,
            created_at=claimed_at,
        )
        .returning(Application.id)
        .execution_options(synchronize_session=False)
    )

    try:
        result = await session.execute(stmt)
    except IntegrityError:
        # Claimant got a row on this job concurrently
        logger.warning(
            f"Claim on job {job_id} by user {claimant_id} hit uniqueness conflict"
        )
        return ClaimResult(success=False, message=CLAIM_ALREADY_ASSIGNED_MESSAGE)

    claimed_id = result.scalar_one_or_none()
    if claimed_id is None:
        return ClaimResult(success=False, message=CLAIM_UNAVAILABLE_MESSAGE)

    return ClaimResult(
        success=True,
        message=CLAIM_SUCCESS_MESSAGE,
        application_id=claimed_id,
        previous_user_id=candidate_row.user_id,
    )
