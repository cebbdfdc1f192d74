"""Monthly roster matrix and CSV export."""

from datetime import datetime
from typing import Any, Dict, Optional, Tuple
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from api.services.releases import check_month_access
from core.config import settings
from core.exceptions import NotFoundError
from core.scheduling.roster import RosterColumn, RosterMatrix, build_roster, render_csv
from core.security import SessionContext
from core.utils.datetime import month_bounds
from database.models.applications import Application, ApplicationStatus
from database.models.jobs import Job

logger = logging.getLogger(__name__)


async def load_month_roster(
    db: AsyncSession,
    ctx: SessionContext,
    year: int,
    month: int,
    now: Optional[datetime] = None,
) -> RosterMatrix:
    """
    Load a month's jobs and project them into the roster matrix.

    Staff only get active jobs of released months.
    """
    decision = await check_month_access(db, ctx, year, month, now)
    if not decision.granted:
        raise NotFoundError(f"The schedule for {year}-{month:02d} is not released yet")

    start, end = month_bounds(year, month, settings.venue_timezone)
    query = (
        select(Job)
        .options(selectinload(Job.applications).selectinload(Application.user))
        .where(Job.starts_at >= start, Job.starts_at < end)
        .order_by(Job.starts_at, Job.id)
        .execution_options(populate_existing=True)
    )
    if not ctx.is_admin:
        query = query.where(Job.is_active.is_(True))

    result = await db.execute(query)
    columns = [
        RosterColumn(
            job_id=job.id,
            title=job.title,
            starts_at=job.starts_at,
            ends_at=job.ends_at,
            location=job.location,
            slots_total=job.slots_total,
            # job.applications is ordered by creation time
            assignees=tuple(
                a.user.full_name
                for a in job.applications
                if a.status == ApplicationStatus.APPROVED
            ),
        )
        for job in result.scalars().all()
    ]
    return build_roster(columns, settings.venue_timezone)


def serialize_roster(matrix: RosterMatrix, year: int, month: int) -> Dict[str, Any]:
    return {
        "year": year,
        "month": month,
        "job_ids": [c.job_id for c in matrix.columns],
        "slot_count": matrix.slot_count,
        "rows": matrix.rows,
    }


def export_filename(year: int, month: int) -> str:
    return f"{settings.roster_export_prefix}_{year}_{month:02d}.csv"


async def export_month_roster_csv(
    db: AsyncSession,
    ctx: SessionContext,
    year: int,
    month: int,
    now: Optional[datetime] = None,
) -> Tuple[str, str]:
    """
    Render the month's roster as CSV.

    Returns:
        (filename, csv text)
    """
    matrix = await load_month_roster(db, ctx, year, month, now)
    logger.info(
        f"Roster {year}-{month:02d} exported by user {ctx.user_id} "
        f"({len(matrix.columns)} jobs)"
    )
    return export_filename(year, month), render_csv(matrix)
