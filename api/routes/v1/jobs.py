"""Job endpoints, including the per-job application actions."""

import logging
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_session_context, require_admin_session
from api.schemas.applications import (
    ApplicationSummary,
    ClaimResponse,
    GiveawayResponse,
    UserRefRequest,
)
from api.schemas.common import MessageResponse
from api.schemas.jobs import (
    ApplicationResponse,
    JobCreateRequest,
    JobListResponse,
    JobResponse,
    JobUpdateRequest,
    ToggleActiveResponse,
)
from api.services import applications as application_service
from api.services import jobs as job_service
from core.security import SessionContext
from database.engine import get_db

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "",
    response_model=JobListResponse,
    summary="List jobs of a month",
    description="Jobs starting in the given month (venue timezone), sorted by start time",
)
async def list_jobs(
    year: int = Query(..., ge=1970, le=9998),
    month: int = Query(..., ge=1, le=12),
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db),
):
    """
    List a month's jobs.

    Staff see only active jobs, and a future month only once one of their
    groups' releases for it has passed (``released`` is false otherwise).
    """
    return await job_service.list_jobs(db, ctx, year, month)


@router.post(
    "",
    response_model=JobResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a job",
)
async def create_job(
    request: JobCreateRequest,
    ctx: SessionContext = Depends(require_admin_session),
    db: AsyncSession = Depends(get_db),
):
    return await job_service.create_job(db, ctx, request.model_dump())


@router.get("/{job_id}", response_model=JobResponse, summary="Get a job")
async def get_job(
    job_id: int,
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db),
):
    return await job_service.get_job(db, ctx, job_id)


@router.patch("/{job_id}", response_model=JobResponse, summary="Update a job")
async def update_job(
    job_id: int,
    request: JobUpdateRequest,
    ctx: SessionContext = Depends(require_admin_session),
    db: AsyncSession = Depends(get_db),
):
    """Only fields present in the body change; ``ends_at: null`` clears the end time."""
    return await job_service.update_job(
        db, ctx, job_id, request.model_dump(exclude_unset=True)
    )


@router.delete(
    "/{job_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a job",
)
async def delete_job(
    job_id: int,
    ctx: SessionContext = Depends(require_admin_session),
    db: AsyncSession = Depends(get_db),
):
    await job_service.delete_job(db, ctx, job_id)


@router.post(
    "/{job_id}/toggle-active",
    response_model=ToggleActiveResponse,
    summary="Show or hide a job for staff",
)
async def toggle_job_active(
    job_id: int,
    ctx: SessionContext = Depends(require_admin_session),
    db: AsyncSession = Depends(get_db),
):
    is_active = await job_service.toggle_job_active(db, ctx, job_id)
    return ToggleActiveResponse(id=job_id, is_active=is_active)


@router.get(
    "/{job_id}/applications",
    response_model=list[ApplicationResponse],
    summary="List a job's applications",
)
async def list_job_applications(
    job_id: int,
    ctx: SessionContext = Depends(require_admin_session),
    db: AsyncSession = Depends(get_db),
):
    return await job_service.list_job_applications(db, ctx, job_id)


# ==================== Application actions ====================


@router.post(
    "/{job_id}/apply",
    response_model=ApplicationSummary,
    status_code=status.HTTP_201_CREATED,
    summary="Apply to a job",
)
async def apply_to_job(
    job_id: int,
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db),
):
    """Applications are approved immediately; an invitation is accepted instead."""
    return await application_service.apply_to_job(db, ctx, job_id)


@router.post(
    "/{job_id}/invite",
    response_model=ApplicationSummary,
    status_code=status.HTTP_201_CREATED,
    summary="Invite a staff member",
)
async def invite_user(
    job_id: int,
    request: UserRefRequest,
    ctx: SessionContext = Depends(require_admin_session),
    db: AsyncSession = Depends(get_db),
):
    return await application_service.invite_user(db, ctx, job_id, request.user_id)


@router.post(
    "/{job_id}/accept-invite",
    response_model=ApplicationSummary,
    summary="Accept an invitation",
)
async def accept_invite(
    job_id: int,
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db),
):
    return await application_service.accept_invite(db, ctx, job_id)


@router.post(
    "/{job_id}/assign",
    response_model=ApplicationSummary,
    summary="Assign a staff member directly",
)
async def assign_user(
    job_id: int,
    request: UserRefRequest,
    ctx: SessionContext = Depends(require_admin_session),
    db: AsyncSession = Depends(get_db),
):
    return await application_service.assign_user(db, ctx, job_id, request.user_id)


@router.post(
    "/{job_id}/giveaway",
    response_model=GiveawayResponse,
    summary="Give away your shift",
    description="Claimable at once more than 48h ahead; otherwise needs admin approval",
)
async def request_giveaway(
    job_id: int,
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db),
):
    return await application_service.request_giveaway(db, ctx, job_id)


@router.delete(
    "/{job_id}/giveaway",
    response_model=ApplicationSummary,
    summary="Withdraw a giveaway request",
)
async def cancel_giveaway(
    job_id: int,
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db),
):
    return await application_service.cancel_giveaway(db, ctx, job_id)


@router.post(
    "/{job_id}/claim",
    response_model=ClaimResponse,
    summary="Claim a released shift",
)
async def claim_giveaway(
    job_id: int,
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db),
):
    """
    Take over the oldest released slot.

    A lost race is reported with ``success: false`` rather than an error status.
    """
    result = await application_service.claim_giveaway(db, ctx, job_id)
    return ClaimResponse(
        success=result.success,
        message=result.message,
        application_id=result.application_id,
    )


@router.post(
    "/{job_id}/decline-invite",
    response_model=MessageResponse,
    summary="Decline an invitation",
)
async def decline_invite(
    job_id: int,
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db),
):
    await application_service.decline_invite(db, ctx, job_id)
    return MessageResponse(message="Invitation declined")
