"""Quiz endpoints."""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_session_context, require_admin_session
from api.schemas.quiz import (
    AttemptResponse,
    AttemptResultResponse,
    AttemptSubmitRequest,
    QuizQuestionRequest,
    QuizQuestionResponse,
    QuizQuestionUpdateRequest,
)
from api.services import quiz as quiz_service
from core.security import SessionContext
from database.engine import get_db

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/questions",
    response_model=list[QuizQuestionResponse],
    summary="List quiz questions",
)
async def list_questions(
    ctx: SessionContext = Depends(require_admin_session),
    db: AsyncSession = Depends(get_db),
):
    return await quiz_service.list_questions(db, ctx)


@router.post(
    "/questions",
    response_model=QuizQuestionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a quiz question",
)
async def create_question(
    request: QuizQuestionRequest,
    ctx: SessionContext = Depends(require_admin_session),
    db: AsyncSession = Depends(get_db),
):
    return await quiz_service.create_question(
        db,
        ctx,
        request.question,
        request.answers,
        request.correct_answer_index,
        request.image_url,
    )


@router.patch(
    "/questions/{question_id}",
    response_model=QuizQuestionResponse,
    summary="Update a quiz question",
)
async def update_question(
    question_id: int,
    request: QuizQuestionUpdateRequest,
    ctx: SessionContext = Depends(require_admin_session),
    db: AsyncSession = Depends(get_db),
):
    return await quiz_service.update_question(
        db, ctx, question_id, request.model_dump(exclude_unset=True)
    )


@router.delete(
    "/questions/{question_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a quiz question",
)
async def delete_question(
    question_id: int,
    ctx: SessionContext = Depends(require_admin_session),
    db: AsyncSession = Depends(get_db),
):
    await quiz_service.delete_question(db, ctx, question_id)


@router.post(
    "/attempt",
    response_model=AttemptResponse,
    summary="Start a quiz attempt",
    description="Questions and answers in random order, without solutions. "
    "Starting a new attempt discards the previous unsubmitted one.",
)
async def start_attempt(
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db),
):
    return await quiz_service.start_attempt(db, ctx)


@router.post(
    "/submit",
    response_model=AttemptResultResponse,
    summary="Submit a quiz attempt",
)
async def submit_attempt(
    request: AttemptSubmitRequest,
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_db),
):
    """The high score is only replaced by a strictly better score."""
    return await quiz_service.submit_attempt(db, ctx, request.seed, request.answers)
