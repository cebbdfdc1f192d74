"""Quiz question bank, attempts and high scores."""

import random
import secrets
from typing import Any, Dict, List, Mapping, Optional
import logging

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import InvalidInputError, NotFoundError, StaleStateError
from core.scheduling.quiz import QuizItem, score_attempt, shuffle_questions
from core.security import SessionContext, require_admin
from database.models.profiles import Profile
from database.models.quiz import QuizQuestion

logger = logging.getLogger(__name__)

MIN_ANSWERS = 2


def serialize_question(question: QuizQuestion) -> Dict[str, Any]:
    return {
        "id": question.id,
        "question": question.question,
        "answers": list(question.answers),
        "correct_answer_index": question.correct_answer_index,
        "image_url": question.image_url,
        "created_at": question.created_at,
    }


def validate_question(
    question: str, answers: List[str], correct_answer_index: int
) -> List[str]:
    """
    Check a question before it is stored.

    Returns:
        The answers with surrounding whitespace removed
    """
    if not question or not question.strip():
        raise InvalidInputError("Question text must not be empty")
    cleaned = [a.strip() for a in answers]
    if len(cleaned) < MIN_ANSWERS:
        raise InvalidInputError(f"A question needs at least {MIN_ANSWERS} answers")
    if any(not a for a in cleaned):
        raise InvalidInputError("Answers must not be empty")
    if not 0 <= correct_answer_index < len(cleaned):
        raise InvalidInputError("Correct answer index is out of range")
    return cleaned


async def _ordered_questions(db: AsyncSession) -> List[QuizQuestion]:
    result = await db.execute(
        select(QuizQuestion).order_by(QuizQuestion.created_at, QuizQuestion.id)
    )
    return list(result.scalars().all())


def _as_items(questions: List[QuizQuestion]) -> List[QuizItem]:
    return [
        QuizItem(
            id=q.id,
            question=q.question,
            answers=tuple(q.answers),
            correct_answer_index=q.correct_answer_index,
            image_url=q.image_url,
        )
        for q in questions
    ]


async def list_questions(db: AsyncSession, ctx: SessionContext) -> List[Dict[str, Any]]:
    require_admin(ctx)
    return [serialize_question(q) for q in await _ordered_questions(db)]


async def create_question(
    db: AsyncSession,
    ctx: SessionContext,
    question: str,
    answers: List[str],
    correct_answer_index: int,
    image_url: Optional[str] = None,
) -> Dict[str, Any]:
    require_admin(ctx)
    cleaned = validate_question(question, answers, correct_answer_index)
    row = QuizQuestion(
        question=question.strip(),
        answers=cleaned,
        correct_answer_index=correct_answer_index,
        image_url=image_url,
    )
    db.add(row)
    await db.commit()
    logger.info(f"Quiz question {row.id} created by user {ctx.user_id}")
    return serialize_question(row)


async def update_question(
    db: AsyncSession,
    ctx: SessionContext,
    question_id: int,
    fields: Dict[str, Any],
) -> Dict[str, Any]:
    """Patch a question; the merged question must still be valid."""
    require_admin(ctx)
    row = await db.get(QuizQuestion, question_id)
    if row is None:
        raise NotFoundError(f"Quiz question {question_id} not found")

    question = fields.get("question", row.question)
    answers = fields.get("answers", row.answers)
    correct = fields.get("correct_answer_index", row.correct_answer_index)
    cleaned = validate_question(question, answers, correct)

    row.question = question.strip()
    row.answers = cleaned
    row.correct_answer_index = correct
    if "image_url" in fields:
        row.image_url = fields["image_url"]
    await db.commit()

    logger.info(f"Quiz question {question_id} updated by user {ctx.user_id}")
    return serialize_question(row)


async def delete_question(db: AsyncSession, ctx: SessionContext, question_id: int) -> None:
    require_admin(ctx)
    result = await db.execute(delete(QuizQuestion).where(QuizQuestion.id == question_id))
    if not result.rowcount:
        await db.rollback()
        raise NotFoundError(f"Quiz question {question_id} not found")
    await db.commit()
    logger.info(f"Quiz question {question_id} deleted by user {ctx.user_id}")


async def start_attempt(
    db: AsyncSession, ctx: SessionContext, seed: Optional[int] = None
) -> Dict[str, Any]:
    """
    Shuffle the question bank for one attempt.

    The attempt is reproducible from its seed, so the correct indices never
    leave the server. The seed is stored on the caller's profile and replaces
    any attempt still open.
    """
    seed = seed if seed is not None else secrets.randbits(32)
    items = shuffle_questions(_as_items(await _ordered_questions(db)), random.Random(seed))
    await db.execute(
        update(Profile)
        .where(Profile.id == ctx.user_id)
        .values(quiz_attempt_seed=seed)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    return {
        "seed": seed,
        "total": len(items),
        "questions": [
            {
                "id": item.id,
                "question": item.question,
                "answers": list(item.answers),
                "image_url": item.image_url,
            }
            for item in items
        ],
    }


async def submit_attempt(
    db: AsyncSession,
    ctx: SessionContext,
    seed: int,
    answers: Mapping[int, int],
) -> Dict[str, Any]:
    """
    Score an attempt and keep it if it beats the caller's high score.

    Args:
        seed: Seed returned by ``start_attempt``
        answers: question id -> chosen index in the shuffled answer list

    Returns:
        Dictionary with score, total, the stored high score and whether it changed

    Raises:
        StaleStateError: The seed is not the caller's open attempt
    """
    consumed = await db.execute(
        update(Profile)
        .where(Profile.id == ctx.user_id, Profile.quiz_attempt_seed == seed)
        .values(quiz_attempt_seed=None)
        .returning(Profile.id)
        .execution_options(synchronize_session=False)
    )
    if consumed.scalar_one_or_none() is None:
        await db.rollback()
        logger.warning(f"User {ctx.user_id} submitted a quiz attempt that is not open")
        raise StaleStateError("This quiz attempt is no longer valid")

    items = shuffle_questions(_as_items(await _ordered_questions(db)), random.Random(seed))
    score = score_attempt(items, answers)
    total = len(items)
    improved = await submit_score(db, ctx.user_id, score, total)

    high_score = await db.scalar(select(Profile.quiz_score).where(Profile.id == ctx.user_id))
    logger.info(f"User {ctx.user_id} scored {score}/{total} (new high score: {improved})")
    return {
        "score": score,
        "total": total,
        "high_score": high_score,
        "new_high_score": improved,
    }


async def submit_score(db: AsyncSession, user_id: int, score: int, total: int) -> bool:
    """Store the score only if it beats the stored one, in one conditional UPDATE."""
    result = await db.execute(
        update(Profile)
        .where(Profile.id == user_id, Profile.quiz_score < score)
        .values(quiz_score=score, quiz_total=total)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    return bool(result.rowcount)
