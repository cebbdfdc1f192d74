"""
Tests for the quiz service.

Tests:
- Question validation
- Seeded attempts and scoring
- Each issued attempt is accepted once
- High score only replaced on improvement
"""

import pytest
from sqlalchemy import select

from api.services import quiz as quiz_service
from core.exceptions import (
    InvalidInputError,
    NotFoundError,
    PermissionDeniedError,
    StaleStateError,
)
from database.models.profiles import Profile


async def seed_bank(db, admin):
    first = await quiz_service.create_question(db, admin, "Mi a dress code színe?", ["Piros", "Fekete", "Zöld"], 1)
    second = await quiz_service.create_question(db, admin, "Kell névtábla?", ["Igen", "Nem"], 0)
    return {q["id"]: q["answers"][q["correct_answer_index"]] for q in (first, second)}


def correct_choices(attempt, solutions):
    return {q["id"]: q["answers"].index(solutions[q["id"]]) for q in attempt["questions"]}


class TestQuestionBank:
    @pytest.mark.asyncio
    async def test_create_strips_answers(self, db, admin):
        created = await quiz_service.create_question(db, admin, " Kérdés ", [" A ", "B"], 0)

        assert created["question"] == "Kérdés"
        assert created["answers"] == ["A", "B"]

    @pytest.mark.parametrize("answers,correct", [
        (["Egyetlen"], 0),
        (["A", "B"], 2),
        (["A", "  "], 0),
    ])
    @pytest.mark.asyncio
    async def test_invalid_questions(self, db, admin, answers, correct):
        with pytest.raises(InvalidInputError):
            await quiz_service.create_question(db, admin, "Kérdés", answers, correct)

    @pytest.mark.asyncio
    async def test_update_validates_merged_question(self, db, admin):
        created = await quiz_service.create_question(db, admin, "Kérdés", ["A", "B", "C"], 2)

        with pytest.raises(InvalidInputError):
            await quiz_service.update_question(db, admin, created["id"], {"answers": ["A", "B"]})

        updated = await quiz_service.update_question(
            db, admin, created["id"], {"answers": ["A", "B"], "correct_answer_index": 1}
        )
        assert updated["correct_answer_index"] == 1

    @pytest.mark.asyncio
    async def test_delete_missing(self, db, admin):
        with pytest.raises(NotFoundError):
            await quiz_service.delete_question(db, admin, 404)

    @pytest.mark.asyncio
    async def test_staff_cannot_read_solutions(self, db, hostess):
        with pytest.raises(PermissionDeniedError):
            await quiz_service.list_questions(db, hostess)


class TestAttempts:
    @pytest.mark.asyncio
    async def test_attempt_is_reproducible(self, db, admin, hostess):
        await seed_bank(db, admin)

        first = await quiz_service.start_attempt(db, hostess, seed=42)
        second = await quiz_service.start_attempt(db, hostess, seed=42)

        assert first == second
        assert first["total"] == 2
        assert "correct_answer_index" not in first["questions"][0]

    @pytest.mark.asyncio
    async def test_perfect_attempt_sets_high_score(self, db, admin, hostess):
        solutions = await seed_bank(db, admin)
        attempt = await quiz_service.start_attempt(db, hostess, seed=7)

        result = await quiz_service.submit_attempt(
            db, hostess, 7, correct_choices(attempt, solutions)
        )

        assert result == {"score": 2, "total": 2, "high_score": 2, "new_high_score": True}

    @pytest.mark.asyncio
    async def test_worse_attempt_keeps_high_score(self, db, admin, hostess):
        solutions = await seed_bank(db, admin)
        attempt = await quiz_service.start_attempt(db, hostess, seed=7)
        await quiz_service.submit_attempt(db, hostess, 7, correct_choices(attempt, solutions))
        await quiz_service.start_attempt(db, hostess, seed=8)

        result = await quiz_service.submit_attempt(db, hostess, 8, {})

        assert result["score"] == 0
        assert result["high_score"] == 2
        assert result["new_high_score"] is False

    @pytest.mark.asyncio
    async def test_attempt_accepted_once(self, db, admin, hostess):
        await seed_bank(db, admin)
        await quiz_service.start_attempt(db, hostess, seed=7)
        await quiz_service.submit_attempt(db, hostess, 7, {})

        with pytest.raises(StaleStateError):
            await quiz_service.submit_attempt(db, hostess, 7, {})

    @pytest.mark.asyncio
    async def test_unissued_seed_rejected(self, db, admin, hostess):
        solutions = await seed_bank(db, admin)
        attempt = await quiz_service.start_attempt(db, hostess, seed=7)

        with pytest.raises(StaleStateError):
            await quiz_service.submit_attempt(db, hostess, 8, correct_choices(attempt, solutions))

        score = await db.scalar(select(Profile.quiz_score).where(Profile.id == hostess.user_id))
        assert score == 0

    @pytest.mark.asyncio
    async def test_new_attempt_replaces_open_one(self, db, admin, hostess):
        await seed_bank(db, admin)
        await quiz_service.start_attempt(db, hostess, seed=7)
        await quiz_service.start_attempt(db, hostess, seed=8)

        with pytest.raises(StaleStateError):
            await quiz_service.submit_attempt(db, hostess, 7, {})
        result = await quiz_service.submit_attempt(db, hostess, 8, {})

        assert result["total"] == 2

    @pytest.mark.asyncio
    async def test_attempt_is_per_user(self, db, admin, hostess, other_hostess):
        await seed_bank(db, admin)
        await quiz_service.start_attempt(db, hostess, seed=7)

        with pytest.raises(StaleStateError):
            await quiz_service.submit_attempt(db, other_hostess, 7, {})


class TestSubmitScore:
    @pytest.mark.asyncio
    async def test_only_improvements_stored(self, db, hostess):
        assert await quiz_service.submit_score(db, hostess.user_id, 3, 5) is True
        assert await quiz_service.submit_score(db, hostess.user_id, 3, 5) is False
        assert await quiz_service.submit_score(db, hostess.user_id, 2, 5) is False

        score = await db.scalar(select(Profile.quiz_score).where(Profile.id == hostess.user_id))
        assert score == 3
