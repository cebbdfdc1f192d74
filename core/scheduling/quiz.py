"""Quiz shuffling and scoring."""

import random
from dataclasses import dataclass, replace
from typing import Mapping, MutableSequence, Optional, Sequence, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class QuizItem:
    id: int
    question: str
    answers: tuple[str, ...]
    correct_answer_index: int
    image_url: Optional[str] = None

    @property
    def correct_answer(self) -> str:
        return self.answers[self.correct_answer_index]


def fisher_yates(items: MutableSequence[T], rng: random.Random) -> MutableSequence[T]:
    """Shuffle ``items`` in place and return it."""
    for i in range(len(items) - 1, 0, -1):
        j = rng.randint(0, i)
        items[i], items[j] = items[j], items[i]
    return items


def shuffle_answers(item: QuizItem, rng: random.Random) -> QuizItem:
    """
    Shuffle one question's answers and remap the correct index.

    Positions are shuffled rather than texts so duplicate answer strings keep
    the right index.
    """
    order = fisher_yates(list(range(len(item.answers))), rng)
    answers = tuple(item.answers[i] for i in order)
    return replace(
        item,
        answers=answers,
        correct_answer_index=order.index(item.correct_answer_index),
    )


def shuffle_questions(
    questions: Sequence[QuizItem], rng: Optional[random.Random] = None
) -> list[QuizItem]:
    """Shuffle question order and, independently, each question's answers."""
    rng = rng or random.Random()
    shuffled = fisher_yates(list(questions), rng)
    return [shuffle_answers(q, rng) for q in shuffled]


def score_attempt(
    questions: Sequence[QuizItem], chosen: Mapping[int, int]
) -> int:
    """
    Count correctly answered questions.

    Args:
        questions: The questions as presented (after shuffling)
        chosen: question id -> chosen answer index; unanswered ids are absent

    Returns:
        Number of questions whose chosen index equals the correct index
    """
    return sum(
        1 for q in questions if chosen.get(q.id) == q.correct_answer_index
    )
