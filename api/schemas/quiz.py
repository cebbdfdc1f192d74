"""Quiz API schemas."""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, field_validator


class QuizQuestionRequest(BaseModel):
    question: str = Field(..., min_length=1, max_length=2000)
    answers: list[str] = Field(..., min_length=2, max_length=10)
    correct_answer_index: int = Field(..., ge=0)
    image_url: Optional[str] = Field(None, max_length=500)

    @field_validator("answers")
    @classmethod
    def answers_not_blank(cls, v: list[str]) -> list[str]:
        if any(not a.strip() for a in v):
            raise ValueError("Answers must not be empty")
        return v


class QuizQuestionUpdateRequest(BaseModel):
    question: Optional[str] = Field(None, min_length=1, max_length=2000)
    answers: Optional[list[str]] = Field(None, min_length=2, max_length=10)
    correct_answer_index: Optional[int] = Field(None, ge=0)
    image_url: Optional[str] = Field(None, max_length=500)


class QuizQuestionResponse(BaseModel):
    id: int
    question: str
    answers: list[str]
    correct_answer_index: int
    image_url: Optional[str] = None
    created_at: datetime


class AttemptQuestion(BaseModel):
    """A shuffled question without its solution."""

    id: int
    question: str
    answers: list[str]
    image_url: Optional[str] = None


class AttemptResponse(BaseModel):
    seed: int
    total: int
    questions: list[AttemptQuestion]


class AttemptSubmitRequest(BaseModel):
    seed: int = Field(..., ge=0)
    answers: dict[int, int] = Field(
        default_factory=dict,
        description="Question id -> chosen index in the shuffled answer list",
    )


class AttemptResultResponse(BaseModel):
    score: int
    total: int
    high_score: int
    new_high_score: bool
