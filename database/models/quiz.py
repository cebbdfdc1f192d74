"""Quiz question model."""

from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import Integer, String, Text, JSON
from database.engine import Base
from database.types import UTCDateTime
from core.utils.datetime import now
from datetime import datetime


class QuizQuestion(Base):
    __tablename__: str = "quiz_questions"
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    question: Mapped[str] = mapped_column(Text, nullable=False)
    answers: Mapped[list[str]] = mapped_column(JSON, nullable=False)
    correct_answer_index: Mapped[int] = mapped_column(Integer, nullable=False)
    image_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime, nullable=False, default=now
    )
