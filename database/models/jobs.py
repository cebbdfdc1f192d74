"""
Job (shift) model.

A job is a time-boxed shift at a venue location with a fixed number of slots.
The number of taken slots is never stored; it is always counted from approved
applications.
"""

from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import (
    String,
    Boolean,
    ForeignKey,
    Integer,
    Text,
    CheckConstraint,
    Index,
)
from database.engine import Base
from database.types import UTCDateTime
from core.utils.datetime import now
from datetime import datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from database.models.applications import Application


class Job(Base):
    """A shift that hostesses apply to."""

    __tablename__: str = "jobs"
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    starts_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    ends_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    location: Mapped[str | None] = mapped_column(String(200), nullable=True)
    slots_total: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_by: Mapped[int | None] = mapped_column(
        ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime, nullable=False, default=now
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime, nullable=False, default=now, onupdate=now
    )

    # Relationships
    applications: Mapped[list["Application"]] = relationship(
        "Application",
        back_populates="job",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="[Application.created_at, Application.id]",
    )

    __table_args__ = (
        CheckConstraint("slots_total >= 1", name="ck_job_slots_total_positive"),
        CheckConstraint(
            "ends_at IS NULL OR ends_at > starts_at", name="ck_job_end_after_start"
        ),
        Index("idx_job_starts_at", "starts_at"),
        Index("idx_job_active_starts_at", "is_active", "starts_at"),
    )
