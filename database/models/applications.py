"""
Application model.

One row per (job, user) pair relating a staff member to a shift. Rejection is
modelled as deleting the row, so a rejected user can apply again. The two
giveaway flags plus ``give_away_requested_at`` form the giveaway request: the
timestamp orders the queue of shifts waiting to be claimed.
"""

from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import (
    Boolean,
    ForeignKey,
    Index,
    UniqueConstraint,
)
from database.engine import Base
from database.types import UTCDateTime, enum_column
from core.utils.datetime import now
from datetime import datetime
from enum import Enum as PyEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from database.models.jobs import Job
    from database.models.profiles import Profile


class ApplicationStatus(str, PyEnum):
    """Persisted application statuses. Rejected rows are deleted instead."""

    PENDING = "pending"
    APPROVED = "approved"
    INVITED = "invited"


class Application(Base):
    """A staff member's relationship to a job."""

    __tablename__: str = "applications"
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    job_id: Mapped[int] = mapped_column(
        ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[int] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    status: Mapped[ApplicationStatus] = mapped_column(
        enum_column(ApplicationStatus, length=20),
        nullable=False,
        default=ApplicationStatus.APPROVED,
    )

    # Giveaway request
    give_away_requested: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    emergency_giveaway_requested: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    give_away_requested_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime, nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime, nullable=False, default=now
    )

    # Relationships
    job: Mapped["Job"] = relationship("Job", back_populates="applications")
    user: Mapped["Profile"] = relationship("Profile", back_populates="applications")

    __table_args__ = (
        UniqueConstraint("job_id", "user_id", name="uq_application_job_user"),
        Index("idx_application_job_status", "job_id", "status"),
        Index(
            "idx_application_giveaway_queue",
            "job_id",
            "give_away_requested",
            "give_away_requested_at",
        ),
    )

    @property
    def has_giveaway_request(self) -> bool:
        return self.give_away_requested or self.emergency_giveaway_requested
