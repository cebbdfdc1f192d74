"""Staff profile model: identity, role, strikes and quiz high score."""

from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import BigInteger, String, Integer, CheckConstraint
from database.engine import Base
from database.types import UTCDateTime, enum_column
from core.utils.datetime import now
from datetime import datetime
from enum import Enum as PyEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from database.models.applications import Application
    from database.models.groups import GroupMembership


class ProfileRole(str, PyEnum):
    HOSTESS = "hostess"  # event staff member
    ADMIN = "admin"  # venue coordinator with full access


class Profile(Base):
    """
    A staff member or administrator.

    Rows are provisioned by the identity provider; the roster only mutates
    strikes (admin) and the quiz high score.
    """

    __tablename__: str = "profiles"
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    full_name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(
        String(255), unique=True, nullable=False, index=True
    )
    role: Mapped[ProfileRole] = mapped_column(
        enum_column(ProfileRole, length=20),
        nullable=False,
        default=ProfileRole.HOSTESS,
    )
    strikes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    quiz_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    quiz_total: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    quiz_attempt_seed: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime, nullable=False, default=now
    )

    applications: Mapped[list["Application"]] = relationship(
        "Application",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    memberships: Mapped[list["GroupMembership"]] = relationship(
        "GroupMembership",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint("strikes >= 0", name="ck_profile_strikes_non_negative"),
        CheckConstraint("quiz_score >= 0", name="ck_profile_quiz_score_non_negative"),
    )

    @property
    def is_admin(self) -> bool:
        return self.role == ProfileRole.ADMIN
