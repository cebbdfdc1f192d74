"""Staff groups, memberships and per-group monthly release schedule."""

from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import String, Integer, ForeignKey, UniqueConstraint, CheckConstraint
from database.engine import Base
from database.types import UTCDateTime
from core.utils.datetime import now
from datetime import datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from database.models.profiles import Profile


class Group(Base):
    """A named group of staff used to stagger schedule visibility."""

    __tablename__: str = "groups"
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime, nullable=False, default=now
    )

    memberships: Mapped[list["GroupMembership"]] = relationship(
        "GroupMembership",
        back_populates="group",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    releases: Mapped[list["MonthlyRelease"]] = relationship(
        "MonthlyRelease",
        back_populates="group",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class GroupMembership(Base):
    """
    (user, group) pair.

    The store allows several rows per user; the groups service keeps it at one.
    """

    __tablename__: str = "user_group_memberships"
    user_id: Mapped[int] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"), primary_key=True
    )
    group_id: Mapped[int] = mapped_column(
        ForeignKey("groups.id", ondelete="CASCADE"), primary_key=True
    )
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime, nullable=False, default=now
    )

    user: Mapped["Profile"] = relationship("Profile", back_populates="memberships")
    group: Mapped["Group"] = relationship("Group", back_populates="memberships")


class MonthlyRelease(Base):
    """When a month's jobs become visible to a group's members."""

    __tablename__: str = "monthly_releases"
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)  # 1-12
    group_id: Mapped[int] = mapped_column(
        ForeignKey("groups.id", ondelete="CASCADE"), nullable=False
    )
    release_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)

    group: Mapped["Group"] = relationship("Group", back_populates="releases")

    __table_args__ = (
        UniqueConstraint("year", "month", "group_id", name="uq_release_month_group"),
        CheckConstraint("month BETWEEN 1 AND 12", name="ck_release_month_range"),
    )
