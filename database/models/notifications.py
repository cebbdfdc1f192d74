"""In-app notification rows consumed by their recipient."""

from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import Boolean, ForeignKey, Text, Index
from database.engine import Base
from database.types import UTCDateTime, enum_column
from core.utils.datetime import now
from datetime import datetime
from enum import Enum as PyEnum


class NotificationType(str, PyEnum):
    INFO = "info"
    INVITE = "invite"  # recipient can accept/decline the invitation
    EMERGENCY_GIVEAWAY = "emergency_giveaway"  # admin can approve/decline


class Notification(Base):
    __tablename__: str = "notifications"
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    type: Mapped[NotificationType] = mapped_column(
        enum_column(NotificationType), nullable=False, default=NotificationType.INFO
    )
    message: Mapped[str] = mapped_column(Text, nullable=False)
    related_job_id: Mapped[int | None] = mapped_column(
        ForeignKey("jobs.id", ondelete="CASCADE"), nullable=True
    )
    related_application_id: Mapped[int | None] = mapped_column(
        ForeignKey("applications.id", ondelete="SET NULL"), nullable=True
    )
    read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime, nullable=False, default=now
    )

    __table_args__ = (
        Index("idx_notification_user_read", "user_id", "read"),
    )
