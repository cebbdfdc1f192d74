"""Profile, notification and settings API schemas."""

from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field, field_validator

from api.schemas.jobs import ShiftStateType


class ProfileResponse(BaseModel):
    id: int
    full_name: str
    email: str
    role: Literal["hostess", "admin"]
    strikes: int
    quiz_score: int
    quiz_total: int
    group_id: Optional[int] = None
    created_at: datetime


class SessionResponse(BaseModel):
    """Who the bearer token belongs to."""

    user_id: int
    full_name: str
    role: Literal["hostess", "admin"]
    is_admin: bool


class StrikeAdjustRequest(BaseModel):
    delta: int = Field(..., ge=-100, le=100)

    @field_validator("delta")
    @classmethod
    def non_zero(cls, v: int) -> int:
        if v == 0:
            raise ValueError("Delta must not be zero")
        return v


class StrikeResponse(BaseModel):
    user_id: int
    strikes: int


class QueuePosition(BaseModel):
    rank: int
    total: int


class ShiftEntry(BaseModel):
    application_id: int
    job_id: int
    title: str
    starts_at: datetime
    ends_at: Optional[datetime] = None
    location: Optional[str] = None
    state: ShiftStateType
    giveaway_queue: Optional[QueuePosition] = None


class ProfileStats(BaseModel):
    year: Optional[int] = None
    month: Optional[int] = None
    jobs_completed: int
    hours_worked: float
    estimated_earnings: int
    strikes: int
    quiz_score: int
    quiz_total: int


class ProfileSummaryResponse(BaseModel):
    profile: ProfileResponse
    hourly_rate: int
    stats: ProfileStats
    upcoming: list[ShiftEntry]
    pending: list[ShiftEntry]


class NotificationResponse(BaseModel):
    id: int
    type: Literal["info", "invite", "emergency_giveaway"]
    message: str
    related_job_id: Optional[int] = None
    related_application_id: Optional[int] = None
    read: bool
    created_at: datetime


class UnreadCountResponse(BaseModel):
    unread: int


class MarkReadResponse(BaseModel):
    updated: int


class HourlyRateRequest(BaseModel):
    hourly_rate: int = Field(..., ge=0, le=1_000_000)


class HourlyRateResponse(BaseModel):
    hourly_rate: int
