"""Job API schemas."""

from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field, field_validator

ShiftStateType = Literal[
    "none",
    "pending",
    "invited",
    "approved",
    "giveaway_requested",
    "emergency_requested",
]
ApplicationStatusType = Literal["pending", "approved", "invited"]


class JobCreateRequest(BaseModel):
    """Schema for creating a job. End-after-start is checked by the service."""

    title: str = Field(..., min_length=1, max_length=200)
    starts_at: datetime
    ends_at: Optional[datetime] = Field(None, description="Defaults to a 4 hour shift when omitted")
    location: Optional[str] = Field(None, max_length=200)
    slots_total: int = Field(default=1, ge=1, le=500)
    description: Optional[str] = Field(None, max_length=5000)
    is_active: bool = True

    @field_validator("title", "location", mode="before")
    @classmethod
    def strip_whitespace(cls, v: Optional[str]) -> Optional[str]:
        if isinstance(v, str):
            return v.strip()
        return v


class JobUpdateRequest(BaseModel):
    """Partial job update; only fields present in the body are changed."""

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None
    location: Optional[str] = Field(None, max_length=200)
    slots_total: Optional[int] = Field(None, ge=1, le=500)
    description: Optional[str] = Field(None, max_length=5000)
    is_active: Optional[bool] = None


class ApplicationResponse(BaseModel):
    id: int
    job_id: int
    user_id: int
    full_name: Optional[str] = None
    status: ApplicationStatusType
    state: ShiftStateType
    give_away_requested: bool
    emergency_giveaway_requested: bool
    give_away_requested_at: Optional[datetime] = None
    created_at: datetime


class AssigneeResponse(BaseModel):
    application_id: int
    user_id: int
    full_name: Optional[str] = None
    give_away_requested: bool
    emergency_giveaway_requested: bool


class JobResponse(BaseModel):
    """A job with every derived field, as seen by the caller."""

    id: int
    title: str
    starts_at: datetime
    ends_at: Optional[datetime] = None
    effective_end: datetime
    location: Optional[str] = None
    description: Optional[str] = None
    is_active: bool
    slots_total: int
    slots_taken: int
    slots_free: int
    fill_ratio: float
    duration_hours: float
    hours_until_start: float
    is_full: bool
    is_urgent: bool
    is_ongoing: bool
    is_finished: bool
    estimated_pay: int
    has_giveaway_requests: bool
    can_claim: bool
    my_state: ShiftStateType
    my_application: Optional[ApplicationResponse] = None
    assignees: list[AssigneeResponse]
    created_by: Optional[int] = None
    created_at: datetime
    updated_at: datetime


class JobListResponse(BaseModel):
    year: int
    month: int
    released: bool = Field(description="False when the month is not yet released to the caller")
    next_release_at: Optional[datetime] = None
    hourly_rate: int
    jobs: list[JobResponse]


class ToggleActiveResponse(BaseModel):
    id: int
    is_active: bool
