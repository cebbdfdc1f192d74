"""Application lifecycle API schemas."""

from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field

from api.schemas.jobs import ApplicationStatusType, ShiftStateType


class ApplicationSummary(BaseModel):
    id: int
    job_id: int
    user_id: int
    status: ApplicationStatusType
    state: ShiftStateType
    give_away_requested: bool
    emergency_giveaway_requested: bool
    give_away_requested_at: Optional[datetime] = None
    created_at: datetime


class EmergencyResolutionResponse(ApplicationSummary):
    changed: bool = Field(description="False when the request had already been resolved")


class UserRefRequest(BaseModel):
    """Body naming the staff member an admin action targets."""

    user_id: int = Field(..., ge=1)


class GiveawayResponse(BaseModel):
    application_id: int
    kind: Literal["normal", "emergency"]
    hours_until_start: float


class ClaimResponse(BaseModel):
    success: bool
    message: str
    application_id: Optional[int] = None
