"""Group and monthly release API schemas."""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class GroupMember(BaseModel):
    user_id: int
    full_name: str


class GroupResponse(BaseModel):
    id: int
    name: str
    members: list[GroupMember] = Field(default_factory=list)


class MembershipResponse(BaseModel):
    user_id: int
    group_id: Optional[int] = Field(None, description="The user's group after the toggle")


class ReleaseResponse(BaseModel):
    group_id: int
    group_name: Optional[str] = None
    year: int
    month: int
    release_at: Optional[datetime] = None


class ReleaseUpdateRequest(BaseModel):
    """Set or clear one group's release for a month."""

    year: int = Field(..., ge=1970, le=9998)
    month: int = Field(..., ge=1, le=12)
    group_id: int = Field(..., ge=1)
    release_at: Optional[datetime] = Field(None, description="Null removes the release")
