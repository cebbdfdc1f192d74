"""
Shift lifecycle state machine.

Each (job, user) pair is in exactly one ``ShiftState``. The persisted
application row only stores a status plus two giveaway flags, so the state is
derived from the row (or its absence). Guards here are pure; the applications
service runs them before issuing conditional updates against the store.

    NONE -> PENDING | INVITED -> APPROVED
    APPROVED -> GIVEAWAY_REQUESTED | EMERGENCY_REQUESTED
    EMERGENCY_REQUESTED -> GIVEAWAY_REQUESTED   (admin approval)
    GIVEAWAY_REQUESTED | EMERGENCY_REQUESTED -> APPROVED   (cancelled)
    GIVEAWAY_REQUESTED -> NONE   (claimed by another user)
    any -> NONE   (decline / reject / admin removal)
"""

from enum import Enum
from typing import Optional, Protocol
from datetime import datetime

from core.exceptions import ConflictError, StaleStateError
from core.scheduling.metrics import URGENT_WINDOW_HOURS


class ShiftState(str, Enum):
    NONE = "none"
    PENDING = "pending"
    INVITED = "invited"
    APPROVED = "approved"
    GIVEAWAY_REQUESTED = "giveaway_requested"
    EMERGENCY_REQUESTED = "emergency_requested"


class GiveawayKind(str, Enum):
    NORMAL = "normal"  # immediately claimable
    EMERGENCY = "emergency"  # waits for admin approval


class ApplicationLike(Protocol):
    status: str
    give_away_requested: bool
    emergency_giveaway_requested: bool
    give_away_requested_at: Optional[datetime]


def shift_state(application: Optional[ApplicationLike]) -> ShiftState:
    """Derive the lifecycle state of a (job, user) pair from its row."""
    if application is None:
        return ShiftState.NONE
    status = getattr(application.status, "value", application.status)
    if status == "invited":
        return ShiftState.INVITED
    if status == "pending":
        return ShiftState.PENDING
    if application.emergency_giveaway_requested:
        return ShiftState.EMERGENCY_REQUESTED
    if application.give_away_requested:
        return ShiftState.GIVEAWAY_REQUESTED
    return ShiftState.APPROVED


def giveaway_kind(
    hours_until_start: float, window_hours: float = URGENT_WINDOW_HOURS
) -> GiveawayKind:
    """More than ``window_hours`` ahead is a normal giveaway, otherwise emergency."""
    if hours_until_start > window_hours:
        return GiveawayKind.NORMAL
    return GiveawayKind.EMERGENCY


def ensure_can_apply(state: ShiftState) -> None:
    if state == ShiftState.NONE:
        return
    raise ConflictError("You have already applied to or been invited to this job")


def ensure_can_invite(state: ShiftState) -> None:
    if state != ShiftState.NONE:
        raise ConflictError("User has already applied or been invited")


def ensure_can_accept_invite(state: ShiftState) -> None:
    if state == ShiftState.NONE:
        raise StaleStateError("Invitation is no longer valid")
    if state not in (ShiftState.INVITED, ShiftState.APPROVED):
        raise ConflictError(f"Cannot accept an invitation in state '{state.value}'")


def ensure_can_request_giveaway(state: ShiftState) -> None:
    if state == ShiftState.NONE:
        raise StaleStateError("You are no longer assigned to this job")
    if state in (ShiftState.GIVEAWAY_REQUESTED, ShiftState.EMERGENCY_REQUESTED):
        raise ConflictError("A giveaway request is already pending for this shift")
    if state != ShiftState.APPROVED:
        raise ConflictError("Only approved shifts can be given away")


def ensure_can_cancel_giveaway(state: ShiftState) -> None:
    if state == ShiftState.NONE:
        raise StaleStateError("You are no longer assigned to this job")
    if state not in (ShiftState.GIVEAWAY_REQUESTED, ShiftState.EMERGENCY_REQUESTED):
        raise ConflictError("There is no giveaway request to cancel")


def ensure_can_approve(state: ShiftState) -> None:
    if state == ShiftState.NONE:
        raise StaleStateError("Application no longer exists")
    if state not in (ShiftState.PENDING, ShiftState.INVITED, ShiftState.APPROVED):
        raise ConflictError(f"Cannot approve an application in state '{state.value}'")
