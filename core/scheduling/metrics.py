"""
Derived shift fields.

Everything a view shows about a job beyond its stored columns is computed here
from (job, now, hourly rate), so list, detail, profile and roster views agree.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from core.utils.datetime import add_hours, ensure_utc, hours_between

DEFAULT_SHIFT_HOURS = 4.0
URGENT_WINDOW_HOURS = 48.0


@dataclass(frozen=True)
class ShiftMetrics:
    """Read-time view of a job's timing, fill level and pay."""

    effective_end: datetime
    duration_hours: float
    hours_until_start: float
    slots_taken: int
    slots_total: int
    is_full: bool
    is_urgent: bool
    is_ongoing: bool
    is_finished: bool
    estimated_pay: int

    @property
    def slots_free(self) -> int:
        return max(self.slots_total - self.slots_taken, 0)

    @property
    def fill_ratio(self) -> float:
        if self.slots_total <= 0:
            return 0.0
        return self.slots_taken / self.slots_total


def effective_end(
    starts_at: datetime,
    ends_at: Optional[datetime],
    default_hours: float = DEFAULT_SHIFT_HOURS,
) -> datetime:
    """End of a shift, defaulting to ``default_hours`` after the start."""
    if ends_at is None:
        return add_hours(ensure_utc(starts_at), default_hours)
    return ensure_utc(ends_at)


def shift_duration_hours(
    starts_at: datetime,
    ends_at: Optional[datetime],
    default_hours: float = DEFAULT_SHIFT_HOURS,
) -> float:
    return hours_between(ensure_utc(starts_at), effective_end(starts_at, ends_at, default_hours))


def hours_until(starts_at: datetime, now: datetime) -> float:
    return hours_between(ensure_utc(now), ensure_utc(starts_at))


def estimate_pay(duration_hours: float, hourly_rate: int) -> int:
    """Pay rounded to whole currency units; negative durations earn nothing."""
    return round(max(duration_hours, 0.0) * hourly_rate)


def compute_shift_metrics(
    starts_at: datetime,
    ends_at: Optional[datetime],
    slots_total: int,
    slots_taken: int,
    now: datetime,
    hourly_rate: int,
    default_hours: float = DEFAULT_SHIFT_HOURS,
    urgent_window_hours: float = URGENT_WINDOW_HOURS,
) -> ShiftMetrics:
    """
    Compute every derived field of a job.

    Args:
        starts_at: Shift start
        ends_at: Shift end, or None for the default duration
        slots_total: Configured number of slots
        slots_taken: Live count of approved applications
        now: Reference moment
        hourly_rate: Pay per hour in whole currency units
        default_hours: Duration assumed when ``ends_at`` is missing
        urgent_window_hours: A non-full shift starting within this window is urgent

    Returns:
        ShiftMetrics for the job at ``now``
    """
    start = ensure_utc(starts_at)
    end = effective_end(start, ends_at, default_hours)
    current = ensure_utc(now)
    duration = hours_between(start, end)
    until_start = hours_between(current, start)
    is_full = slots_taken >= slots_total

    return ShiftMetrics(
        effective_end=end,
        duration_hours=duration,
        hours_until_start=until_start,
        slots_taken=slots_taken,
        slots_total=slots_total,
        is_full=is_full,
        is_urgent=0 < until_start <= urgent_window_hours and not is_full,
        is_ongoing=start <= current <= end,
        is_finished=end < current,
        estimated_pay=estimate_pay(duration, hourly_rate),
    )
