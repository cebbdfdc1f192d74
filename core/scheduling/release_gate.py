"""
Monthly release gate.

Non-admin staff only see a future month's jobs once at least one of their
groups has a release for that month whose time has passed. The current and
past months are always visible. Evaluated on every listing; nothing is cached.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from core.utils.datetime import ensure_utc, is_month_after, month_of, validate_month


@dataclass(frozen=True)
class ReleaseDecision:
    granted: bool
    is_future_month: bool
    # Earliest release still ahead, if access is currently denied
    next_release_at: Optional[datetime] = None


def evaluate_release(
    year: int,
    month: int,
    release_times: Iterable[datetime],
    now: datetime,
    tz_name: str,
) -> ReleaseDecision:
    """
    Decide whether a non-admin may see jobs of (year, month).

    Args:
        year: Target year
        month: Target month (1-12)
        release_times: ``release_at`` of every MonthlyRelease for the target
            month belonging to one of the caller's groups
        now: Reference moment
        tz_name: Timezone defining the current calendar month

    Returns:
        ReleaseDecision
    """
    validate_month(year, month)
    current = ensure_utc(now)
    if not is_month_after(year, month, month_of(current, tz_name)):
        return ReleaseDecision(granted=True, is_future_month=False)

    times = [ensure_utc(t) for t in release_times]
    if any(t <= current for t in times):
        return ReleaseDecision(granted=True, is_future_month=True)

    upcoming = min(times) if times else None
    return ReleaseDecision(granted=False, is_future_month=True, next_release_at=upcoming)


def is_month_released(
    year: int,
    month: int,
    release_times: Iterable[datetime],
    now: datetime,
    tz_name: str,
) -> bool:
    return evaluate_release(year, month, release_times, now, tz_name).granted
