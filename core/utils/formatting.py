"""Formatting utilities for roster labels."""

from datetime import datetime
from typing import Optional

from core.utils.datetime import to_local

# Abbreviated Hungarian weekday names, Monday first
WEEKDAY_ABBREVIATIONS = ("hét", "kedd", "sze", "csüt", "pén", "szo", "vas")


def format_shift_date_label(starts_at: datetime, tz_name: str) -> str:
    """
    Format a shift start as a roster column date label.

    Args:
        starts_at: Shift start (aware)
        tz_name: Venue timezone

    Returns:
        Label like ``06.05.csüt.``
    """
    local = to_local(starts_at, tz_name)
    weekday = WEEKDAY_ABBREVIATIONS[local.weekday()]
    return f"{local.month:02d}.{local.day:02d}.{weekday}."


def format_clock(dt: datetime, tz_name: str) -> str:
    """Format a moment as HH:MM in the venue timezone."""
    return to_local(dt, tz_name).strftime("%H:%M")


def format_time_range(
    starts_at: datetime, ends_at: Optional[datetime], tz_name: str
) -> str:
    """
    Format a shift's time range.

    A missing end is rendered as ``???`` so the roster shows it needs fixing.
    """
    start = format_clock(starts_at, tz_name)
    end = format_clock(ends_at, tz_name) if ends_at else "???"
    return f"{start}-{end}"

