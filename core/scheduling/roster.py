"""
Monthly roster projection.

Turns a month's jobs and their approved assignees into a fixed-shape matrix:
one column per job (sorted by start), four header rows, a blank separator, then
one row per slot index. The Nth approved application in creation order fills
slot N; no seat identity is tracked beyond that.
"""

import csv
import io
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Sequence

from core.utils.formatting import format_shift_date_label, format_time_range

TIME_ROW_LABEL = "Felállás"
LOCATION_ROW_LABEL = "Helyszín"


@dataclass(frozen=True)
class RosterColumn:
    job_id: int
    title: str
    starts_at: datetime
    ends_at: Optional[datetime]
    location: Optional[str]
    slots_total: int
    # Full names of approved applicants, oldest application first
    assignees: Sequence[str] = field(default_factory=tuple)


@dataclass
class RosterMatrix:
    columns: list[RosterColumn]
    rows: list[list[str]]

    @property
    def slot_count(self) -> int:
        return max((c.slots_total for c in self.columns), default=0)

    @property
    def is_empty(self) -> bool:
        return not self.columns


def build_roster(columns: Sequence[RosterColumn], tz_name: str) -> RosterMatrix:
    """
    Project jobs into the roster matrix.

    Args:
        columns: Jobs of the month with their approved assignees
        tz_name: Venue timezone used for date and time labels

    Returns:
        RosterMatrix; empty when there are no jobs
    """
    ordered = sorted(columns, key=lambda c: (c.starts_at, c.job_id))
    if not ordered:
        return RosterMatrix(columns=[], rows=[])

    rows: list[list[str]] = [
        [""] + [format_shift_date_label(c.starts_at, tz_name) for c in ordered],
        [""] + [c.title for c in ordered],
        [TIME_ROW_LABEL] + [format_time_range(c.starts_at, c.ends_at, tz_name) for c in ordered],
        [LOCATION_ROW_LABEL] + [c.location or "" for c in ordered],
        [""] * (len(ordered) + 1),
    ]

    max_slots = max(c.slots_total for c in ordered)
    for index in range(max_slots):
        row = [f"{index + 1}."]
        for column in ordered:
            row.append(column.assignees[index] if index < len(column.assignees) else "")
        rows.append(row)

    return RosterMatrix(columns=list(ordered), rows=rows)


def render_csv(matrix: RosterMatrix) -> str:
    """Render the matrix as CSV with every cell quoted."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerows(matrix.rows)
    return buffer.getvalue()
