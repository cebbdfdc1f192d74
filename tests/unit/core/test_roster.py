"""Tests for the roster matrix and CSV rendering."""

from datetime import datetime, timezone

from core.scheduling.roster import (
    LOCATION_ROW_LABEL,
    TIME_ROW_LABEL,
    RosterColumn,
    build_roster,
    render_csv,
)

TZ = "Europe/Budapest"


def column(job_id, day, hour, slots, assignees=(), ends=True, location="Nagyterem"):
    start = datetime(2024, 6, day, hour, 0, tzinfo=timezone.utc)
    end = datetime(2024, 6, day, hour + 5, 0, tzinfo=timezone.utc) if ends else None
    return RosterColumn(
        job_id=job_id,
        title=f"Job {job_id}",
        starts_at=start,
        ends_at=end,
        location=location,
        slots_total=slots,
        assignees=tuple(assignees),
    )


class TestBuildRoster:
    def test_empty_month(self):
        matrix = build_roster([], TZ)

        assert matrix.is_empty
        assert matrix.rows == []
        assert matrix.slot_count == 0

    def test_header_rows(self):
        matrix = build_roster([column(1, 6, 16, 2)], TZ)

        assert matrix.rows[0] == ["", "06.06.csüt."]
        assert matrix.rows[1] == ["", "Job 1"]
        assert matrix.rows[2] == [TIME_ROW_LABEL, "18:00-23:00"]
        assert matrix.rows[3] == [LOCATION_ROW_LABEL, "Nagyterem"]
        assert matrix.rows[4] == ["", ""]

    def test_columns_sorted_by_start(self):
        later = column(1, 20, 16, 1)
        earlier = column(2, 6, 16, 1)
        matrix = build_roster([later, earlier], TZ)

        assert [c.job_id for c in matrix.columns] == [2, 1]

    def test_slot_rows_fill_in_order(self):
        matrix = build_roster(
            [
                column(1, 6, 16, 3, ["Kiss Anna", "Nagy Eszter"]),
                column(2, 7, 16, 1, ["Tóth Lili"]),
            ],
            TZ,
        )

        assert matrix.slot_count == 3
        assert matrix.rows[5] == ["1.", "Kiss Anna", "Tóth Lili"]
        assert matrix.rows[6] == ["2.", "Nagy Eszter", ""]
        assert matrix.rows[7] == ["3.", "", ""]

    def test_missing_end_and_location(self):
        matrix = build_roster([column(1, 6, 16, 1, ends=False, location=None)], TZ)

        assert matrix.rows[2][1] == "18:00-???"
        assert matrix.rows[3][1] == ""


class TestRenderCsv:
    def test_every_cell_quoted(self):
        matrix = build_roster([column(1, 6, 16, 1, ["Kiss Anna"])], TZ)
        lines = render_csv(matrix).splitlines()

        assert lines[0] == '"","06.06.csüt."'
        assert lines[-1] == '"1.","Kiss Anna"'

    def test_embedded_quotes_escaped(self):
        matrix = build_roster([column(1, 6, 16, 1, ['Anna "Panni" Kiss'])], TZ)
        assert '"Anna ""Panni"" Kiss"' in render_csv(matrix)
