"""
Tests for job service functions.

Tests:
- Create and update validation
- Visibility of inactive jobs
- Monthly listing with the release gate
- Toggle and delete
"""

from datetime import datetime, timedelta, timezone

import pytest

from api.services import jobs as job_service
from conftest import NOW, make_application, make_job
from core.exceptions import InvalidInputError, NotFoundError, PermissionDeniedError


class TestCreateJob:
    @pytest.mark.asyncio
    async def test_create_returns_view(self, db, admin):
        starts_at = NOW + timedelta(days=3)

        view = await job_service.create_job(
            db,
            admin,
            {"title": "Borgála", "starts_at": starts_at, "slots_total": 3, "location": "Terasz"},
            now=NOW,
        )

        assert view["title"] == "Borgála"
        assert view["slots_taken"] == 0
        assert view["slots_free"] == 3
        assert view["fill_ratio"] == 0.0
        assert view["ends_at"] is None
        assert view["effective_end"] == starts_at + timedelta(hours=4)
        assert view["estimated_pay"] == 8000
        assert view["created_by"] == admin.user_id

    @pytest.mark.asyncio
    async def test_end_before_start_rejected(self, db, admin):
        with pytest.raises(InvalidInputError):
            await job_service.create_job(
                db,
                admin,
                {"title": "Gála", "starts_at": NOW, "ends_at": NOW - timedelta(hours=1)},
                now=NOW,
            )

    @pytest.mark.asyncio
    async def test_missing_title_rejected(self, db, admin):
        with pytest.raises(InvalidInputError):
            await job_service.create_job(db, admin, {"starts_at": NOW}, now=NOW)

    @pytest.mark.asyncio
    async def test_zero_slots_rejected(self, db, admin):
        with pytest.raises(InvalidInputError):
            await job_service.create_job(
                db, admin, {"title": "Gála", "starts_at": NOW, "slots_total": 0}, now=NOW
            )

    @pytest.mark.asyncio
    async def test_staff_cannot_create(self, db, hostess):
        with pytest.raises(PermissionDeniedError):
            await job_service.create_job(
                db, hostess, {"title": "Gála", "starts_at": NOW}, now=NOW
            )


class TestUpdateJob:
    @pytest.mark.asyncio
    async def test_schedule_checked_against_stored_start(self, db, admin):
        job = await make_job(db)
        job_id = job.id
        starts_at = job.starts_at

        with pytest.raises(InvalidInputError):
            await job_service.update_job(
                db, admin, job_id, {"ends_at": starts_at - timedelta(minutes=1)}, now=NOW
            )

    @pytest.mark.asyncio
    async def test_patch_keeps_other_fields(self, db, admin):
        job = await make_job(db, title="Gála est", slots_total=2)

        view = await job_service.update_job(db, admin, job.id, {"slots_total": 5}, now=NOW)

        assert view["slots_total"] == 5
        assert view["title"] == "Gála est"

    @pytest.mark.asyncio
    async def test_clearing_end_falls_back_to_default_length(self, db, admin):
        job = await make_job(db)
        starts_at = job.starts_at

        view = await job_service.update_job(db, admin, job.id, {"ends_at": None}, now=NOW)

        assert view["ends_at"] is None
        assert view["duration_hours"] == 4.0
        assert view["effective_end"] == starts_at + timedelta(hours=4)


class TestVisibility:
    @pytest.mark.asyncio
    async def test_inactive_job_is_not_found_for_staff(self, db, hostess):
        job = await make_job(db, is_active=False)

        with pytest.raises(NotFoundError):
            await job_service.get_job(db, hostess, job.id, now=NOW)

    @pytest.mark.asyncio
    async def test_inactive_job_visible_to_admin(self, db, admin):
        job = await make_job(db, is_active=False)

        view = await job_service.get_job(db, admin, job.id, now=NOW)

        assert view["is_active"] is False

    @pytest.mark.asyncio
    async def test_fill_ratio_counts_approved(self, db, admin, hostess):
        job = await make_job(db, slots_total=2)
        job_id = job.id
        await make_application(db, job_id, hostess.user_id)

        view = await job_service.get_job(db, admin, job_id, now=NOW)

        assert view["slots_taken"] == 1
        assert view["fill_ratio"] == 0.5

    @pytest.mark.asyncio
    async def test_missing_job(self, db, admin):
        with pytest.raises(NotFoundError):
            await job_service.get_job(db, admin, 12345, now=NOW)


class TestListJobs:
    @pytest.mark.asyncio
    async def test_month_sorted_and_filtered(self, db, hostess):
        late = await make_job(db, starts_at=NOW + timedelta(days=10), title="Late")
        early = await make_job(db, starts_at=NOW + timedelta(days=1), title="Early")
        await make_job(db, starts_at=NOW + timedelta(days=2), is_active=False)
        await make_job(db, starts_at=datetime(2024, 7, 2, 16, 0, tzinfo=timezone.utc))

        payload = await job_service.list_jobs(db, hostess, 2024, 6, now=NOW)

        assert payload["released"] is True
        assert payload["hourly_rate"] == 2000
        assert [j["id"] for j in payload["jobs"]] == [early.id, late.id]

    @pytest.mark.asyncio
    async def test_admin_sees_inactive(self, db, admin):
        await make_job(db, is_active=False)

        payload = await job_service.list_jobs(db, admin, 2024, 6, now=NOW)

        assert len(payload["jobs"]) == 1

    @pytest.mark.asyncio
    async def test_future_month_gated_for_staff(self, db, hostess):
        await make_job(db, starts_at=datetime(2024, 7, 10, 16, 0, tzinfo=timezone.utc))

        payload = await job_service.list_jobs(db, hostess, 2024, 7, now=NOW)

        assert payload["released"] is False
        assert payload["jobs"] == []

    @pytest.mark.asyncio
    async def test_invalid_month(self, db, admin):
        with pytest.raises(InvalidInputError):
            await job_service.list_jobs(db, admin, 2024, 13, now=NOW)

    @pytest.mark.asyncio
    async def test_viewer_state_and_claimability(self, db, hostess, other_hostess):
        job = await make_job(db)
        await make_application(
            db, job.id, other_hostess.user_id, give_away_requested=True, give_away_requested_at=NOW
        )

        payload = await job_service.list_jobs(db, hostess, 2024, 6, now=NOW)
        view = payload["jobs"][0]

        assert view["my_state"] == "none"
        assert view["can_claim"] is True
        assert view["has_giveaway_requests"] is True
        assert view["assignees"][0]["full_name"] == "Nagy Eszter"


class TestToggleAndDelete:
    @pytest.mark.asyncio
    async def test_toggle_flips(self, db, admin):
        job = await make_job(db)
        job_id = job.id

        assert await job_service.toggle_job_active(db, admin, job_id) is False
        assert await job_service.toggle_job_active(db, admin, job_id) is True

    @pytest.mark.asyncio
    async def test_toggle_missing(self, db, admin):
        with pytest.raises(NotFoundError):
            await job_service.toggle_job_active(db, admin, 999)

    @pytest.mark.asyncio
    async def test_delete_cascades_applications(self, db, admin, hostess):
        job = await make_job(db)
        job_id = job.id
        await make_application(db, job_id, hostess.user_id)

        await job_service.delete_job(db, admin, job_id)

        with pytest.raises(NotFoundError):
            await job_service.get_job(db, admin, job_id, now=NOW)
        with pytest.raises(NotFoundError):
            await job_service.delete_job(db, admin, job_id)

    @pytest.mark.asyncio
    async def test_list_job_applications(self, db, admin, hostess):
        job = await make_job(db)
        await make_application(db, job.id, hostess.user_id)

        rows = await job_service.list_job_applications(db, admin, job.id)

        assert [r["full_name"] for r in rows] == ["Kiss Anna"]
        assert rows[0]["state"] == "approved"
