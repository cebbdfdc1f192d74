"""
Endpoint tests against the full application.

Tests:
- Bearer authentication and the session endpoint
- Admin-only routes
- Job creation, listing and the per-job actions
- Claim outcomes as 200 responses
- Stale invitation answered with NO_LONGER_VALID
- Roster CSV download headers
- Health and readiness probes
"""

import codecs
from datetime import datetime, timedelta, timezone

import httpx
import pytest
import pytest_asyncio

from api.main import app
from conftest import auth_headers, make_application, make_job, make_profile
from core.security import create_access_token
from database.engine import get_db
from database.models.profiles import ProfileRole

API = "/api/v1"


def mid_current_month() -> datetime:
    """A moment inside the current venue month, so staff always see the job."""
    current = datetime.now(timezone.utc)
    return datetime(current.year, current.month, 15, 12, 0, tzinfo=timezone.utc)


@pytest_asyncio.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def admin_profile(db):
    return await make_profile(db, "Admin Béla", ProfileRole.ADMIN)


@pytest_asyncio.fixture
async def hostess_profile(db):
    return await make_profile(db, "Kiss Anna")


# ==================== Authentication ==================== #


class TestAuthentication:
    @pytest.mark.asyncio
    async def test_missing_token(self, client):
        response = await client.get(f"{API}/session")

        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"
        assert response.json()["error"]["message"] == "Authentication required"

    @pytest.mark.asyncio
    async def test_garbage_token(self, client):
        response = await client.get(
            f"{API}/session", headers={"Authorization": "Bearer not-a-jwt"}
        )

        assert response.status_code == 401
        assert response.json()["error"]["message"] == "Invalid token"

    @pytest.mark.asyncio
    async def test_expired_token(self, client, hostess_profile):
        token = create_access_token(hostess_profile.id, expires_delta=timedelta(seconds=-5))

        response = await client.get(
            f"{API}/session", headers={"Authorization": f"Bearer {token}"}
        )

        assert response.status_code == 401
        assert response.json()["error"]["message"] == "Token expired"

    @pytest.mark.asyncio
    async def test_token_for_deleted_profile(self, client):
        response = await client.get(f"{API}/session", headers=auth_headers(4242))
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_session(self, client, hostess_profile):
        response = await client.get(f"{API}/session", headers=auth_headers(hostess_profile.id))

        assert response.status_code == 200
        assert response.json() == {
            "user_id": hostess_profile.id,
            "full_name": "Kiss Anna",
            "role": "hostess",
            "is_admin": False,
        }


class TestAdminRoutes:
    @pytest.mark.asyncio
    async def test_staff_cannot_create_jobs(self, client, hostess_profile):
        response = await client.post(
            f"{API}/jobs",
            json={"title": "Gála", "starts_at": mid_current_month().isoformat()},
            headers=auth_headers(hostess_profile.id),
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_staff_cannot_list_profiles(self, client, hostess_profile):
        response = await client.get(f"{API}/profiles", headers=auth_headers(hostess_profile.id))
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_admin_sets_hourly_rate(self, client, admin_profile):
        headers = auth_headers(admin_profile.id)

        put = await client.put(f"{API}/settings/hourly-rate", json={"hourly_rate": 2500}, headers=headers)
        get = await client.get(f"{API}/settings/hourly-rate", headers=headers)

        assert put.status_code == 200
        assert get.json() == {"hourly_rate": 2500}


# ==================== Jobs ==================== #


class TestJobFlow:
    @pytest.mark.asyncio
    async def test_create_apply_and_list(self, client, admin_profile, hostess_profile):
        starts_at = mid_current_month()
        created = await client.post(
            f"{API}/jobs",
            json={"title": "Gála est", "starts_at": starts_at.isoformat(), "slots_total": 2},
            headers=auth_headers(admin_profile.id),
        )
        assert created.status_code == 201
        job_id = created.json()["id"]

        applied = await client.post(
            f"{API}/jobs/{job_id}/apply", headers=auth_headers(hostess_profile.id)
        )
        assert applied.status_code == 201
        assert applied.json()["status"] == "approved"

        listed = await client.get(
            f"{API}/jobs",
            params={"year": starts_at.year, "month": starts_at.month},
            headers=auth_headers(hostess_profile.id),
        )
        body = listed.json()
        assert listed.status_code == 200
        assert body["released"] is True
        assert body["jobs"][0]["slots_taken"] == 1
        assert body["jobs"][0]["my_state"] == "approved"

    @pytest.mark.asyncio
    async def test_end_before_start(self, client, admin_profile):
        starts_at = mid_current_month()
        response = await client.post(
            f"{API}/jobs",
            json={
                "title": "Gála",
                "starts_at": starts_at.isoformat(),
                "ends_at": (starts_at - timedelta(hours=1)).isoformat(),
            },
            headers=auth_headers(admin_profile.id),
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_INPUT"

    @pytest.mark.asyncio
    async def test_missing_month_parameter(self, client, hostess_profile):
        response = await client.get(
            f"{API}/jobs", params={"year": 2024}, headers=auth_headers(hostess_profile.id)
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_full_job_conflict(self, client, db, hostess_profile):
        other = await make_profile(db, "Nagy Eszter")
        job = await make_job(db, starts_at=mid_current_month(), slots_total=1)
        await make_application(db, job.id, other.id)

        response = await client.post(
            f"{API}/jobs/{job.id}/apply", headers=auth_headers(hostess_profile.id)
        )

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "CONFLICT"

    @pytest.mark.asyncio
    async def test_inactive_job_is_404_for_staff(self, client, db, hostess_profile):
        job = await make_job(db, starts_at=mid_current_month(), is_active=False)

        response = await client.get(
            f"{API}/jobs/{job.id}", headers=auth_headers(hostess_profile.id)
        )

        assert response.status_code == 404


class TestClaim:
    @pytest.mark.asyncio
    async def test_claim_then_unavailable(self, client, db, hostess_profile):
        holder = await make_profile(db, "Nagy Eszter")
        late = await make_profile(db, "Tóth Lili")
        job = await make_job(db, starts_at=mid_current_month())
        await make_application(
            db, job.id, holder.id, give_away_requested=True,
            give_away_requested_at=datetime.now(timezone.utc),
        )

        won = await client.post(f"{API}/jobs/{job.id}/claim", headers=auth_headers(hostess_profile.id))
        lost = await client.post(f"{API}/jobs/{job.id}/claim", headers=auth_headers(late.id))

        assert won.status_code == 200
        assert won.json()["success"] is True
        assert lost.status_code == 200
        assert lost.json() == {
            "success": False,
            "message": "This shift is no longer available.",
            "application_id": None,
        }


class TestInvitations:
    @pytest.mark.asyncio
    async def test_withdrawn_invite_from_notification(
        self, client, admin_profile, hostess_profile
    ):
        admin_headers = auth_headers(admin_profile.id)
        staff_headers = auth_headers(hostess_profile.id)
        created = await client.post(
            f"{API}/jobs",
            json={"title": "Gála est", "starts_at": mid_current_month().isoformat()},
            headers=admin_headers,
        )
        job_id = created.json()["id"]

        invited = await client.post(
            f"{API}/jobs/{job_id}/invite",
            json={"user_id": hostess_profile.id},
            headers=admin_headers,
        )
        assert invited.status_code == 201

        inbox = await client.get(f"{API}/notifications", headers=staff_headers)
        notification_id = inbox.json()[0]["id"]

        removed = await client.delete(
            f"{API}/applications/{invited.json()['id']}", headers=admin_headers
        )
        assert removed.status_code == 204

        response = await client.post(
            f"{API}/notifications/{notification_id}/accept-invite", headers=staff_headers
        )
        assert response.status_code == 409
        assert response.json()["error"]["code"] == "NO_LONGER_VALID"

        unread = await client.get(f"{API}/notifications/unread-count", headers=staff_headers)
        assert unread.json() == {"unread": 0}


# ==================== Roster ==================== #


class TestRosterExport:
    @pytest.mark.asyncio
    async def test_csv_download(self, client, db, admin_profile, hostess_profile):
        starts_at = mid_current_month()
        job = await make_job(db, starts_at=starts_at)
        await make_application(db, job.id, hostess_profile.id)

        response = await client.get(
            f"{API}/roster/export.csv",
            params={"year": starts_at.year, "month": starts_at.month},
            headers=auth_headers(admin_profile.id),
        )

        assert response.status_code == 200
        assert response.headers["content-type"] == "text/csv; charset=utf-8"
        assert response.headers["content-disposition"] == (
            "attachment; filename*=UTF-8''"
            f"Beoszt%C3%A1s_{starts_at.year}_{starts_at.month:02d}.csv"
        )
        assert response.content.startswith(codecs.BOM_UTF8)
        assert '"1.","Kiss Anna"' in response.content.decode("utf-8-sig")


# ==================== Probes ==================== #


class TestProbes:
    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_ready(self, client):
        response = await client.get("/ready")

        assert response.status_code == 200
        assert response.json() == {"status": "ready", "database": "up"}
