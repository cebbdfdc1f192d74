"""Shared fixtures and utilities for tests."""

import os

# Settings are read at import time, so the environment must be in place first
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-jwt-secret-key-min-32-chars-long-for-security")
os.environ.setdefault("JWT_ALGORITHM", "HS256")
os.environ.setdefault("ACCESS_TOKEN_EXPIRE_MINUTES", "60")
os.environ.setdefault("JSON_LOGS", "false")
os.environ.setdefault("VENUE_TIMEZONE", "Europe/Budapest")
os.environ.setdefault("DEFAULT_HOURLY_RATE", "2000")

from datetime import datetime, timedelta, timezone
from itertools import count

import pytest
import pytest_asyncio
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from core.security import SessionContext, create_access_token
from database.engine import Base
import database.models  # noqa: F401
from database.models.applications import Application, ApplicationStatus
from database.models.jobs import Job
from database.models.profiles import Profile, ProfileRole

# Reference moment used across service tests: a Wednesday in June, venue time 12:00
NOW = datetime(2024, 6, 5, 10, 0, tzinfo=timezone.utc)

_emails = count(1)


@pytest_asyncio.fixture
async def engine():
    """Fresh in-memory database per test."""
    test_engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(test_engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


# ==================== Factories ==================== #


async def make_profile(
    db: AsyncSession,
    full_name: str = "Kiss Anna",
    role: ProfileRole = ProfileRole.HOSTESS,
    strikes: int = 0,
) -> Profile:
    profile = Profile(
        full_name=full_name,
        email=f"user{next(_emails)}@example.com",
        role=role,
        strikes=strikes,
    )
    db.add(profile)
    await db.commit()
    return profile


async def make_job(
    db: AsyncSession,
    starts_at: datetime = NOW + timedelta(days=10),
    ends_at: datetime | None = None,
    slots_total: int = 2,
    title: str = "Gála est",
    location: str | None = "Nagyterem",
    is_active: bool = True,
) -> Job:
    job = Job(
        title=title,
        starts_at=starts_at,
        ends_at=ends_at if ends_at is not None else starts_at + timedelta(hours=5),
        slots_total=slots_total,
        location=location,
        is_active=is_active,
    )
    db.add(job)
    await db.commit()
    return job


async def make_application(
    db: AsyncSession,
    job_id: int,
    user_id: int,
    status: ApplicationStatus = ApplicationStatus.APPROVED,
    give_away_requested: bool = False,
    emergency_giveaway_requested: bool = False,
    give_away_requested_at: datetime | None = None,
    created_at: datetime | None = None,
) -> Application:
    application = Application(
        job_id=job_id,
        user_id=user_id,
        status=status,
        give_away_requested=give_away_requested,
        emergency_giveaway_requested=emergency_giveaway_requested,
        give_away_requested_at=give_away_requested_at,
    )
    if created_at is not None:
        application.created_at = created_at
    db.add(application)
    await db.commit()
    return application


def context_for(profile: Profile) -> SessionContext:
    return SessionContext(
        user_id=profile.id, role=profile.role, full_name=profile.full_name
    )


def auth_headers(user_id: int) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}


@pytest_asyncio.fixture
async def admin(db):
    return context_for(await make_profile(db, "Admin Béla", ProfileRole.ADMIN))


@pytest_asyncio.fixture
async def hostess(db):
    return context_for(await make_profile(db, "Kiss Anna"))


@pytest_asyncio.fixture
async def other_hostess(db):
    return context_for(await make_profile(db, "Nagy Eszter"))


@pytest.fixture
def now():
    return NOW
