"""Tests for locations and the hourly rate setting."""

import pytest

from api.services import directory as directory_service
from core.exceptions import ConflictError, InvalidInputError, NotFoundError
from database.models.directory import AppSetting


class TestLocations:
    @pytest.mark.asyncio
    async def test_create_and_list_sorted(self, db, admin):
        await directory_service.create_location(db, admin, "Terasz")
        await directory_service.create_location(db, admin, "Nagyterem")

        names = [loc["name"] for loc in await directory_service.list_locations(db)]

        assert names == ["Nagyterem", "Terasz"]

    @pytest.mark.asyncio
    async def test_duplicate_conflicts(self, db, admin):
        await directory_service.create_location(db, admin, "Terasz")

        with pytest.raises(ConflictError):
            await directory_service.create_location(db, admin, "Terasz")

    @pytest.mark.asyncio
    async def test_delete_missing(self, db, admin):
        with pytest.raises(NotFoundError):
            await directory_service.delete_location(db, admin, 77)


class TestHourlyRate:
    @pytest.mark.asyncio
    async def test_default_when_unset(self, db):
        assert await directory_service.get_hourly_rate(db) == 2000

    @pytest.mark.asyncio
    async def test_set_and_read(self, db, admin):
        await directory_service.set_hourly_rate(db, admin, 2500)
        await directory_service.set_hourly_rate(db, admin, 2600)

        assert await directory_service.get_hourly_rate(db) == 2600

    @pytest.mark.asyncio
    async def test_malformed_value_falls_back(self, db):
        db.add(AppSetting(key=directory_service.HOURLY_RATE_KEY, value="sok"))
        await db.commit()

        assert await directory_service.get_hourly_rate(db) == 2000

    @pytest.mark.asyncio
    async def test_negative_rejected(self, db, admin):
        with pytest.raises(InvalidInputError):
            await directory_service.set_hourly_rate(db, admin, -1)
