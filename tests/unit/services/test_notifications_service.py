"""Tests for the notification inbox."""

import pytest

from api.services import notifications as notification_service
from core.exceptions import NotFoundError
from database.models.notifications import NotificationType


async def fill_inbox(db, user_id, count=3):
    for index in range(count):
        notification_service.notify(db, user_id, f"Üzenet {index}")
    await db.commit()


class TestInbox:
    @pytest.mark.asyncio
    async def test_unread_and_mark_all_read(self, db, hostess, other_hostess):
        await fill_inbox(db, hostess.user_id)
        await fill_inbox(db, other_hostess.user_id, count=1)

        assert await notification_service.unread_count(db, hostess) == 3
        assert await notification_service.mark_all_read(db, hostess) == 3
        assert await notification_service.unread_count(db, hostess) == 0
        assert await notification_service.unread_count(db, other_hostess) == 1

    @pytest.mark.asyncio
    async def test_newest_first_with_paging(self, db, hostess):
        await fill_inbox(db, hostess.user_id)

        page = await notification_service.list_notifications(db, hostess, limit=2)
        rest = await notification_service.list_notifications(db, hostess, limit=2, offset=2)

        assert [n["message"] for n in page] == ["Üzenet 2", "Üzenet 1"]
        assert [n["message"] for n in rest] == ["Üzenet 0"]

    @pytest.mark.asyncio
    async def test_delete_only_own(self, db, hostess, other_hostess):
        await fill_inbox(db, hostess.user_id, count=1)
        notification_id = (await notification_service.list_notifications(db, hostess))[0]["id"]

        with pytest.raises(NotFoundError):
            await notification_service.delete_notification(db, other_hostess, notification_id)

        await notification_service.delete_notification(db, hostess, notification_id)
        assert await notification_service.list_notifications(db, hostess) == []

    @pytest.mark.asyncio
    async def test_accept_requires_invite_notification(self, db, hostess):
        await fill_inbox(db, hostess.user_id, count=1)
        notification_id = (await notification_service.list_notifications(db, hostess))[0]["id"]

        with pytest.raises(NotFoundError):
            await notification_service.accept_invite_from_notification(db, hostess, notification_id)

    @pytest.mark.asyncio
    async def test_notify_admins(self, db, admin, hostess):
        count = await notification_service.notify_admins(
            db, "Sürgős leadás", type=NotificationType.EMERGENCY_GIVEAWAY
        )
        await db.commit()

        assert count == 1
        inbox = await notification_service.list_notifications(db, admin)
        assert inbox[0]["type"] == "emergency_giveaway"
        assert await notification_service.list_notifications(db, hostess) == []
