import pytest
from unittest.mock import patch, AsyncMock

from app.core.errors import ResourceNotFound
from app.models.notification import Notification, NotificationType
from app.services import notification_service as notifications
from app.services.notification_service import NotificationService


@pytest.mark.asyncio
async def test_notify_household_reaches_every_member(world):
    delivered = await NotificationService().notify_household(
        world.household.id, "Low stock", "Milk is running low", {"item": "milk"}, NotificationType.LOW_STOCK
    )

    assert delivered == len(world.users)
    assert await Notification.filter(type=NotificationType.LOW_STOCK).count() == len(world.users)


@pytest.mark.asyncio
async def test_failed_send_is_reported_not_raised(world):
    with patch('app.services.notification_service.Notification.create', new_callable=AsyncMock) as mock_create:
        mock_create.side_effect = RuntimeError("store unavailable")

        sent = await NotificationService().send(world.owner.id, "Hello", "World")

    assert sent is False


@pytest.mark.asyncio
async def test_read_tracking_is_per_user(world):
    service = NotificationService()
    await service.send(world.owner.id, "One", "first")
    await service.send(world.owner.id, "Two", "second")
    await service.send(world.member.id, "Other", "not yours")

    assert await notifications.unread_count(world.owner.id) == 2

    [latest, _] = await notifications.list_notifications(world.owner.id)
    await notifications.mark_read(world.owner.id, latest.id)
    assert await notifications.unread_count(world.owner.id) == 1

    with pytest.raises(ResourceNotFound):
        await notifications.mark_read(world.member.id, latest.id)

    assert await notifications.mark_all_read(world.owner.id) == 1
    assert await notifications.unread_count(world.owner.id) == 0
    assert await notifications.unread_count(world.member.id) == 1
