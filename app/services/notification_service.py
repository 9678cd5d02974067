import logging
from typing import Any, Dict, List, Optional, Union
from uuid import UUID

from app.core.errors import ResourceNotFound
from app.models.household import HouseholdMember
from app.models.notification import Notification, NotificationType

log = logging.getLogger("notification_service")


class NotificationService:
    """
    Stores in-app notifications. Sending is fire-and-forget: a failed
    delivery is logged and reported as False, never raised to the caller.
    """

    async def send(
        self,
        user_id: Union[UUID, str],
        title: str,
        body: str,
        data: Optional[Dict[str, Any]] = None,
        type: NotificationType = NotificationType.GENERAL,
    ) -> bool:
        try:
            await Notification.create(
                user_id=user_id,
                type=type,
                title=title,
                message=body,
                data=data or {},
            )
            return True
        except Exception as e:
            log.error(f"Failed to send notification to user {user_id}: {e}")
            return False

    async def notify_household(
        self,
        household_id: Union[UUID, str],
        title: str,
        body: str,
        data: Optional[Dict[str, Any]] = None,
        type: NotificationType = NotificationType.GENERAL,
    ) -> int:
        """Sends to every member of the household. Returns how many were delivered."""
        try:
            members = await HouseholdMember.filter(household_id=household_id)
        except Exception as e:
            log.error(f"Could not load members of household {household_id}: {e}")
            return 0

        delivered = 0
        for member in members:
            if await self.send(member.user_id, title, body, data, type):
                delivered += 1
        return delivered


notification_service = NotificationService()


async def list_notifications(user_id, unread_only: bool = False, limit: int = 50) -> List[Notification]:
    query = Notification.filter(user_id=user_id)
    if unread_only:
        query = query.filter(is_read=False)
    return await query.order_by("-created_at").limit(limit)


async def unread_count(user_id) -> int:
    return await Notification.filter(user_id=user_id, is_read=False).count()


async def mark_read(user_id, notification_id) -> Notification:
    notification = await Notification.get_or_none(id=notification_id, user_id=user_id)
    if not notification:
        raise ResourceNotFound("Notification")
    if not notification.is_read:
        notification.is_read = True
        await notification.save(update_fields=["is_read"])
    return notification


async def mark_all_read(user_id) -> int:
    return await Notification.filter(user_id=user_id, is_read=False).update(is_read=True)
