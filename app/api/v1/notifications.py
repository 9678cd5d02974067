from fastapi import APIRouter, Depends, Query
from uuid import UUID

from app.core.security import get_current_user
from app.models.household import User
from app.schemas.reminder import NotificationResponse
from app.schemas.response import SuccessResponse
from app.services import notification_service

router = APIRouter()


@router.get("", response_model=SuccessResponse)
async def list_notifications_endpoint(
    unread_only: bool = False,
    limit: int = Query(50, ge=1, le=500),
    current_user: User = Depends(get_current_user),
):
    notifications = await notification_service.list_notifications(current_user.id, unread_only, limit)
    return SuccessResponse(data=[NotificationResponse.model_validate(n).model_dump(mode="json") for n in notifications])


@router.get("/unread-count", response_model=SuccessResponse)
async def unread_count_endpoint(current_user: User = Depends(get_current_user)):
    return SuccessResponse(data={"unread": await notification_service.unread_count(current_user.id)})


@router.post("/read-all", response_model=SuccessResponse)
async def mark_all_read_endpoint(current_user: User = Depends(get_current_user)):
    updated = await notification_service.mark_all_read(current_user.id)
    return SuccessResponse(data={"updated": updated})


@router.post("/{notification_id}/read", response_model=SuccessResponse)
async def mark_read_endpoint(notification_id: UUID, current_user: User = Depends(get_current_user)):
    notification = await notification_service.mark_read(current_user.id, notification_id)
    return SuccessResponse(data=NotificationResponse.model_validate(notification).model_dump(mode="json"))
