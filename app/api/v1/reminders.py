import logging
from fastapi import APIRouter, Depends, Query, status
from uuid import UUID

from app.core.security import get_current_user
from app.models.household import User
from app.schemas.reminder import ReminderRequest, ReminderUpdate, ReminderResponse
from app.schemas.response import SuccessResponse
from app.services import reminder_service

router = APIRouter()
log = logging.getLogger("uvicorn")


def _reminder(reminder) -> dict:
    return ReminderResponse.model_validate(reminder).model_dump(mode="json")


@router.get("/kitchens/{kitchen_id}", response_model=SuccessResponse)
async def list_reminders_endpoint(kitchen_id: UUID, current_user: User = Depends(get_current_user)):
    reminders = await reminder_service.list_reminders(current_user.id, kitchen_id)
    return SuccessResponse(data=[_reminder(r) for r in reminders])


@router.get("/kitchens/{kitchen_id}/upcoming", response_model=SuccessResponse)
async def upcoming_reminders_endpoint(kitchen_id: UUID, days: int = Query(7, ge=1, le=365), current_user: User = Depends(get_current_user)):
    """Open reminders scheduled between now and `days` from now."""
    reminders = await reminder_service.upcoming_reminders(current_user.id, kitchen_id, days)
    return SuccessResponse(data=[_reminder(r) for r in reminders])


@router.get("/kitchens/{kitchen_id}/alerts", response_model=SuccessResponse)
async def open_alerts_endpoint(kitchen_id: UUID, current_user: User = Depends(get_current_user)):
    """Open low stock, expiry and restock reminders, until someone completes them."""
    reminders = await reminder_service.open_alerts(current_user.id, kitchen_id)
    return SuccessResponse(data=[_reminder(r) for r in reminders])


@router.post("/kitchens/{kitchen_id}", status_code=status.HTTP_201_CREATED, response_model=SuccessResponse)
async def create_reminder_endpoint(kitchen_id: UUID, payload: ReminderRequest, current_user: User = Depends(get_current_user)):
    reminder = await reminder_service.create_reminder(current_user.id, kitchen_id, payload.model_dump())
    return SuccessResponse(data=_reminder(reminder))


@router.post("/kitchens/{kitchen_id}/generate", response_model=SuccessResponse)
async def generate_reminders_endpoint(kitchen_id: UUID, current_user: User = Depends(get_current_user)):
    """
    Runs the low stock, expiry and usage prediction checks for this kitchen
    right away instead of waiting for the scheduler.
    """
    reminders = await reminder_service.generate_smart_reminders(current_user.id, kitchen_id)
    log.info(f"Generated {len(reminders)} reminders for kitchen {kitchen_id}.")
    return SuccessResponse(data={
        "reminders_created": len(reminders),
        "reminders": [_reminder(r) for r in reminders],
    })


@router.patch("/{reminder_id}", response_model=SuccessResponse)
async def update_reminder_endpoint(reminder_id: UUID, payload: ReminderUpdate, current_user: User = Depends(get_current_user)):
    reminder = await reminder_service.update_reminder(current_user.id, reminder_id, payload.is_completed)
    return SuccessResponse(data=_reminder(reminder))


@router.delete("/{reminder_id}", response_model=SuccessResponse)
async def delete_reminder_endpoint(reminder_id: UUID, current_user: User = Depends(get_current_user)):
    await reminder_service.delete_reminder(current_user.id, reminder_id)
    return SuccessResponse(data={"deleted": True})
