import uuid
from datetime import datetime
from typing import Any, Dict, Optional
from pydantic import BaseModel, ConfigDict, Field

from app.models.notification import NotificationType
from app.models.reminder import ReminderType


class ReminderRequest(BaseModel):
    type: ReminderType = ReminderType.CUSTOM
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    scheduled_at: datetime
    is_recurring: bool = False
    frequency: Optional[str] = Field(None, description="daily, weekly, monthly or yearly.")

class ReminderUpdate(BaseModel):
    is_completed: bool

class ReminderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    kitchen_id: uuid.UUID
    type: ReminderType
    title: str
    description: Optional[str] = None
    scheduled_at: datetime
    is_completed: bool
    is_recurring: bool
    frequency: Optional[str] = None
    entity_id: Optional[str] = None
    meta: Dict[str, Any] = Field(default_factory=dict)

class NotificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    type: NotificationType
    title: str
    message: str
    data: Dict[str, Any] = Field(default_factory=dict)
    is_read: bool
    created_at: datetime
