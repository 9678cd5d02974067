import uuid
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

from app.models.shopping import ShoppingListType


class ShoppingListRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    type: ShoppingListType = ShoppingListType.CUSTOM
    description: Optional[str] = None
    for_date: Optional[datetime] = None

class ShoppingListUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    is_completed: Optional[bool] = None

class GenerateListRequest(BaseModel):
    type: ShoppingListType = Field(ShoppingListType.WEEKLY, description="Decides the title and which staples are added.")

class ShoppingListResponse(BaseModel):
    """List header; the router adds `items` and the computed totals."""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    kitchen_id: uuid.UUID
    type: ShoppingListType
    title: str
    description: Optional[str] = None
    for_date: Optional[datetime] = None
    is_completed: bool
    created_at: datetime

class ListItemRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    quantity: Optional[float] = Field(None, gt=0)
    unit: Optional[str] = None
    linked_item_id: Optional[uuid.UUID] = Field(None, description="Inventory item this entry restocks.")
    price: Optional[float] = Field(None, ge=0)
    notes: Optional[str] = None

class ListItemUpdate(BaseModel):
    is_purchased: Optional[bool] = None
    price: Optional[float] = Field(None, ge=0)
    quantity: Optional[float] = Field(None, gt=0)
    notes: Optional[str] = None

class ListItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    shopping_list_id: uuid.UUID
    name: str
    quantity: Optional[float] = None
    unit: Optional[str] = None
    linked_item_id: Optional[uuid.UUID] = None
    is_purchased: bool
    price: Optional[float] = None
    notes: Optional[str] = None
