import uuid
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

from app.models.inventory import BatchStatus, UsageType


class InventoryItemRequest(BaseModel):
    name: str = Field(..., description="Name of the item (e.g., Basmati Rice).")
    category: Optional[str] = Field(None, description="Grouping such as DAIRY or PRODUCE.")
    default_unit: str = Field("pcs", description="Unit used when batches don't specify one.")
    threshold: float = Field(1, ge=0, description="Stock level at or below which the item counts as low.")

class InventoryItemUpdate(BaseModel):
    name: Optional[str] = None
    category: Optional[str] = None
    default_unit: Optional[str] = None
    threshold: Optional[float] = Field(None, ge=0)

class InventoryItemResponse(BaseModel):
    """Schema for an inventory item with its current ACTIVE stock."""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    kitchen_id: uuid.UUID
    name: str
    category: Optional[str] = None
    default_unit: str
    threshold: float
    quantity: float = 0

class BatchRequest(BaseModel):
    quantity: float = Field(..., ge=0)
    unit: Optional[str] = None
    expiry_date: Optional[datetime] = None
    purchase_date: Optional[datetime] = None

class BatchUpdate(BaseModel):
    quantity: Optional[float] = Field(None, ge=0)
    expiry_date: Optional[datetime] = None

class BatchResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    item_id: uuid.UUID
    quantity: float
    unit: str
    expiry_date: Optional[datetime] = None
    purchase_date: Optional[datetime] = None
    status: BatchStatus

class UsageLogRequest(BaseModel):
    item_id: uuid.UUID
    type: UsageType
    quantity: float = Field(..., gt=0)
    unit: Optional[str] = None
    date: Optional[datetime] = None
    notes: Optional[str] = None
    expiry_date: Optional[datetime] = Field(None, description="Expiry of the new batch for PURCHASED logs.")

class UsageLogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    kitchen_id: uuid.UUID
    item_id: uuid.UUID
    type: UsageType
    quantity: float
    unit: Optional[str] = None
    date: datetime
    notes: Optional[str] = None
