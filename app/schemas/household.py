import uuid
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

from app.models.household import Role


class HouseholdRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255, description="Name of the household.")
    description: Optional[str] = Field(None, description="Optional free-text description.")

class HouseholdUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None

class HouseholdResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    description: Optional[str] = None
    invite_code: str
    created_at: datetime

class InviteRequest(BaseModel):
    email: str = Field(..., description="Email of an existing user to add.")
    role: Role = Field(Role.MEMBER, description="Role granted to the new member.")

class JoinRequest(BaseModel):
    invite_code: str = Field(..., min_length=4, max_length=16)

class RoleUpdate(BaseModel):
    role: Role

class MemberResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: uuid.UUID
    household_id: uuid.UUID
    role: Role
    joined_at: datetime

class KitchenRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    type: str = Field("HOME", description="Kind of kitchen, e.g. HOME, OFFICE, CABIN.")

class KitchenUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    type: Optional[str] = None

class KitchenResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    household_id: uuid.UUID
    name: str
    description: Optional[str] = None
    type: str
    created_at: datetime
