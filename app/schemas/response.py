from pydantic import BaseModel, Field
from typing import Any, List, Optional
import uuid

def _rid():
    return uuid.uuid4().hex

class SuccessResponse(BaseModel):
    """Envelope for every successful API call: data, success flag and request_id"""
    success: bool = Field(default=True)
    request_id: str = Field(default_factory=_rid)
    data: Optional[Any] = None

class ErrorDetail(BaseModel):
    code: str
    message: Any
    field: Optional[str] = None
    details: Optional[List[Any]] = None

class ErrorResponse(BaseModel):
    """Envelope the exception handlers return; `success` is always False."""
    success: bool = Field(default=False)
    request_id: str = Field(default_factory=_rid)
    error: ErrorDetail
