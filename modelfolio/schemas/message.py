from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from enum import Enum
from typing import Optional

from ..utils import normalize_email

class SenderType(str, Enum):
    model = "model"
    client = "client"

class MessageCreate(BaseModel):
    body: Optional[str] = Field(None, validate_default=True)

    @field_validator("body")
    @classmethod
    def body_required(cls, v: Optional[str]) -> str:
        if not v or not v.strip():
            raise ValueError("Message body is required")
        return v.strip()

class GuestMessageCreate(MessageCreate):
    email: Optional[str] = Field(None, validate_default=True)

    @field_validator("email")
    @classmethod
    def email_required(cls, v: Optional[str]) -> str:
        if not normalize_email(v):
            raise ValueError("Email is required")
        return v

class MessageOut(BaseModel):
    id: str
    booking_id: str
    sender_type: SenderType
    sender_id: Optional[str] = None
    body: str
    created_at: datetime
