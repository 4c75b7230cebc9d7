from pydantic import BaseModel, Field, field_validator
from enum import Enum
from datetime import datetime
from typing import Optional

from ..utils import blank_to_none, is_valid_email

class BookingStatus(str, Enum):
    pending   = "pending"
    accepted  = "accepted"
    rejected  = "rejected"
    completed = "completed"

STATUS_ERROR = "Invalid status. Must be one of: " + ", ".join(s.value for s in BookingStatus)
TEXT_FIELDS = ("job_type", "dates", "location", "pay_rate", "details")

def _status_or_pending(v: Optional[str]) -> str:
    if not v:
        return BookingStatus.pending.value
    try:
        return BookingStatus(v).value
    except ValueError:
        raise ValueError(STATUS_ERROR)


class BookingDetails(BaseModel):
    job_type: Optional[str] = None
    dates: Optional[str] = None
    location: Optional[str] = None
    pay_rate: Optional[str] = None
    details: Optional[str] = None

    @field_validator(*TEXT_FIELDS)
    @classmethod
    def empty_is_null(cls, v: Optional[str]) -> Optional[str]:
        return blank_to_none(v)


class BookingCreate(BookingDetails):
    name: Optional[str] = Field(None, validate_default=True)
    email: Optional[str] = Field(None, validate_default=True)
    status: Optional[str] = Field(None, validate_default=True)

    @field_validator("name")
    @classmethod
    def name_required(cls, v: Optional[str]) -> str:
        if not v or not v.strip():
            raise ValueError("Name is required")
        return v.strip()

    @field_validator("email")
    @classmethod
    def email_required(cls, v: Optional[str]) -> str:
        if not v or not v.strip():
            raise ValueError("Email is required")
        if not is_valid_email(v.strip()):
            raise ValueError("Invalid email format")
        return v.strip()

    @field_validator("status")
    @classmethod
    def known_status(cls, v: Optional[str]) -> str:
        return _status_or_pending(v)


class GuestBookingCreate(BookingCreate):
    model_id: Optional[str] = None
    username: Optional[str] = None


class BookingUpdate(BookingDetails):
    """Partial update: validators only run for fields present in the body."""
    name: Optional[str] = None
    email: Optional[str] = None
    status: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: Optional[str]) -> str:
        if not v or not v.strip():
            raise ValueError("Name cannot be empty")
        return v.strip()

    @field_validator("email")
    @classmethod
    def email_not_empty(cls, v: Optional[str]) -> str:
        if not v or not v.strip():
            raise ValueError("Email cannot be empty")
        if not is_valid_email(v.strip()):
            raise ValueError("Invalid email format")
        return v.strip()

    @field_validator("status")
    @classmethod
    def known_status(cls, v: Optional[str]) -> str:
        return _status_or_pending(v)


class BookingOut(BaseModel):
    id: str
    user_id: str
    name: str
    email: str
    job_type: Optional[str] = None
    dates: Optional[str] = None
    location: Optional[str] = None
    pay_rate: Optional[str] = None
    details: Optional[str] = None
    status: BookingStatus
    created_at: datetime
    updated_at: Optional[datetime] = None

class ClientBookingOut(BookingOut):
    model_display_name: Optional[str] = None
    model_username: Optional[str] = None
