from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Optional
import re

from ..utils import blank_to_none

USERNAME_RE = re.compile(r"^[a-z0-9_.-]{3,30}$")

class ProfileUpdate(BaseModel):
    username: Optional[str] = None
    display_name: Optional[str] = Field(None, max_length=120)
    job_type: Optional[str] = Field(None, max_length=120)
    description: Optional[str] = Field(None, max_length=2000)
    profile_photo_path: Optional[str] = None
    profile_header_path: Optional[str] = None
    show_profile_photo: Optional[bool] = None
    show_profile_header: Optional[bool] = None
    show_description: Optional[bool] = None

    @field_validator("username")
    @classmethod
    def clean_username(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip().lower()
        if not USERNAME_RE.match(v):
            raise ValueError("Invalid username")
        return v

    @field_validator("display_name", "description", "profile_photo_path", "profile_header_path")
    @classmethod
    def empty_is_null(cls, v: Optional[str]) -> Optional[str]:
        return blank_to_none(v)

class ProfileOut(BaseModel):
    id: str
    username: Optional[str] = None
    display_name: Optional[str] = None
    job_type: Optional[str] = None
    description: Optional[str] = None
    profile_photo_path: Optional[str] = None
    profile_header_path: Optional[str] = None
    show_profile_photo: bool = True
    show_profile_header: bool = True
    show_description: bool = True
    updated_at: Optional[datetime] = None
