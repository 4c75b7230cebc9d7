from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Optional
from urllib.parse import urlparse

from ..utils import blank_to_none

def _absolute_url(v: str) -> str:
    parsed = urlparse(v)
    if not parsed.scheme or not (parsed.netloc or parsed.path):
        raise ValueError("Invalid URL format")
    return v

class CustomLinkCreate(BaseModel):
    title: Optional[str] = Field(None, validate_default=True, max_length=200)
    url: Optional[str] = Field(None, validate_default=True, max_length=2048)
    icon_url: Optional[str] = None
    enabled: bool = True

    @field_validator("title")
    @classmethod
    def title_required(cls, v: Optional[str]) -> str:
        if not v or not v.strip():
            raise ValueError("Title is required")
        return v.strip()

    @field_validator("url")
    @classmethod
    def url_required(cls, v: Optional[str]) -> str:
        if not v or not v.strip():
            raise ValueError("URL is required")
        return _absolute_url(v.strip())

    @field_validator("icon_url")
    @classmethod
    def icon_optional(cls, v: Optional[str]) -> Optional[str]:
        return blank_to_none(v)

class CustomLinkUpdate(BaseModel):
    title: Optional[str] = Field(None, max_length=200)
    url: Optional[str] = Field(None, max_length=2048)
    icon_url: Optional[str] = None
    enabled: Optional[bool] = None
    display_order: Optional[int] = Field(None, ge=0)

    @field_validator("title")
    @classmethod
    def title_not_empty(cls, v: Optional[str]) -> str:
        if not v or not v.strip():
            raise ValueError("Title cannot be empty")
        return v.strip()

    @field_validator("url")
    @classmethod
    def url_not_empty(cls, v: Optional[str]) -> str:
        if not v or not v.strip():
            raise ValueError("URL cannot be empty")
        return _absolute_url(v.strip())

    @field_validator("icon_url")
    @classmethod
    def icon_optional(cls, v: Optional[str]) -> Optional[str]:
        return blank_to_none(v)

class CustomLinkOut(BaseModel):
    id: str
    user_id: str
    title: str
    url: str
    icon_url: Optional[str] = None
    enabled: bool = True
    display_order: int = 0
    created_at: datetime
    updated_at: Optional[datetime] = None
