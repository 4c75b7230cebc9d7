from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Optional

from ..utils import blank_to_none

class AlbumCreate(BaseModel):
    title: Optional[str] = Field(None, validate_default=True, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)

    @field_validator("title")
    @classmethod
    def title_required(cls, v: Optional[str]) -> str:
        if not v or not v.strip():
            raise ValueError("Title is required")
        return v.strip()

    @field_validator("description")
    @classmethod
    def description_clean(cls, v: Optional[str]) -> Optional[str]:
        v = blank_to_none(v)
        return v.strip() if v else None

class AlbumUpdate(BaseModel):
    title: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    cover_image_id: Optional[str] = None

    @field_validator("title")
    @classmethod
    def title_not_empty(cls, v: Optional[str]) -> str:
        if not v or not v.strip():
            raise ValueError("Title cannot be empty")
        return v.strip()

    @field_validator("description")
    @classmethod
    def description_clean(cls, v: Optional[str]) -> Optional[str]:
        v = blank_to_none(v)
        return v.strip() if v else None

class CoverPatch(BaseModel):
    image_id: Optional[str] = Field(None, validate_default=True)

    @field_validator("image_id")
    @classmethod
    def image_required(cls, v: Optional[str]) -> str:
        if not v:
            raise ValueError("image_id is required")
        return v

class AlbumOut(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    cover_image_id: Optional[str] = None
    cover_image_url: Optional[str] = None
    created_at: datetime

class ImageOut(BaseModel):
    id: str
    album_id: str
    url: str
    created_at: datetime
    is_cover: Optional[bool] = None
