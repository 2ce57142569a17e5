"""
Image data schemas

Pydantic models for image metadata, updates and catalog queries.
"""

from typing import List, Literal, Optional
from pydantic import BaseModel, Field, field_validator

from gallery_service.models.image import ImageCategory, normalize_tags


def _clean_title(v):
    if v is None:
        return None
    v = v.strip()
    if not v:
        raise ValueError('Title cannot be blank')
    return v


def _parse_tags(v):
    if v is None:
        return None
    if isinstance(v, str):
        v = v.split(",")
    return normalize_tags(v)


class ImageCreateSchema(BaseModel):
    """Metadata submitted with an upload"""
    title: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    category: ImageCategory
    tags: List[str] = []
    is_public: bool = True

    @field_validator('title')
    @classmethod
    def validate_title(cls, v):
        return _clean_title(v)

    @field_validator('tags', mode='before')
    @classmethod
    def validate_tags(cls, v):
        return _parse_tags(v) or []


class ImageUpdateSchema(BaseModel):
    """Owner edits; omitted fields are left unchanged"""
    title: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    category: Optional[ImageCategory] = None
    tags: Optional[List[str]] = None
    is_public: Optional[bool] = None

    @field_validator('title')
    @classmethod
    def validate_title(cls, v):
        return _clean_title(v)

    @field_validator('tags', mode='before')
    @classmethod
    def validate_tags(cls, v):
        return _parse_tags(v)


class ImageQuerySchema(BaseModel):
    """Catalog listing filters"""
    page: int = Field(1, ge=1)
    limit: int = Field(12, ge=1, le=100)
    category: Optional[ImageCategory] = None
    tags: Optional[str] = None
    search: Optional[str] = Field(None, max_length=200)
    sort_by: str = Field("created_at", pattern=r"^[A-Za-z_][A-Za-z0-9_.]*$")
    sort_order: Literal["asc", "desc"] = "desc"
    user_id: Optional[str] = None
