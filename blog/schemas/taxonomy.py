from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from blog.schemas.base import CamelModel, reject_null


class CategorySummary(CamelModel):
    id: int
    name: str
    slug: str
    color: str


class CategoryCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    slug: Optional[str] = Field(None, max_length=120)
    description: Optional[str] = None
    color: str = Field("#3b82f6", max_length=20)
    icon: Optional[str] = Field(None, max_length=50)
    is_active: bool = True


class CategoryUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    slug: Optional[str] = Field(None, max_length=120)
    description: Optional[str] = None
    color: Optional[str] = Field(None, max_length=20)
    icon: Optional[str] = Field(None, max_length=50)
    is_active: Optional[bool] = None

    @field_validator("name", "color", "is_active")
    @classmethod
    def not_null(cls, value):
        return reject_null(value)


class CategoryResponse(CamelModel):
    id: int
    name: str
    slug: str
    description: Optional[str] = None
    color: str
    icon: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime
    post_count: int = 0


class TagCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    slug: Optional[str] = Field(None, max_length=120)
    color: str = Field("#6b7280", max_length=20)


class TagUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    slug: Optional[str] = Field(None, max_length=120)
    color: Optional[str] = Field(None, max_length=20)

    @field_validator("name", "color")
    @classmethod
    def not_null(cls, value):
        return reject_null(value)


class TagResponse(CamelModel):
    id: int
    name: str
    slug: str
    color: str
    post_count: int = 0
