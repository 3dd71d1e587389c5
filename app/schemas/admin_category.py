"""
Admin Category Management Schemas
"""
from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from app.utils.slug import SLUG_PATTERN


class AdminCategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    slug: Optional[str] = Field(None, max_length=255, pattern=SLUG_PATTERN)
    parent_id: Optional[str] = None
    sort_order: int = Field(default=0, ge=0)
    is_active: bool = Field(default=True)

    @field_validator('parent_id')
    @classmethod
    def validate_parent_id(cls, v):
        if v is not None and not v.strip():
            return None
        return v


class AdminCategoryUpdate(BaseModel):
    """Partial update; only fields explicitly set are applied.

    ``parent_id=None`` set explicitly moves the category to the root level.
    """
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    slug: Optional[str] = Field(None, max_length=255, pattern=SLUG_PATTERN)
    parent_id: Optional[str] = None
    sort_order: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None


class CategoryMoveRequest(BaseModel):
    parent_id: Optional[str] = None


class CategoryReorderItem(BaseModel):
    id: str
    sort_order: int = Field(..., ge=0)


class CategoryReorderRequest(BaseModel):
    categories: List[CategoryReorderItem] = Field(..., min_length=1)


class CategoryBulkStatusRequest(BaseModel):
    category_ids: List[str] = Field(..., min_length=1)
    is_active: bool


class CategoryFilters(BaseModel):
    is_active: Optional[bool] = True  # False lists every category
    parent_id: Optional[str] = None
    root_only: bool = False
    has_products: Optional[bool] = None
    search: Optional[str] = None
