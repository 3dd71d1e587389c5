from pydantic import BaseModel, ConfigDict
from typing import Optional, List, Dict
from datetime import datetime


class CategorySummary(BaseModel):
    id: str
    name: str
    slug: str
    description: Optional[str] = None
    parent_id: Optional[str] = None
    sort_order: int = 0
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class CategoryDetail(CategorySummary):
    """A category with its parent, active children and counts."""
    parent: Optional[CategorySummary] = None
    children: List[CategorySummary] = []
    product_count: int = 0
    children_count: int = 0


class CategoryTreeNode(CategorySummary):
    product_count: int = 0
    children_count: int = 0
    children: List['CategoryTreeNode'] = []


CategoryTreeNode.model_rebuild()


class CategoryDeleteResult(BaseModel):
    id: str
    slug: str
    method: str  # "soft" or "hard"


class TopCategory(BaseModel):
    category_id: str
    category_name: str
    product_count: int
    depth: int


class CategoryStats(BaseModel):
    total_categories: int
    active_categories: int
    inactive_categories: int
    root_categories: int
    categories_with_products: int
    max_depth: int
    average_products_per_category: float
    top_categories_by_products: List[TopCategory] = []


class BulkOperationResult(BaseModel):
    total: int
    successful: int
    failed: int
    errors: Dict[str, str] = {}
