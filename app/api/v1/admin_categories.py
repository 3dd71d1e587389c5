"""
Admin Categories Management Endpoints
"""
from fastapi import APIRouter, Depends, Header, Query, status
from sqlalchemy.orm import Session
from typing import Optional
from app.database import get_db
from app.schemas.admin_category import (
    AdminCategoryCreate, AdminCategoryUpdate, CategoryMoveRequest,
    CategoryReorderRequest, CategoryBulkStatusRequest, CategoryFilters
)
from app.schemas.common import ResponseModel
from app.services.category_service import CategoryService

router = APIRouter()


def get_category_service(db: Session = Depends(get_db)) -> CategoryService:
    return CategoryService(db)


def get_admin_id(x_admin_id: Optional[str] = Header(None)) -> Optional[str]:
    """Acting admin, as resolved by the authentication layer in front of this API"""
    return x_admin_id


def _dump(value):
    if isinstance(value, list):
        return [v.model_dump(mode="json") for v in value]
    return value.model_dump(mode="json")


@router.get("", response_model=ResponseModel)
def list_categories(
    is_active: Optional[bool] = Query(True, description="false lists inactive categories too"),
    parent_id: Optional[str] = None,
    root_only: bool = False,
    has_products: Optional[bool] = None,
    search: Optional[str] = None,
    service: CategoryService = Depends(get_category_service)
):
    """List categories with optional filters"""
    filters = CategoryFilters(
        is_active=is_active,
        parent_id=parent_id,
        root_only=root_only,
        has_products=has_products,
        search=search
    )
    categories = service.list_categories(filters)
    return ResponseModel(
        success=True,
        data=_dump(categories),
        message="Categories retrieved successfully"
    )


@router.get("/tree", response_model=ResponseModel)
def get_category_tree(
    root_id: Optional[str] = None,
    depth: Optional[int] = Query(None, ge=0),
    include_inactive: bool = False,
    service: CategoryService = Depends(get_category_service)
):
    """Hierarchical category tree with product counts"""
    tree = service.get_tree(root_id=root_id, depth=depth, include_inactive=include_inactive)
    return ResponseModel(
        success=True,
        data=_dump(tree),
        message="Category tree retrieved successfully"
    )


@router.get("/stats", response_model=ResponseModel)
def get_category_stats(service: CategoryService = Depends(get_category_service)):
    """Category statistics"""
    return ResponseModel(
        success=True,
        data=_dump(service.get_stats()),
        message="Category statistics retrieved successfully"
    )


@router.get("/slug/{slug}", response_model=ResponseModel)
def get_category_by_slug(slug: str, service: CategoryService = Depends(get_category_service)):
    return ResponseModel(
        success=True,
        data=_dump(service.get_category_by_slug(slug)),
        message="Category retrieved successfully"
    )


@router.get("/{category_id}/path", response_model=ResponseModel)
def get_category_path(category_id: str, service: CategoryService = Depends(get_category_service)):
    """Breadcrumb from the root category down to this one"""
    return ResponseModel(
        success=True,
        data=_dump(service.get_path(category_id)),
        message="Category path retrieved successfully"
    )


@router.get("/{category_id}", response_model=ResponseModel)
def get_category(category_id: str, service: CategoryService = Depends(get_category_service)):
    """Get category details"""
    return ResponseModel(
        success=True,
        data=_dump(service.get_category(category_id)),
        message="Category retrieved successfully"
    )


@router.post("", response_model=ResponseModel, status_code=status.HTTP_201_CREATED)
def create_category(
    category_data: AdminCategoryCreate,
    service: CategoryService = Depends(get_category_service),
    admin_id: Optional[str] = Depends(get_admin_id)
):
    """Create a new category or subcategory"""
    category = service.create(category_data, admin_id=admin_id)
    return ResponseModel(
        success=True,
        data=_dump(category),
        message="Category created successfully"
    )


@router.put("/reorder", response_model=ResponseModel)
def reorder_categories(
    reorder_data: CategoryReorderRequest,
    service: CategoryService = Depends(get_category_service),
    admin_id: Optional[str] = Depends(get_admin_id)
):
    """Reorder categories"""
    result = service.reorder(reorder_data.categories, admin_id=admin_id)
    return ResponseModel(
        success=True,
        data=_dump(result),
        message="Categories reordered successfully"
    )


@router.post("/bulk/update-status", response_model=ResponseModel)
def bulk_update_status(
    status_data: CategoryBulkStatusRequest,
    service: CategoryService = Depends(get_category_service),
    admin_id: Optional[str] = Depends(get_admin_id)
):
    """Activate or deactivate several categories"""
    result = service.bulk_update_status(status_data.category_ids, status_data.is_active, admin_id=admin_id)
    return ResponseModel(
        success=True,
        data=_dump(result),
        message="Bulk status update completed"
    )


@router.put("/{category_id}/move", response_model=ResponseModel)
def move_category(
    category_id: str,
    move_data: CategoryMoveRequest,
    service: CategoryService = Depends(get_category_service),
    admin_id: Optional[str] = Depends(get_admin_id)
):
    """Move a category under a new parent (or to the root with parent_id null)"""
    category = service.move(category_id, move_data.parent_id, admin_id=admin_id)
    return ResponseModel(
        success=True,
        data=_dump(category),
        message="Category moved successfully"
    )


@router.put("/{category_id}", response_model=ResponseModel)
def update_category(
    category_id: str,
    category_data: AdminCategoryUpdate,
    service: CategoryService = Depends(get_category_service),
    admin_id: Optional[str] = Depends(get_admin_id)
):
    """Update an existing category"""
    category = service.update(category_id, category_data, admin_id=admin_id)
    return ResponseModel(
        success=True,
        data=_dump(category),
        message="Category updated successfully"
    )


@router.delete("/{category_id}", response_model=ResponseModel)
def delete_category(
    category_id: str,
    service: CategoryService = Depends(get_category_service),
    admin_id: Optional[str] = Depends(get_admin_id)
):
    """Delete a category (soft delete while active products still reference it)"""
    result = service.delete(category_id, admin_id=admin_id)
    return ResponseModel(
        success=True,
        data=_dump(result),
        message="Category deactivated" if result.method == "soft" else "Category deleted successfully"
    )
