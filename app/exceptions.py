"""
Category engine exceptions.

Every business-rule failure is raised synchronously as a ``CategoryError``
subclass; the HTTP layer maps ``status_code`` and ``code`` onto the response
envelope.
"""
from typing import Any, Dict, Optional


class CategoryError(Exception):
    """Base exception for category operations."""

    status_code = 400
    code = "CATEGORY_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "details": self.details}


class CategoryValidationError(CategoryError):
    """Raised when the caller's input is unusable (empty name, empty slug)."""

    status_code = 400
    code = "INVALID_INPUT"

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message, details={"field": field} if field else None)
        self.field = field


class CategoryNotFoundError(CategoryError):
    """Raised when a category (the target or a referenced parent) does not exist."""

    status_code = 404
    code = "NOT_FOUND"

    def __init__(self, category_id: Any, role: str = "Category"):
        super().__init__(
            f"{role} with ID {category_id} not found",
            details={"category_id": category_id},
        )
        self.category_id = category_id


class CategoryAlreadyExistsError(CategoryError):
    """Raised on a slug collision."""

    status_code = 409
    code = "ALREADY_EXISTS"

    def __init__(self, slug: str):
        super().__init__(
            f"Category with slug '{slug}' already exists",
            details={"slug": slug},
        )
        self.slug = slug


class CircularReferenceError(CategoryError):
    """Raised when the proposed parent is the category itself or one of its descendants."""

    status_code = 400
    code = "CIRCULAR_REFERENCE"

    def __init__(self, category_id: Any, parent_id: Any):
        super().__init__(
            "Circular reference detected: Category cannot be moved under its descendant",
            details={"category_id": category_id, "parent_id": parent_id},
        )
        self.category_id = category_id
        self.parent_id = parent_id


class InvalidCategoryStateError(CategoryError):
    """Raised when a business rule blocks the operation in the category's current state."""

    status_code = 422
    code = "INVALID_STATE"

    def __init__(
        self,
        message: str,
        active_children: Optional[int] = None,
        active_products: Optional[int] = None,
    ):
        details = {}
        if active_children is not None:
            details["active_children"] = active_children
        if active_products is not None:
            details["active_products"] = active_products
        super().__init__(message, details=details)
        self.active_children = active_children
        self.active_products = active_products


class CategoryConflictError(CategoryError):
    """Raised when the row changed between read and write. Safe to retry."""

    status_code = 412
    code = "CONFLICT"
    retryable = True

    def __init__(self, category_id: Any):
        super().__init__(
            f"Category with ID {category_id} was modified concurrently, retry the operation",
            details={"category_id": category_id, "retryable": True},
        )
        self.category_id = category_id


class CategoryIntegrityError(CategoryError):
    """Raised when stored data is malformed, e.g. a cycle already present in the parent chain."""

    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str, category_id: Any = None):
        super().__init__(message, details={"category_id": category_id} if category_id is not None else None)
        self.category_id = category_id
