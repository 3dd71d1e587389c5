from app.models.category import Category
from app.models.product import Product
from app.models.admin_activity_log import AdminActivityLog

__all__ = [
    "Category",
    "Product",
    "AdminActivityLog"
]
