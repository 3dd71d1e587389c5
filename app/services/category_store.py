"""
SQLAlchemy-backed category store and product counters.
"""
import logging
from contextlib import contextmanager
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import func, or_, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.exceptions import CategoryAlreadyExistsError, CategoryConflictError
from app.models.category import Category
from app.models.product import Product
from app.services.category_tree import MISSING

logger = logging.getLogger(__name__)

CATEGORY_FIELDS = ("name", "slug", "description", "parent_id", "sort_order", "is_active")


def _raise_if_slug_taken(error: IntegrityError, slug: str) -> None:
    # Another writer took the slug between slug_exists() and the write
    if "slug" in str(error.orig).lower():
        logger.warning(f"Slug '{slug}' taken by a concurrent write")
        raise CategoryAlreadyExistsError(slug) from error


class CategoryWithRelations:
    """A category together with its direct children and referencing products."""

    def __init__(self, category: Category, children: List[Category], products: List[Product]):
        self.category = category
        self.children = children
        self.products = products

    @property
    def active_children(self) -> List[Category]:
        return [c for c in self.children if c.is_active]

    @property
    def active_products(self) -> List[Product]:
        return [p for p in self.products if p.is_active]


class CategoryStore:
    """Read/write access to category rows on one session.

    Mutations go through ``unit_of_work()``; reads issued inside it take row
    locks (``SELECT ... FOR UPDATE``) on backends that support them.
    """

    def __init__(self, db: Session):
        self.db = db
        self._locking = False

    @contextmanager
    def unit_of_work(self):
        if self._locking:
            # Already inside a unit of work, join it
            yield self
            return

        self._locking = True
        try:
            yield self
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Category store transaction failed: {str(e)}")
            raise
        except Exception:
            self.db.rollback()
            raise
        finally:
            self._locking = False

    def _query(self, *entities):
        query = self.db.query(*entities)
        if self._locking:
            query = query.with_for_update()
        return query

    # Reads

    def get_by_id(self, category_id: str) -> Optional[Category]:
        return self._query(Category).filter(Category.id == str(category_id)).first()

    def get_by_slug(self, slug: str) -> Optional[Category]:
        return self._query(Category).filter(Category.slug == slug).first()

    def get_many(self, category_ids: Iterable[str]) -> Dict[str, Category]:
        ids = [str(i) for i in category_ids]
        if not ids:
            return {}
        rows = self.db.query(Category).filter(Category.id.in_(ids)).all()
        return {row.id: row for row in rows}

    def get_children(self, parent_id: str, active_only: bool = False) -> List[Category]:
        return self.get_all_with_parent_id(parent_id, active_only=active_only)

    def get_all_with_parent_id(self, parent_id: Optional[str], active_only: bool = False) -> List[Category]:
        query = self._query(Category)
        if parent_id is None:
            query = query.filter(Category.parent_id.is_(None))
        else:
            query = query.filter(Category.parent_id == str(parent_id))
        if active_only:
            query = query.filter(Category.is_active.is_(True))
        return query.order_by(Category.sort_order, Category.name, Category.id).all()

    def get_with_relations(self, category_id: str) -> Optional[CategoryWithRelations]:
        category = self.get_by_id(category_id)
        if category is None:
            return None
        children = self.get_children(category.id)
        products = self._query(Product).filter(Product.category_id == category.id).all()
        return CategoryWithRelations(category, children, products)

    def get_parent_id(self, category_id: str):
        row = self._query(Category.parent_id).filter(Category.id == str(category_id)).first()
        if row is None:
            return MISSING
        return row.parent_id

    def slug_exists(self, slug: str, exclude_id: Optional[str] = None) -> bool:
        query = self.db.query(Category.id).filter(Category.slug == slug)
        if exclude_id is not None:
            query = query.filter(Category.id != str(exclude_id))
        return query.first() is not None

    def list_all(self) -> List[Category]:
        return self.db.query(Category).order_by(Category.sort_order, Category.name, Category.id).all()

    def filter_categories(
        self,
        is_active: Optional[bool] = None,
        parent_id: Optional[str] = None,
        root_only: bool = False,
        search: Optional[str] = None
    ) -> List[Category]:
        query = self.db.query(Category)
        if is_active is not None:
            query = query.filter(Category.is_active.is_(is_active))
        if root_only:
            query = query.filter(Category.parent_id.is_(None))
        elif parent_id is not None:
            query = query.filter(Category.parent_id == str(parent_id))
        if search and search.strip():
            pattern = f"%{search.strip().lower()}%"
            query = query.filter(or_(
                func.lower(Category.name).like(pattern),
                func.lower(func.coalesce(Category.description, "")).like(pattern),
                func.lower(Category.slug).like(pattern)
            ))
        return query.order_by(Category.sort_order, Category.name, Category.id).all()

    def count_active_children(self, category_id: str) -> int:
        return self.db.query(func.count(Category.id)).filter(
            Category.parent_id == str(category_id),
            Category.is_active.is_(True)
        ).scalar() or 0

    # Writes

    def create(self, record: Dict[str, Any]) -> Category:
        now = datetime.utcnow()
        category = Category(
            name=record["name"],
            slug=record["slug"],
            description=record.get("description"),
            parent_id=record.get("parent_id"),
            sort_order=record.get("sort_order") or 0,
            is_active=record.get("is_active", True),
            created_at=now,
            updated_at=now,
        )
        self.db.add(category)
        try:
            self.db.flush()
        except IntegrityError as e:
            _raise_if_slug_taken(e, record["slug"])
            raise
        return category

    def update(self, category_id: str, patch: Dict[str, Any], expected_updated_at: datetime) -> Category:
        """Apply ``patch`` only if the row still carries ``expected_updated_at``."""
        values = {k: v for k, v in patch.items() if k in CATEGORY_FIELDS}
        values["updated_at"] = datetime.utcnow()
        if values["updated_at"] <= expected_updated_at:
            # Keep the version strictly increasing even on coarse clocks
            values["updated_at"] = expected_updated_at + timedelta(microseconds=1)

        try:
            result = self.db.execute(
                update(Category)
                .where(Category.id == str(category_id), Category.updated_at == expected_updated_at)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
        except IntegrityError as e:
            if values.get("slug"):
                _raise_if_slug_taken(e, values["slug"])
            raise
        if result.rowcount != 1:
            logger.warning(f"Optimistic version check failed for category {category_id}")
            raise CategoryConflictError(category_id)

        self.db.flush()
        category = self.db.get(Category, str(category_id))
        self.db.refresh(category)
        return category

    def remove(self, category_id: str) -> None:
        # Detach remaining (inactive) children, same effect as ON DELETE SET NULL
        self.db.execute(
            update(Category)
            .where(Category.parent_id == str(category_id))
            .values(parent_id=None, updated_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
        category = self.db.get(Category, str(category_id))
        if category is not None:
            self.db.delete(category)
        self.db.flush()
        self.db.expire_all()


class ProductCounter:
    """Per-category product counts from the products table."""

    def __init__(self, db: Session):
        self.db = db

    def count_active_by_category(self, category_id: str) -> int:
        return self.db.query(func.count(Product.id)).filter(
            Product.category_id == str(category_id),
            Product.is_active.is_(True)
        ).scalar() or 0

    def count_all_by_category(self, category_id: str) -> int:
        return self.db.query(func.count(Product.id)).filter(
            Product.category_id == str(category_id)
        ).scalar() or 0

    def counts_by_category(self, active_only: bool = False) -> Dict[str, int]:
        query = self.db.query(Product.category_id, func.count(Product.id)).filter(
            Product.category_id.isnot(None)
        )
        if active_only:
            query = query.filter(Product.is_active.is_(True))
        return {category_id: count for category_id, count in query.group_by(Product.category_id).all()}

    def count_active_total(self) -> int:
        return self.db.query(func.count(Product.id)).filter(
            Product.is_active.is_(True)
        ).scalar() or 0
