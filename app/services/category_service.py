"""
Category lifecycle: create, update, move, delete and the hierarchical reads.

Every mutation runs read -> validate -> write inside one store unit of work.
Rows read while validating are locked and the final write is guarded by the
row's ``updated_at`` version.
"""
import logging
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from app.config import Settings, get_settings
from app.exceptions import (
    CategoryError,
    CategoryValidationError,
    CategoryNotFoundError,
    CategoryAlreadyExistsError,
    CircularReferenceError,
    InvalidCategoryStateError,
)
from app.models.category import Category
from app.schemas.admin_category import (
    AdminCategoryCreate, AdminCategoryUpdate, CategoryFilters, CategoryReorderItem
)
from app.schemas.category import (
    BulkOperationResult, CategoryDeleteResult, CategoryDetail, CategoryStats,
    CategorySummary, CategoryTreeNode
)
from app.services.category_assembly import (
    assemble_category_detail, build_category_tree, compute_category_stats, summarize_category
)
from app.services.category_store import CategoryStore, ProductCounter
from app.services.category_tree import CategoryTree, compute_path, would_create_cycle
from app.utils.admin_activity import log_admin_activity
from app.utils.slug import generate_slug

logger = logging.getLogger(__name__)

# Columns that cannot be cleared with an explicit null
NON_NULLABLE_FIELDS = ("name", "slug", "sort_order", "is_active")


class CategoryService:
    """Category tree operations on one database session."""

    def __init__(self, db: Session, settings: Optional[Settings] = None):
        self.db = db
        self.settings = settings or get_settings()
        self.store = CategoryStore(db)
        self.products = ProductCounter(db)

    # ==========================================
    # CRUD OPERATIONS
    # ==========================================

    def create(self, data: AdminCategoryCreate, admin_id: Optional[str] = None) -> CategoryDetail:
        """Create a new category or subcategory"""
        try:
            name = (data.name or "").strip()
            if not name:
                raise CategoryValidationError("Category name is required", field="name")

            slug = data.slug or generate_slug(name)
            if not slug:
                raise CategoryValidationError(
                    f"Cannot derive a slug from category name '{name}'", field="slug"
                )

            with self.store.unit_of_work():
                if self.store.slug_exists(slug):
                    raise CategoryAlreadyExistsError(slug)

                if data.parent_id:
                    parent = self.store.get_by_id(data.parent_id)
                    if parent is None:
                        raise CategoryNotFoundError(data.parent_id, role="Parent category")
                    if not parent.is_active:
                        raise InvalidCategoryStateError(
                            "Cannot create subcategory under inactive parent category"
                        )

                category = self.store.create({
                    "name": name,
                    "slug": slug,
                    "description": data.description,
                    "parent_id": data.parent_id or None,
                    "sort_order": data.sort_order,
                    "is_active": data.is_active,
                })
                category_id = category.id

                log_admin_activity(
                    db=self.db,
                    admin_id=admin_id,
                    action="category_created",
                    entity_id=category_id,
                    new_values={"name": name, "slug": slug, "parent_id": category.parent_id}
                )
        except CategoryError as e:
            logger.warning(f"Category creation rejected: {e.message}")
            raise

        logger.info(f"Category created: {category_id} (slug={slug}, parent={data.parent_id})")
        return self.get_category(category_id)

    def update(
        self,
        category_id: str,
        patch: AdminCategoryUpdate,
        admin_id: Optional[str] = None
    ) -> CategoryDetail:
        """Update an existing category; only fields set on ``patch`` are applied"""
        changes = patch.model_dump(exclude_unset=True)
        self._apply_update(category_id, changes, admin_id, action="category_updated")
        return self.get_category(category_id)

    def move(
        self,
        category_id: str,
        new_parent_id: Optional[str],
        admin_id: Optional[str] = None
    ) -> CategoryDetail:
        """Reparent a category; ``None`` moves it to the root level"""
        self._apply_update(category_id, {"parent_id": new_parent_id}, admin_id, action="category_moved")
        return self.get_category(category_id)

    def delete(self, category_id: str, admin_id: Optional[str] = None) -> CategoryDeleteResult:
        """
        Delete a category

        Blocked while the category has active subcategories. A category still
        referenced by active products is only deactivated (soft delete);
        otherwise the row is removed (hard delete).
        """
        try:
            with self.store.unit_of_work():
                relations = self.store.get_with_relations(category_id)
                if relations is None:
                    raise CategoryNotFoundError(category_id)

                category = relations.category
                slug = category.slug

                active_children = len(relations.active_children)
                if active_children > 0:
                    raise InvalidCategoryStateError(
                        f"Cannot delete category with {active_children} active subcategories",
                        active_children=active_children
                    )

                # Only active products are counted here; inactive product
                # references do not prevent a hard delete.
                active_products = len(relations.active_products)
                if active_products > 0:
                    self.store.update(category.id, {"is_active": False}, category.updated_at)
                    method = "soft"
                    logger.warning(
                        f"Category {category_id} soft deleted due to {active_products} product references"
                    )
                else:
                    self.store.remove(category.id)
                    method = "hard"

                log_admin_activity(
                    db=self.db,
                    admin_id=admin_id,
                    action="category_deleted",
                    entity_id=category_id,
                    old_values={"slug": slug},
                    new_values={"method": method}
                )
        except CategoryError as e:
            logger.warning(f"Category deletion rejected for {category_id}: {e.message}")
            raise

        logger.info(f"Category deleted: {category_id} (slug={slug}, method={method})")
        return CategoryDeleteResult(id=str(category_id), slug=slug, method=method)

    def _apply_update(
        self,
        category_id: str,
        changes: Dict[str, Any],
        admin_id: Optional[str],
        action: str
    ) -> None:
        changes = {
            k: v for k, v in changes.items()
            if not (v is None and k in NON_NULLABLE_FIELDS)
        }
        if "parent_id" in changes and not changes["parent_id"]:
            changes["parent_id"] = None

        try:
            with self.store.unit_of_work():
                existing = self.store.get_by_id(category_id)
                if existing is None:
                    raise CategoryNotFoundError(category_id)

                if "parent_id" in changes and changes["parent_id"] == existing.id:
                    raise InvalidCategoryStateError("Category cannot be its own parent")

                self._resolve_slug(existing, changes)

                if "parent_id" in changes and changes["parent_id"] != existing.parent_id:
                    self._validate_new_parent(existing, changes["parent_id"])

                if changes.get("is_active") is False and existing.is_active:
                    self._validate_deactivation(existing)

                if not changes:
                    return

                old_values = {k: getattr(existing, k) for k in changes}
                self.store.update(existing.id, changes, existing.updated_at)

                log_admin_activity(
                    db=self.db,
                    admin_id=admin_id,
                    action=action,
                    entity_id=existing.id,
                    old_values=old_values,
                    new_values=dict(changes)
                )
        except CategoryError as e:
            logger.warning(f"Category update rejected for {category_id}: {e.message}")
            raise

        logger.info(f"Category {category_id} updated ({action}): {', '.join(sorted(changes))}")

    def _resolve_slug(self, existing: Category, changes: Dict[str, Any]) -> None:
        if "name" in changes:
            name = changes["name"].strip()
            if not name:
                raise CategoryValidationError("Category name is required", field="name")
            changes["name"] = name
            if not changes.get("slug"):
                changes["slug"] = generate_slug(name)
                if not changes["slug"]:
                    raise CategoryValidationError(
                        f"Cannot derive a slug from category name '{name}'", field="slug"
                    )

        slug = changes.get("slug")
        if slug and slug != existing.slug and self.store.slug_exists(slug, exclude_id=existing.id):
            raise CategoryAlreadyExistsError(slug)

    def _validate_new_parent(self, existing: Category, parent_id: Optional[str]) -> None:
        if parent_id is None:
            return

        parent = self.store.get_by_id(parent_id)
        if parent is None:
            raise CategoryNotFoundError(parent_id, role="Parent category")
        if not parent.is_active:
            raise InvalidCategoryStateError("Cannot set inactive category as parent")
        if would_create_cycle(existing.id, parent_id, self.store.get_parent_id):
            raise CircularReferenceError(existing.id, parent_id)

    def _validate_deactivation(self, existing: Category) -> None:
        active_children = self.store.count_active_children(existing.id)
        active_products = self.products.count_active_by_category(existing.id)
        if active_children > 0 or active_products > 0:
            raise InvalidCategoryStateError(
                f"Cannot deactivate category with {active_children} active subcategories "
                f"and {active_products} active products",
                active_children=active_children,
                active_products=active_products
            )

    # ==========================================
    # READS
    # ==========================================

    def get_category(self, category_id: str) -> CategoryDetail:
        category = self.store.get_by_id(category_id)
        if category is None:
            raise CategoryNotFoundError(category_id)
        return self._detail(category)

    def get_category_by_slug(self, slug: str) -> CategoryDetail:
        category = self.store.get_by_slug(slug)
        if category is None:
            raise CategoryNotFoundError(slug)
        return self._detail(category)

    def list_categories(self, filters: Optional[CategoryFilters] = None) -> List[CategoryDetail]:
        """List categories matching ``filters`` in sibling display order"""
        filters = filters or CategoryFilters()
        categories = self.store.filter_categories(
            is_active=True if filters.is_active is not False else None,
            parent_id=filters.parent_id,
            root_only=filters.root_only,
            search=filters.search
        )

        if filters.has_products is not None:
            counts = self.products.counts_by_category()
            categories = [
                c for c in categories
                if (counts.get(c.id, 0) > 0) == filters.has_products
            ]

        return [self._detail(c) for c in categories]

    def get_path(self, category_id: str) -> List[CategorySummary]:
        """Breadcrumb from the root down to ``category_id``"""
        path_ids = compute_path(str(category_id), self.store.get_parent_id)
        records = self.store.get_many(path_ids)
        return [summarize_category(records[i]) for i in path_ids]

    def get_tree(
        self,
        root_id: Optional[str] = None,
        depth: Optional[int] = None,
        include_inactive: bool = False
    ) -> List[CategoryTreeNode]:
        """
        Category tree with product and children counts

        Args:
            root_id: Return the subtree rooted here instead of every root
            depth: Child levels to populate (defaults to CATEGORY_TREE_DEPTH)
            include_inactive: Also include inactive categories
        """
        if depth is None:
            depth = self.settings.CATEGORY_TREE_DEPTH

        records = self.store.list_all()
        if not include_inactive:
            records = [c for c in records if c.is_active]
        by_id = {c.id: c for c in records}
        tree = CategoryTree.from_records(records)

        if root_id is not None:
            if str(root_id) not in tree:
                raise CategoryNotFoundError(root_id)
            root_ids = [str(root_id)]
        else:
            root_ids = [i for i in tree.roots() if by_id[i].parent_id is None]

        product_counts = self.products.counts_by_category()
        return build_category_tree(tree, by_id, product_counts, root_ids, depth)

    def get_stats(self) -> CategoryStats:
        return compute_category_stats(
            self.store.list_all(),
            self.products.counts_by_category(),
            self.products.count_active_total(),
            top_n=self.settings.CATEGORY_STATS_TOP_N
        )

    def _detail(self, category: Category) -> CategoryDetail:
        parent = self.store.get_by_id(category.parent_id) if category.parent_id else None
        children = self.store.get_children(category.id)
        product_count = self.products.count_all_by_category(category.id)
        return assemble_category_detail(category, parent, children, product_count)

    # ==========================================
    # BULK OPERATIONS
    # ==========================================

    def reorder(
        self,
        items: Iterable[CategoryReorderItem],
        admin_id: Optional[str] = None
    ) -> BulkOperationResult:
        """Set sort_order per category; each item succeeds or fails on its own"""
        return self._bulk(
            [(item.id, {"sort_order": item.sort_order}) for item in items],
            admin_id,
            action="categories_reordered"
        )

    def bulk_update_status(
        self,
        category_ids: Iterable[str],
        is_active: bool,
        admin_id: Optional[str] = None
    ) -> BulkOperationResult:
        """
        Activate or deactivate several categories

        Deactivations run deepest-first so a whole branch can be switched off
        in one call; each category is still checked on its own.
        """
        ids = [str(i) for i in category_ids]
        tree = CategoryTree.from_records(self.store.list_all())

        def depth(category_id):
            return tree.depth_of(category_id) if category_id in tree else -1

        ids.sort(key=depth, reverse=not is_active)
        return self._bulk(
            [(category_id, {"is_active": is_active}) for category_id in ids],
            admin_id,
            action="categories_status_updated"
        )

    def _bulk(self, operations, admin_id: Optional[str], action: str) -> BulkOperationResult:
        errors = {}
        for category_id, changes in operations:
            try:
                self._apply_update(category_id, changes, admin_id, action=action)
            except CategoryError as e:
                errors[str(category_id)] = e.message

        total = len(operations)
        logger.info(f"Bulk {action}: {total - len(errors)} of {total} succeeded")
        return BulkOperationResult(
            total=total,
            successful=total - len(errors),
            failed=len(errors),
            errors=errors
        )
