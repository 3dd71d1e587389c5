"""
Category views and statistics built from flat store records
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List, Optional

from app.models.category import Category
from app.schemas.category import (
    CategoryDetail, CategorySummary, CategoryTreeNode, CategoryStats, TopCategory
)
from app.services.category_tree import CategoryTree


def summarize_category(category: Category) -> CategorySummary:
    return CategorySummary.model_validate(category)


def assemble_category_detail(
    category: Category,
    parent: Optional[Category],
    children: List[Category],
    product_count: int
) -> CategoryDetail:
    """Node plus its parent, its active children (sibling order) and counts"""
    active_children = [c for c in children if c.is_active]
    data = summarize_category(category).model_dump()
    return CategoryDetail(
        **data,
        parent=summarize_category(parent) if parent is not None else None,
        children=[summarize_category(c) for c in active_children],
        product_count=product_count,
        children_count=len(active_children)
    )


def build_category_tree(
    tree: CategoryTree,
    records: Dict[str, Category],
    product_counts: Dict[str, int],
    root_ids: Iterable[str],
    depth: int
) -> List[CategoryTreeNode]:
    """
    Build nested tree nodes for ``root_ids``

    Args:
        tree: Adjacency view over the categories to include
        records: Category rows keyed by id
        product_counts: Product count per category id (missing ids count 0)
        root_ids: Ids of the top-level nodes to return, in order
        depth: Number of child levels to populate below each root

    Returns:
        Tree nodes; ``children_count`` is always the node's real number of
        children even where ``children`` is cut off by ``depth``
    """
    def build(category_id: str, levels_left: int) -> CategoryTreeNode:
        child_ids = tree.children_of(category_id)
        node = CategoryTreeNode(
            **summarize_category(records[category_id]).model_dump(),
            product_count=product_counts.get(category_id, 0),
            children_count=len(child_ids)
        )
        if levels_left > 0:
            node.children = [build(child_id, levels_left - 1) for child_id in child_ids]
        return node

    return [build(root_id, max(depth, 0)) for root_id in root_ids]


def average_products(active_products: int, active_categories: int) -> float:
    if active_categories <= 0:
        return 0.0
    value = Decimal(active_products) / Decimal(active_categories)
    return float(value.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP))


def compute_category_stats(
    records: List[Category],
    product_counts: Dict[str, int],
    active_product_total: int,
    top_n: int = 10
) -> CategoryStats:
    """Aggregate statistics over the whole category table"""
    tree = CategoryTree.from_records(records)

    total = len(records)
    active = [c for c in records if c.is_active]
    roots = [c for c in active if c.parent_id is None]
    with_products = [c for c in active if product_counts.get(c.id, 0) > 0]

    ranked = sorted(
        (c for c in active if product_counts.get(c.id, 0) > 0),
        key=lambda c: (-product_counts[c.id], c.id)
    )
    top = [
        TopCategory(
            category_id=c.id,
            category_name=c.name,
            product_count=product_counts[c.id],
            depth=tree.depth_of(c.id)
        )
        for c in ranked[:top_n]
    ]

    return CategoryStats(
        total_categories=total,
        active_categories=len(active),
        inactive_categories=total - len(active),
        root_categories=len(roots),
        categories_with_products=len(with_products),
        max_depth=tree.max_tree_depth(),
        average_products_per_category=average_products(active_product_total, len(active)),
        top_categories_by_products=top
    )
