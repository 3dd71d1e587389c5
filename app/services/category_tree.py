"""
Category hierarchy algorithms.

The walks below only need a ``get_parent_id(category_id)`` accessor returning
the parent id, ``None`` for a root, or ``MISSING`` when the record does not
exist. The accessor can be backed by live queries (``CategoryStore``) or by an
in-memory ``CategoryTree`` snapshot.
"""
import logging
from collections import defaultdict
from typing import Any, Callable, Dict, Iterable, List, Optional

from app.exceptions import CategoryIntegrityError, CategoryNotFoundError

logger = logging.getLogger(__name__)


class _Missing:
    def __repr__(self):
        return "MISSING"

    def __bool__(self):
        return False


MISSING = _Missing()

ParentLookup = Callable[[str], Any]


def _corrupted(category_id, node_id) -> CategoryIntegrityError:
    logger.error(
        f"Cycle detected in stored category hierarchy at {category_id} "
        f"while walking up from {node_id}"
    )
    return CategoryIntegrityError(
        f"Category hierarchy is corrupted: {category_id} is reached twice walking up from {node_id}",
        category_id=node_id,
    )


def is_ancestor(candidate_ancestor_id: str, node_id: str, get_parent_id: ParentLookup) -> bool:
    """Return True if ``candidate_ancestor_id`` appears in the parent chain of ``node_id``.

    A missing parent record ends the walk like a root would.
    """
    seen = {node_id}
    current = get_parent_id(node_id)
    while current is not None and current is not MISSING:
        if current == candidate_ancestor_id:
            return True
        if current in seen:
            raise _corrupted(current, node_id)
        seen.add(current)
        current = get_parent_id(current)
    return False


def would_create_cycle(category_id: str, proposed_parent_id: str, get_parent_id: ParentLookup) -> bool:
    if proposed_parent_id == category_id:
        return True
    return is_ancestor(category_id, proposed_parent_id, get_parent_id)


def compute_path(category_id: str, get_parent_id: ParentLookup) -> List[str]:
    """Ids from the root down to ``category_id`` inclusive."""
    parent_id = get_parent_id(category_id)
    if parent_id is MISSING:
        raise CategoryNotFoundError(category_id)

    path = [category_id]
    seen = {category_id}
    current = parent_id
    while current is not None:
        next_parent = get_parent_id(current)
        if next_parent is MISSING:
            # Dangling parent reference, treat as implicit root
            break
        if current in seen:
            raise _corrupted(current, category_id)
        seen.add(current)
        path.append(current)
        current = next_parent

    path.reverse()
    return path


def compute_depth(category_id: str, get_parent_id: ParentLookup) -> int:
    """Number of edges between ``category_id`` and its root (a root has depth 0)."""
    return len(compute_path(category_id, get_parent_id)) - 1


class CategoryTree:
    """In-memory adjacency view of the category table.

    Holds a flat ``id -> parent_id`` table and a ``parent_id -> [child ids]``
    index. Children are ordered by ``(sort_order, name, id)``.
    """

    def __init__(self, nodes: Iterable[Any] = ()):
        self._parents: Dict[str, Optional[str]] = {}
        self._children: Dict[Optional[str], List[str]] = defaultdict(list)
        self._depths: Dict[str, int] = {}

        ordered = sorted(nodes, key=lambda n: (n.sort_order or 0, n.name or "", n.id))
        for node in ordered:
            self._parents[node.id] = node.parent_id
        for node in ordered:
            parent_id = node.parent_id if node.parent_id in self._parents else None
            self._children[parent_id].append(node.id)

    @classmethod
    def from_records(cls, records: Iterable[Any]) -> "CategoryTree":
        return cls(records)

    def __contains__(self, category_id) -> bool:
        return category_id in self._parents

    def __len__(self) -> int:
        return len(self._parents)

    @property
    def ids(self) -> List[str]:
        return list(self._parents)

    def get_parent_id(self, category_id: str):
        return self._parents.get(category_id, MISSING)

    def children_of(self, parent_id: Optional[str]) -> List[str]:
        """Direct children; ``None`` lists roots, including nodes whose parent is dangling."""
        return list(self._children.get(parent_id, ()))

    def roots(self) -> List[str]:
        return self.children_of(None)

    def depth_of(self, category_id: str) -> int:
        if category_id not in self._parents:
            raise CategoryNotFoundError(category_id)

        # Walk up until a node with a known depth (or a root), then fill in on the way back
        chain = []
        seen = set()
        current = category_id
        while current not in self._depths:
            if current in seen:
                raise _corrupted(current, category_id)
            seen.add(current)
            chain.append(current)
            parent_id = self._parents.get(current)
            if parent_id is None or parent_id not in self._parents:
                break
            current = parent_id

        if current in self._depths:
            depth = self._depths[current]
        else:
            depth = -1
        for node_id in reversed(chain):
            depth += 1
            self._depths[node_id] = depth
        return self._depths[category_id]

    def max_tree_depth(self) -> int:
        """Depth of the deepest node plus one; 0 for an empty tree."""
        if not self._parents:
            return 0
        return max(self.depth_of(category_id) for category_id in self._parents) + 1
