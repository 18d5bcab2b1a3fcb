"""
Category hierarchy helpers shared by the API and the storefront client.

Input records may be ORM rows, pydantic models or plain mappings; anything
exposing ``id``, ``name`` and ``parent_id`` (as attributes or keys) works.
Children keep the order of the input sequence (normally creation order).
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Hashable, Iterable, List, Mapping, Optional, Sequence


class CategoryCycleError(ValueError):
    """The parent chain of a category loops back on itself."""

    def __init__(self, category_id: Hashable, chain: Sequence[Hashable]):
        self.category_id = category_id
        self.chain = list(chain)
        super().__init__(f"Category {category_id!r} has a cyclic parent chain: {self.chain}")


class UnknownCategoryError(KeyError):
    pass


@dataclass
class CategoryNode:
    id: Hashable
    name: str
    parent_id: Optional[Hashable] = None
    created_at: Optional[datetime] = None
    children: List["CategoryNode"] = field(default_factory=list)
    # parent_id set but not resolvable; shown as a root so it can be repaired
    orphaned: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "parent_id": self.parent_id,
            "created_at": self.created_at,
            "orphaned": self.orphaned,
            "children": [c.to_dict() for c in self.children],
        }


@dataclass(frozen=True)
class TreeRow:
    id: Hashable
    name: str
    depth: int
    has_children: bool
    orphaned: bool = False

    @property
    def indented_label(self) -> str:
        return "  " * self.depth + self.name


def record_value(record: Any, name: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def _index(categories: Iterable[Any]) -> Dict[Hashable, Any]:
    return {record_value(c, "id"): c for c in categories}


def build_tree(categories: Iterable[Any]) -> List[CategoryNode]:
    """Turn a flat list of category records into a forest.

    Roots are records with a null parent. A record whose parent does not
    resolve is promoted to root with ``orphaned=True``. Records caught in a
    parent cycle never hang off a root; they are promoted the same way so
    every input record appears exactly once in the result.
    """
    records = list(categories)
    nodes: Dict[Hashable, CategoryNode] = {}
    for rec in records:
        nodes[record_value(rec, "id")] = CategoryNode(
            id=record_value(rec, "id"),
            name=record_value(rec, "name"),
            parent_id=record_value(rec, "parent_id"),
            created_at=record_value(rec, "created_at"),
        )

    roots: List[CategoryNode] = []
    for rec in records:
        node = nodes[record_value(rec, "id")]
        if node.parent_id is None:
            roots.append(node)
            continue
        parent = nodes.get(node.parent_id)
        if parent is None or parent is node:
            node.orphaned = True
            roots.append(node)
        else:
            parent.children.append(node)

    placed = {row.id for row in flatten(roots)}
    for rec in records:
        node = nodes[record_value(rec, "id")]
        if node.id not in placed:
            # head of an unreachable cycle: detach it from its parent
            parent = nodes.get(node.parent_id)
            if parent is not None:
                parent.children = [c for c in parent.children if c is not node]
            node.orphaned = True
            roots.append(node)
            placed.update(row.id for row in flatten([node]))
    return roots


def flatten(forest: Sequence[CategoryNode]) -> List[TreeRow]:
    """Depth-first, pre-order rows with their depth; roots have depth 0."""
    rows: List[TreeRow] = []
    stack = [(node, 0) for node in reversed(forest)]
    seen = set()
    while stack:
        node, depth = stack.pop()
        if id(node) in seen:
            continue
        seen.add(id(node))
        rows.append(
            TreeRow(
                id=node.id,
                name=node.name,
                depth=depth,
                has_children=bool(node.children),
                orphaned=node.orphaned,
            )
        )
        for child in reversed(node.children):
            stack.append((child, depth + 1))
    return rows


def ancestor_ids(categories: Iterable[Any], category_id: Hashable) -> List[Hashable]:
    """Ids from the root down to ``category_id`` (inclusive)."""
    by_id = _index(categories)
    if category_id not in by_id:
        raise UnknownCategoryError(category_id)
    chain: List[Hashable] = []
    current = category_id
    # a valid chain can't be longer than the number of records
    for _ in range(len(by_id)):
        chain.append(current)
        parent_id = record_value(by_id[current], "parent_id")
        if parent_id is None or parent_id not in by_id:
            return list(reversed(chain))
        if parent_id in chain:
            raise CategoryCycleError(category_id, chain + [parent_id])
        current = parent_id
    raise CategoryCycleError(category_id, chain)


def ancestor_path(categories: Iterable[Any], category_id: Hashable) -> List[str]:
    """Category names from root to ``category_id``, e.g. for breadcrumbs."""
    records = list(categories)
    by_id = _index(records)
    return [record_value(by_id[cid], "name") for cid in ancestor_ids(records, category_id)]


def children_of(categories: Iterable[Any], parent_id: Optional[Hashable]) -> List[Any]:
    return [c for c in categories if record_value(c, "parent_id") == parent_id]


def descendant_ids(categories: Iterable[Any], root_id: Hashable) -> List[Hashable]:
    """``root_id`` followed by every category below it, breadth first."""
    records = list(categories)
    by_parent: Dict[Hashable, List[Hashable]] = {}
    for rec in records:
        by_parent.setdefault(record_value(rec, "parent_id"), []).append(record_value(rec, "id"))
    result: List[Hashable] = []
    seen = set()
    queue = [root_id]
    while queue:
        current = queue.pop(0)
        if current in seen:
            continue
        seen.add(current)
        result.append(current)
        queue.extend(by_parent.get(current, []))
    return result


def would_create_cycle(
    categories: Iterable[Any], category_id: Hashable, new_parent_id: Optional[Hashable]
) -> bool:
    if new_parent_id is None:
        return False
    return new_parent_id in descendant_ids(categories, category_id)
