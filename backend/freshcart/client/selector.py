"""
Dependent category dropdowns for the admin "add item" form.

Level 1 lists the root categories; every deeper level lists the children of
the category picked one level up. The item is filed under the deepest level
that has a selection.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Hashable, Iterable, List, Optional

from freshcart.catalog.tree import record_value, children_of

log = logging.getLogger("catalog")

MAX_DEPTH = 5

LEVEL_NAMES = {
    1: "Main Category",
    2: "Subcategory",
    3: "Sub-subcategory",
    4: "Sub-sub-subcategory",
    5: "Sub-sub-sub-subcategory",
}


class MissingLevelsError(Exception):
    """Some selector levels have nothing bound to them; nothing was set up."""

    def __init__(self, missing: List[int]):
        self.missing = sorted(missing)
        super().__init__(f"Category selector levels not available: {self.missing}")


@dataclass
class Option:
    id: Hashable
    name: str


@dataclass
class SelectorLevel:
    level: int
    options: List[Option] = field(default_factory=list)
    selected: Optional[Hashable] = None
    visible: bool = False

    @property
    def label(self) -> str:
        return LEVEL_NAMES.get(self.level, f"Level {self.level}")

    @property
    def placeholder(self) -> str:
        if self.level == 1:
            return f"Select {self.label}"
        return f"Select {self.label} (Optional)"


class CascadingSelector:
    def __init__(self, categories: Iterable[Any], max_depth: int = MAX_DEPTH):
        self.max_depth = max_depth
        self.categories = list(categories)
        self._by_id: Dict[Hashable, Any] = {record_value(c, "id"): c for c in self.categories}
        self.levels: List[SelectorLevel] = [SelectorLevel(level=i) for i in range(1, max_depth + 1)]
        self._populate(1, children_of(self.categories, None))

    @classmethod
    def setup(
        cls,
        categories: Iterable[Any],
        bound_levels: Iterable[int] = range(1, MAX_DEPTH + 1),
        max_depth: int = MAX_DEPTH,
    ) -> "CascadingSelector":
        """Build a selector once every level 1..max_depth has a UI element bound."""
        bound = set(bound_levels)
        missing = [lvl for lvl in range(1, max_depth + 1) if lvl not in bound]
        if missing:
            log.error("cascading selector setup aborted; missing levels %s", missing)
            raise MissingLevelsError(missing)
        return cls(categories, max_depth=max_depth)

    def level(self, level: int) -> SelectorLevel:
        if not 1 <= level <= self.max_depth:
            raise IndexError(f"level must be between 1 and {self.max_depth}")
        return self.levels[level - 1]

    def _populate(self, level: int, records: List[Any]) -> None:
        lvl = self.level(level)
        lvl.options = [Option(id=record_value(r, "id"), name=record_value(r, "name")) for r in records]
        lvl.selected = None
        lvl.visible = True

    def _reset_below(self, level: int) -> None:
        for lvl in self.levels[level:]:
            lvl.options = []
            lvl.selected = None
            lvl.visible = False

    def select(self, level: int, category_id: Optional[Hashable]) -> None:
        """
        Pick ``category_id`` at ``level`` (None clears it). Deeper levels are
        reset and hidden; the next one is revealed when the pick has children.
        """
        current = self.level(level)
        if not current.visible:
            raise ValueError(f"Level {level} is not active")
        if category_id is not None and all(o.id != category_id for o in current.options):
            raise ValueError(f"Category {category_id!r} is not an option at level {level}")

        self._reset_below(level)
        current.selected = category_id
        if category_id is None:
            return
        children = children_of(self.categories, category_id)
        if children and level < self.max_depth:
            self._populate(level + 1, children)

    def visible_levels(self) -> List[int]:
        return [l.level for l in self.levels if l.visible]

    def effective_category_id(self) -> Optional[Hashable]:
        for lvl in reversed(self.levels):
            if lvl.visible and lvl.selected is not None:
                return lvl.selected
        return None

    def selected_path(self) -> List[str]:
        return [
            record_value(self._by_id[l.selected], "name")
            for l in self.levels
            if l.visible and l.selected is not None
        ]

    def path_label(self) -> str:
        return " → ".join(self.selected_path())
