import logging
from typing import Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from freshcart.catalog.tree import (
    CategoryCycleError,
    CategoryNode,
    ancestor_ids,
    build_tree,
    descendant_ids,
    would_create_cycle,
)
from freshcart.models.category import Category
from freshcart.models.item import Item
from freshcart.repositories.category_repo import CategoryRepository
from freshcart.repositories.item_repo import SORTS, ItemRepository
from freshcart.repositories.order_repo import OrderRepository
from freshcart.utils.transactions import atomic

log = logging.getLogger("catalog")


class CatalogException(Exception):
    pass


class CategoryNotFound(CatalogException):
    pass


class ItemNotFound(CatalogException):
    pass


class CatalogConflict(CatalogException):
    """The change would break the category hierarchy."""
    pass


class CatalogService:
    def __init__(self, db: Session):
        self.db = db
        self.categories = CategoryRepository(db)
        self.items = ItemRepository(db)

    # --- categories -------------------------------------------------------

    def list_categories(self) -> List[Category]:
        return self.categories.list_all()

    def category_tree(self) -> List[CategoryNode]:
        return build_tree(self.categories.list_all())

    def category_path(self, category_id: int) -> Tuple[List[int], List[str]]:
        rows = self.categories.list_all()
        by_id = {c.id: c for c in rows}
        if category_id not in by_id:
            raise CategoryNotFound(f"Category {category_id} not found")
        try:
            ids = ancestor_ids(rows, category_id)
        except CategoryCycleError as e:
            log.error("category path cycle id=%s chain=%s", category_id, e.chain)
            raise CatalogConflict(str(e))
        return ids, [by_id[i].name for i in ids]

    def create_category(self, name: str, parent_id: Optional[int] = None) -> Category:
        name = name.strip()
        if not name:
            raise CatalogException("Category name is required")
        with atomic(self.db, "category.create"):
            if parent_id is not None and not self.categories.get(parent_id):
                raise CategoryNotFound(f"Parent category {parent_id} not found")
            c = self.categories.create(name, parent_id)
        log.info("category created id=%s parent_id=%s", c.id, parent_id)
        return c

    def update_category(self, category_id: int, name: str, parent_id: Optional[int]) -> Category:
        name = name.strip()
        if not name:
            raise CatalogException("Category name is required")
        with atomic(self.db, "category.update"):
            c = self.categories.get(category_id)
            if not c:
                raise CategoryNotFound(f"Category {category_id} not found")
            if parent_id is not None:
                if parent_id == category_id:
                    raise CatalogConflict("A category cannot be its own parent")
                if not self.categories.get(parent_id):
                    raise CategoryNotFound(f"Parent category {parent_id} not found")
                if would_create_cycle(self.categories.list_all(), category_id, parent_id):
                    raise CatalogConflict("A category cannot be moved under its own descendant")
            self.categories.update(c, name, parent_id)
        log.info("category updated id=%s parent_id=%s", category_id, parent_id)
        return c

    def delete_category(self, category_id: int) -> Dict[str, int]:
        """Delete a category, everything below it and the items filed there."""
        with atomic(self.db, "category.delete"):
            if not self.categories.get(category_id):
                raise CategoryNotFound(f"Category {category_id} not found")
            ids = descendant_ids(self.categories.list_all(), category_id)
            items_removed = self.items.delete_in_categories(ids)
            categories_removed = self.categories.delete_many(ids)
        log.info(
            "category deleted id=%s categories_removed=%s items_removed=%s",
            category_id,
            categories_removed,
            items_removed,
        )
        return {"categories_removed": categories_removed, "items_removed": items_removed}

    # --- items ------------------------------------------------------------

    def get_item(self, item_id: int) -> Item:
        item = self.items.get(item_id)
        if not item:
            raise ItemNotFound(f"Item {item_id} not found")
        return item

    def list_items(
        self,
        category_id: Optional[int] = None,
        include_subcategories: bool = False,
        q: Optional[str] = None,
        sort: str = "name",
        limit: int = 20,
        offset: int = 0,
    ) -> Tuple[List[Item], int]:
        if sort not in SORTS:
            raise CatalogException(f"Unknown sort {sort!r}")
        category_ids = None
        if category_id is not None:
            if include_subcategories:
                category_ids = descendant_ids(self.categories.list_all(), category_id)
            else:
                category_ids = [category_id]
        return self.items.list(category_ids=category_ids, q=q, sort=sort, limit=limit, offset=offset)

    def create_item(self, **fields) -> Item:
        with atomic(self.db, "item.create"):
            if not self.categories.get(fields["category_id"]):
                raise CategoryNotFound(f"Category {fields['category_id']} not found")
            item = self.items.create(**fields)
        log.info("item created id=%s category_id=%s", item.id, item.category_id)
        return self.get_item(item.id)

    def update_item(self, item_id: int, **fields) -> Item:
        with atomic(self.db, "item.update"):
            item = self.items.get(item_id)
            if not item:
                raise ItemNotFound(f"Item {item_id} not found")
            if "category_id" in fields and not self.categories.get(fields["category_id"]):
                raise CategoryNotFound(f"Category {fields['category_id']} not found")
            self.items.update(item, **fields)
        log.info("item updated id=%s", item_id)
        return self.get_item(item_id)

    def delete_item(self, item_id: int) -> None:
        with atomic(self.db, "item.delete"):
            item = self.items.get(item_id)
            if not item:
                raise ItemNotFound(f"Item {item_id} not found")
            self.items.delete(item)
        log.info("item deleted id=%s", item_id)

    def dashboard_counts(self) -> Dict[str, int]:
        return {
            "categories": self.categories.count(),
            "items": self.items.count(),
            "orders": OrderRepository(self.db).count(),
        }
