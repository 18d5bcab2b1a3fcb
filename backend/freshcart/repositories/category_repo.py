from datetime import datetime, timezone
from typing import List, Optional, Sequence

from sqlalchemy.orm import Session

from freshcart.models.category import Category


class CategoryRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, category_id: int) -> Optional[Category]:
        return self.db.get(Category, category_id)

    def list_all(self) -> List[Category]:
        # creation order drives child ordering in the tree
        return self.db.query(Category).order_by(Category.created_at, Category.id).all()

    def count(self) -> int:
        return self.db.query(Category).count()

    def create(self, name: str, parent_id: Optional[int] = None) -> Category:
        c = Category(name=name, parent_id=parent_id)
        self.db.add(c)
        self.db.flush()
        return c

    def update(self, category: Category, name: str, parent_id: Optional[int]) -> Category:
        category.name = name
        category.parent_id = parent_id
        category.updated_at = datetime.now(timezone.utc)
        self.db.flush()
        return category

    def delete_many(self, ids: Sequence[int]) -> int:
        if not ids:
            return 0
        # children before parents so no row ever points at a deleted parent
        rows = {c.id: c for c in self.db.query(Category).filter(Category.id.in_(ids)).all()}
        removed = 0
        for cid in reversed(list(ids)):
            row = rows.get(cid)
            if row is not None:
                self.db.delete(row)
                self.db.flush()
                removed += 1
        return removed
