from datetime import datetime, timezone
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, joinedload

from freshcart.models.item import Item
from freshcart.models.order import OrderLine

SORTS = {
    "name": (Item.name.asc(),),
    "price-low": (Item.price.asc(), Item.name.asc()),
    "price-high": (Item.price.desc(), Item.name.asc()),
    "newest": (Item.created_at.desc(), Item.id.desc()),
}


class ItemRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, item_id: int) -> Optional[Item]:
        return (
            self.db.query(Item)
            .options(joinedload(Item.category))
            .filter(Item.id == item_id)
            .first()
        )

    def get_many(self, ids: Sequence[int]) -> List[Item]:
        if not ids:
            return []
        return self.db.query(Item).filter(Item.id.in_(list(ids))).all()

    def count(self) -> int:
        return self.db.query(Item).count()

    def list(
        self,
        category_ids: Optional[Sequence[int]] = None,
        q: Optional[str] = None,
        sort: str = "name",
        limit: int = 20,
        offset: int = 0,
    ) -> Tuple[List[Item], int]:
        query = self.db.query(Item).options(joinedload(Item.category))
        if category_ids is not None:
            query = query.filter(Item.category_id.in_(list(category_ids)))
        if q:
            like = f"%{q}%"
            query = query.filter(or_(Item.name.ilike(like), Item.description.ilike(like)))
        total = query.with_entities(func.count(Item.id)).scalar() or 0
        items = query.order_by(*SORTS.get(sort, SORTS["name"])).offset(offset).limit(limit).all()
        return items, total

    def create(self, **fields) -> Item:
        item = Item(**fields)
        self.db.add(item)
        self.db.flush()
        return item

    def update(self, item: Item, **fields) -> Item:
        for key, value in fields.items():
            setattr(item, key, value)
        item.updated_at = datetime.now(timezone.utc)
        self.db.flush()
        return item

    def delete(self, item: Item) -> None:
        self._detach_order_lines([item.id])
        self.db.delete(item)
        self.db.flush()

    def delete_in_categories(self, category_ids: Sequence[int]) -> int:
        if not category_ids:
            return 0
        ids = [
            row[0]
            for row in self.db.query(Item.id).filter(Item.category_id.in_(list(category_ids))).all()
        ]
        if not ids:
            return 0
        self._detach_order_lines(ids)
        self.db.query(Item).filter(Item.id.in_(ids)).delete(synchronize_session=False)
        self.db.flush()
        return len(ids)

    def _detach_order_lines(self, item_ids: Sequence[int]) -> None:
        # order history keeps its name/price snapshot
        self.db.query(OrderLine).filter(OrderLine.item_id.in_(list(item_ids))).update(
            {OrderLine.item_id: None}, synchronize_session=False
        )
