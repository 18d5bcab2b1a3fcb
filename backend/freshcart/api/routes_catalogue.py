from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from freshcart.db import get_db
from freshcart.models.item import Item
from freshcart.schemas.category_schema import CategoryOut, CategoryPathOut, CategoryTreeOut
from freshcart.schemas.item_schema import ItemOut
from freshcart.services.catalog_service import (
    CatalogConflict,
    CatalogException,
    CatalogService,
    CategoryNotFound,
    ItemNotFound,
)

router = APIRouter(prefix="/api", tags=["catalogue"])


def item_to_out(item: Item) -> ItemOut:
    out = ItemOut.model_validate(item)
    out.category_name = item.category.name if item.category is not None else None
    return out


@router.get("/categories", summary="List categories (flat)", response_model=list[CategoryOut])
def list_categories(db: Session = Depends(get_db)):
    return CatalogService(db).list_categories()


@router.get("/category-tree", summary="Category hierarchy", response_model=list[CategoryTreeOut])
def category_tree(db: Session = Depends(get_db)):
    return [CategoryTreeOut.model_validate(n.to_dict()) for n in CatalogService(db).category_tree()]


@router.get("/categories/{category_id}/path", summary="Breadcrumb path", response_model=CategoryPathOut)
def category_path(category_id: int, db: Session = Depends(get_db)):
    try:
        ids, names = CatalogService(db).category_path(category_id)
    except CategoryNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except CatalogConflict as e:
        raise HTTPException(status_code=409, detail=str(e))
    return CategoryPathOut(id=category_id, ids=ids, names=names, label=" → ".join(names))


@router.get("/items", summary="List items")
def list_items(
    category_id: Optional[int] = Query(None),
    include_subcategories: bool = Query(False),
    q: Optional[str] = Query(None, description="search term"),
    sort: str = Query("name", pattern="^(name|price-low|price-high|newest)$"),
    limit: int = Query(20, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    try:
        items, total = CatalogService(db).list_items(
            category_id=category_id,
            include_subcategories=include_subcategories,
            q=q,
            sort=sort,
            limit=limit,
            offset=offset,
        )
    except CatalogException as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {
        "items": [item_to_out(i).model_dump(mode="json") for i in items],
        "total": total,
        "limit": limit,
        "offset": offset,
    }


@router.get("/items/{item_id}", summary="Get item", response_model=ItemOut)
def get_item(item_id: int, db: Session = Depends(get_db)):
    try:
        return item_to_out(CatalogService(db).get_item(item_id))
    except ItemNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
