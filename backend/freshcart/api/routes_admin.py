from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from freshcart.api.routes_catalogue import item_to_out
from freshcart.auth import Principal, require_admin
from freshcart.db import get_db
from freshcart.schemas.category_schema import CategoryIn, CategoryOut
from freshcart.schemas.item_schema import ItemIn, ItemOut
from freshcart.schemas.order_schema import OrderOut, StatusUpdateIn
from freshcart.services.catalog_service import (
    CatalogConflict,
    CatalogException,
    CatalogService,
    CategoryNotFound,
    ItemNotFound,
)
from freshcart.services.order_service import (
    InvalidStatusTransition,
    OrderNotFound,
    OrderService,
)

router = APIRouter(prefix="/api", tags=["admin"])


def _catalog_error(e: CatalogException) -> HTTPException:
    if isinstance(e, (CategoryNotFound, ItemNotFound)):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, CatalogConflict):
        return HTTPException(status_code=409, detail=str(e))
    return HTTPException(status_code=400, detail=str(e))


@router.get("/admin/dashboard", summary="Catalogue and order counts")
def dashboard(db: Session = Depends(get_db), _: Principal = Depends(require_admin)):
    return CatalogService(db).dashboard_counts()


@router.post("/categories", summary="Create category", response_model=CategoryOut)
def create_category(
    payload: CategoryIn, db: Session = Depends(get_db), _: Principal = Depends(require_admin)
):
    try:
        return CatalogService(db).create_category(payload.name, payload.parent_id)
    except CatalogException as e:
        raise _catalog_error(e)


@router.put("/categories/{category_id}", summary="Rename or reparent category", response_model=CategoryOut)
def update_category(
    category_id: int,
    payload: CategoryIn,
    db: Session = Depends(get_db),
    _: Principal = Depends(require_admin),
):
    try:
        return CatalogService(db).update_category(category_id, payload.name, payload.parent_id)
    except CatalogException as e:
        raise _catalog_error(e)


@router.delete("/categories/{category_id}", summary="Delete category, its descendants and their items")
def delete_category(category_id: int, db: Session = Depends(get_db), _: Principal = Depends(require_admin)):
    try:
        removed = CatalogService(db).delete_category(category_id)
    except CatalogException as e:
        raise _catalog_error(e)
    return {"message": "Category deleted successfully", **removed}


@router.post("/items", summary="Create item", response_model=ItemOut)
def create_item(payload: ItemIn, db: Session = Depends(get_db), _: Principal = Depends(require_admin)):
    try:
        return item_to_out(CatalogService(db).create_item(**payload.model_dump()))
    except CatalogException as e:
        raise _catalog_error(e)


@router.put("/items/{item_id}", summary="Update item", response_model=ItemOut)
def update_item(
    item_id: int, payload: ItemIn, db: Session = Depends(get_db), _: Principal = Depends(require_admin)
):
    try:
        return item_to_out(CatalogService(db).update_item(item_id, **payload.model_dump()))
    except CatalogException as e:
        raise _catalog_error(e)


@router.delete("/items/{item_id}", summary="Delete item")
def delete_item(item_id: int, db: Session = Depends(get_db), _: Principal = Depends(require_admin)):
    try:
        CatalogService(db).delete_item(item_id)
    except CatalogException as e:
        raise _catalog_error(e)
    return {"message": "Item deleted successfully"}


@router.get("/admin/orders", summary="List all orders", response_model=list[OrderOut])
def list_all_orders(
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
    _: Principal = Depends(require_admin),
):
    return OrderService(db).list_orders(limit=limit)


@router.put("/orders/{order_id}/status", summary="Advance order status", response_model=OrderOut)
def update_order_status(
    order_id: int,
    payload: StatusUpdateIn,
    db: Session = Depends(get_db),
    _: Principal = Depends(require_admin),
):
    try:
        return OrderService(db).update_status(order_id, payload.status.value)
    except OrderNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidStatusTransition as e:
        raise HTTPException(status_code=409, detail=str(e))
