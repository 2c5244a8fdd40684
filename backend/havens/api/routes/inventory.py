"""Inventory management routes."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Query, Request, status

from havens.core.cache import CacheKeys
from havens.core.exceptions import NotFoundError, PermissionDenied
from havens.core.rate_limit import limiter
from havens.core.rbac import CanManageInventory, can_access_outlet, scoped_outlet_id
from havens.core.validators import PositiveIntId
from havens.models.inventory import InventoryItem
from havens.schemas.inventory import (
    InventoryItemCreate,
    InventoryItemResponse,
    InventoryItemUpdate,
    StockAdjustment,
)
from havens.services.inventory import InventoryService
from havens.services.store import DataStore, Store

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_item(store: DataStore, user, item_id: int) -> InventoryItem:
    item = store.get_inventory_item(item_id)
    if item is None:
        raise NotFoundError("Inventory item", item_id)
    if not can_access_outlet(user, item.outlet_id):
        raise PermissionDenied("Not allowed to manage inventory of this outlet")
    return item


@router.get("/", response_model=List[InventoryItemResponse])
def list_inventory(
    store: Store,
    current_user: CanManageInventory,
    outlet_id: Optional[int] = Query(default=None, gt=0),
):
    return store.get_inventory(scoped_outlet_id(current_user, outlet_id))


@router.get("/low-stock", response_model=List[InventoryItemResponse])
def low_stock(
    store: Store,
    current_user: CanManageInventory,
    outlet_id: Optional[int] = Query(default=None, gt=0),
):
    """Items whose stock has fallen below their minimum."""
    return InventoryService(store).low_stock(scoped_outlet_id(current_user, outlet_id))


@router.get("/{item_id}", response_model=InventoryItemResponse)
def get_inventory_item(item_id: PositiveIntId, store: Store, current_user: CanManageInventory):
    return _get_item(store, current_user, item_id)


@router.post("/", response_model=InventoryItemResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("60/minute")
def create_inventory_item(
    request: Request,
    body: InventoryItemCreate,
    store: Store,
    current_user: CanManageInventory,
):
    if not can_access_outlet(current_user, body.outlet_id):
        raise PermissionDenied("Not allowed to manage inventory of this outlet")
    if store.get_outlet(body.outlet_id) is None:
        raise NotFoundError("Outlet", body.outlet_id)
    item = store.save_inventory_item(InventoryItem(**body.model_dump()))
    store.commit(CacheKeys.INVENTORY)
    return item


@router.put("/{item_id}", response_model=InventoryItemResponse)
@limiter.limit("60/minute")
def update_inventory_item(
    request: Request,
    item_id: PositiveIntId,
    body: InventoryItemUpdate,
    store: Store,
    current_user: CanManageInventory,
):
    item = _get_item(store, current_user, item_id)
    for field, value in body.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(item, field, value)
    store.save_inventory_item(item)
    store.commit(CacheKeys.INVENTORY)
    return item


@router.post("/{item_id}/adjust", response_model=InventoryItemResponse)
@limiter.limit("60/minute")
def adjust_stock(
    request: Request,
    item_id: PositiveIntId,
    body: StockAdjustment,
    store: Store,
    current_user: CanManageInventory,
):
    """Move stock by a delta or set it outright; the result never drops below zero."""
    item = _get_item(store, current_user, item_id)
    InventoryService(store).adjust_stock(item, delta=body.delta, stock=body.stock)
    store.commit(CacheKeys.INVENTORY)
    return item


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("60/minute")
def delete_inventory_item(
    request: Request,
    item_id: PositiveIntId,
    store: Store,
    current_user: CanManageInventory,
):
    item = _get_item(store, current_user, item_id)
    store.delete_inventory_item(item)
    store.commit(CacheKeys.INVENTORY, CacheKeys.MENU)
