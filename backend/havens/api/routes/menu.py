"""Menu browsing and management routes."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Query, Request, status

from havens.core.cache import CacheKeys, cache, make_signature
from havens.core.exceptions import NotFoundError, PermissionDenied
from havens.core.rate_limit import limiter
from havens.core.rbac import CanManageMenu, can_access_outlet
from havens.core.validators import PositiveIntId
from havens.models.menu import MenuItem, MenuItemInventoryLink
from havens.schemas.menu import InventoryLinkSchema, MenuItemCreate, MenuItemResponse, MenuItemUpdate
from havens.services.store import DataStore, Store

logger = logging.getLogger(__name__)

router = APIRouter()


def _check_outlet(user, outlet_id: int) -> None:
    if not can_access_outlet(user, outlet_id):
        raise PermissionDenied("Not allowed to manage the menu of this outlet")


def _links(store: DataStore, outlet_id: int, links: List[InventoryLinkSchema]) -> List[MenuItemInventoryLink]:
    result = []
    for link in links:
        inventory = store.get_inventory_item(link.inventory_item_id)
        if inventory is None or inventory.outlet_id != outlet_id:
            raise NotFoundError("Inventory item", link.inventory_item_id)
        result.append(MenuItemInventoryLink(inventory_item_id=inventory.id, qty=link.qty))
    return result


@router.get("/", response_model=List[MenuItemResponse])
def list_menu(
    store: Store,
    outlet_id: Optional[int] = Query(default=None, gt=0),
    include_unavailable: bool = False,
):
    """Menu of one outlet (or all outlets) with the discounted display price."""
    return cache.get_or_load(
        CacheKeys.MENU,
        make_signature(outlet_id, include_unavailable),
        lambda: [
            MenuItemResponse.model_validate(item).model_dump(mode="json")
            for item in store.get_menu(
                outlet_id, available_only=not include_unavailable, open_outlets_only=True,
            )
        ],
    )


@router.get("/{item_id}", response_model=MenuItemResponse)
def get_menu_item(item_id: PositiveIntId, store: Store):
    item = store.get_orderable_menu_item(item_id)
    if item is None:
        raise NotFoundError("Menu item", item_id)
    return item


@router.post("/", response_model=MenuItemResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("60/minute")
def create_menu_item(request: Request, body: MenuItemCreate, store: Store, current_user: CanManageMenu):
    _check_outlet(current_user, body.outlet_id)
    if store.get_outlet(body.outlet_id) is None:
        raise NotFoundError("Outlet", body.outlet_id)

    item = MenuItem(**body.model_dump(exclude={"inventory_links"}))
    item.inventory_links = _links(store, body.outlet_id, body.inventory_links)
    store.save_menu_item(item)
    store.commit(CacheKeys.MENU)
    logger.info(f"Menu item {item.id} ({item.name}) created at outlet {item.outlet_id}")
    return item


@router.put("/{item_id}", response_model=MenuItemResponse)
@limiter.limit("60/minute")
def update_menu_item(
    request: Request,
    item_id: PositiveIntId,
    body: MenuItemUpdate,
    store: Store,
    current_user: CanManageMenu,
):
    item = store.get_menu_item(item_id)
    if item is None:
        raise NotFoundError("Menu item", item_id)
    _check_outlet(current_user, item.outlet_id)

    changes = body.model_dump(exclude_unset=True, exclude={"inventory_links"})
    if "price_full" in changes and changes["price_full"] is None:
        changes.pop("price_full")
    for field, value in changes.items():
        setattr(item, field, value)
    if body.inventory_links is not None:
        item.inventory_links = _links(store, item.outlet_id, body.inventory_links)
    store.save_menu_item(item)
    store.commit(CacheKeys.MENU)
    return item


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("60/minute")
def delete_menu_item(request: Request, item_id: PositiveIntId, store: Store, current_user: CanManageMenu):
    item = store.get_menu_item(item_id)
    if item is None:
        raise NotFoundError("Menu item", item_id)
    _check_outlet(current_user, item.outlet_id)
    store.delete_menu_item(item)
    store.commit(CacheKeys.MENU)
    logger.info(f"Menu item {item_id} deleted by {current_user.email}")
