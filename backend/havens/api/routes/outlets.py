"""Outlet discovery and management routes."""

import logging
from typing import List

from fastapi import APIRouter, Query, Request, status

from havens.core.cache import CacheKeys, cache, make_signature
from havens.core.exceptions import NotFoundError, PermissionDenied
from havens.core.rate_limit import limiter
from havens.core.rbac import CanManageOutlets, UserRole, can_access_outlet
from havens.core.validators import PositiveIntId
from havens.models.outlet import Outlet
from havens.schemas.outlet import NearestOutletResponse, OutletCreate, OutletResponse, OutletUpdate
from havens.services.distance import Coordinates, find_nearest_outlet
from havens.services.store import Store

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/", response_model=List[OutletResponse])
def list_outlets(store: Store):
    """Active outlets, served from the query cache."""
    return cache.get_or_load(
        CacheKeys.OUTLETS,
        make_signature("active"),
        lambda: [OutletResponse.model_validate(o).model_dump(mode="json") for o in store.get_outlets()],
    )


@router.get("/all", response_model=List[OutletResponse])
def list_all_outlets(store: Store, current_user: CanManageOutlets):
    """Every outlet including inactive ones (deleted outlets excluded)."""
    return store.get_outlets(include_inactive=True)


@router.get("/nearest", response_model=NearestOutletResponse)
def nearest_outlet(
    store: Store,
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
):
    found = find_nearest_outlet(Coordinates(lat=lat, lng=lng), store.get_outlets())
    if found is None:
        raise NotFoundError("Outlet with coordinates")
    outlet, distance = found
    return NearestOutletResponse(
        outlet=OutletResponse.model_validate(outlet),
        distance_km=round(distance, 3),
    )


@router.get("/{outlet_id}", response_model=OutletResponse)
def get_outlet(outlet_id: PositiveIntId, store: Store):
    outlet = store.get_outlet(outlet_id)
    if outlet is None:
        raise NotFoundError("Outlet", outlet_id)
    return outlet


def _managed_outlet(store, outlet_id: int, current_user) -> Outlet:
    outlet = store.get_outlet(outlet_id)
    if outlet is None:
        raise NotFoundError("Outlet", outlet_id)
    if not can_access_outlet(current_user, outlet_id):
        raise PermissionDenied("Not allowed to manage this outlet")
    return outlet


@router.post("/", response_model=OutletResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
def create_outlet(request: Request, body: OutletCreate, store: Store, current_user: CanManageOutlets):
    if current_user.role != UserRole.SUPER_ADMIN and current_user.outlet_id is not None:
        raise PermissionDenied("Staff scoped to an outlet cannot open new outlets")
    outlet = store.save_outlet(Outlet(**body.model_dump()))
    store.commit(CacheKeys.OUTLETS)
    logger.info(f"Outlet {outlet.id} ({outlet.name}) created by {current_user.email}")
    return outlet


@router.put("/{outlet_id}", response_model=OutletResponse)
@limiter.limit("30/minute")
def update_outlet(
    request: Request,
    outlet_id: PositiveIntId,
    body: OutletUpdate,
    store: Store,
    current_user: CanManageOutlets,
):
    outlet = _managed_outlet(store, outlet_id, current_user)
    for field, value in body.model_dump(exclude_unset=True).items():
        setattr(outlet, field, value)
    store.save_outlet(outlet)
    store.commit(CacheKeys.OUTLETS, CacheKeys.MENU)
    return outlet


@router.delete("/{outlet_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("30/minute")
def delete_outlet(request: Request, outlet_id: PositiveIntId, store: Store, current_user: CanManageOutlets):
    """Soft delete: the outlet leaves every listing but its orders stay intact."""
    outlet = _managed_outlet(store, outlet_id, current_user)
    store.delete_outlet(outlet)
    store.commit(CacheKeys.OUTLETS, CacheKeys.MENU)
    logger.info(f"Outlet {outlet_id} deleted by {current_user.email}")
