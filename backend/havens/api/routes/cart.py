"""Cart session routes.

Carts live server-side in the in-process cart store; clients hold only the
opaque cart id returned by ``POST /cart``.
"""

from typing import Optional

from fastapi import APIRouter, Query, Request, status

from havens.core.exceptions import NotFoundError
from havens.core.rate_limit import limiter
from havens.schemas.cart import (
    CartItemAdd,
    CartItemUpdate,
    CartLineResponse,
    CartResponse,
    QuoteResponse,
)
from havens.services.cart import Cart, cart_store
from havens.services.distance import Coordinates
from havens.services.orders import OrderService
from havens.services.pricing import calculate_subtotal
from havens.services.store import Store

router = APIRouter()


def _cart_response(cart: Cart) -> CartResponse:
    return CartResponse(
        id=cart.id,
        outlet_id=cart.outlet_id,
        lines=[CartLineResponse.model_validate(line) for line in cart.lines],
        subtotal=calculate_subtotal(cart.lines),
    )


@router.post("/", response_model=CartResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
def create_cart(request: Request):
    return _cart_response(cart_store.create())


@router.get("/{cart_id}", response_model=CartResponse)
def get_cart(cart_id: str):
    return _cart_response(cart_store.get(cart_id))


@router.post("/{cart_id}/items", response_model=CartResponse)
@limiter.limit("120/minute")
def add_item(request: Request, cart_id: str, body: CartItemAdd, store: Store):
    """Add one portion; repeating the same item and variant increments it."""
    cart = cart_store.get(cart_id)
    menu_item = store.get_orderable_menu_item(body.menu_item_id)
    if menu_item is None:
        raise NotFoundError("Menu item", body.menu_item_id)
    cart.add_item(menu_item, body.variant)
    return _cart_response(cart)


@router.patch("/{cart_id}/items", response_model=CartResponse)
@limiter.limit("120/minute")
def update_item(request: Request, cart_id: str, body: CartItemUpdate):
    """Change a line's quantity by ``delta``; lines reaching zero are removed."""
    cart = cart_store.get(cart_id)
    cart.update_quantity(body.menu_item_id, body.variant, body.delta)
    return _cart_response(cart)


@router.get("/{cart_id}/quote", response_model=QuoteResponse)
def quote(
    cart_id: str,
    store: Store,
    address: Optional[str] = Query(default=None, max_length=500),
    lat: Optional[float] = Query(default=None, ge=-90, le=90),
    lng: Optional[float] = Query(default=None, ge=-180, le=180),
):
    """Price breakdown. Without an address or location the delivery charge is still pending."""
    cart = cart_store.get(cart_id)
    location = Coordinates(lat=lat, lng=lng) if lat is not None and lng is not None else None
    return OrderService(store).quote(cart, address=address, location=location).as_dict()


@router.delete("/{cart_id}", status_code=status.HTTP_204_NO_CONTENT)
def clear_cart(cart_id: str):
    cart_store.get(cart_id).clear()
