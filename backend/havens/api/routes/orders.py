"""Checkout, tracking and order status routes."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Query, Request, status

from havens.core.exceptions import NotFoundError
from havens.core.rate_limit import limiter, user_limiter
from havens.core.rbac import CanManageOrders, OptionalCurrentUser, RequireCustomer
from havens.core.validators import PositiveIntId
from havens.models.order import OrderStatus
from havens.schemas.order import (
    CheckoutRequest,
    CheckoutResponse,
    OrderActionsResponse,
    OrderInvoiceResponse,
    OrderResponse,
    StatusUpdate,
)
from havens.schemas.review import ReviewCreate, ReviewResponse
from havens.schemas.settings import InvoiceSettingsResponse
from havens.services.cart import cart_store
from havens.services.orders import CheckoutDetails, OrderService
from havens.services.reviews import ReviewService
from havens.services.store import Store

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/checkout", response_model=CheckoutResponse, status_code=status.HTTP_201_CREATED)
@user_limiter.limit("10/minute")
def checkout(request: Request, body: CheckoutRequest, store: Store, current_user: OptionalCurrentUser):
    """Turn a cart into a PENDING order.

    The cart is discarded only once the order has been committed; on any
    failure it stays available for another attempt.
    """
    cart = cart_store.get(body.cart_id)
    details = CheckoutDetails(
        name=body.name,
        phone=body.phone,
        address=body.address,
        payment_method=body.payment_method,
        latitude=body.latitude,
        longitude=body.longitude,
    )
    order = OrderService(store).checkout(cart, details, user=current_user)
    cart_store.discard(cart.id)
    return order


@router.get("/mine", response_model=List[OrderResponse])
def my_orders(store: Store, current_user: RequireCustomer):
    return OrderService(store).list_for_customer(current_user)


@router.get("/", response_model=List[OrderResponse])
def list_orders(
    store: Store,
    current_user: CanManageOrders,
    outlet_id: Optional[int] = Query(default=None, gt=0),
    status_filter: Optional[OrderStatus] = Query(default=None, alias="status"),
):
    """Staff order queue, newest first."""
    return OrderService(store).list_for_staff(current_user, outlet_id=outlet_id, status=status_filter)


@router.get("/{order_id}", response_model=OrderResponse)
def track_order(
    order_id: PositiveIntId,
    store: Store,
    current_user: OptionalCurrentUser,
    token: Optional[str] = Query(default=None, max_length=64),
):
    """Order tracking for its customer, a guest holding the tracking token, or staff."""
    return OrderService(store).get_order_for_viewer(order_id, user=current_user, tracking_token=token)


@router.get("/{order_id}/invoice", response_model=OrderInvoiceResponse)
def order_invoice(
    order_id: PositiveIntId,
    store: Store,
    current_user: OptionalCurrentUser,
    token: Optional[str] = Query(default=None, max_length=64),
):
    """Everything an invoice renderer needs: the resolved order plus branding."""
    order = OrderService(store).get_order_for_viewer(order_id, user=current_user, tracking_token=token)
    outlet = store.get_outlet(order.outlet_id, include_deleted=True)
    if outlet is None:
        raise NotFoundError("Outlet", order.outlet_id)
    return OrderInvoiceResponse(
        order=OrderResponse.model_validate(order),
        outlet_name=outlet.name,
        outlet_address=outlet.address,
        settings=InvoiceSettingsResponse.model_validate(store.get_global_settings()),
    )


@router.post("/{order_id}/status", response_model=OrderResponse)
@limiter.limit("120/minute")
def update_status(
    request: Request,
    order_id: PositiveIntId,
    body: StatusUpdate,
    store: Store,
    current_user: CanManageOrders,
):
    """Advance the order one stage or reject it."""
    return OrderService(store).transition(order_id, body.status, current_user)


@router.get("/{order_id}/actions", response_model=OrderActionsResponse)
def order_actions(order_id: PositiveIntId, store: Store, current_user: CanManageOrders):
    service = OrderService(store)
    allowed = service.next_actions(order_id, current_user)
    order = service.get_order(order_id)
    return OrderActionsResponse(order_id=order.id, status=order.status, allowed=allowed)


@router.post("/{order_id}/review", response_model=ReviewResponse, status_code=status.HTTP_201_CREATED)
@user_limiter.limit("10/minute")
def review_order(
    request: Request,
    order_id: PositiveIntId,
    body: ReviewCreate,
    store: Store,
    current_user: RequireCustomer,
):
    return ReviewService(store).submit(current_user, order_id, body.rating, body.comment)
