"""Order lifecycle: checkout, status transitions and order lookup.

Checkout turns a cart into an order in a single transaction: the order, its
lines, the initial history entry and the inventory deduction are flushed
together and committed once. Totals are computed here and never again.
"""

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError

from havens.core.cache import CacheKeys
from havens.core.exceptions import (
    CartError,
    NotFoundError,
    PermissionDenied,
    ValidationFailed,
)
from havens.core.rbac import StaffPermission, can_access_outlet, has_permission, scoped_outlet_id
from havens.core.security import generate_tracking_token
from havens.core.validators import validate_checkout_details
from havens.models.order import Order, OrderLine, OrderStatus, PaymentMethod
from havens.services.cart import Cart
from havens.services.distance import Coordinates, estimate_distance, outlet_coordinates
from havens.services.inventory import InventoryService
from havens.services.order_state import allowed_transitions, apply_transition, start_history
from havens.services.pricing import PriceBreakdown, PricingConfig, price_lines
from havens.services.store import DataStore

logger = logging.getLogger(__name__)

ONLINE_PAYMENT_METHODS = (PaymentMethod.UPI, PaymentMethod.CARD, PaymentMethod.COD)


@dataclass
class CheckoutDetails:
    name: str
    phone: str
    address: str
    payment_method: PaymentMethod = PaymentMethod.COD
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @property
    def coordinates(self) -> Optional[Coordinates]:
        if self.latitude is None or self.longitude is None:
            return None
        return Coordinates(lat=self.latitude, lng=self.longitude)


def customer_ref_for(user, now: datetime) -> str:
    if user is not None:
        return f"cust-{user.id}"
    return f"guest-{int(now.timestamp() * 1000)}"


class OrderService:
    def __init__(self, store: DataStore):
        self.store = store

    def pricing_config(self) -> PricingConfig:
        return PricingConfig.from_settings(self.store.get_global_settings())

    def quote(self, cart: Cart, address: Optional[str] = None, location: Optional[Coordinates] = None) -> PriceBreakdown:
        """Price a cart. Without an address or location the delivery charge is pending (0)."""
        outlet = self.store.get_outlet(cart.outlet_id) if cart.outlet_id is not None else None
        distance = None
        if not cart.is_empty and (address or location):
            distance = estimate_distance(address, outlet_coordinates(outlet), location)
        return price_lines(cart.lines, self.pricing_config(), distance)

    def checkout(self, cart: Cart, details: CheckoutDetails, user=None) -> Order:
        """Create a PENDING order from ``cart``.

        Raises CartError for an empty cart, ValidationFailed for bad contact
        details or when no distance can be estimated, and NotFoundError when
        the outlet or a menu item has gone away since it was added.
        """
        if cart.is_empty:
            raise CartError("Cart is empty")
        validate_checkout_details(details.name, details.phone, details.address)
        if PaymentMethod(details.payment_method) not in ONLINE_PAYMENT_METHODS:
            raise ValidationFailed({"payment_method": "Choose UPI, CARD or COD"})

        outlet = self.store.get_outlet(cart.outlet_id)
        if outlet is None or not outlet.is_active:
            raise NotFoundError("Outlet", cart.outlet_id)

        distance = estimate_distance(details.address, outlet_coordinates(outlet), details.coordinates)
        if distance is None:
            raise ValidationFailed({"address": "Delivery distance could not be determined"})

        consumed = []
        for line in cart.lines:
            menu_item = self.store.get_menu_item(line.menu_item_id)
            if menu_item is None or menu_item.outlet_id != outlet.id:
                raise NotFoundError("Menu item", line.menu_item_id)
            consumed.append((menu_item, line.variant, line.quantity))

        breakdown = price_lines(cart.lines, self.pricing_config(), distance)
        now = datetime.now(timezone.utc)
        order = Order(
            outlet_id=outlet.id,
            user_id=user.id if user is not None else None,
            customer_ref=customer_ref_for(user, now),
            customer_name=details.name.strip(),
            customer_phone=details.phone,
            address=details.address.strip(),
            subtotal=breakdown.subtotal,
            tax=breakdown.tax,
            delivery_charge=breakdown.delivery_charge,
            total=breakdown.total,
            distance_km=distance,
            payment_method=PaymentMethod(details.payment_method),
            tracking_token=generate_tracking_token(),
            is_rated=False,
            created_at=now,
        )
        order.lines = [
            OrderLine(
                menu_item_id=line.menu_item_id,
                name=line.name,
                variant=line.variant,
                unit_price=line.unit_price,
                quantity=line.quantity,
            )
            for line in cart.lines
        ]
        start_history(order)

        try:
            self.store.save_order(order)
            InventoryService(self.store).deduct_for_order(consumed)
            self.store.commit(CacheKeys.ORDERS, CacheKeys.INVENTORY)
        except SQLAlchemyError:
            # Neither the order nor any stock change survives a failed write
            self.store.rollback()
            raise

        logger.info(
            f"Order {order.id} created for {order.customer_ref} at outlet {outlet.id}: "
            f"total {order.total} ({len(order.lines)} lines, {distance} km)"
        )
        return order

    def get_order(self, order_id: int) -> Order:
        order = self.store.get_order(order_id)
        if order is None:
            raise NotFoundError("Order", order_id)
        return order

    def get_order_for_viewer(self, order_id: int, user=None, tracking_token: Optional[str] = None) -> Order:
        """The order if ``user`` or ``tracking_token`` may see it.

        Refusals are reported as not found so order ids cannot be probed.
        """
        order = self.get_order(order_id)
        if user is not None and order.user_id is not None and user.id == order.user_id:
            return order
        if tracking_token and secrets.compare_digest(tracking_token, order.tracking_token):
            return order
        if (
            user is not None
            and has_permission(user, StaffPermission.MANAGE_ORDERS)
            and can_access_outlet(user, order.outlet_id)
        ):
            return order
        raise NotFoundError("Order", order_id)

    def list_for_customer(self, user) -> List[Order]:
        return self.store.get_orders(user_id=user.id)

    def list_for_staff(
        self,
        user,
        outlet_id: Optional[int] = None,
        status: Optional[OrderStatus] = None,
    ) -> List[Order]:
        return self.store.get_orders(outlet_id=scoped_outlet_id(user, outlet_id), status=status)

    def transition(self, order_id: int, requested: OrderStatus, actor) -> Order:
        """Apply a staff-requested status change and persist it."""
        order = self.get_order(order_id)
        if not can_access_outlet(actor, order.outlet_id):
            raise PermissionDenied("Not allowed to manage orders of this outlet")
        apply_transition(order, OrderStatus(requested), actor.email)
        self.store.commit(CacheKeys.ORDERS)
        return order

    def next_actions(self, order_id: int, actor) -> List[OrderStatus]:
        order = self.get_order(order_id)
        if not can_access_outlet(actor, order.outlet_id):
            raise PermissionDenied("Not allowed to manage orders of this outlet")
        return allowed_transitions(order.status)
