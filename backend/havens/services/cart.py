"""Cart manager and the in-process store that holds carts between requests.

A cart is session state: it maps (menu item, variant) to a priced line and
is discarded once checkout commits the resulting order. Unit prices are
snapshotted (discount applied) when a line is first added, so later menu
edits never alter a standing cart line.
"""

from __future__ import annotations

import logging
import secrets
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from havens.core.config import settings
from havens.core.exceptions import CartError, NotFoundError
from havens.models.menu import Variant
from havens.services.pricing import discounted_price

logger = logging.getLogger(__name__)

CartKey = Tuple[int, Variant]


@dataclass
class CartLine:
    menu_item_id: int
    name: str
    variant: Variant
    unit_price: Decimal
    quantity: int = 1

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass
class Cart:
    id: str
    outlet_id: Optional[int] = None
    _lines: Dict[CartKey, CartLine] = field(default_factory=dict)

    @property
    def lines(self) -> List[CartLine]:
        return list(self._lines.values())

    @property
    def is_empty(self) -> bool:
        return not self._lines

    def get_line(self, menu_item_id: int, variant: Variant) -> Optional[CartLine]:
        return self._lines.get((menu_item_id, Variant(variant)))

    def add_item(self, menu_item, variant: Variant = Variant.FULL) -> CartLine:
        """Add one portion of ``menu_item``; repeats increment the quantity."""
        variant = Variant(variant)
        if self.outlet_id is not None and menu_item.outlet_id != self.outlet_id:
            raise CartError("Cart already holds items from another outlet")
        if not menu_item.is_available:
            raise CartError(f"{menu_item.name} is not available")

        key = (menu_item.id, variant)
        line = self._lines.get(key)
        if line is not None:
            line.quantity += 1
            return line

        price = menu_item.price_for(variant)
        if price is None:
            # Unpriced variants fall back to the full portion price
            price = menu_item.price_full
        line = CartLine(
            menu_item_id=menu_item.id,
            name=menu_item.name,
            variant=variant,
            unit_price=discounted_price(price, menu_item.discount_percentage),
        )
        self._lines[key] = line
        self.outlet_id = menu_item.outlet_id
        return line

    def update_quantity(self, menu_item_id: int, variant: Variant, delta: int) -> Optional[CartLine]:
        """Adjust a line by ``delta``; a line reaching 0 is removed.

        Returns the remaining line, or None when it was removed or never existed.
        """
        key = (menu_item_id, Variant(variant))
        line = self._lines.get(key)
        if line is None:
            return None
        line.quantity = max(0, line.quantity + delta)
        if line.quantity == 0:
            del self._lines[key]
            if not self._lines:
                self.outlet_id = None
            return None
        return line

    def clear(self) -> None:
        self._lines.clear()
        self.outlet_id = None


class CartStore:
    """In-memory carts with an idle TTL."""

    MAX_CARTS = 10000

    def __init__(self, ttl_seconds: int = 6 * 60 * 60):
        self.ttl = timedelta(seconds=ttl_seconds)
        self._carts: Dict[str, Cart] = {}
        self._expiry: Dict[str, datetime] = {}
        self._lock = threading.Lock()

    def _evict_expired(self) -> None:
        now = datetime.now()
        expired = [k for k, exp in self._expiry.items() if exp <= now]
        for k in expired:
            self._carts.pop(k, None)
            self._expiry.pop(k, None)

    def create(self) -> Cart:
        with self._lock:
            if len(self._carts) >= self.MAX_CARTS:
                self._evict_expired()
            if len(self._carts) >= self.MAX_CARTS:
                raise CartError("Too many open carts, try again later")
            cart = Cart(id=secrets.token_urlsafe(16))
            self._carts[cart.id] = cart
            self._expiry[cart.id] = datetime.now() + self.ttl
            logger.debug(f"Cart {cart.id} opened ({len(self._carts)} open)")
            return cart

    def get(self, cart_id: str) -> Cart:
        """Fetch a live cart and refresh its TTL."""
        with self._lock:
            cart = self._carts.get(cart_id)
            if cart is None or self._expiry.get(cart_id, datetime.min) <= datetime.now():
                self._carts.pop(cart_id, None)
                self._expiry.pop(cart_id, None)
                raise NotFoundError("Cart", cart_id)
            self._expiry[cart_id] = datetime.now() + self.ttl
            return cart

    def discard(self, cart_id: str) -> None:
        with self._lock:
            self._carts.pop(cart_id, None)
            self._expiry.pop(cart_id, None)
        logger.debug(f"Cart {cart_id} discarded")

    def __len__(self) -> int:
        return len(self._carts)


cart_store = CartStore(ttl_seconds=settings.cart_ttl_seconds)
