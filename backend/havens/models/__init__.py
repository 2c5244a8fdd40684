"""SQLAlchemy models."""

from havens.models.user import User
from havens.models.outlet import Outlet
from havens.models.menu import (
    FoodType,
    MenuItem,
    MenuItemInventoryLink,
    SpiceLevel,
    Variant,
)
from havens.models.inventory import InventoryItem
from havens.models.order import (
    Order,
    OrderLine,
    OrderStatus,
    OrderStatusEvent,
    PaymentMethod,
)
from havens.models.invoice import ManualInvoice, ManualInvoiceLine
from havens.models.settings import DeliveryTier, GlobalSettings
from havens.models.review import Review

__all__ = [
    "DeliveryTier",
    "FoodType",
    "GlobalSettings",
    "InventoryItem",
    "ManualInvoice",
    "ManualInvoiceLine",
    "MenuItem",
    "MenuItemInventoryLink",
    "Order",
    "OrderLine",
    "OrderStatus",
    "OrderStatusEvent",
    "Outlet",
    "PaymentMethod",
    "Review",
    "SpiceLevel",
    "User",
    "Variant",
]
