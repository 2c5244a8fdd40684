"""Stock levels: manual adjustment, low-stock listing and order deduction."""

import logging
from decimal import Decimal
from typing import Iterable, List, Optional, Tuple

from havens.core.exceptions import ValidationFailed
from havens.models.inventory import InventoryItem
from havens.models.menu import VARIANT_STOCK_MULTIPLIER, MenuItem, Variant
from havens.services.pricing import to_decimal
from havens.services.store import DataStore

logger = logging.getLogger(__name__)

# (menu item, variant, quantity) for one ordered line
ConsumedLine = Tuple[MenuItem, Variant, int]


class InventoryService:
    """Inventory operations. Callers own the commit."""

    def __init__(self, store: DataStore):
        self.store = store

    def adjust_stock(
        self,
        item: InventoryItem,
        delta: Optional[Decimal] = None,
        stock: Optional[Decimal] = None,
    ) -> InventoryItem:
        """Set ``stock`` outright or move it by ``delta``; never below zero."""
        if (delta is None) == (stock is None):
            raise ValidationFailed({"stock": "Provide exactly one of delta or stock"})

        previous = item.stock
        if stock is not None:
            item.stock = to_decimal(stock)
        else:
            item.stock = to_decimal(previous) + to_decimal(delta)
        logger.info(
            f"Stock adjusted: inventory {item.id} ({item.name}) {previous} -> {item.stock} {item.unit}"
        )
        return item

    def low_stock(self, outlet_id: Optional[int] = None) -> List[InventoryItem]:
        return [item for item in self.store.get_inventory(outlet_id) if item.is_low]

    def deduct_for_order(self, consumed: Iterable[ConsumedLine]) -> List[InventoryItem]:
        """Subtract the linked ingredients of each ordered line.

        A half portion draws half a full portion's quantity and a quarter a
        quarter. Links to inventory rows that no longer exist are skipped.
        Runs inside the caller's transaction so it commits or rolls back
        with the order.
        """
        touched = {}
        for menu_item, variant, quantity in consumed:
            multiplier = VARIANT_STOCK_MULTIPLIER[Variant(variant)]
            for link in menu_item.inventory_links:
                inventory = self.store.get_inventory_item(link.inventory_item_id)
                if inventory is None:
                    logger.warning(
                        f"Menu item {menu_item.id} links missing inventory {link.inventory_item_id}"
                    )
                    continue
                amount = to_decimal(link.qty) * multiplier * quantity
                inventory.stock = to_decimal(inventory.stock) - amount
                touched[inventory.id] = inventory

        for inventory in touched.values():
            logger.info(f"Stock deducted: inventory {inventory.id} now {inventory.stock} {inventory.unit}")
            if inventory.is_low:
                logger.warning(f"Low stock: {inventory.name} ({inventory.stock} < {inventory.min_stock})")
        return list(touched.values())
