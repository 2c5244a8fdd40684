"""Menu models."""

from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import List, Optional

from sqlalchemy import Boolean, Enum as SQLEnum, ForeignKey, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from havens.db.base import Base, TimestampMixin


class Variant(str, Enum):
    """Portion size of a menu item. Each variant is priced independently."""

    FULL = "full"
    HALF = "half"
    QTR = "qtr"


# Share of a full portion's ingredients consumed by each variant
VARIANT_STOCK_MULTIPLIER = {
    Variant.FULL: Decimal("1"),
    Variant.HALF: Decimal("0.5"),
    Variant.QTR: Decimal("0.25"),
}


class SpiceLevel(str, Enum):
    NONE = "None"
    MILD = "Mild"
    MEDIUM = "Medium"
    HOT = "Hot"


class FoodType(str, Enum):
    VEG = "Veg"
    NON_VEG = "Non-Veg"


class MenuItem(Base, TimestampMixin):
    """A dish offered by one outlet."""

    __tablename__ = "menu_items"

    id: Mapped[int] = mapped_column(primary_key=True)
    outlet_id: Mapped[int] = mapped_column(
        ForeignKey("outlets.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    category: Mapped[str] = mapped_column(String(80), nullable=False, index=True)

    price_full: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    price_half: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    price_qtr: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)

    # Free-text labels such as "500 ml" or "Serves 2"
    quantity_full: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    quantity_half: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    quantity_qtr: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    serves_full: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    serves_half: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    serves_qtr: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    image_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    is_available: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    spice_level: Mapped[SpiceLevel] = mapped_column(
        SQLEnum(SpiceLevel), default=SpiceLevel.NONE, nullable=False
    )
    food_type: Mapped[FoodType] = mapped_column(
        SQLEnum(FoodType), default=FoodType.VEG, nullable=False
    )
    discount_percentage: Mapped[Optional[Decimal]] = mapped_column(Numeric(5, 2), nullable=True)

    inventory_links: Mapped[List["MenuItemInventoryLink"]] = relationship(
        "MenuItemInventoryLink",
        back_populates="menu_item",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def price_for(self, variant: Variant) -> Optional[Decimal]:
        """Listed price of ``variant``, or None when the variant is not offered."""
        return getattr(self, f"price_{Variant(variant).value}")


class MenuItemInventoryLink(Base):
    """Quantity of an inventory item consumed by one full portion."""

    __tablename__ = "menu_item_inventory_links"

    id: Mapped[int] = mapped_column(primary_key=True)
    menu_item_id: Mapped[int] = mapped_column(
        ForeignKey("menu_items.id", ondelete="CASCADE"), nullable=False, index=True
    )
    inventory_item_id: Mapped[int] = mapped_column(
        ForeignKey("inventory_items.id", ondelete="CASCADE"), nullable=False, index=True
    )
    qty: Mapped[Decimal] = mapped_column(Numeric(12, 3), nullable=False)

    menu_item: Mapped["MenuItem"] = relationship("MenuItem", back_populates="inventory_links")
