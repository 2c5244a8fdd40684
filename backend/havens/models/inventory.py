"""Inventory model."""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from sqlalchemy import ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, validates

from havens.db.base import Base, TimestampMixin


class InventoryItem(Base, TimestampMixin):
    """Raw stock held by an outlet."""

    __tablename__ = "inventory_items"

    id: Mapped[int] = mapped_column(primary_key=True)
    outlet_id: Mapped[int] = mapped_column(
        ForeignKey("outlets.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    stock: Mapped[Decimal] = mapped_column(Numeric(12, 3), default=Decimal("0"), nullable=False)
    min_stock: Mapped[Decimal] = mapped_column(Numeric(12, 3), default=Decimal("0"), nullable=False)
    unit: Mapped[str] = mapped_column(String(20), default="pcs", nullable=False)
    image_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    @validates("stock")
    def _clamp_stock(self, key, value):
        # Stock never goes negative, whatever path writes it
        value = Decimal(str(value)) if value is not None else Decimal("0")
        return max(Decimal("0"), value)

    @property
    def is_low(self) -> bool:
        return self.stock < self.min_stock
