"""Global pricing and invoice branding settings."""

from __future__ import annotations

from decimal import Decimal
from typing import List, Optional

from sqlalchemy import Boolean, ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from havens.db.base import Base, TimestampMixin

GLOBAL_SETTINGS_ID = 1


class GlobalSettings(Base, TimestampMixin):
    """Single process-wide record (row id 1) read by the pricing calculator."""

    __tablename__ = "global_settings"

    id: Mapped[int] = mapped_column(primary_key=True)
    gst_percentage: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    delivery_base_charge: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    delivery_charge_per_km: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    free_delivery_threshold: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    free_delivery_distance_limit: Mapped[Decimal] = mapped_column(Numeric(6, 2), nullable=False)

    # Invoice branding
    brand_name: Mapped[str] = mapped_column(String(100), nullable=False)
    logo_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    tagline: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    brand_address: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    brand_contact: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    show_tagline: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    show_notice: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    primary_color: Mapped[str] = mapped_column(String(20), default="#C0392B", nullable=False)

    delivery_tiers: Mapped[List["DeliveryTier"]] = relationship(
        "DeliveryTier",
        back_populates="settings",
        cascade="all, delete-orphan",
        order_by="DeliveryTier.up_to_km",
        lazy="selectin",
    )


class DeliveryTier(Base):
    """Flat delivery charge for distances up to ``up_to_km``."""

    __tablename__ = "delivery_tiers"

    id: Mapped[int] = mapped_column(primary_key=True)
    settings_id: Mapped[int] = mapped_column(
        ForeignKey("global_settings.id", ondelete="CASCADE"), nullable=False, index=True
    )
    up_to_km: Mapped[Decimal] = mapped_column(Numeric(6, 2), nullable=False)
    charge: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    settings: Mapped["GlobalSettings"] = relationship("GlobalSettings", back_populates="delivery_tiers")
