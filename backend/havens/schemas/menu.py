"""Menu schemas."""

from __future__ import annotations

from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, computed_field

from havens.models.menu import FoodType, SpiceLevel
from havens.services.pricing import discounted_price


class InventoryLinkSchema(BaseModel):
    """Quantity of an inventory item consumed by one full portion."""

    inventory_item_id: int
    qty: Decimal = Field(..., gt=0)

    model_config = {"from_attributes": True}


class MenuItemBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    description: Optional[str] = None
    category: str = Field(..., min_length=1, max_length=80)
    price_full: Decimal = Field(..., ge=0)
    price_half: Optional[Decimal] = Field(default=None, ge=0)
    price_qtr: Optional[Decimal] = Field(default=None, ge=0)
    quantity_full: Optional[str] = None
    quantity_half: Optional[str] = None
    quantity_qtr: Optional[str] = None
    serves_full: Optional[str] = None
    serves_half: Optional[str] = None
    serves_qtr: Optional[str] = None
    image_url: Optional[str] = None
    is_available: bool = True
    spice_level: SpiceLevel = SpiceLevel.NONE
    food_type: FoodType = FoodType.VEG
    discount_percentage: Optional[Decimal] = Field(default=None, ge=0, le=100)


class MenuItemCreate(MenuItemBase):
    outlet_id: int = Field(..., gt=0)
    inventory_links: List[InventoryLinkSchema] = []


class MenuItemUpdate(BaseModel):
    """All fields optional; ``inventory_links`` replaces the whole list when given."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    description: Optional[str] = None
    category: Optional[str] = Field(default=None, min_length=1, max_length=80)
    price_full: Optional[Decimal] = Field(default=None, ge=0)
    price_half: Optional[Decimal] = Field(default=None, ge=0)
    price_qtr: Optional[Decimal] = Field(default=None, ge=0)
    quantity_full: Optional[str] = None
    quantity_half: Optional[str] = None
    quantity_qtr: Optional[str] = None
    serves_full: Optional[str] = None
    serves_half: Optional[str] = None
    serves_qtr: Optional[str] = None
    image_url: Optional[str] = None
    is_available: Optional[bool] = None
    spice_level: Optional[SpiceLevel] = None
    food_type: Optional[FoodType] = None
    discount_percentage: Optional[Decimal] = Field(default=None, ge=0, le=100)
    inventory_links: Optional[List[InventoryLinkSchema]] = None


class MenuItemResponse(MenuItemBase):
    id: int
    outlet_id: int
    inventory_links: List[InventoryLinkSchema] = []

    model_config = {"from_attributes": True}

    @computed_field
    @property
    def display_price(self) -> Decimal:
        """Full-portion price after discount, as shown when browsing."""
        return discounted_price(self.price_full, self.discount_percentage)
