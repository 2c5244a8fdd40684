"""Cart session schemas."""

from __future__ import annotations

from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from havens.models.menu import Variant


class CartItemAdd(BaseModel):
    menu_item_id: int = Field(..., gt=0)
    variant: Variant = Variant.FULL


class CartItemUpdate(BaseModel):
    menu_item_id: int = Field(..., gt=0)
    variant: Variant = Variant.FULL
    delta: int = Field(..., ge=-1000, le=1000)


class CartLineResponse(BaseModel):
    menu_item_id: int
    name: str
    variant: Variant
    unit_price: Decimal
    quantity: int
    line_total: Decimal

    model_config = {"from_attributes": True}


class CartResponse(BaseModel):
    id: str
    outlet_id: Optional[int] = None
    lines: List[CartLineResponse] = []
    subtotal: Decimal


class QuoteResponse(BaseModel):
    subtotal: Decimal
    tax: Decimal
    delivery_charge: Decimal
    total: Decimal
    distance_km: Optional[float] = None
    delivery_pending: bool
