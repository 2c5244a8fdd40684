"""Inventory schemas."""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, model_validator


class InventoryItemCreate(BaseModel):
    outlet_id: int = Field(..., gt=0)
    name: str = Field(..., min_length=1, max_length=120)
    stock: Decimal = Field(default=Decimal("0"), ge=0)
    min_stock: Decimal = Field(default=Decimal("0"), ge=0)
    unit: str = Field(default="pcs", max_length=20)
    image_url: Optional[str] = None


class InventoryItemUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    stock: Optional[Decimal] = Field(default=None, ge=0)
    min_stock: Optional[Decimal] = Field(default=None, ge=0)
    unit: Optional[str] = Field(default=None, max_length=20)
    image_url: Optional[str] = None


class StockAdjustment(BaseModel):
    """Either move stock by ``delta`` or set it to ``stock``."""

    delta: Optional[Decimal] = None
    stock: Optional[Decimal] = Field(default=None, ge=0)

    @model_validator(mode="after")
    def exactly_one(self):
        if (self.delta is None) == (self.stock is None):
            raise ValueError("Provide exactly one of delta or stock")
        return self


class InventoryItemResponse(BaseModel):
    id: int
    outlet_id: int
    name: str
    stock: Decimal
    min_stock: Decimal
    unit: str
    image_url: Optional[str] = None
    is_low: bool

    model_config = {"from_attributes": True}
