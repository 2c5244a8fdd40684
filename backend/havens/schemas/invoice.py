"""Manual invoice schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from havens.models.menu import Variant
from havens.models.order import PaymentMethod


class ManualInvoiceLineCreate(BaseModel):
    menu_item_id: int = Field(..., gt=0)
    variant: Variant = Variant.FULL
    quantity: int = Field(default=1, ge=1, le=1000)


class ManualInvoiceCreate(BaseModel):
    outlet_id: int = Field(..., gt=0)
    customer_name: str = Field(..., max_length=100)
    customer_phone: Optional[str] = Field(default=None, max_length=20)
    address: Optional[str] = Field(default=None, max_length=500)
    payment_method: PaymentMethod = PaymentMethod.CASH
    delivery_charge: Optional[Decimal] = Field(default=None, ge=0)
    lines: List[ManualInvoiceLineCreate] = Field(..., min_length=1)


class ManualInvoiceLineResponse(BaseModel):
    menu_item_id: Optional[int] = None
    name: str
    variant: Variant
    unit_price: Decimal
    quantity: int

    model_config = {"from_attributes": True}


class ManualInvoiceResponse(BaseModel):
    id: int
    outlet_id: int
    customer_name: str
    customer_phone: Optional[str] = None
    address: Optional[str] = None
    lines: List[ManualInvoiceLineResponse]
    subtotal: Decimal
    tax: Decimal
    delivery_charge: Decimal
    total: Decimal
    payment_method: PaymentMethod
    created_by: Optional[int] = None
    created_at: datetime

    model_config = {"from_attributes": True}
