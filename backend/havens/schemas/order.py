"""Order schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from havens.models.menu import Variant
from havens.models.order import OrderStatus, PaymentMethod
from havens.schemas.settings import InvoiceSettingsResponse


class CheckoutRequest(BaseModel):
    """Field-level rules (name, phone, address) are checked by the order service."""

    cart_id: str = Field(..., min_length=1, max_length=64)
    name: str = Field(..., max_length=100)
    phone: str = Field(..., max_length=20)
    address: str = Field(..., max_length=500)
    payment_method: PaymentMethod = PaymentMethod.COD
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)


class StatusUpdate(BaseModel):
    status: OrderStatus


class OrderLineResponse(BaseModel):
    menu_item_id: Optional[int] = None
    name: str
    variant: Variant
    unit_price: Decimal
    quantity: int

    model_config = {"from_attributes": True}


class StatusEventResponse(BaseModel):
    status: OrderStatus
    changed_at: datetime
    updated_by: str

    model_config = {"from_attributes": True}


class OrderResponse(BaseModel):
    id: int
    outlet_id: int
    customer_ref: str
    customer_name: str
    customer_phone: str
    address: str
    lines: List[OrderLineResponse]
    subtotal: Decimal
    tax: Decimal
    delivery_charge: Decimal
    total: Decimal
    distance_km: Optional[float] = None
    status: OrderStatus
    payment_method: PaymentMethod
    is_rated: bool
    created_at: datetime
    history: List[StatusEventResponse]

    model_config = {"from_attributes": True}


class CheckoutResponse(OrderResponse):
    """Returned once, at checkout: guests need the token to track the order."""

    tracking_token: str


class OrderActionsResponse(BaseModel):
    order_id: int
    status: OrderStatus
    allowed: List[OrderStatus]


class OrderInvoiceResponse(BaseModel):
    order: OrderResponse
    outlet_name: str
    outlet_address: str
    settings: InvoiceSettingsResponse
