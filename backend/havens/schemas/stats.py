"""Dashboard schemas."""

from __future__ import annotations

from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel


class SeriesPointResponse(BaseModel):
    label: str
    value: Decimal

    model_config = {"from_attributes": True}


class DashboardResponse(BaseModel):
    outlet_id: Optional[int] = None
    year: int
    month: Optional[int] = None
    total_revenue: Decimal
    manual_revenue: Decimal
    active_orders: int
    low_stock: int
    delivered_today: int
    series: List[SeriesPointResponse]
