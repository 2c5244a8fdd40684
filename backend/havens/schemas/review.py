"""Review schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class ReviewCreate(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(default=None, max_length=1000)


class ReviewResponse(BaseModel):
    id: int
    outlet_id: int
    order_id: int
    rating: int
    comment: Optional[str] = None
    customer_name: str
    created_at: datetime

    model_config = {"from_attributes": True}
