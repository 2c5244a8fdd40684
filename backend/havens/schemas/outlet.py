"""Outlet schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class OutletBase(BaseModel):
    """Base outlet schema."""

    name: str = Field(..., min_length=2, max_length=100)
    address: str = Field(..., min_length=5, max_length=500)
    contact: Optional[str] = Field(default=None, max_length=50)
    email: Optional[str] = Field(default=None, max_length=255)
    image_url: Optional[str] = Field(default=None, max_length=500)
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    delivery_radius_km: float = Field(default=5.0, gt=0, le=100)
    owner_email: Optional[str] = Field(default=None, max_length=255)
    is_active: bool = True


class OutletCreate(OutletBase):
    """Outlet creation schema."""

    pass


class OutletUpdate(BaseModel):
    """Outlet update schema."""

    name: Optional[str] = Field(default=None, min_length=2, max_length=100)
    address: Optional[str] = Field(default=None, min_length=5, max_length=500)
    contact: Optional[str] = None
    email: Optional[str] = None
    image_url: Optional[str] = None
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    delivery_radius_km: Optional[float] = Field(default=None, gt=0, le=100)
    owner_email: Optional[str] = None
    is_active: Optional[bool] = None


class OutletResponse(OutletBase):
    """Outlet response schema."""

    id: int
    rating: Decimal
    total_ratings: int
    created_at: datetime

    model_config = {"from_attributes": True}


class NearestOutletResponse(BaseModel):
    outlet: OutletResponse
    distance_km: float
