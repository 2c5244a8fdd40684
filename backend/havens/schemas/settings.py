"""Global settings schemas."""

from __future__ import annotations

from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class DeliveryTierSchema(BaseModel):
    up_to_km: Decimal = Field(..., gt=0)
    charge: Decimal = Field(..., ge=0)

    model_config = {"from_attributes": True}


class InvoiceSettingsResponse(BaseModel):
    """Branding printed on invoices."""

    brand_name: str
    logo_url: Optional[str] = None
    tagline: Optional[str] = None
    brand_address: Optional[str] = None
    brand_contact: Optional[str] = None
    show_tagline: bool
    show_notice: bool
    primary_color: str

    model_config = {"from_attributes": True}


class GlobalSettingsResponse(InvoiceSettingsResponse):
    gst_percentage: Decimal
    delivery_base_charge: Decimal
    delivery_charge_per_km: Decimal
    free_delivery_threshold: Decimal
    free_delivery_distance_limit: Decimal
    delivery_tiers: List[DeliveryTierSchema]


class GlobalSettingsUpdate(BaseModel):
    """Partial update; ``delivery_tiers`` replaces the whole tier list when given."""

    gst_percentage: Optional[Decimal] = Field(default=None, ge=0, le=100)
    delivery_base_charge: Optional[Decimal] = Field(default=None, ge=0)
    delivery_charge_per_km: Optional[Decimal] = Field(default=None, ge=0)
    free_delivery_threshold: Optional[Decimal] = Field(default=None, ge=0)
    free_delivery_distance_limit: Optional[Decimal] = Field(default=None, ge=0)
    delivery_tiers: Optional[List[DeliveryTierSchema]] = None
    brand_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    logo_url: Optional[str] = None
    tagline: Optional[str] = None
    brand_address: Optional[str] = None
    brand_contact: Optional[str] = None
    show_tagline: Optional[bool] = None
    show_notice: Optional[bool] = None
    primary_color: Optional[str] = Field(default=None, pattern=r"^#[0-9A-Fa-f]{6}$")

    @field_validator("delivery_tiers")
    @classmethod
    def distinct_distances(cls, v):
        if v is not None:
            distances = [tier.up_to_km for tier in v]
            if len(distances) != len(set(distances)):
                raise ValueError("Delivery tiers must have distinct up_to_km values")
        return v
