"""Contact and reservation enquiry schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class EnquiryCreate(BaseModel):
    first_name: str = Field(..., max_length=30)
    last_name: str = Field(..., max_length=30)
    phone: str = Field(..., max_length=20)
    subject: str = Field(default="Table Reservation", max_length=50)
    message: str = Field(..., max_length=2000)
    party_size: Optional[int] = None
    date_time: Optional[datetime] = None
    outlet_id: Optional[int] = None


class EnquiryAccepted(BaseModel):
    status: str = "received"
    subject: str
