"""User and staff schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Dict, Optional

from pydantic import BaseModel, Field

from havens.core.rbac import UserRole


class StaffPermissionsSchema(BaseModel):
    manage_menu: bool = False
    manage_inventory: bool = False
    view_stats: bool = False
    manage_orders: bool = False
    manage_outlets: bool = False
    manage_managers: bool = False


class UserResponse(BaseModel):
    """Account as returned by the API. The password hash is never included."""

    id: int
    email: str
    name: str
    phone: Optional[str] = None
    address: Optional[str] = None
    role: UserRole
    outlet_id: Optional[int] = None
    is_active: bool
    permissions: Dict[str, bool]
    created_at: datetime

    model_config = {"from_attributes": True}


class StaffCreate(BaseModel):
    email: str = Field(..., max_length=255)
    password: str = Field(..., max_length=128)
    name: str = Field(..., min_length=2, max_length=100)
    role: UserRole
    outlet_id: Optional[int] = Field(default=None, gt=0)
    phone: Optional[str] = Field(default=None, max_length=20)
    permissions: Optional[StaffPermissionsSchema] = None


class StaffUpdate(BaseModel):
    email: Optional[str] = Field(default=None, max_length=255)
    password: Optional[str] = Field(default=None, max_length=128)
    name: Optional[str] = Field(default=None, min_length=2, max_length=100)
    role: Optional[UserRole] = None
    outlet_id: Optional[int] = Field(default=None, gt=0)
    phone: Optional[str] = Field(default=None, max_length=20)
    is_active: Optional[bool] = None
    permissions: Optional[StaffPermissionsSchema] = None
