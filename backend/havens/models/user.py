"""User model."""

from __future__ import annotations

from typing import Dict, Optional

from sqlalchemy import Boolean, Enum, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from havens.core.rbac import StaffPermission, UserRole
from havens.db.base import Base, TimestampMixin


class User(Base, TimestampMixin):
    """Staff or customer account.

    ``outlet_id`` scopes a staff account to one outlet; NULL means all
    outlets. The permission columns are meaningless for customers.
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole),
        default=UserRole.CUSTOMER,
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    address: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    outlet_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("outlets.id", ondelete="SET NULL"), nullable=True, index=True
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    manage_menu: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    manage_inventory: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    view_stats: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    manage_orders: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    manage_outlets: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    manage_managers: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    @property
    def permissions(self) -> Dict[str, bool]:
        return {perm.value: bool(getattr(self, perm.value)) for perm in StaffPermission}

    def set_permissions(self, flags: Dict[str, bool]) -> None:
        for perm in StaffPermission:
            if perm.value in flags:
                setattr(self, perm.value, bool(flags[perm.value]))
