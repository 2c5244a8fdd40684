"""Role-Based Access Control (RBAC) utilities.

Staff and customer accounts share one table and are partitioned by role.
Staff capabilities are further gated by six independent permission flags;
SUPER_ADMIN implicitly holds every permission.
"""

import logging
from enum import Enum
from typing import Annotated, Any, Dict, Optional

from fastapi import Depends, HTTPException, Request, status

from havens.core.exceptions import PermissionDenied
from havens.core.security import decode_access_token
from havens.db.session import get_db

logger = logging.getLogger(__name__)


class UserRole(str, Enum):
    """User roles for RBAC."""

    SUPER_ADMIN = "SUPER_ADMIN"
    OUTLET_OWNER = "OUTLET_OWNER"
    MANAGER = "MANAGER"
    DELIVERY = "OUT_FOR_DELIVERY"
    CUSTOMER = "CUSTOMER"


STAFF_ROLES = frozenset({
    UserRole.SUPER_ADMIN,
    UserRole.OUTLET_OWNER,
    UserRole.MANAGER,
    UserRole.DELIVERY,
})


class StaffPermission(str, Enum):
    """Per-account permission flags gating back-office screens."""

    MANAGE_MENU = "manage_menu"
    MANAGE_INVENTORY = "manage_inventory"
    VIEW_STATS = "view_stats"
    MANAGE_ORDERS = "manage_orders"
    MANAGE_OUTLETS = "manage_outlets"
    MANAGE_MANAGERS = "manage_managers"


DEFAULT_PERMISSIONS: Dict[UserRole, frozenset] = {
    UserRole.SUPER_ADMIN: frozenset(StaffPermission),
    UserRole.OUTLET_OWNER: frozenset(StaffPermission) - {StaffPermission.MANAGE_OUTLETS},
    UserRole.MANAGER: frozenset({
        StaffPermission.MANAGE_MENU,
        StaffPermission.MANAGE_INVENTORY,
        StaffPermission.MANAGE_ORDERS,
        StaffPermission.VIEW_STATS,
    }),
    UserRole.DELIVERY: frozenset({StaffPermission.MANAGE_ORDERS}),
    UserRole.CUSTOMER: frozenset(),
}


def default_permissions(role: UserRole) -> Dict[str, bool]:
    """Permission flags given to a new account of ``role``."""
    granted = DEFAULT_PERMISSIONS.get(role, frozenset())
    return {perm.value: perm in granted for perm in StaffPermission}


def _token_from_request(request: Request) -> Optional[dict]:
    """Decode the Bearer header, falling back to the access_token cookie."""
    payload = None

    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        token = auth_header.split(" ", 1)[1]
        if token:
            payload = decode_access_token(token)

    if payload is None:
        cookie_token = request.cookies.get("access_token")
        if cookie_token:
            payload = decode_access_token(cookie_token)

    return payload


def _load_user(payload: dict, db):
    from havens.models.user import User

    user_id = payload.get("sub")
    if user_id is None:
        return None
    try:
        user = db.get(User, int(user_id))
    except ValueError:
        return None
    if user is None or not user.is_active:
        return None
    return user


def get_current_user(request: Request, db=Depends(get_db)):
    """Get the current authenticated user from the JWT token.

    The account is re-loaded on every request so that deactivated or
    deleted accounts are refused even while their token is still valid.
    """
    payload = _token_from_request(request)
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = _load_user(payload, db)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User account is disabled",
        )
    return user


def get_optional_current_user(request: Request, db=Depends(get_db)):
    """Get the current user if a valid token is provided, otherwise None."""
    payload = _token_from_request(request)
    if payload is None:
        return None
    return _load_user(payload, db)


def has_permission(user, permission: StaffPermission) -> bool:
    """True when ``user`` holds ``permission`` (SUPER_ADMIN holds all)."""
    if user is None:
        return False
    if user.role == UserRole.SUPER_ADMIN:
        return True
    if user.role not in STAFF_ROLES:
        return False
    return bool(getattr(user, permission.value, False))


def can_access_outlet(user, outlet_id: Optional[int]) -> bool:
    """Staff scoped to one outlet may only act on that outlet."""
    if user.role == UserRole.SUPER_ADMIN or user.outlet_id is None:
        return True
    return outlet_id == user.outlet_id


def scoped_outlet_id(user, outlet_id: Optional[int]) -> Optional[int]:
    """Outlet filter for a listing. Staff scoped to one outlet only ever see theirs."""
    if user.role == UserRole.SUPER_ADMIN or user.outlet_id is None:
        return outlet_id
    if outlet_id is not None and outlet_id != user.outlet_id:
        raise PermissionDenied("Not allowed to view data of this outlet")
    return user.outlet_id


def require_roles(*roles: UserRole):
    """Dependency to require one of ``roles``."""

    def role_checker(current_user=Depends(get_current_user)):
        if current_user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient role",
            )
        return current_user

    return role_checker


def require_permission(permission: StaffPermission):
    """Dependency to require a staff permission flag."""

    def permission_checker(current_user=Depends(get_current_user)):
        if not has_permission(current_user, permission):
            logger.warning(
                f"Permission {permission.value} denied for user {current_user.id} "
                f"({current_user.role.value})"
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Requires permission {permission.value}",
            )
        return current_user

    return permission_checker


CurrentUser = Annotated[Any, Depends(get_current_user)]
OptionalCurrentUser = Annotated[Optional[Any], Depends(get_optional_current_user)]
RequireSuperAdmin = Annotated[Any, Depends(require_roles(UserRole.SUPER_ADMIN))]
RequireCustomer = Annotated[Any, Depends(require_roles(UserRole.CUSTOMER))]
CanManageMenu = Annotated[Any, Depends(require_permission(StaffPermission.MANAGE_MENU))]
CanManageInventory = Annotated[Any, Depends(require_permission(StaffPermission.MANAGE_INVENTORY))]
CanViewStats = Annotated[Any, Depends(require_permission(StaffPermission.VIEW_STATS))]
CanManageOrders = Annotated[Any, Depends(require_permission(StaffPermission.MANAGE_ORDERS))]
CanManageOutlets = Annotated[Any, Depends(require_permission(StaffPermission.MANAGE_OUTLETS))]
CanManageManagers = Annotated[Any, Depends(require_permission(StaffPermission.MANAGE_MANAGERS))]
