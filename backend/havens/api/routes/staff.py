"""Staff account management routes."""

from typing import List, Optional

from fastapi import APIRouter, Query, Request, status

from havens.core.rate_limit import limiter
from havens.core.rbac import CanManageManagers, scoped_outlet_id
from havens.core.validators import PositiveIntId
from havens.schemas.user import StaffCreate, StaffUpdate, UserResponse
from havens.services.accounts import AccountService
from havens.services.store import Store

router = APIRouter()


@router.get("/", response_model=List[UserResponse])
def list_staff(
    store: Store,
    current_user: CanManageManagers,
    outlet_id: Optional[int] = Query(default=None, gt=0),
):
    return store.get_staff_users(scoped_outlet_id(current_user, outlet_id))


@router.get("/customers", response_model=List[UserResponse])
def list_customers(store: Store, current_user: CanManageManagers):
    return store.get_customers()


@router.get("/{staff_id}", response_model=UserResponse)
def get_staff(staff_id: PositiveIntId, store: Store, current_user: CanManageManagers):
    return AccountService(store).get_staff(staff_id)


@router.post("/", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
def create_staff(request: Request, body: StaffCreate, store: Store, current_user: CanManageManagers):
    """Create a staff account. Permissions default from the role unless given."""
    return AccountService(store).create_staff(
        current_user,
        email=body.email,
        password=body.password,
        name=body.name,
        role=body.role,
        outlet_id=body.outlet_id,
        phone=body.phone,
        permissions=body.permissions.model_dump() if body.permissions else None,
    )


@router.put("/{staff_id}", response_model=UserResponse)
@limiter.limit("30/minute")
def update_staff(
    request: Request,
    staff_id: PositiveIntId,
    body: StaffUpdate,
    store: Store,
    current_user: CanManageManagers,
):
    changes = body.model_dump(exclude_unset=True)
    return AccountService(store).update_staff(current_user, staff_id, changes)


@router.delete("/{staff_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("30/minute")
def delete_staff(request: Request, staff_id: PositiveIntId, store: Store, current_user: CanManageManagers):
    AccountService(store).delete_staff(current_user, staff_id)
