"""Manual invoice routes."""

from typing import List, Optional

from fastapi import APIRouter, Query, Request, status

from havens.core.rate_limit import limiter
from havens.core.rbac import CanManageOrders
from havens.schemas.invoice import ManualInvoiceCreate, ManualInvoiceResponse
from havens.services.invoices import InvoiceLineRequest, InvoiceService
from havens.services.store import Store

router = APIRouter()


@router.get("/", response_model=List[ManualInvoiceResponse])
def list_invoices(
    store: Store,
    current_user: CanManageOrders,
    outlet_id: Optional[int] = Query(default=None, gt=0),
):
    return InvoiceService(store).list_invoices(current_user, outlet_id)


@router.post("/", response_model=ManualInvoiceResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("60/minute")
def create_invoice(request: Request, body: ManualInvoiceCreate, store: Store, current_user: CanManageOrders):
    """Bill an in-person sale. Not tracked through the order status flow."""
    return InvoiceService(store).create(
        current_user,
        outlet_id=body.outlet_id,
        lines=[
            InvoiceLineRequest(menu_item_id=line.menu_item_id, variant=line.variant, quantity=line.quantity)
            for line in body.lines
        ],
        customer_name=body.customer_name,
        payment_method=body.payment_method,
        customer_phone=body.customer_phone,
        address=body.address,
        delivery_charge=body.delivery_charge,
    )
