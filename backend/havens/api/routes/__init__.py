"""API routes."""

from fastapi import APIRouter

from havens.api.routes import (
    auth, cart, enquiries, inventory, invoices, menu, orders, outlets,
    settings, staff, stats,
)

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(outlets.router, prefix="/outlets", tags=["outlets"])
api_router.include_router(menu.router, prefix="/menu", tags=["menu"])
api_router.include_router(inventory.router, prefix="/inventory", tags=["inventory"])
api_router.include_router(cart.router, prefix="/cart", tags=["cart"])
api_router.include_router(orders.router, prefix="/orders", tags=["orders"])
api_router.include_router(invoices.router, prefix="/invoices", tags=["invoices"])
api_router.include_router(settings.router, prefix="/settings", tags=["settings"])
api_router.include_router(staff.router, prefix="/staff", tags=["staff"])
api_router.include_router(stats.router, prefix="/stats", tags=["stats"])
api_router.include_router(enquiries.router, prefix="/enquiries", tags=["enquiries"])
