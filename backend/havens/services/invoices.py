"""Manual (in-person) invoices entered by staff."""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional, Sequence

from havens.core.cache import CacheKeys
from havens.core.exceptions import NotFoundError, PermissionDenied, ValidationFailed
from havens.core.rbac import can_access_outlet, scoped_outlet_id
from havens.core.validators import is_valid_name, is_valid_phone
from havens.models.invoice import ManualInvoice, ManualInvoiceLine
from havens.models.menu import Variant
from havens.models.order import PaymentMethod
from havens.services.cart import Cart
from havens.services.pricing import PricingConfig, price_lines
from havens.services.store import DataStore

logger = logging.getLogger(__name__)


@dataclass
class InvoiceLineRequest:
    menu_item_id: int
    variant: Variant = Variant.FULL
    quantity: int = 1


class InvoiceService:
    def __init__(self, store: DataStore):
        self.store = store

    def list_invoices(self, user, outlet_id: Optional[int] = None) -> List[ManualInvoice]:
        return self.store.get_manual_invoices(scoped_outlet_id(user, outlet_id))

    def create(
        self,
        user,
        outlet_id: int,
        lines: Sequence[InvoiceLineRequest],
        customer_name: str,
        payment_method: PaymentMethod,
        customer_phone: Optional[str] = None,
        address: Optional[str] = None,
        delivery_charge: Optional[Decimal] = None,
    ) -> ManualInvoice:
        """Price ``lines`` with the cart rules and store the invoice.

        Delivery is free unless ``delivery_charge`` is given.
        """
        if not can_access_outlet(user, outlet_id):
            raise PermissionDenied("Not allowed to bill for this outlet")
        outlet = self.store.get_outlet(outlet_id)
        if outlet is None:
            raise NotFoundError("Outlet", outlet_id)

        errors = {}
        if not is_valid_name(customer_name):
            errors["customer_name"] = "Name must contain letters only"
        if customer_phone and not is_valid_phone(customer_phone):
            errors["customer_phone"] = "Invalid 10-digit number (starts with 6-9)"
        if not lines:
            errors["lines"] = "At least one item is required"
        if any(line.quantity < 1 for line in lines):
            errors["lines"] = "Quantities must be at least 1"
        if delivery_charge is not None and delivery_charge < 0:
            errors["delivery_charge"] = "Delivery charge cannot be negative"
        if errors:
            raise ValidationFailed(errors)

        cart = Cart(id=f"invoice-{outlet_id}")
        for request in lines:
            menu_item = self.store.get_menu_item(request.menu_item_id)
            if menu_item is None or menu_item.outlet_id != outlet_id:
                raise NotFoundError("Menu item", request.menu_item_id)
            cart.add_item(menu_item, request.variant)
            cart.update_quantity(menu_item.id, request.variant, request.quantity - 1)

        config = PricingConfig.from_settings(self.store.get_global_settings())
        breakdown = price_lines(
            cart.lines,
            config,
            delivery_charge=delivery_charge if delivery_charge is not None else Decimal("0"),
        )
        invoice = ManualInvoice(
            outlet_id=outlet_id,
            customer_name=customer_name.strip(),
            customer_phone=customer_phone,
            address=address,
            subtotal=breakdown.subtotal,
            tax=breakdown.tax,
            delivery_charge=breakdown.delivery_charge,
            total=breakdown.total,
            payment_method=PaymentMethod(payment_method),
            created_by=user.id,
            created_at=datetime.now(timezone.utc),
        )
        invoice.lines = [
            ManualInvoiceLine(
                menu_item_id=line.menu_item_id,
                name=line.name,
                variant=line.variant,
                unit_price=line.unit_price,
                quantity=line.quantity,
            )
            for line in cart.lines
        ]
        self.store.save_manual_invoice(invoice)
        self.store.commit(CacheKeys.INVOICES)
        logger.info(f"Manual invoice {invoice.id} by {user.email} at outlet {outlet_id}: total {invoice.total}")
        return invoice
