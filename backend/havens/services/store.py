"""Data access shim over the SQLAlchemy session.

Every read and write the services perform goes through ``DataStore`` so the
query shapes live in one place. Writers stage changes with the ``save_*`` /
``delete_*`` methods and finish with ``commit(*topics)``: the transaction is
committed first and only then are the topics published to the change
notifier, so cached listings never observe a write that later rolls back.
"""

import logging
from decimal import Decimal
from typing import Annotated, List, Optional

from fastapi import Depends
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from havens.core.cache import notifier
from havens.core.config import settings
from havens.core.rbac import STAFF_ROLES, UserRole
from havens.db.session import get_db
from havens.models.inventory import InventoryItem
from havens.models.invoice import ManualInvoice
from havens.models.menu import MenuItem
from havens.models.order import Order, OrderStatus
from havens.models.outlet import Outlet
from havens.models.review import Review
from havens.models.settings import GLOBAL_SETTINGS_ID, DeliveryTier, GlobalSettings
from havens.models.user import User

logger = logging.getLogger(__name__)


class DataStore:
    """Repository for every persisted entity."""

    def __init__(self, db: Session):
        self.db = db

    # ------------------------------------------------------------------
    # Outlets
    # ------------------------------------------------------------------

    def get_outlets(self, include_inactive: bool = False) -> List[Outlet]:
        query = select(Outlet).where(Outlet.not_deleted())
        if not include_inactive:
            query = query.where(Outlet.is_active.is_(True))
        return list(self.db.scalars(query.order_by(Outlet.id)))

    def get_outlet(self, outlet_id: int, include_deleted: bool = False) -> Optional[Outlet]:
        outlet = self.db.get(Outlet, outlet_id)
        if outlet is None or (outlet.is_deleted and not include_deleted):
            return None
        return outlet

    def save_outlet(self, outlet: Outlet) -> Outlet:
        self.db.add(outlet)
        self.db.flush()
        return outlet

    def delete_outlet(self, outlet: Outlet) -> None:
        # Orders and invoices keep pointing at the row
        outlet.soft_delete()
        outlet.is_active = False

    # ------------------------------------------------------------------
    # Menu
    # ------------------------------------------------------------------

    def get_menu(
        self,
        outlet_id: Optional[int] = None,
        available_only: bool = False,
        open_outlets_only: bool = False,
    ) -> List[MenuItem]:
        query = select(MenuItem)
        if outlet_id is not None:
            query = query.where(MenuItem.outlet_id == outlet_id)
        if available_only:
            query = query.where(MenuItem.is_available.is_(True))
        if open_outlets_only:
            query = query.join(Outlet, MenuItem.outlet_id == Outlet.id).where(
                Outlet.not_deleted(), Outlet.is_active.is_(True)
            )
        return list(self.db.scalars(query.order_by(MenuItem.category, MenuItem.name, MenuItem.id)))

    def get_menu_item(self, item_id: int) -> Optional[MenuItem]:
        return self.db.get(MenuItem, item_id)

    def get_orderable_menu_item(self, item_id: int) -> Optional[MenuItem]:
        """The item only while its outlet is open for orders."""
        item = self.db.get(MenuItem, item_id)
        if item is None:
            return None
        outlet = self.get_outlet(item.outlet_id)
        if outlet is None or not outlet.is_active:
            return None
        return item

    def save_menu_item(self, item: MenuItem) -> MenuItem:
        self.db.add(item)
        self.db.flush()
        return item

    def delete_menu_item(self, item: MenuItem) -> None:
        self.db.delete(item)

    # ------------------------------------------------------------------
    # Inventory
    # ------------------------------------------------------------------

    def get_inventory(self, outlet_id: Optional[int] = None) -> List[InventoryItem]:
        query = select(InventoryItem)
        if outlet_id is not None:
            query = query.where(InventoryItem.outlet_id == outlet_id)
        return list(self.db.scalars(query.order_by(InventoryItem.name, InventoryItem.id)))

    def get_inventory_item(self, item_id: int) -> Optional[InventoryItem]:
        return self.db.get(InventoryItem, item_id)

    def save_inventory_item(self, item: InventoryItem) -> InventoryItem:
        self.db.add(item)
        self.db.flush()
        return item

    def delete_inventory_item(self, item: InventoryItem) -> None:
        self.db.delete(item)

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

    def get_orders(
        self,
        user_id: Optional[int] = None,
        outlet_id: Optional[int] = None,
        status: Optional[OrderStatus] = None,
    ) -> List[Order]:
        """Orders newest first."""
        query = select(Order)
        if user_id is not None:
            query = query.where(Order.user_id == user_id)
        if outlet_id is not None:
            query = query.where(Order.outlet_id == outlet_id)
        if status is not None:
            query = query.where(Order.status == status)
        return list(self.db.scalars(query.order_by(Order.created_at.desc(), Order.id.desc())))

    def get_order(self, order_id: int) -> Optional[Order]:
        return self.db.get(Order, order_id)

    def save_order(self, order: Order) -> Order:
        self.db.add(order)
        self.db.flush()
        return order

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def get_staff_users(self, outlet_id: Optional[int] = None) -> List[User]:
        query = select(User).where(User.role.in_(list(STAFF_ROLES)))
        if outlet_id is not None:
            query = query.where(User.outlet_id == outlet_id)
        return list(self.db.scalars(query.order_by(User.id)))

    def get_customers(self) -> List[User]:
        query = select(User).where(User.role == UserRole.CUSTOMER).order_by(User.id)
        return list(self.db.scalars(query))

    def get_user(self, user_id: int) -> Optional[User]:
        return self.db.get(User, user_id)

    def get_user_by_email(self, email: str) -> Optional[User]:
        return self.db.scalar(select(User).where(User.email == email.strip().lower()))

    def save_user(self, user: User) -> User:
        self.db.add(user)
        self.db.flush()
        return user

    def delete_user(self, user: User) -> None:
        self.db.delete(user)

    # ------------------------------------------------------------------
    # Global settings
    # ------------------------------------------------------------------

    def get_global_settings(self) -> GlobalSettings:
        """The single settings record, created from configured defaults on first read."""
        record = self.db.get(GlobalSettings, GLOBAL_SETTINGS_ID)
        if record is not None:
            return record

        record = GlobalSettings(
            id=GLOBAL_SETTINGS_ID,
            gst_percentage=Decimal(str(settings.default_gst_percentage)),
            delivery_base_charge=Decimal(str(settings.default_delivery_base_charge)),
            delivery_charge_per_km=Decimal(str(settings.default_delivery_charge_per_km)),
            free_delivery_threshold=Decimal(str(settings.default_free_delivery_threshold)),
            free_delivery_distance_limit=Decimal(str(settings.default_free_delivery_distance_limit)),
            brand_name=settings.default_brand_name,
            tagline=settings.default_brand_tagline,
            brand_address=settings.default_brand_address,
            brand_contact=settings.default_brand_contact,
            primary_color=settings.default_brand_color,
            show_tagline=True,
            show_notice=True,
        )
        record.delivery_tiers = [
            DeliveryTier(up_to_km=Decimal(str(up_to)), charge=Decimal(str(charge)))
            for up_to, charge in settings.default_delivery_tiers
        ]
        # Flushed only: the caller's transaction decides whether it persists
        self.db.add(record)
        self.db.flush()
        logger.info("Seeded default global settings record")
        return record

    def save_global_settings(self, record: GlobalSettings) -> GlobalSettings:
        self.db.add(record)
        self.db.flush()
        return record

    # ------------------------------------------------------------------
    # Manual invoices and reviews
    # ------------------------------------------------------------------

    def get_manual_invoices(self, outlet_id: Optional[int] = None) -> List[ManualInvoice]:
        query = select(ManualInvoice)
        if outlet_id is not None:
            query = query.where(ManualInvoice.outlet_id == outlet_id)
        return list(self.db.scalars(query.order_by(ManualInvoice.created_at.desc(), ManualInvoice.id.desc())))

    def save_manual_invoice(self, invoice: ManualInvoice) -> ManualInvoice:
        self.db.add(invoice)
        self.db.flush()
        return invoice

    def get_reviews(self, outlet_id: Optional[int] = None) -> List[Review]:
        query = select(Review)
        if outlet_id is not None:
            query = query.where(Review.outlet_id == outlet_id)
        return list(self.db.scalars(query.order_by(Review.id.desc())))

    def get_review_for_order(self, order_id: int) -> Optional[Review]:
        return self.db.scalar(select(Review).where(Review.order_id == order_id))

    def save_review(self, review: Review) -> Review:
        self.db.add(review)
        self.db.flush()
        return review

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    def commit(self, *topics: str) -> None:
        """Commit the unit of work, then notify subscribers of each topic."""
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Commit failed; transaction rolled back")
            raise
        for topic in topics:
            notifier.publish(topic)

    def rollback(self) -> None:
        self.db.rollback()


def get_store(db: Session = Depends(get_db)) -> DataStore:
    return DataStore(db)


# Type alias for dependency injection
Store = Annotated[DataStore, Depends(get_store)]
