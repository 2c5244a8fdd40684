# Services module

from havens.services.accounts import AccountService
from havens.services.inventory import InventoryService
from havens.services.invoices import InvoiceService
from havens.services.orders import OrderService
from havens.services.reviews import ReviewService
from havens.services.stats import StatsService
from havens.services.store import DataStore

__all__ = [
    "AccountService",
    "DataStore",
    "InventoryService",
    "InvoiceService",
    "OrderService",
    "ReviewService",
    "StatsService",
]
