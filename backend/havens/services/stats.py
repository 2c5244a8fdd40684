"""Dashboard figures and the delivered-sales export."""

import calendar
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import List, Optional

from havens.core.exceptions import ValidationFailed
from havens.models.order import Order, OrderStatus
from havens.services.order_state import is_terminal
from havens.services.pricing import ZERO, round2
from havens.services.store import DataStore

MONTH_LABELS = [calendar.month_abbr[i] for i in range(1, 13)]

SALES_EXPORT_HEADERS = ["Order ID", "Date", "Outlet", "Customer", "Items", "Total", "Payment"]


@dataclass
class SeriesPoint:
    label: str
    value: Decimal


@dataclass
class DashboardStats:
    total_revenue: Decimal
    manual_revenue: Decimal
    active_orders: int
    low_stock: int
    delivered_today: int
    series: List[SeriesPoint] = field(default_factory=list)


def _as_utc(moment: datetime) -> datetime:
    # SQLite hands back naive datetimes; they were written as UTC
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def delivered_at(order: Order) -> datetime:
    """When the order reached DELIVERED, from its history."""
    for event in reversed(order.history):
        if event.status == OrderStatus.DELIVERED:
            return _as_utc(event.changed_at)
    return _as_utc(order.created_at)


def _in_period(moment: datetime, year: int, month: Optional[int]) -> bool:
    moment = _as_utc(moment)
    return moment.year == year and (month is None or moment.month == month)


def _check_period(year: int, month: Optional[int]) -> None:
    errors = {}
    if not 2000 <= year <= 2100:
        errors["year"] = "Year out of range"
    if month is not None and not 1 <= month <= 12:
        errors["month"] = "Month must be 1-12"
    if errors:
        raise ValidationFailed(errors)


def revenue_series(delivered: List[Order], year: int, month: Optional[int]) -> List[SeriesPoint]:
    """Revenue per month of ``year``, or per day when ``month`` is given."""
    if month is None:
        buckets = {m: ZERO for m in range(1, 13)}
        for order in delivered:
            created = _as_utc(order.created_at)
            if created.year == year:
                buckets[created.month] += order.total
        return [SeriesPoint(MONTH_LABELS[m - 1], round2(v)) for m, v in buckets.items()]

    days = calendar.monthrange(year, month)[1]
    buckets = {d: ZERO for d in range(1, days + 1)}
    for order in delivered:
        created = _as_utc(order.created_at)
        if created.year == year and created.month == month:
            buckets[created.day] += order.total
    return [SeriesPoint(str(d), round2(v)) for d, v in buckets.items()]


class StatsService:
    def __init__(self, store: DataStore):
        self.store = store

    def dashboard(
        self,
        outlet_id: Optional[int],
        year: int,
        month: Optional[int] = None,
        today: Optional[date] = None,
    ) -> DashboardStats:
        _check_period(year, month)
        today = today or datetime.now(timezone.utc).date()

        orders = self.store.get_orders(outlet_id=outlet_id)
        delivered = [o for o in orders if o.status == OrderStatus.DELIVERED]
        in_period = [o for o in delivered if _in_period(o.created_at, year, month)]
        invoices = [
            inv for inv in self.store.get_manual_invoices(outlet_id)
            if _in_period(inv.created_at, year, month)
        ]
        inventory = self.store.get_inventory(outlet_id)

        return DashboardStats(
            total_revenue=round2(sum((o.total for o in in_period), ZERO)),
            manual_revenue=round2(sum((inv.total for inv in invoices), ZERO)),
            active_orders=sum(1 for o in orders if not is_terminal(o.status)),
            low_stock=sum(1 for item in inventory if item.is_low),
            delivered_today=sum(1 for o in delivered if delivered_at(o).date() == today),
            series=revenue_series(delivered, year, month),
        )

    def sales_rows(self, outlet_id: Optional[int], year: int, month: Optional[int] = None) -> List[list]:
        """One row per delivered order in the period, oldest first."""
        _check_period(year, month)
        outlets = {o.id: o.name for o in self.store.get_outlets(include_inactive=True)}
        orders = [
            o for o in self.store.get_orders(outlet_id=outlet_id)
            if o.status == OrderStatus.DELIVERED and _in_period(o.created_at, year, month)
        ]
        rows = []
        for order in reversed(orders):
            items = "; ".join(f"{line.name} ({line.variant.value}) x{line.quantity}" for line in order.lines)
            rows.append([
                order.id,
                _as_utc(order.created_at).date().isoformat(),
                outlets.get(order.outlet_id, f"Outlet {order.outlet_id}"),
                order.customer_name,
                items,
                str(order.total),
                order.payment_method.value,
            ])
        return rows
