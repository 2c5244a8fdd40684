"""Dashboard statistics and sales export routes."""

from datetime import datetime, timezone
from typing import Literal, Optional

from fastapi import APIRouter, Query
from fastapi.responses import StreamingResponse

from havens.core.rbac import CanViewStats, scoped_outlet_id
from havens.schemas.stats import DashboardResponse
from havens.services.export import create_csv_export, create_excel_export
from havens.services.stats import SALES_EXPORT_HEADERS, StatsService
from havens.services.store import Store

router = APIRouter()


def _current_year() -> int:
    return datetime.now(timezone.utc).year


@router.get("/dashboard", response_model=DashboardResponse)
def dashboard(
    store: Store,
    current_user: CanViewStats,
    outlet_id: Optional[int] = Query(default=None, gt=0),
    year: Optional[int] = Query(default=None),
    month: Optional[int] = Query(default=None),
):
    """Revenue, queue and stock figures for one outlet or all of them."""
    outlet_id = scoped_outlet_id(current_user, outlet_id)
    year = year or _current_year()
    stats = StatsService(store).dashboard(outlet_id, year, month)
    return DashboardResponse(
        outlet_id=outlet_id,
        year=year,
        month=month,
        total_revenue=stats.total_revenue,
        manual_revenue=stats.manual_revenue,
        active_orders=stats.active_orders,
        low_stock=stats.low_stock,
        delivered_today=stats.delivered_today,
        series=[{"label": p.label, "value": p.value} for p in stats.series],
    )


@router.get("/sales-export")
def sales_export(
    store: Store,
    current_user: CanViewStats,
    outlet_id: Optional[int] = Query(default=None, gt=0),
    year: Optional[int] = Query(default=None),
    month: Optional[int] = Query(default=None),
    format: Literal["csv", "excel"] = "csv",
):
    """Delivered orders of the period as a CSV or Excel download."""
    outlet_id = scoped_outlet_id(current_user, outlet_id)
    year = year or _current_year()
    rows = StatsService(store).sales_rows(outlet_id, year, month)
    period = f"{year}" if month is None else f"{year}_{month:02d}"

    if format == "excel":
        output = create_excel_export(rows, SALES_EXPORT_HEADERS, "Sales")
        media_type = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
        filename = f"sales_{period}.xlsx"
    else:
        output = create_csv_export(rows, SALES_EXPORT_HEADERS)
        media_type = "text/csv"
        filename = f"sales_{period}.csv"
    return StreamingResponse(
        output,
        media_type=media_type,
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )
