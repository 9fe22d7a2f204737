"""
Dashboard statistics computed from normalized vehicles and sale rows, used
when the upstream does not expose its own dashboard endpoint.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, Optional

from dealership.normalize import JsonRecord, as_number, normalize_key, normalize_sale
from dealership.types import DashboardStats, Sale, Vehicle, VehicleStatus


def _parse_iso(value: str) -> Optional[datetime]:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _sale_profit(
    row: JsonRecord,
    sale: Sale,
    by_id: dict[str, Vehicle],
    by_registration: dict[str, Vehicle],
) -> float:
    """
    The row's own `profit` when present; otherwise total payment less the
    sold vehicle's buying cost and expense. Sales with no matching vehicle
    contribute nothing.
    """
    if row.get("profit") not in (None, ""):
        return as_number(row.get("profit"))
    vehicle = by_id.get(sale.vehicle_id) if sale.vehicle_id else None
    if vehicle is None and sale.registration_number:
        vehicle = by_registration.get(normalize_key(sale.registration_number))
    if vehicle is None:
        return 0
    return sale.total_payment - vehicle.buying_cost - vehicle.expense


def compute_dashboard_stats(
    vehicles: list[Vehicle],
    sale_rows: Iterable[JsonRecord],
    now: Optional[datetime] = None,
) -> DashboardStats:
    now = now or datetime.now(timezone.utc)
    sold = sum(1 for vehicle in vehicles if vehicle.status == VehicleStatus.SOLD)

    by_id = {vehicle.id: vehicle for vehicle in vehicles if vehicle.id}
    by_registration = {
        normalize_key(vehicle.registration_number): vehicle
        for vehicle in vehicles
        if vehicle.registration_number
    }

    total_profit = 0
    sales_this_month = 0
    for row in sale_rows:
        sale = normalize_sale(row)
        total_profit += _sale_profit(row, sale, by_id, by_registration)
        sale_date = _parse_iso(sale.sale_date)
        if sale_date and (sale_date.year, sale_date.month) == (now.year, now.month):
            sales_this_month += sale.total_payment

    return DashboardStats(
        total_vehicles_purchased=len(vehicles),
        total_vehicles_sold=sold,
        available_vehicles=len(vehicles) - sold,
        total_profit=total_profit,
        sales_this_month=sales_this_month,
    )
