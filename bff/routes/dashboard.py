from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from bff.dependencies import Backend, get_backend
from bff.proxy import read_json_object, read_json_rows, to_response
from dealership.availability import has_native_status, mark_sold, sold_markers
from dealership.dashboard import compute_dashboard_stats
from dealership.json_utils import to_json_dict
from dealership.normalize import normalize_dashboard_stats, normalize_vehicle

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/dashboard")
def get_dashboard(backend: Backend = Depends(get_backend)):
    """
    Dashboard totals from the upstream when it exposes them; otherwise
    computed from the vehicle and sale lists.
    """
    upstream = backend.fetch("/api/dashboard")
    if upstream.ok:
        row = read_json_object(upstream, "Invalid dashboard response from backend service.")
        return to_json_dict(normalize_dashboard_stats(row))
    if upstream.status_code != 404:
        return to_response(upstream)

    logger.info("Upstream has no dashboard endpoint; computing totals")
    vehicles_upstream = backend.fetch("/api/vehicles")
    if not vehicles_upstream.ok:
        return to_response(vehicles_upstream)
    vehicle_rows = read_json_rows(vehicles_upstream, "Invalid vehicle response from backend service.")

    sales_upstream = backend.fetch("/api/sales")
    if not sales_upstream.ok:
        return to_response(sales_upstream)
    sale_rows = read_json_rows(sales_upstream, "Invalid sales response from backend service.")

    vehicles = [normalize_vehicle(row) for row in vehicle_rows]
    if not has_native_status(vehicle_rows):
        vehicles = mark_sold(vehicles, sold_markers(sale_rows))
    return to_json_dict(compute_dashboard_stats(vehicles, sale_rows))
