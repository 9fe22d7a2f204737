from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends
from starlette.concurrency import run_in_threadpool

from bff.dependencies import Backend, get_backend
from bff.errors import ApiError
from bff.proxy import read_json_object, read_json_rows, to_response
from bff.schemas import VehicleStatusUpdate, VehicleUpdate, parse_positive_id
from dealership.availability import (
    SoldMarkers,
    filter_available,
    has_native_status,
    mark_sold,
    sold_markers,
)
from dealership.json_utils import to_json_dict
from dealership.normalize import extract_rows, normalize_vehicle

logger = logging.getLogger(__name__)

router = APIRouter()


def _load_sold_markers(backend: Backend) -> SoldMarkers | None:
    """Sold markers from the sales list, or None when it cannot be read."""
    try:
        upstream = backend.fetch("/api/sales")
    except ApiError as exc:
        logger.warning("Sales unavailable for status reconciliation: %s", exc.message)
        return None
    rows = extract_rows(upstream.json()) if upstream.ok else None
    if rows is None:
        logger.warning("Sales unavailable for status reconciliation (status %s)", upstream.status_code)
        return None
    return sold_markers(rows)


@router.get("/vehicles")
def list_vehicles(backend: Backend = Depends(get_backend)):
    """
    Lists vehicles. When the upstream rows carry no status, vehicles
    referenced by a sale are reported as sold.
    """
    upstream = backend.fetch("/api/vehicles")
    if not upstream.ok:
        return to_response(upstream)
    rows = read_json_rows(upstream, "Invalid vehicle response from backend service.")
    vehicles = [normalize_vehicle(row) for row in rows]
    if has_native_status(rows):
        return to_json_dict(vehicles)

    markers = _load_sold_markers(backend)
    if markers is None:
        return to_json_dict(vehicles)
    return to_json_dict(mark_sold(vehicles, markers))


@router.post("/vehicles")
def create_vehicle(payload: dict[str, Any] = Body(...), backend: Backend = Depends(get_backend)):
    return backend.proxy("/api/vehicles", method="POST", json_body=payload)


@router.get("/vehicles/available")
def list_available_vehicles(backend: Backend = Depends(get_backend)):
    upstream = backend.fetch("/api/vehicles/available")
    if upstream.ok:
        rows = read_json_rows(upstream, "Invalid available vehicle response from backend service.")
        return to_json_dict([normalize_vehicle(row) for row in rows])

    upstream = backend.fetch("/api/vehicles")
    if not upstream.ok:
        return to_response(upstream)
    rows = read_json_rows(upstream, "Invalid vehicle response from backend service.")
    vehicles = [normalize_vehicle(row) for row in rows]
    if has_native_status(rows):
        return to_json_dict(filter_available(vehicles))
    # Without sales every normalized vehicle counts as available.
    return to_json_dict(filter_available(vehicles, _load_sold_markers(backend)))


@router.delete("/vehicles/photos/{photo_id}")
def delete_photo(photo_id: str, backend: Backend = Depends(get_backend)):
    parsed = parse_positive_id(photo_id, "Photo")
    return backend.proxy(f"/api/vehicles/photos/{parsed}", method="DELETE")


@router.get("/vehicles/{vehicle_id}")
def get_vehicle(vehicle_id: str, backend: Backend = Depends(get_backend)):
    parsed = parse_positive_id(vehicle_id, "Vehicle")
    upstream = backend.fetch(f"/api/vehicles/{parsed}")
    if upstream.status_code == 404:
        raise ApiError(404, "Vehicle not found")
    if not upstream.ok:
        return to_response(upstream)
    row = read_json_object(upstream, "Invalid vehicle response from backend service.")
    return to_json_dict(normalize_vehicle(row))


@router.put("/vehicles/{vehicle_id}")
def update_vehicle(
    vehicle_id: str, payload: VehicleUpdate, backend: Backend = Depends(get_backend)
):
    parsed = parse_positive_id(vehicle_id, "Vehicle")
    body = payload.to_upstream_payload()
    if not body:
        raise ApiError(400, "At least one field must be provided for update.")
    return backend.proxy(f"/api/vehicles/{parsed}", method="PUT", json_body=body)


@router.delete("/vehicles/{vehicle_id}")
def delete_vehicle(vehicle_id: str, backend: Backend = Depends(get_backend)):
    parsed = parse_positive_id(vehicle_id, "Vehicle")
    return backend.proxy(f"/api/vehicles/{parsed}", method="DELETE")


@router.patch("/vehicles/{vehicle_id}/status")
def update_vehicle_status(
    vehicle_id: str, payload: VehicleStatusUpdate, backend: Backend = Depends(get_backend)
):
    parsed = parse_positive_id(vehicle_id, "Vehicle")
    return backend.proxy(
        f"/api/vehicles/{parsed}/status", method="PATCH", json_body={"status": payload.status}
    )


@router.post("/vehicles/{vehicle_id}/photos")
async def upload_vehicle_photos(vehicle_id: str, backend: Backend = Depends(get_backend)):
    """Forwards a multipart photo upload as-is, boundary included."""
    parsed = parse_positive_id(vehicle_id, "Vehicle")
    content = await backend.request.body()
    return await run_in_threadpool(
        backend.proxy, f"/api/vehicles/{parsed}/photos", method="POST", content=content
    )


@router.patch("/vehicles/{vehicle_id}/photos/{photo_id}/primary")
def set_primary_photo(vehicle_id: str, photo_id: str, backend: Backend = Depends(get_backend)):
    parsed_vehicle = parse_positive_id(vehicle_id, "Vehicle")
    parsed_photo = parse_positive_id(photo_id, "Photo")
    return backend.proxy(
        f"/api/vehicles/{parsed_vehicle}/photos/{parsed_photo}/primary", method="PATCH"
    )
