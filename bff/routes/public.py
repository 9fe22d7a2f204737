"""
Unauthenticated storefront endpoints. The caller's token is never forwarded.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from bff.dependencies import Backend, get_public_backend
from bff.errors import ApiError
from dealership.json_utils import to_json_dict
from dealership.normalize import as_string, extract_rows
from dealership.storefront import (
    get_vehicle_enquiry_message,
    get_whatsapp_number,
    get_whatsapp_url_with_message,
    to_public_vehicle,
)
from dealership.types import PublicVehicle, VehicleStatus

router = APIRouter()


def _load_public_vehicles(backend: Backend) -> list[PublicVehicle]:
    try:
        upstream = backend.fetch(
            "/api/vehicles/available", headers={"Accept": "application/json"}
        )
    except ApiError as exc:
        if exc.status_code != 503:
            raise
        raise ApiError(
            503,
            exc.message if backend.settings.is_development else "Unable to connect to vehicle service.",
        ) from exc

    payload = upstream.json()
    if not upstream.ok:
        message = payload.get("message") if isinstance(payload, dict) else None
        raise ApiError(
            upstream.status_code if upstream.status_code >= 400 else 502,
            message if isinstance(message, str) and message else "Unable to load vehicles.",
        )
    return [to_public_vehicle(row) for row in extract_rows(payload) or []]


@router.get("/public/vehicles/available")
def list_public_vehicles(backend: Backend = Depends(get_public_backend)):
    return to_json_dict(_load_public_vehicles(backend))


@router.get("/public/vehicles/{vehicle_id}")
def get_public_vehicle(vehicle_id: str, backend: Backend = Depends(get_public_backend)):
    """A single listed vehicle with its WhatsApp enquiry link; only vehicles still on sale are visible."""
    wanted = vehicle_id.strip()
    for vehicle in _load_public_vehicles(backend):
        if vehicle.status == VehicleStatus.SOLD or as_string(vehicle.id) != wanted:
            continue
        phone = get_whatsapp_number(backend.settings.whatsapp_phone)
        return {
            **to_json_dict(vehicle),
            "enquiryUrl": get_whatsapp_url_with_message(get_vehicle_enquiry_message(vehicle), phone),
        }
    raise ApiError(404, "Vehicle not found")
