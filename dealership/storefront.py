"""
Public storefront helpers: the listing DTO and WhatsApp enquiry links.
"""

from __future__ import annotations

import re
from typing import Optional
from urllib.parse import quote

from dealership.normalize import JsonRecord, first_defined, normalize_vehicle
from dealership.types import PublicVehicle, VehicleStatus

DEFAULT_WHATSAPP_PHONE = "9551406006"

_NON_DIGIT = re.compile(r"\D")


def _pick_colour(row: JsonRecord) -> Optional[str]:
    raw = first_defined(
        row.get("colour"),
        row.get("color"),
        row.get("vehicleColour"),
        row.get("vehicle_colour"),
        row.get("exteriorColor"),
    )
    if isinstance(raw, str) and raw.strip():
        return raw.strip()
    return None


def to_public_vehicle(row: JsonRecord) -> PublicVehicle:
    vehicle = normalize_vehicle(row)
    return PublicVehicle(
        id=vehicle.id,
        brand=vehicle.brand,
        model=vehicle.model,
        year=vehicle.year,
        registration_number=vehicle.registration_number,
        chassis_number=vehicle.chassis_number or None,
        engine_number=vehicle.engine_number or None,
        colour=_pick_colour(row),
        selling_price=vehicle.selling_price,
        status=VehicleStatus.SOLD if vehicle.status == VehicleStatus.SOLD else VehicleStatus.AVAILABLE,
        created_at=vehicle.created_at,
        image_url=vehicle.image_url.strip() or None,
    )


def get_whatsapp_number(configured: Optional[str] = None) -> str:
    """Configured business number (digits only, with country code), else the default."""
    if isinstance(configured, str):
        digits = _NON_DIGIT.sub("", configured)
        if digits:
            return digits
    return DEFAULT_WHATSAPP_PHONE


def get_whatsapp_chat_url(phone: str = "") -> str:
    if phone:
        return f"https://wa.me/{phone}"
    return "https://wa.me"


def get_whatsapp_url_with_message(message: str, phone: str = "") -> str:
    base = get_whatsapp_chat_url(phone)
    separator = "&" if "?" in base else "?"
    return f"{base}{separator}text={quote(message, safe='')}"


def get_vehicle_enquiry_message(vehicle: PublicVehicle) -> str:
    year = int(vehicle.year) if float(vehicle.year).is_integer() else vehicle.year
    return (
        f"Hello, I am interested in {vehicle.brand} {vehicle.model} {year} - "
        f"{vehicle.registration_number}. Please share details."
    )
