"""
Reconciles vehicle availability when the upstream vehicle rows carry no
status of their own: a vehicle is considered sold when any sale references
its id or its registration number.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Iterable

from dealership.normalize import (
    JsonRecord,
    as_string,
    first_defined,
    normalize_key,
    normalize_sale,
    normalize_status,
)
from dealership.types import Vehicle, VehicleStatus


@dataclass
class SoldMarkers:
    vehicle_ids: set[str] = field(default_factory=set)
    registration_numbers: set[str] = field(default_factory=set)

    def is_sold(self, vehicle: Vehicle) -> bool:
        if vehicle.id and vehicle.id in self.vehicle_ids:
            return True
        registration = normalize_key(vehicle.registration_number)
        return bool(registration) and registration in self.registration_numbers


def has_native_status(rows: Iterable[JsonRecord]) -> bool:
    """True when at least one row reports a status or a boolean sold flag."""
    for row in rows:
        status = normalize_status(
            first_defined(row.get("status"), row.get("vehicleStatus"), row.get("vehicle_status"))
        )
        is_sold = first_defined(row.get("isSold"), row.get("is_sold"))
        if status is not None or isinstance(is_sold, bool):
            return True
    return False


def sold_markers(sale_rows: Iterable[JsonRecord]) -> SoldMarkers:
    markers = SoldMarkers()
    for row in sale_rows:
        sale = normalize_sale(row)
        nested = sale.vehicle if isinstance(sale.vehicle, Vehicle) else None

        vehicle_id = as_string(first_defined(sale.vehicle_id or None, nested.id if nested else None))
        if vehicle_id:
            markers.vehicle_ids.add(vehicle_id)

        registration = normalize_key(
            as_string(
                first_defined(
                    sale.registration_number or None,
                    nested.registration_number if nested else None,
                )
            )
        )
        if registration:
            markers.registration_numbers.add(registration)
    return markers


def mark_sold(vehicles: list[Vehicle], markers: SoldMarkers) -> list[Vehicle]:
    return [
        replace(
            vehicle,
            status=VehicleStatus.SOLD if markers.is_sold(vehicle) else VehicleStatus.AVAILABLE,
        )
        for vehicle in vehicles
    ]


def filter_available(vehicles: list[Vehicle], markers: SoldMarkers | None = None) -> list[Vehicle]:
    if markers is None:
        return [vehicle for vehicle in vehicles if vehicle.status == VehicleStatus.AVAILABLE]
    return [vehicle for vehicle in vehicles if not markers.is_sold(vehicle)]
