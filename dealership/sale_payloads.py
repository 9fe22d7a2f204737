"""
Request-body candidates for creating a sale upstream.

The upstream create-sale contract is underspecified: deployments have
accepted a numeric payment mode, a string payment mode, a nested customer
object, and PascalCase keys. The BFF posts these shapes in order and stops
at the first one the upstream does not reject as a bad request.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from dealership.normalize import JsonRecord, as_string, pick_field
from dealership.types import PAYMENT_MODE_API, PaymentMode

MIXED = "Mixed"

# Statuses meaning "this body shape was not understood, try the next one".
REJECTED_SHAPE_STATUSES = frozenset({400, 422})


def resolve_payment_mode(mode: str, cash: float, upi: float, finance: float) -> PaymentMode:
    """
    Maps the form's payment mode to one the upstream knows.

    `Mixed` has no upstream code, so the mode carrying the largest amount is
    used; ties resolve in Cash, UPI, Finance order.
    """
    if mode != MIXED:
        return PaymentMode(mode)
    ranked = [
        (cash, PaymentMode.CASH),
        (upi, PaymentMode.UPI),
        (finance, PaymentMode.FINANCE),
    ]
    best_amount, best_mode = ranked[0]
    for amount, candidate in ranked[1:]:
        if amount > best_amount:
            best_amount, best_mode = amount, candidate
    return best_mode


def _vehicle_id(value: Any) -> Any:
    text = as_string(value).strip()
    return int(text) if text.isdigit() else text


def _amount(value: Optional[float]) -> Optional[float]:
    return value if value else None


def _optional_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.strip() or None


def _utc_iso(now: datetime) -> str:
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _pascal(key: str) -> str:
    return key[:1].upper() + key[1:]


def build_sale_candidates(
    sale: Mapping[str, Any], now: Optional[datetime] = None
) -> list[JsonRecord]:
    """
    Builds the ordered, de-duplicated list of create-sale bodies.

    `sale` holds the validated form values with snake_case keys.
    """
    now = now or datetime.now(timezone.utc)
    cash = sale.get("cash_amount") or 0
    upi = sale.get("upi_amount") or 0
    finance = sale.get("finance_amount") or 0
    mode = resolve_payment_mode(sale["payment_mode"], cash, upi, finance)

    canonical: JsonRecord = {
        "vehicleId": _vehicle_id(sale["vehicle_id"]),
        "customerId": _optional_text(sale.get("customer_id")),
        "customerName": sale["customer_name"].strip(),
        "customerPhone": sale["phone"].strip(),
        "customerAddress": sale["address"].strip(),
        "customerPhotoUrl": (sale.get("customer_photo_url") or "").strip(),
        "paymentMode": PAYMENT_MODE_API[mode],
        "cashAmount": _amount(cash),
        "upiAmount": _amount(upi),
        "financeAmount": _amount(finance),
        "financeCompany": _optional_text(sale.get("finance_company")),
        "saleDate": sale.get("sale_date") or _utc_iso(now),
    }
    for flag, key in (
        ("rc_book_received", "rcBookReceived"),
        ("ownership_transfer_accepted", "ownershipTransferAccepted"),
        ("vehicle_accepted_in_as_is_condition", "vehicleAcceptedInAsIsCondition"),
    ):
        if sale.get(flag) is not None:
            canonical[key] = bool(sale[flag])

    named_mode = {**canonical, "paymentMode": mode.value}

    nested_customer = {
        key: value
        for key, value in canonical.items()
        if not key.startswith("customer")
    }
    nested_customer["customer"] = {
        "id": canonical["customerId"],
        "name": canonical["customerName"],
        "phone": canonical["customerPhone"],
        "address": canonical["customerAddress"],
        "photoUrl": canonical["customerPhotoUrl"],
    }

    pascal = {_pascal(key): value for key, value in canonical.items()}

    candidates: list[JsonRecord] = []
    seen: set[str] = set()
    for candidate in (canonical, named_mode, nested_customer, pascal):
        fingerprint = json.dumps(candidate, sort_keys=True, default=str)
        if fingerprint not in seen:
            seen.add(fingerprint)
            candidates.append(candidate)
    return candidates


def extract_bill_number(payload: Any) -> str:
    """Reads the bill number from a create-sale response, looking inside `data` too."""
    if not isinstance(payload, dict):
        return ""
    keys = ["billNumber", "billNo", "bill_number", "invoiceNumber", "saleId", "id"]
    value = pick_field(payload, keys)
    if value is None and isinstance(payload.get("data"), dict):
        value = pick_field(payload["data"], keys)
    return as_string(value)
