"""
Normalization of upstream dealership API payloads.

The upstream API is inconsistent about field spelling (camelCase,
snake_case, PascalCase, legacy aliases) and about types (enums as numbers
or strings, amounts as numbers or formatted strings). Everything here is a
pure function that tolerates missing or odd values and returns the
canonical DTOs from `dealership.types`.
"""

from __future__ import annotations

import math
import re
from dataclasses import replace
from typing import Any, Iterable, Optional

from dealership.types import (
    VEHICLE_STATUS_API,
    Customer,
    DashboardStats,
    DeliveryNoteSettings,
    FinanceCompany,
    PaymentMode,
    Purchase,
    PurchaseExpense,
    Sale,
    SaleDetail,
    SearchResult,
    Vehicle,
    VehicleStatus,
)

JsonRecord = dict[str, Any]

_NON_ALNUM = re.compile(r"[^a-zA-Z0-9]")
_THOUSANDS = re.compile(r"[, ]+")
_NON_NUMERIC = re.compile(r"[^\d.-]")

ROW_CONTAINER_KEYS = ("data", "items", "results", "rows")

VEHICLE_ID_KEYS = ["id", "vehicleId", "vehicle_id", "vehicleID", "purchaseId", "purchase_id"]
VEHICLE_STATUS_KEYS = [
    "status",
    "statusId",
    "status_id",
    "vehicleStatus",
    "vehicle_status",
    "vehicleStatusId",
    "vehicle_status_id",
    "availabilityStatus",
]
SOLD_FLAG_KEYS = ["isSold", "is_sold", "sold"]
AVAILABLE_FLAG_KEYS = ["isAvailable", "is_available", "available"]
REGISTRATION_KEYS = [
    "registrationNumber",
    "registrationNo",
    "registration_number",
    "regNumber",
    "reg_no",
]
CHASSIS_KEYS = ["chassisNumber", "chassisNo", "chassis_number"]
ENGINE_KEYS = ["engineNumber", "engineNo", "engine_number"]
COLOUR_KEYS = ["colour", "color", "vehicleColour", "vehicle_colour"]
SELLING_PRICE_KEYS = ["sellingPrice", "salePrice", "selling_price", "sale_price", "price"]
BUYING_COST_KEYS = [
    "buyingCost",
    "buying_cost",
    "buyingPrice",
    "buying_price",
    "purchasePrice",
    "purchase_price",
    "costPrice",
    "cost_price",
]
EXPENSE_KEYS = ["expense", "expenses", "expense_amount"]
PURCHASE_DATE_KEYS = ["purchaseDate", "purchase_date", "createdAt", "created_at", "date"]
CUSTOMER_PHOTO_KEYS = ["customerPhotoUrl", "customer_photo_url", "photoUrl", "photo_url"]
CUSTOMER_NAME_KEYS = ["customerName", "customer_name", "buyerName", "buyer_name"]
FINANCE_COMPANY_KEYS = ["financeCompany", "finance_company"]


def normalize_key(key: str) -> str:
    return _NON_ALNUM.sub("", key).lower()


def pick_field(row: JsonRecord, keys: Iterable[str]) -> Any:
    """
    Returns the first non-null value found under any of `keys`.

    Exact spellings are tried first, in order. If none match, keys are
    compared loosely (case and punctuation ignored) so `Registration_No`
    still resolves `registrationNo`.
    """
    keys = list(keys)
    for key in keys:
        value = row.get(key)
        if value is not None:
            return value

    loose = [(normalize_key(entry_key), value) for entry_key, value in row.items()]
    for key in keys:
        target = normalize_key(key)
        for entry_key, value in loose:
            if entry_key == target and value is not None:
                return value
    return None


def as_record_array(payload: Any) -> Optional[list[JsonRecord]]:
    if not isinstance(payload, list):
        return None
    return [item for item in payload if isinstance(item, dict)]


def extract_rows(payload: Any) -> Optional[list[JsonRecord]]:
    """Finds the row list in a bare list or a `{data|items|results|rows: [...]}` envelope."""
    rows = as_record_array(payload)
    if rows is not None:
        return rows
    if isinstance(payload, dict):
        for key in ROW_CONTAINER_KEYS:
            rows = as_record_array(payload.get(key))
            if rows is not None:
                return rows
    return None


def first_defined(*values: Any) -> Any:
    for value in values:
        if value is not None:
            return value
    return None


def _is_finite_number(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def as_string(value: Any, fallback: str = "") -> str:
    if isinstance(value, str):
        return value
    if _is_finite_number(value):
        if isinstance(value, float) and value.is_integer():
            return str(int(value))
        return str(value)
    return fallback


def as_number(value: Any, fallback: Any = 0) -> Any:
    if _is_finite_number(value):
        return value
    if isinstance(value, str) and value.strip():
        cleaned = _NON_NUMERIC.sub("", _THOUSANDS.sub("", value))
        try:
            parsed = float(cleaned)
        except ValueError:
            return fallback
        if not math.isfinite(parsed):
            return fallback
        return int(parsed) if parsed.is_integer() else parsed
    return fallback


def to_boolean(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if _is_finite_number(value):
        if value == 1:
            return True
        if value == 0:
            return False
    if isinstance(value, str) and value.strip():
        lowered = value.strip().lower()
        if lowered in ("true", "1", "yes"):
            return True
        if lowered in ("false", "0", "no"):
            return False
    return None


def normalize_nullable(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None if value is None else str(value)
    return value.strip() or None


def normalize_status(value: Any) -> Optional[VehicleStatus]:
    if _is_finite_number(value):
        if value == 1:
            return VehicleStatus.AVAILABLE
        if value == 2:
            return VehicleStatus.SOLD
    if isinstance(value, str) and value.strip():
        upper = value.strip().upper()
        if upper in ("AVAILABLE", "IN_STOCK", "1"):
            return VehicleStatus.AVAILABLE
        if upper in ("SOLD", "2"):
            return VehicleStatus.SOLD
    return None


def to_status_value(value: Any) -> Optional[int]:
    """Maps user input (1/2, "Available"/"Sold") to the upstream numeric status."""
    numeric = as_number(value, None)
    if numeric in (1, 2):
        return int(numeric)
    status = normalize_status(as_string(value))
    if status is None:
        return None
    return VEHICLE_STATUS_API[status]


def normalize_payment_mode(value: Any) -> PaymentMode:
    if _is_finite_number(value):
        if value == 1:
            return PaymentMode.CASH
        if value == 2:
            return PaymentMode.UPI
        if value == 3:
            return PaymentMode.FINANCE
    if isinstance(value, str) and value.strip():
        upper = value.strip().upper()
        if upper in ("CASH", "1"):
            return PaymentMode.CASH
        if upper in ("UPI", "2"):
            return PaymentMode.UPI
        if upper in ("FINANCE", "3"):
            return PaymentMode.FINANCE
    # Unknown modes are shown as cash rather than dropped.
    return PaymentMode.CASH


def _vehicle_status(row: JsonRecord) -> VehicleStatus:
    status = normalize_status(pick_field(row, VEHICLE_STATUS_KEYS))
    if status is not None:
        return status

    sold = to_boolean(pick_field(row, SOLD_FLAG_KEYS))
    if sold is None:
        available = to_boolean(pick_field(row, AVAILABLE_FLAG_KEYS))
        if available is not None:
            sold = not available
    if sold is None:
        return VehicleStatus.AVAILABLE
    return VehicleStatus.SOLD if sold else VehicleStatus.AVAILABLE


def normalize_vehicle(row: JsonRecord) -> Vehicle:
    return Vehicle(
        id=as_string(pick_field(row, VEHICLE_ID_KEYS)),
        brand=as_string(pick_field(row, ["brand", "make"])),
        model=as_string(pick_field(row, ["model", "modelName", "vehicleModel"])),
        year=as_number(pick_field(row, ["year", "manufactureYear", "manufacture_year"])),
        registration_number=as_string(pick_field(row, REGISTRATION_KEYS)),
        chassis_number=as_string(pick_field(row, CHASSIS_KEYS)),
        engine_number=as_string(pick_field(row, ENGINE_KEYS)),
        colour=as_string(pick_field(row, COLOUR_KEYS)),
        selling_price=as_number(pick_field(row, SELLING_PRICE_KEYS)),
        buying_cost=as_number(pick_field(row, BUYING_COST_KEYS)),
        expense=as_number(pick_field(row, EXPENSE_KEYS)),
        seller_name=as_string(pick_field(row, ["sellerName", "seller_name", "ownerName"])),
        seller_phone=as_string(pick_field(row, ["sellerPhone", "seller_phone", "ownerPhone"])),
        seller_address=as_string(
            pick_field(row, ["sellerAddress", "seller_address", "ownerAddress"])
        ),
        purchase_date=as_string(pick_field(row, PURCHASE_DATE_KEYS)),
        image_url=as_string(pick_field(row, ["imageUrl", "image_url"])),
        created_at=as_string(pick_field(row, ["createdAt", "created_at", "purchaseDate"])),
        status=_vehicle_status(row),
    )


def normalize_purchase(row: JsonRecord) -> Purchase:
    return Purchase(
        id=as_string(first_defined(row.get("id"), row.get("vehicleId"))),
        brand=as_string(row.get("brand")),
        model=as_string(row.get("model")),
        year=as_number(row.get("year")),
        registration_number=as_string(pick_field(row, REGISTRATION_KEYS[:3])),
        chassis_number=as_string(pick_field(row, CHASSIS_KEYS)),
        engine_number=as_string(pick_field(row, ENGINE_KEYS)),
        selling_price=as_number(pick_field(row, SELLING_PRICE_KEYS[:4])),
        seller_name=as_string(pick_field(row, ["sellerName", "ownerName", "seller_name"])),
        seller_phone=as_string(pick_field(row, ["sellerPhone", "ownerPhone", "seller_phone"])),
        seller_address=as_string(
            pick_field(row, ["sellerAddress", "ownerAddress", "seller_address"])
        ),
        buying_cost=as_number(pick_field(row, BUYING_COST_KEYS)),
        expense=as_number(pick_field(row, EXPENSE_KEYS)),
        purchase_date=as_string(pick_field(row, PURCHASE_DATE_KEYS)),
        image_url=as_string(pick_field(row, ["imageUrl", "image_url"])),
        created_at=as_string(first_defined(row.get("createdAt"), row.get("purchaseDate"))),
    )


def _nested(row: JsonRecord, key: str) -> Optional[JsonRecord]:
    value = row.get(key)
    return value if isinstance(value, dict) else None


def normalize_sale(row: JsonRecord) -> Sale:
    nested_vehicle = _nested(row, "vehicle")
    vehicle = normalize_vehicle(nested_vehicle) if nested_vehicle else None

    return Sale(
        id=as_string(pick_field(row, ["id", "saleId", "sale_id"])),
        bill_number=as_string(
            pick_field(row, ["billNumber", "billNo", "bill_number", "invoiceNumber"])
        ),
        vehicle_id=as_string(
            first_defined(
                pick_field(
                    row,
                    ["vehicleId", "vehicle_id", "vehicleID", "purchaseId", "purchase_id"],
                ),
                vehicle.id if vehicle else None,
            )
        ),
        customer_name=as_string(pick_field(row, CUSTOMER_NAME_KEYS)),
        customer_photo_url=as_string(pick_field(row, CUSTOMER_PHOTO_KEYS)),
        phone=as_string(pick_field(row, ["phone", "phoneNumber", "mobile", "customerPhone"])),
        address=as_string(pick_field(row, ["address", "customerAddress", "customer_address"])),
        payment_mode=normalize_payment_mode(
            pick_field(
                row,
                ["paymentMode", "payment_mode", "mode", "paymentModeId", "payment_mode_id"],
            )
        ),
        cash_amount=as_number(pick_field(row, ["cashAmount", "cash", "cash_amount"])),
        upi_amount=as_number(pick_field(row, ["upiAmount", "upi", "upi_amount"])),
        finance_amount=as_number(
            pick_field(
                row,
                ["financeAmount", "finance", "finance_amount", "loanAmount", "loan_amount"],
            )
        ),
        finance_company=as_string(pick_field(row, FINANCE_COMPANY_KEYS)),
        total_payment=as_number(
            pick_field(row, ["totalPayment", "totalAmount", "total_payment", "amount"])
        ),
        sale_date=as_string(pick_field(row, ["saleDate", "sale_date", "createdAt", "date"])),
        registration_number=as_string(
            first_defined(
                pick_field(
                    row,
                    REGISTRATION_KEYS
                    + ["vehicleRegistrationNumber", "vehicleRegistrationNo"],
                ),
                vehicle.registration_number if vehicle else None,
            )
        ),
        vehicle=vehicle or row.get("vehicle"),
    )


def _flat_vehicle(row: JsonRecord, vehicle_id: Any) -> JsonRecord:
    """Vehicle columns of a flat sale-detail row, in the canonical camelCase spelling."""
    return {
        "id": as_string(vehicle_id),
        "brand": as_string(pick_field(row, ["brand", "vehicleBrand", "vehicle_brand", "make"])),
        "model": as_string(
            pick_field(row, ["model", "vehicleModel", "vehicle_model", "modelName"])
        ),
        "year": as_number(
            pick_field(row, ["year", "vehicleYear", "vehicle_year", "manufactureYear"])
        ),
        "registrationNumber": as_string(pick_field(row, REGISTRATION_KEYS[:3])),
        "chassisNumber": as_string(pick_field(row, CHASSIS_KEYS)),
        "engineNumber": as_string(pick_field(row, ENGINE_KEYS)),
        "colour": as_string(pick_field(row, COLOUR_KEYS)),
        "sellingPrice": as_number(pick_field(row, ["sellingPrice", "selling_price", "salePrice"])),
        "sellerName": as_string(
            pick_field(row, ["sellerName", "seller_name", "ownerName", "owner_name"])
        ),
        "sellerPhone": as_string(
            pick_field(row, ["sellerPhone", "seller_phone", "ownerPhone", "owner_phone"])
        ),
        "sellerAddress": as_string(
            pick_field(row, ["sellerAddress", "seller_address", "ownerAddress", "owner_address"])
        ),
        "buyingCost": as_number(pick_field(row, ["buyingCost", "buying_cost"])),
        "expense": as_number(row.get("expense")),
        "purchaseDate": as_string(pick_field(row, ["purchaseDate", "purchase_date"])),
        "createdAt": as_string(pick_field(row, ["purchaseDate", "purchase_date", "createdAt"])),
    }


def normalize_sale_detail_from_flat(row: JsonRecord) -> SaleDetail:
    """
    Maps the flat DTO of GET /api/sales/{billNumber} (and its /invoice
    variant) to a SaleDetail.

    The bill number doubles as the sale id. Vehicle data comes from a nested
    `vehicle` object when present; any field it leaves empty is filled from
    the flat vehicle columns. Customer fields fall back to a nested
    `customer` object.
    """
    nested_vehicle = _nested(row, "vehicle")
    nested_customer = _nested(row, "customer") or {}

    bill_number = as_number(pick_field(row, ["billNumber", "billNo", "bill_number"]))
    vehicle_id = as_number(
        first_defined(
            pick_field(row, ["vehicleId", "vehicle_id"]),
            nested_vehicle.get("id") if nested_vehicle else None,
        )
    )
    total_received = as_number(
        pick_field(row, ["totalReceived", "total_received", "totalPayment", "total_payment"])
    )

    flat = _flat_vehicle(row, vehicle_id)
    flat_vehicle = normalize_vehicle(flat)
    vehicle = normalize_vehicle(nested_vehicle) if nested_vehicle else flat_vehicle
    vehicle = replace(
        vehicle,
        id=vehicle.id or flat_vehicle.id,
        brand=vehicle.brand or flat_vehicle.brand,
        model=vehicle.model or flat_vehicle.model,
        year=vehicle.year or flat_vehicle.year,
        registration_number=vehicle.registration_number or flat_vehicle.registration_number,
        chassis_number=vehicle.chassis_number or flat_vehicle.chassis_number,
        engine_number=vehicle.engine_number or flat_vehicle.engine_number,
        seller_name=vehicle.seller_name or flat_vehicle.seller_name,
        seller_phone=vehicle.seller_phone or flat_vehicle.seller_phone,
        seller_address=vehicle.seller_address or flat_vehicle.seller_address,
        selling_price=vehicle.selling_price or flat_vehicle.selling_price,
        buying_cost=vehicle.buying_cost or flat_vehicle.buying_cost,
        expense=vehicle.expense or flat_vehicle.expense,
        purchase_date=vehicle.purchase_date or flat_vehicle.purchase_date,
        created_at=vehicle.created_at or flat_vehicle.created_at,
    )

    cash_amount = as_number(pick_field(row, ["cashAmount", "cash_amount"]))
    upi_amount = as_number(pick_field(row, ["upiAmount", "upi_amount"]))
    finance_amount = as_number(pick_field(row, ["financeAmount", "finance_amount"]))

    return SaleDetail(
        id=as_string(bill_number),
        bill_number=as_string(bill_number),
        vehicle_id=as_string(vehicle_id or vehicle.id),
        customer_photo_url=as_string(
            first_defined(pick_field(row, CUSTOMER_PHOTO_KEYS), nested_customer.get("photoUrl"))
        ),
        customer_name=as_string(
            first_defined(pick_field(row, CUSTOMER_NAME_KEYS), nested_customer.get("name"))
        ),
        phone=as_string(
            first_defined(
                pick_field(row, ["customerPhone", "customer_phone", "phone"]),
                nested_customer.get("phone"),
            )
        ),
        address=as_string(
            first_defined(
                pick_field(row, ["customerAddress", "customer_address", "address"]),
                nested_customer.get("address"),
            )
        ),
        payment_mode=normalize_payment_mode(
            pick_field(row, ["paymentMode", "payment_mode", "mode"])
        ),
        cash_amount=cash_amount,
        upi_amount=upi_amount,
        finance_amount=finance_amount,
        finance_company=as_string(pick_field(row, FINANCE_COMPANY_KEYS)),
        total_payment=total_received or cash_amount + upi_amount + finance_amount,
        sale_date=as_string(pick_field(row, ["saleDate", "sale_date", "createdAt"])),
        vehicle=vehicle,
        profit=as_number(row.get("profit")),
    )


def normalize_customer(row: JsonRecord) -> Customer:
    return Customer(
        id=as_string(pick_field(row, ["id", "customerId", "customer_id"])),
        name=as_string(pick_field(row, ["name", "customerName", "customer_name"])),
        phone=as_string(pick_field(row, ["phone", "phoneNumber", "mobile", "customerPhone"])),
        address=normalize_nullable(pick_field(row, ["address", "customerAddress"])),
        photo_url=normalize_nullable(pick_field(row, ["photoUrl", "photo_url", "customerPhotoUrl"])),
        created_at=as_string(pick_field(row, ["createdAt", "created_at"])),
    )


def to_finance_company(row: JsonRecord) -> FinanceCompany:
    return FinanceCompany(
        id=as_number(
            first_defined(row.get("id"), row.get("financeCompanyId"), row.get("finance_company_id"))
        ),
        name=as_string(
            first_defined(
                row.get("name"), row.get("financeCompanyName"), row.get("finance_company_name")
            )
        ),
    )


def to_expense(row: JsonRecord) -> PurchaseExpense:
    return PurchaseExpense(
        id=as_number(first_defined(row.get("id"), row.get("expenseId"), row.get("expense_id"))),
        vehicle_id=as_number(first_defined(row.get("vehicleId"), row.get("vehicle_id"))),
        expense_type=as_string(first_defined(row.get("expenseType"), row.get("expense_type"))),
        amount=as_number(row.get("amount")),
    )


def to_search_result(row: JsonRecord) -> SearchResult:
    return SearchResult(
        type=as_string(first_defined(row.get("type"), row.get("Type"))) or "Sale",
        bill_number=as_number(
            pick_field(
                row,
                [
                    "billNumber",
                    "billNo",
                    "bill_number",
                    "invoiceNumber",
                    "saleId",
                    "sale_id",
                    "id",
                ],
            )
        ),
        customer_name=as_string(pick_field(row, ["customerName", "customer_name"])),
        customer_phone=as_string(
            pick_field(
                row, ["customerPhone", "customer_phone", "phone", "phoneNumber", "mobile"]
            )
        ),
        vehicle=as_string(pick_field(row, ["vehicle", "vehicleName", "vehicle_model"])),
        registration_number=as_string(pick_field(row, REGISTRATION_KEYS)),
        sale_date=as_string(pick_field(row, ["saleDate", "sale_date", "createdAt", "date"])),
    )


def normalize_dashboard_stats(row: JsonRecord) -> DashboardStats:
    return DashboardStats(
        total_vehicles_purchased=as_number(
            pick_field(row, ["totalVehiclesPurchased", "totalPurchased", "purchasedCount"])
        ),
        total_vehicles_sold=as_number(
            pick_field(row, ["totalVehiclesSold", "totalSold", "soldCount"])
        ),
        available_vehicles=as_number(
            pick_field(row, ["availableVehicles", "availableCount", "inStock"])
        ),
        total_profit=as_number(pick_field(row, ["totalProfit", "profit"])),
        sales_this_month=as_number(
            pick_field(row, ["salesThisMonth", "monthlySales", "currentMonthSales"])
        ),
    )


def normalize_delivery_note_settings(row: JsonRecord) -> DeliveryNoteSettings:
    return DeliveryNoteSettings(
        shop_name=normalize_nullable(row.get("shopName")),
        shop_address=normalize_nullable(row.get("shopAddress")),
        gst_number=normalize_nullable(row.get("gstNumber")),
        contact_number=normalize_nullable(row.get("contactNumber")),
        footer_text=normalize_nullable(row.get("footerText")),
        terms_and_conditions=normalize_nullable(row.get("termsAndConditions")),
        logo_url=normalize_nullable(row.get("logoUrl")),
        signature_line=normalize_nullable(row.get("signatureLine")),
    )
