from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Optional


class PaymentMode(StrEnum):
    """Display/payment mode names; the upstream API uses 1=Cash, 2=UPI, 3=Finance."""

    CASH = "Cash"
    UPI = "UPI"
    FINANCE = "Finance"


class VehicleStatus(StrEnum):
    """Display status; the upstream API returns 1=Available, 2=Sold."""

    AVAILABLE = "AVAILABLE"
    SOLD = "SOLD"


PAYMENT_MODE_API = {
    PaymentMode.CASH: 1,
    PaymentMode.UPI: 2,
    PaymentMode.FINANCE: 3,
}

VEHICLE_STATUS_API = {
    VehicleStatus.AVAILABLE: 1,
    VehicleStatus.SOLD: 2,
}


@dataclass
class Vehicle:
    id: str
    brand: str
    model: str
    year: float
    registration_number: str
    chassis_number: str
    engine_number: str
    colour: str
    selling_price: float
    buying_cost: float
    expense: float
    seller_name: str
    seller_phone: str
    seller_address: str
    purchase_date: str
    image_url: str
    created_at: str
    status: VehicleStatus = VehicleStatus.AVAILABLE


@dataclass
class Purchase:
    """Purchase detail as returned by GET /api/purchases/{id}."""

    id: str
    brand: str
    model: str
    year: float
    registration_number: str
    chassis_number: str
    engine_number: str
    selling_price: float
    seller_name: str
    seller_phone: str
    seller_address: str
    buying_cost: float
    expense: float
    purchase_date: str
    image_url: str
    created_at: str


@dataclass
class Sale:
    id: str
    bill_number: str
    vehicle_id: str
    customer_name: str
    customer_photo_url: str
    phone: str
    address: str
    payment_mode: PaymentMode
    cash_amount: float
    upi_amount: float
    finance_amount: float
    finance_company: str
    total_payment: float
    sale_date: str
    registration_number: str
    # Normalized Vehicle when the row embeds one, otherwise the raw value.
    vehicle: Any = None


@dataclass
class SaleDetail:
    id: str
    bill_number: str
    vehicle_id: str
    customer_photo_url: str
    customer_name: str
    phone: str
    address: str
    payment_mode: PaymentMode
    cash_amount: float
    upi_amount: float
    finance_amount: float
    finance_company: str
    total_payment: float
    sale_date: str
    vehicle: Vehicle
    profit: float


@dataclass
class Customer:
    id: str
    name: str
    phone: str
    address: Optional[str]
    photo_url: Optional[str]
    created_at: str


@dataclass
class FinanceCompany:
    id: float
    name: str


@dataclass
class PurchaseExpense:
    id: float
    vehicle_id: float
    expense_type: str
    amount: float


@dataclass
class SearchResult:
    type: str
    bill_number: float
    customer_name: str
    customer_phone: str
    vehicle: str
    registration_number: str
    sale_date: str


@dataclass
class DashboardStats:
    total_vehicles_purchased: int = 0
    total_vehicles_sold: int = 0
    available_vehicles: int = 0
    total_profit: float = 0
    sales_this_month: float = 0


@dataclass
class DeliveryNoteSettings:
    shop_name: Optional[str] = None
    shop_address: Optional[str] = None
    gst_number: Optional[str] = None
    contact_number: Optional[str] = None
    footer_text: Optional[str] = None
    terms_and_conditions: Optional[str] = None
    logo_url: Optional[str] = None
    signature_line: Optional[str] = None


@dataclass
class PublicVehicle:
    """Storefront listing entry; never carries buying cost or seller details."""

    id: str
    brand: str
    model: str
    year: float
    registration_number: str
    chassis_number: Optional[str]
    engine_number: Optional[str]
    colour: Optional[str]
    selling_price: float
    status: VehicleStatus
    created_at: str
    image_url: Optional[str]
