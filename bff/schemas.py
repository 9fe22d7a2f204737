"""
Pydantic schemas for the BFF's request bodies.

Bodies arrive in camelCase, the shape the browser forms post. Validation
failures surface as a 400 carrying the first issue's message.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from typing import Any, Literal, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from bff.errors import ApiError
from dealership.normalize import as_number, as_string, to_status_value
from dealership.phone import is_valid_indian_phone, normalize_phone_india
from dealership.types import PAYMENT_MODE_API, PaymentMode

NameTitle = Literal["Mr", "Miss", "Mrs"]

SALE_PAYMENT_MODES = ("Cash", "UPI", "Finance", "Mixed")
FUTURE_DATE_GRACE = timedelta(days=1)

FIELD_LABELS = {
    "brand": "Brand",
    "model": "Model",
    "registration_number": "Registration number",
    "seller_name": "Seller name",
    "seller_phone": "Seller phone",
    "vehicle_id": "Vehicle",
    "customer_name": "Customer name",
    "phone": "Phone",
    "address": "Address",
    "item_description": "Item/Description",
    "photo_url": "Photo",
}


def _required(value: Any, label: str) -> str:
    text = as_string(value).strip()
    if not text:
        raise ValueError(f"{label} is required")
    return text


def _optional_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.strip() or None


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LoginRequest(CamelModel):
    username: str
    password: str

    @field_validator("username", "password", mode="before")
    @classmethod
    def _not_blank(cls, value: Any, info: ValidationInfo) -> str:
        label = info.field_name.capitalize()
        text = as_string(value)
        if not text.strip():
            raise ValueError(f"{label} is required")
        return text.strip() if info.field_name == "username" else text


class PurchaseCreate(CamelModel):
    brand: str
    model: str
    year: float
    registration_number: str
    chassis_number: Optional[str] = None
    engine_number: Optional[str] = None
    colour: Optional[str] = None
    selling_price: float
    seller_name: str
    seller_phone: str
    seller_address: Optional[str] = None
    buying_cost: float
    expense: float = 0
    purchase_date: str
    image_url: Optional[str] = None

    @field_validator(
        "brand", "model", "registration_number", "seller_name", "seller_phone",
        mode="before",
    )
    @classmethod
    def _required_text(cls, value: Any, info: ValidationInfo) -> str:
        return _required(value, FIELD_LABELS[info.field_name])

    @field_validator("chassis_number", "engine_number", "colour", "seller_address")
    @classmethod
    def _strip(cls, value: Optional[str]) -> Optional[str]:
        return value.strip() if value is not None else None

    @field_validator("image_url")
    @classmethod
    def _image_url(cls, value: Optional[str]) -> Optional[str]:
        return _optional_text(value)

    @field_validator("year")
    @classmethod
    def _year(cls, value: float) -> int:
        if not float(value).is_integer():
            raise ValueError("Year must be a whole number")
        if value < 1900:
            raise ValueError("Year must be 1900 or later")
        return int(value)

    @field_validator("selling_price", "buying_cost", "expense")
    @classmethod
    def _non_negative(cls, value: float, info: ValidationInfo) -> float:
        if value < 0:
            label = info.field_name.replace("_", " ").capitalize()
            raise ValueError(f"{label} cannot be negative")
        return value

    @field_validator("purchase_date", mode="before")
    @classmethod
    def _purchase_date(cls, value: Any) -> str:
        text = _required(value, "Purchase date")
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            raise ValueError("Purchase date must be a valid ISO 8601 datetime") from None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        if parsed > datetime.now(timezone.utc) + FUTURE_DATE_GRACE:
            raise ValueError("Purchase date cannot be in the future")
        return text

    @model_validator(mode="after")
    def _price_above_cost(self) -> "PurchaseCreate":
        if self.selling_price <= self.buying_cost:
            raise ValueError("Selling price must be greater than buying cost")
        return self

    def to_upstream_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class SaleCreate(CamelModel):
    vehicle_id: str
    vehicle_price: float
    customer_name: str
    phone: str
    address: str
    payment_mode: str
    cash_amount: float = 0
    upi_amount: float = 0
    finance_amount: float = 0
    finance_company: Optional[str] = None
    customer_id: Optional[str] = None
    customer_photo_url: Optional[str] = None
    sale_date: Optional[str] = None
    rc_book_received: Optional[bool] = None
    ownership_transfer_accepted: Optional[bool] = None
    vehicle_accepted_in_as_is_condition: Optional[bool] = None

    @field_validator("vehicle_id", "customer_name", "phone", "address", mode="before")
    @classmethod
    def _required_text(cls, value: Any, info: ValidationInfo) -> str:
        return _required(value, FIELD_LABELS[info.field_name])

    @field_validator("customer_id", mode="before")
    @classmethod
    def _customer_id(cls, value: Any) -> Optional[str]:
        text = as_string(value).strip()
        return text or None

    @field_validator("vehicle_price")
    @classmethod
    def _positive_price(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("Vehicle price is required")
        return value

    @field_validator("payment_mode")
    @classmethod
    def _payment_mode(cls, value: str) -> str:
        if value not in SALE_PAYMENT_MODES:
            raise ValueError("Payment mode must be Cash, UPI, Finance or Mixed")
        return value

    @field_validator("cash_amount", "upi_amount", "finance_amount")
    @classmethod
    def _non_negative(cls, value: float) -> float:
        if value < 0:
            raise ValueError("Amount cannot be negative")
        return value

    @model_validator(mode="after")
    def _payment_split(self) -> "SaleCreate":
        mode = self.payment_mode
        if mode == "Cash" and self.cash_amount <= 0:
            raise ValueError("Cash amount is required")
        if mode == "UPI" and self.upi_amount <= 0:
            raise ValueError("UPI amount is required")
        if mode == "Finance" and self.finance_amount <= 0:
            raise ValueError("Finance amount is required")
        if (
            mode in ("Finance", "Mixed")
            and self.finance_amount > 0
            and not (self.finance_company or "").strip()
        ):
            raise ValueError("Finance company is required")

        total = self.cash_amount + self.upi_amount + self.finance_amount
        if abs(total - self.vehicle_price) > 0.001:
            raise ValueError("Total payment must equal vehicle selling price")
        return self


class ManualBillCreate(CamelModel):
    customer_name_title: Optional[NameTitle] = None
    customer_name: str
    phone: str
    address: Optional[str] = None
    item_description: str
    chassis_number: Optional[str] = None
    engine_number: Optional[str] = None
    color: Optional[str] = None
    notes: Optional[str] = None
    total_amount: float = Field(
        validation_alias=AliasChoices("totalAmount", "amountTotal", "total_amount")
    )
    payment_mode: PaymentMode = Field(default=None, validate_default=True)
    finance_company: Optional[str] = None
    seller_name: Optional[str] = None
    seller_name_title: Optional[NameTitle] = None
    seller_address: Optional[str] = None
    photo_url: str

    @field_validator("customer_name", "phone", "item_description", "photo_url", mode="before")
    @classmethod
    def _required_text(cls, value: Any, info: ValidationInfo) -> str:
        return _required(value, FIELD_LABELS[info.field_name])

    @field_validator("customer_name_title", "seller_name_title", mode="before")
    @classmethod
    def _blank_title(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value.strip() if isinstance(value, str) else value

    @field_validator("phone")
    @classmethod
    def _phone(cls, value: str) -> str:
        if not is_valid_indian_phone(value):
            raise ValueError("Phone must be 10 digits or +91 followed by 10 digits.")
        return value

    @field_validator("payment_mode", mode="before")
    @classmethod
    def _payment_mode(cls, value: Any) -> Any:
        # The upstream DTO shape posts 1/2/3.
        for mode, code in PAYMENT_MODE_API.items():
            if value == code or (isinstance(value, str) and value.strip() == str(code)):
                return mode
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValueError("Select payment mode")
        return value

    @field_validator("total_amount")
    @classmethod
    def _total(cls, value: float) -> float:
        if value < 0:
            raise ValueError("Amount cannot be negative")
        if value <= 0:
            raise ValueError("Total amount must be greater than 0")
        return value

    @model_validator(mode="after")
    def _finance_company(self) -> "ManualBillCreate":
        if self.payment_mode == PaymentMode.FINANCE and not (self.finance_company or "").strip():
            raise ValueError("Finance company / name is required when payment mode is Finance")
        return self

    def to_upstream_payload(self) -> dict[str, Any]:
        """The upstream ManualBillCreateDto; absent values are omitted."""
        mode = self.payment_mode
        total = self.total_amount
        payload = {
            "customerName": self.customer_name,
            "customerNameTitle": self.customer_name_title,
            "phone": normalize_phone_india(self.phone),
            "address": _optional_text(self.address),
            "itemDescription": self.item_description,
            "chassisNumber": _optional_text(self.chassis_number),
            "engineNumber": _optional_text(self.engine_number),
            "color": _optional_text(self.color),
            "notes": _optional_text(self.notes),
            "amountTotal": total,
            "paymentMode": PAYMENT_MODE_API[mode],
            "cashAmount": total if mode == PaymentMode.CASH else None,
            "upiAmount": total if mode == PaymentMode.UPI else None,
            "financeAmount": total if mode == PaymentMode.FINANCE else None,
            "financeCompany": _optional_text(self.finance_company)
            if mode == PaymentMode.FINANCE
            else None,
            "photoUrl": self.photo_url,
            "sellerName": _optional_text(self.seller_name),
            "sellerNameTitle": self.seller_name_title,
            "sellerAddress": _optional_text(self.seller_address),
        }
        return {key: value for key, value in payload.items() if value is not None}


class CustomerCreate(CamelModel):
    name: str
    phone: str
    address: Optional[str] = None
    photo_url: Optional[str] = None

    @field_validator("name", "phone", mode="before")
    @classmethod
    def _required_text(cls, value: Any, info: ValidationInfo) -> str:
        return _required(value, info.field_name.capitalize())

    def to_upstream_payload(self) -> dict[str, Any]:
        payload = self.model_dump(by_alias=True, exclude_none=True)
        if "address" in payload and not payload["address"].strip():
            del payload["address"]
        return payload


class FinanceCompanyCreate(BaseModel):
    model_config = ConfigDict(validate_default=True)

    name: Any = None

    @field_validator("name")
    @classmethod
    def _name(cls, value: Any) -> str:
        text = as_string(value).strip()
        if not text:
            raise ValueError("Finance company name is required.")
        return text


class ExpenseCreate(CamelModel):
    model_config = ConfigDict(validate_default=True)

    expense_type: Any = Field(
        default=None,
        validation_alias=AliasChoices("expenseType", "expense_type", "type"),
    )
    amount: Any = None

    @field_validator("expense_type")
    @classmethod
    def _expense_type(cls, value: Any) -> str:
        text = as_string(value).strip()
        if not text:
            raise ValueError("Expense type is required.")
        return text

    @field_validator("amount")
    @classmethod
    def _amount(cls, value: Any) -> float:
        amount = as_number(value, None)
        if amount is None or amount <= 0:
            raise ValueError("Amount must be greater than zero.")
        return amount

    def to_upstream_payload(self) -> dict[str, Any]:
        return {"expenseType": self.expense_type, "amount": self.amount}


class VehicleUpdate(BaseModel):
    """Partial update of price, colour and registration; aliases are accepted."""

    selling_price: Any = Field(
        default=None, validation_alias=AliasChoices("sellingPrice", "selling_price")
    )
    colour: Any = Field(default=None, validation_alias=AliasChoices("colour", "color"))
    registration_number: Any = Field(
        default=None,
        validation_alias=AliasChoices("registrationNumber", "registration_number"),
    )

    def to_upstream_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        price = as_number(self.selling_price, None)
        if price is not None and price >= 0:
            payload["sellingPrice"] = price

        # An explicit empty string clears the field.
        if "colour" in self.model_fields_set and self.colour is not None:
            payload["colour"] = as_string(self.colour).strip() or None
        if "registration_number" in self.model_fields_set and self.registration_number is not None:
            payload["registrationNumber"] = as_string(self.registration_number).strip() or None

        return payload


class VehicleStatusUpdate(BaseModel):
    model_config = ConfigDict(validate_default=True)

    status: Any = Field(
        default=None,
        validation_alias=AliasChoices("status", "vehicleStatus", "vehicle_status"),
    )

    @field_validator("status")
    @classmethod
    def _status(cls, value: Any) -> int:
        code = to_status_value(value)
        if code is None:
            raise ValueError("Status is required and must be Available or Sold.")
        return code


class DeliveryNoteSettingsUpdate(CamelModel):
    shop_name: Optional[str] = None
    shop_address: Optional[str] = None
    gst_number: Optional[str] = None
    contact_number: Optional[str] = None
    footer_text: Optional[str] = None
    terms_and_conditions: Optional[str] = None
    logo_url: Optional[str] = None
    signature_line: Optional[str] = None

    def to_upstream_payload(self) -> dict[str, Any]:
        return {
            to_camel(name): _optional_text(value)
            for name, value in self.model_dump(exclude_unset=True).items()
        }


_LEADING_DIGITS = re.compile(r"\s*([+-]?\d+)")


def parse_positive_id(value: str, label: str) -> int:
    """Leading integer of a path segment; 400 unless it is positive."""
    match = _LEADING_DIGITS.match(value or "")
    parsed = int(match.group(1)) if match else 0
    if parsed <= 0:
        raise ApiError(400, f"{label} ID is required.")
    return parsed


def require_path_value(value: str, message: str) -> str:
    text = (value or "").strip()
    if not text:
        raise ApiError(400, message)
    return text
