from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional

OrderStatus = Literal["pending", "completed"]
Currency = Literal["EUR", "MKD"]
Category = Literal["smartphones", "accessories"]

_EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class CamelModel(BaseModel):
    """Request bodies use the camelCase names the front-end sends."""
    model_config = ConfigDict(populate_by_name=True)


# --- auth --------------------------------------------------------------------

class LoginRequest(BaseModel):
    email: str = Field(pattern=_EMAIL_PATTERN)
    password: str = Field(min_length=1)


# --- orders ------------------------------------------------------------------

class OrderLineCreate(CamelModel):
    product_id: int = Field(alias="productId", ge=1)
    quantity: int = Field(ge=1)


class OrderCreate(CamelModel):
    items: list[OrderLineCreate] = Field(min_length=1)
    guest_name: Optional[str] = Field(default=None, alias="guestName", min_length=1)
    guest_email: Optional[str] = Field(default=None, alias="guestEmail", pattern=_EMAIL_PATTERN)
    guest_phone: Optional[str] = Field(default=None, alias="guestPhone")
    client_id: Optional[int] = Field(default=None, alias="clientId", ge=1)
    status: OrderStatus = "pending"


class OrderLineReplace(CamelModel):
    product_id: int = Field(alias="productId", ge=1)
    quantity: int = Field(ge=1)
    # Caller-supplied so negotiated prices survive an edit
    price: Decimal = Field(ge=0, decimal_places=2)


class OrderUpdate(CamelModel):
    status: Optional[OrderStatus] = None
    items: Optional[list[OrderLineReplace]] = Field(default=None, min_length=1)


class OrderStatusUpdate(BaseModel):
    status: OrderStatus


# --- users -------------------------------------------------------------------

class UserRead(BaseModel):
    id: int
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    role: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ClientCreate(BaseModel):
    name: str = Field(min_length=2, max_length=255)
    phone: Optional[str] = Field(default=None, pattern=r"^\+?[0-9 ()-]{6,20}$")
    email: Optional[str] = Field(default=None, pattern=_EMAIL_PATTERN)
    role: Literal["client"] = "client"


class UserUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=255)
    email: Optional[str] = Field(default=None, pattern=_EMAIL_PATTERN)


class DebtAdjustmentCreate(BaseModel):
    # Ledger sign: positive pays debt down, negative adds debt
    debt: Decimal = Field(decimal_places=2)
    currency: Currency
    adjustment_type: Literal["manual_reduction"] = "manual_reduction"
    notes: Optional[str] = None


# --- products ----------------------------------------------------------------

class ProductCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    imei: Optional[str] = None
    price: Decimal = Field(ge=0, decimal_places=2)
    stock_quantity: int = Field(default=0, ge=0)
    stock_status: Literal["enabled", "disabled"] = "enabled"
    category: Category = "accessories"
    subcategory: Optional[str] = None
    model: Optional[str] = None
    color: Optional[str] = None
    storage_gb: Optional[str] = None
    barcode: Optional[str] = None


class ProductRead(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    imei: Optional[str] = None
    price: float
    stock_quantity: int
    stock_status: str
    category: str
    currency: str
    subcategory: Optional[str] = None
    model: Optional[str] = None
    color: Optional[str] = None
    storage_gb: Optional[str] = None
    barcode: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
