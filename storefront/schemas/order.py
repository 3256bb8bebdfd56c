from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import List, Optional
from datetime import datetime

from storefront.schemas.common import Pagination


# Postal address as captured at checkout
class AddressIn(BaseModel):
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    address_line_1: str = Field(min_length=1)
    address_line_2: Optional[str] = None
    city: str = Field(min_length=1)
    state: str = Field(min_length=1)
    postal_code: str = Field(min_length=1)
    country: str = "India"
    phone: Optional[str] = None


# Input schema for placing an order from the current cart
class OrderCreatePayload(BaseModel):
    shipping_address: Optional[AddressIn] = None
    shipping_address_id: Optional[str] = None # Saved address from the address book
    billing_address: Optional[AddressIn] = None
    payment_method: str = Field(min_length=1)

    tax_amount: float = Field(default=0, ge=0, allow_inf_nan=False)
    shipping_amount: float = Field(default=0, ge=0, allow_inf_nan=False)
    discount_amount: float = Field(default=0, ge=0, allow_inf_nan=False)
    notes: Optional[str] = None

    @model_validator(mode="after")
    def _require_shipping(self):
        if self.shipping_address is None and not self.shipping_address_id:
            raise ValueError("shipping_address or shipping_address_id is required")
        return self


# Output schema for an individual order line item
class OrderItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    product_id: str
    product_name: str
    sku: Optional[str] = None
    size: Optional[str] = None
    color: Optional[str] = None
    quantity: int
    unit_price: float
    total_price: float


# Output schema representing the full order details
class OrderOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    order_number: str
    user_id: str
    status: str
    payment_method: str
    payment_status: str
    currency: str
    subtotal: float
    tax_amount: float
    shipping_amount: float
    discount_amount: float
    total_amount: float

    shipping_first_name: str
    shipping_last_name: str
    shipping_address_line_1: str
    shipping_address_line_2: Optional[str] = None
    shipping_city: str
    shipping_state: str
    shipping_postal_code: str
    shipping_country: str
    shipping_phone: Optional[str] = None

    billing_first_name: str
    billing_last_name: str
    billing_address_line_1: str
    billing_address_line_2: Optional[str] = None
    billing_city: str
    billing_state: str
    billing_postal_code: str
    billing_country: str
    billing_phone: Optional[str] = None

    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    confirmed_at: Optional[datetime] = None
    shipped_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    items: List[OrderItemOut] = []


class OrdersPage(BaseModel):
    orders: List[OrderOut]
    pagination: Pagination


# Schema for updating order status
class OrderStatusPatch(BaseModel):
    status: str


# Per-user order counters for the account page
class OrderSummary(BaseModel):
    total_orders: int
    pending_orders: int
    completed_orders: int
    total_spent: float
