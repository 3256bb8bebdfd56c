# storefront/models/order.py
import enum
from sqlalchemy import Column, String, Float, Integer, ForeignKey, DateTime, Text, func
from sqlalchemy.orm import relationship
from storefront.database import OrdersBase
from storefront.models._ids import new_id

# Lifecycle states of an order
class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    RETURNED = "returned"

class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"

class Order(OrdersBase):
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=new_id)
    order_number = Column(String, unique=True, index=True, nullable=False)
    user_id = Column(String, index=True, nullable=False) # Identity provider user id
    status = Column(String, default=OrderStatus.PENDING.value, index=True, nullable=False)

    payment_method = Column(String, nullable=False)
    payment_status = Column(String, default=PaymentStatus.PENDING.value, nullable=False)
    currency = Column(String(3), default="INR", nullable=False)

    # Monetary fields, total = subtotal + tax + shipping - discount
    subtotal = Column(Float, nullable=False)
    tax_amount = Column(Float, nullable=False, default=0)
    shipping_amount = Column(Float, nullable=False, default=0)
    discount_amount = Column(Float, nullable=False, default=0)
    total_amount = Column(Float, nullable=False)

    # Shipping address snapshot
    shipping_first_name = Column(String, nullable=False)
    shipping_last_name = Column(String, nullable=False)
    shipping_address_line_1 = Column(String, nullable=False)
    shipping_address_line_2 = Column(String, nullable=True)
    shipping_city = Column(String, nullable=False)
    shipping_state = Column(String, nullable=False)
    shipping_postal_code = Column(String, nullable=False)
    shipping_country = Column(String, nullable=False)
    shipping_phone = Column(String, nullable=True)

    # Billing address snapshot
    billing_first_name = Column(String, nullable=False)
    billing_last_name = Column(String, nullable=False)
    billing_address_line_1 = Column(String, nullable=False)
    billing_address_line_2 = Column(String, nullable=True)
    billing_city = Column(String, nullable=False)
    billing_state = Column(String, nullable=False)
    billing_postal_code = Column(String, nullable=False)
    billing_country = Column(String, nullable=False)
    billing_phone = Column(String, nullable=True)

    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    confirmed_at = Column(DateTime(timezone=True), nullable=True)
    shipped_at = Column(DateTime(timezone=True), nullable=True)
    delivered_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)

    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan")

# Line item snapshotted from the product at purchase time
class OrderItem(OrdersBase):
    __tablename__ = "order_items"

    id = Column(String(36), primary_key=True, default=new_id)
    order_id = Column(String(36), ForeignKey("orders.id"), index=True, nullable=False)
    product_id = Column(String(36), nullable=False) # Lives in the products store
    product_name = Column(String, nullable=False)
    sku = Column(String, nullable=True)
    size = Column(String, nullable=True)
    color = Column(String, nullable=True)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Float, nullable=False)
    total_price = Column(Float, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    order = relationship("Order", back_populates="items")
