# storefront/services/orders.py
import logging
import secrets
from collections import defaultdict
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from storefront.errors import InternalError, NotFoundError, UnauthorizedError, ValidationError
from storefront.models.cart import CartItem
from storefront.models.order import Order, OrderItem, OrderStatus, PaymentStatus
from storefront.models.product import Product
from storefront.schemas.order import AddressIn, OrderCreatePayload

logger = logging.getLogger(__name__)

# Allowed status changes; terminal states have no entry
STATUS_TRANSITIONS: Dict[str, set] = {
    OrderStatus.PENDING.value: {OrderStatus.CONFIRMED.value, OrderStatus.CANCELLED.value},
    OrderStatus.CONFIRMED.value: {OrderStatus.PROCESSING.value, OrderStatus.CANCELLED.value},
    OrderStatus.PROCESSING.value: {OrderStatus.SHIPPED.value, OrderStatus.CANCELLED.value},
    OrderStatus.SHIPPED.value: {OrderStatus.DELIVERED.value},
    OrderStatus.DELIVERED.value: {OrderStatus.RETURNED.value},
}

# Timestamp column stamped when an order enters a status
STATUS_TIMESTAMPS = {
    OrderStatus.CONFIRMED.value: "confirmed_at",
    OrderStatus.SHIPPED.value: "shipped_at",
    OrderStatus.DELIVERED.value: "delivered_at",
    OrderStatus.CANCELLED.value: "cancelled_at",
}

# Statuses from which the customer may still cancel
CUSTOMER_CANCELLABLE = {OrderStatus.PENDING.value, OrderStatus.CONFIRMED.value}


def generate_order_number(now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    return f"ORD-{now:%Y%m%d}-{secrets.token_hex(4).upper()}"


def compute_totals(subtotal: float, tax: float = 0, shipping: float = 0, discount: float = 0) -> float:
    return round(subtotal + (tax or 0) + (shipping or 0) - (discount or 0), 2)


def _address_columns(prefix: str, address: AddressIn) -> dict:
    return {f"{prefix}_{field}": value for field, value in address.model_dump().items()}


def _load_order(db: Session, order_id: str) -> Optional[Order]:
    return db.query(Order).options(selectinload(Order.items)).filter(Order.id == order_id).first()


def create_order(
    orders_db: Session,
    products_db: Session,
    *,
    user_id: Optional[str],
    payload: OrderCreatePayload,
    shipping_address: AddressIn,
    currency: str = "INR",
) -> Order:
    """
    Converts the user's cart into an order.

    Orders and products live in separate stores, so the two sessions are
    flushed first and committed in order: the order commits before the
    inventory/cart changes. If the inventory commit fails the order is
    compensated by cancelling it.
    """
    if not user_id:
        raise UnauthorizedError()

    cart_items: List[CartItem] = (
        products_db.query(CartItem)
        .filter(CartItem.user_id == user_id)
        .order_by(CartItem.created_at.asc())
        .all()
    )
    if not cart_items:
        raise ValidationError("Cart is empty", field="cart")

    # Re-read stock under a row lock and validate the summed quantity per product
    products: Dict[str, Product] = {}
    requested: Dict[str, int] = defaultdict(int)
    for ci in cart_items:
        requested[ci.product_id] += ci.quantity
        if ci.product_id not in products:
            product = products_db.query(Product).filter(Product.id == ci.product_id).with_for_update().first()
            if product is None or product.status != "active":
                raise ValidationError(f"Insufficient stock for product {ci.product_id}", field="items")
            products[ci.product_id] = product

    for product_id, qty in requested.items():
        product = products[product_id]
        if qty > product.stock_quantity:
            raise ValidationError(
                f"Insufficient stock for {product.name}: requested {qty}, available {product.stock_quantity}",
                field="items",
            )

    subtotal = round(sum(products[ci.product_id].price * ci.quantity for ci in cart_items), 2)
    total_amount = compute_totals(subtotal, payload.tax_amount, payload.shipping_amount, payload.discount_amount)
    if total_amount < 0:
        raise ValidationError("Discount exceeds order amount", field="discount_amount")

    billing_address = payload.billing_address or shipping_address
    order = Order(
        order_number=generate_order_number(),
        user_id=user_id,
        status=OrderStatus.PENDING.value,
        payment_method=payload.payment_method,
        payment_status=PaymentStatus.PENDING.value,
        currency=currency,
        subtotal=subtotal,
        tax_amount=payload.tax_amount,
        shipping_amount=payload.shipping_amount,
        discount_amount=payload.discount_amount,
        total_amount=total_amount,
        notes=payload.notes,
        **_address_columns("shipping", shipping_address),
        **_address_columns("billing", billing_address),
    )

    # Snapshot the product data as it is right now
    order.items = [
        OrderItem(
            product_id=ci.product_id,
            product_name=products[ci.product_id].name,
            sku=products[ci.product_id].sku,
            size=ci.size,
            color=ci.color,
            quantity=ci.quantity,
            unit_price=products[ci.product_id].price,
            total_price=round(products[ci.product_id].price * ci.quantity, 2),
        )
        for ci in cart_items
    ]

    try:
        orders_db.add(order)
        orders_db.flush()

        for ci in cart_items:
            products[ci.product_id].stock_quantity -= ci.quantity
            products_db.delete(ci)
        products_db.flush()
    except SQLAlchemyError as e:
        orders_db.rollback()
        products_db.rollback()
        logger.exception("Failed to stage order for user %s: %s", user_id, e)
        raise InternalError("Failed to create order")

    try:
        orders_db.commit()
    except SQLAlchemyError as e:
        orders_db.rollback()
        products_db.rollback()
        logger.exception("Failed to commit order for user %s: %s", user_id, e)
        raise InternalError("Failed to create order")

    try:
        products_db.commit()
    except SQLAlchemyError as e:
        products_db.rollback()
        logger.error("Inventory update failed after order %s was stored: %s", order.order_number, e)
        _compensate(orders_db, order)
        raise InternalError("Failed to create order")

    logger.info("Order %s created for user %s, total %.2f", order.order_number, user_id, total_amount)
    return _load_order(orders_db, order.id)


def _compensate(db: Session, order: Order) -> None:
    try:
        order.status = OrderStatus.CANCELLED.value
        order.cancelled_at = datetime.now(timezone.utc)
        order.notes = ((order.notes + "\n") if order.notes else "") + "Cancelled automatically: inventory update failed"
        db.commit()
        logger.warning("Order %s cancelled after inventory failure", order.order_number)
    except SQLAlchemyError as e:
        db.rollback()
        logger.critical("Order %s stored without inventory update and could not be cancelled: %s",
                        order.order_number, e)


def list_user_orders(db: Session, user_id: str, limit: int = 20, page: int = 1) -> Tuple[List[Order], int]:
    query = db.query(Order).filter(Order.user_id == user_id)
    total = query.count()
    rows = (
        query.options(selectinload(Order.items))
        .order_by(Order.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return rows, total


def get_order(db: Session, order_id: str, user_id: Optional[str] = None) -> Order:
    order = _load_order(db, order_id)
    # Other users' orders are reported as missing
    if not order or (user_id is not None and order.user_id != user_id):
        raise NotFoundError("Order", order_id)
    return order


def get_order_by_number(db: Session, order_number: str, user_id: Optional[str] = None) -> Order:
    order = (
        db.query(Order)
        .options(selectinload(Order.items))
        .filter(Order.order_number == order_number.strip().upper())
        .first()
    )
    if not order or (user_id is not None and order.user_id != user_id):
        raise NotFoundError("Order", order_number)
    return order


def order_summary(db: Session, user_id: str) -> dict:
    """Counts the user's orders by stage; cancelled orders are not part of total_spent."""
    rows = db.query(Order.status, Order.total_amount).filter(Order.user_id == user_id).all()
    pending = {OrderStatus.PENDING.value, OrderStatus.CONFIRMED.value}
    return {
        "total_orders": len(rows),
        "pending_orders": sum(1 for status, _ in rows if status in pending),
        "completed_orders": sum(1 for status, _ in rows if status == OrderStatus.DELIVERED.value),
        "total_spent": round(sum(total or 0 for status, total in rows if status != OrderStatus.CANCELLED.value), 2),
    }


def update_order_status(db: Session, order_id: str, new_status: str, user_id: Optional[str] = None) -> Order:
    if new_status not in {s.value for s in OrderStatus}:
        raise ValidationError(f"Unknown order status '{new_status}'", field="status")

    order = get_order(db, order_id, user_id)
    old_status = order.status
    if new_status not in STATUS_TRANSITIONS.get(old_status, set()):
        raise ValidationError(f"Cannot change status from {old_status} to {new_status}", field="status")

    order.status = new_status
    stamp = STATUS_TIMESTAMPS.get(new_status)
    if stamp:
        setattr(order, stamp, datetime.now(timezone.utc))
    db.commit()
    logger.info("Order %s status %s -> %s", order.order_number, old_status, new_status)
    return _load_order(db, order.id)


def cancel_order(db: Session, order_id: str, user_id: str) -> Order:
    order = get_order(db, order_id, user_id)
    if order.status not in CUSTOMER_CANCELLABLE:
        raise ValidationError(f"Order cannot be cancelled once {order.status}", field="status")
    return update_order_status(db, order_id, OrderStatus.CANCELLED.value, user_id)
