# storefront/services/cart.py
import logging
from typing import List, Optional

from sqlalchemy.orm import Session, joinedload

from storefront.errors import NotFoundError, ValidationError
from storefront.models.cart import CartItem
from storefront.models.product import Product
from storefront.schemas.cart import CartItemOut, CartOut
from storefront.services.products import ensure_uuid, get_active_product

logger = logging.getLogger(__name__)


def get_cart_items(db: Session, user_id: str) -> List[CartItem]:
    return (
        db.query(CartItem)
        .options(joinedload(CartItem.product))
        .filter(CartItem.user_id == user_id)
        .order_by(CartItem.created_at.desc())
        .all()
    )


def cart_to_out(items: List[CartItem]) -> CartOut:
    item_count = sum(it.quantity for it in items)
    total_price = sum(it.quantity * (it.product.price if it.product else 0) for it in items)
    return CartOut(
        items=[CartItemOut.model_validate(it) for it in items],
        item_count=item_count,
        total_price=round(total_price, 2),
    )


def _check_stock(product: Product, quantity: int, in_cart: int = 0) -> None:
    if product.stock_quantity == 0:
        raise ValidationError(f"{product.name} is currently out of stock.", field="quantity")
    if in_cart + quantity > product.stock_quantity:
        if in_cart:
            raise ValidationError(
                f"Cannot add {quantity} more items. You already have {in_cart} in cart. "
                f"Only {product.stock_quantity} available.",
                field="quantity",
            )
        raise ValidationError(
            f"Only {product.stock_quantity} {product.name} available in stock. Cannot add {quantity} items.",
            field="quantity",
        )


def _variant_filter(query, size: Optional[str], color: Optional[str]):
    query = query.filter(CartItem.size.is_(None) if size is None else CartItem.size == size)
    return query.filter(CartItem.color.is_(None) if color is None else CartItem.color == color)


def add_item(
    db: Session,
    user_id: str,
    product_id: str,
    quantity: int = 1,
    size: Optional[str] = None,
    color: Optional[str] = None,
) -> CartItem:
    if quantity < 1:
        raise ValidationError("Invalid quantity", field="quantity")
    product = get_active_product(db, product_id)

    existing = _variant_filter(
        db.query(CartItem).filter(CartItem.user_id == user_id, CartItem.product_id == product.id),
        size, color,
    ).first()

    if existing:
        _check_stock(product, quantity, in_cart=existing.quantity)
        existing.quantity += quantity
        item = existing
    else:
        _check_stock(product, quantity)
        item = CartItem(user_id=user_id, product_id=product.id, quantity=quantity, size=size, color=color)
        db.add(item)

    db.commit()
    db.refresh(item)
    return item


def _owned_item(db: Session, user_id: str, item_id: str) -> CartItem:
    ensure_uuid(item_id, "item_id")
    item = db.query(CartItem).filter(CartItem.id == item_id, CartItem.user_id == user_id).first()
    if not item:
        raise NotFoundError("Cart item", item_id)
    return item


def update_item(db: Session, user_id: str, item_id: str, quantity: int) -> CartItem:
    if quantity < 1:
        raise ValidationError("Invalid quantity", field="quantity")
    item = _owned_item(db, user_id, item_id)
    # Lines for products taken off sale can only be removed
    if not item.product or item.product.status != "active":
        raise NotFoundError("Product", item.product_id)

    # Validate stock for the new quantity
    _check_stock(item.product, quantity)
    item.quantity = quantity
    db.commit()
    db.refresh(item)
    return item


def remove_item(db: Session, user_id: str, item_id: str) -> None:
    item = _owned_item(db, user_id, item_id)
    db.delete(item)
    db.commit()


def clear_cart(db: Session, user_id: str) -> int:
    removed = db.query(CartItem).filter(CartItem.user_id == user_id).delete(synchronize_session=False)
    db.commit()
    logger.info("Cleared %s cart items for user %s", removed, user_id)
    return removed
