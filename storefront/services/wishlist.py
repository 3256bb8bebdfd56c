from typing import List

from sqlalchemy.orm import Session, joinedload

from storefront.errors import NotFoundError
from storefront.models.wishlist import WishlistItem
from storefront.services.products import ensure_uuid, get_active_product


def list_wishlist(db: Session, user_id: str) -> List[WishlistItem]:
    return (
        db.query(WishlistItem)
        .options(joinedload(WishlistItem.product))
        .filter(WishlistItem.user_id == user_id)
        .order_by(WishlistItem.created_at.desc())
        .all()
    )


def add_to_wishlist(db: Session, user_id: str, product_id: str) -> WishlistItem:
    product = get_active_product(db, product_id)
    item = db.query(WishlistItem).filter(WishlistItem.user_id == user_id, WishlistItem.product_id == product.id).first()
    if item:
        return item
    item = WishlistItem(user_id=user_id, product_id=product.id)
    db.add(item)
    db.commit()
    db.refresh(item)
    return item


def remove_from_wishlist(db: Session, user_id: str, product_id: str) -> None:
    ensure_uuid(product_id, "product_id")
    removed = (
        db.query(WishlistItem)
        .filter(WishlistItem.user_id == user_id, WishlistItem.product_id == product_id)
        .delete(synchronize_session=False)
    )
    if not removed:
        raise NotFoundError("Wishlist item", product_id)
    db.commit()
