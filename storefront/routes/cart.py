# storefront/routes/cart.py
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from storefront.database import get_products_db, get_users_db
from storefront.responses import ApiResponse, success_response
from storefront.schemas.cart import CartAddItem, CartItemOut, CartOut, CartUpdateItem
from storefront.services import cart as cart_service
from storefront.utils.audit import client_ip, write_log
from storefront.utils.identity import Identity, get_current_identity

router = APIRouter(prefix="/api/cart", tags=["Cart"])


@router.get("", response_model=ApiResponse[CartOut])
def get_cart(
    db: Session = Depends(get_products_db),
    identity: Identity = Depends(get_current_identity),
):
    items = cart_service.get_cart_items(db, identity.user_id)
    return success_response(cart_service.cart_to_out(items))


@router.post("", response_model=ApiResponse[CartItemOut])
def add_to_cart(
    payload: CartAddItem,
    request: Request,
    db: Session = Depends(get_products_db),
    users_db: Session = Depends(get_users_db),
    identity: Identity = Depends(get_current_identity),
):
    item = cart_service.add_item(db, identity.user_id, payload.product_id, payload.quantity,
                                 size=payload.size, color=payload.color)

    # Log cart add action
    write_log(
        users_db,
        user_id=identity.user_id,
        action="CART_ADD",
        resource="cart",
        status="SUCCESS",
        ip=client_ip(request),
        meta={"product_id": item.product_id, "qty": payload.quantity, "line_qty": item.quantity},
    )
    return success_response(CartItemOut.model_validate(item), message="Item added to cart successfully")


# Clear the caller's cart
@router.delete("", response_model=ApiResponse[dict])
def clear_cart(
    request: Request,
    db: Session = Depends(get_products_db),
    users_db: Session = Depends(get_users_db),
    identity: Identity = Depends(get_current_identity),
):
    removed = cart_service.clear_cart(db, identity.user_id)
    write_log(users_db, user_id=identity.user_id, action="CART_CLEAR", resource="cart", status="SUCCESS",
              ip=client_ip(request), meta={"removed": removed})
    return success_response({"removed": removed}, message="Cart cleared successfully")


@router.put("/{item_id}", response_model=ApiResponse[CartItemOut])
def update_cart_item(
    item_id: str,
    payload: CartUpdateItem,
    request: Request,
    db: Session = Depends(get_products_db),
    users_db: Session = Depends(get_users_db),
    identity: Identity = Depends(get_current_identity),
):
    item = cart_service.update_item(db, identity.user_id, item_id, payload.quantity)
    write_log(users_db, user_id=identity.user_id, action="CART_UPDATE", resource="cart", status="SUCCESS",
              ip=client_ip(request), meta={"item_id": item_id, "qty": payload.quantity})
    return success_response(CartItemOut.model_validate(item), message="Cart item updated successfully")


@router.delete("/{item_id}", response_model=ApiResponse[dict])
def delete_cart_item(
    item_id: str,
    request: Request,
    db: Session = Depends(get_products_db),
    users_db: Session = Depends(get_users_db),
    identity: Identity = Depends(get_current_identity),
):
    cart_service.remove_item(db, identity.user_id, item_id)
    write_log(users_db, user_id=identity.user_id, action="CART_DELETE", resource="cart", status="SUCCESS",
              ip=client_ip(request), meta={"item_id": item_id})
    return success_response(message="Cart item removed successfully")
