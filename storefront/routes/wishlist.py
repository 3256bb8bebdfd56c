from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.database import get_products_db
from storefront.responses import ApiResponse, success_response
from storefront.schemas.wishlist import WishlistAdd, WishlistItemOut
from storefront.services import wishlist as wishlist_service
from storefront.utils.identity import Identity, get_current_identity

router = APIRouter(prefix="/api/wishlist", tags=["Wishlist"])


@router.get("", response_model=ApiResponse[List[WishlistItemOut]])
def get_wishlist(
    db: Session = Depends(get_products_db),
    identity: Identity = Depends(get_current_identity),
):
    rows = wishlist_service.list_wishlist(db, identity.user_id)
    return success_response([WishlistItemOut.model_validate(w) for w in rows])


@router.post("", response_model=ApiResponse[WishlistItemOut])
def add_to_wishlist(
    payload: WishlistAdd,
    db: Session = Depends(get_products_db),
    identity: Identity = Depends(get_current_identity),
):
    item = wishlist_service.add_to_wishlist(db, identity.user_id, payload.product_id)
    return success_response(WishlistItemOut.model_validate(item), message="Added to wishlist")


@router.delete("/{product_id}", response_model=ApiResponse[dict])
def remove_from_wishlist(
    product_id: str,
    db: Session = Depends(get_products_db),
    identity: Identity = Depends(get_current_identity),
):
    wishlist_service.remove_from_wishlist(db, identity.user_id, product_id)
    return success_response(message="Removed from wishlist")
