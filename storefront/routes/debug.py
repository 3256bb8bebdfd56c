# storefront/routes/debug.py
# Diagnostic endpoints, mounted only when DEBUG_ROUTES is enabled.
import logging
from datetime import datetime, timezone
from fastapi import APIRouter, Depends, Request
from sqlalchemy import func
from sqlalchemy.orm import Session

from storefront.database import get_products_db
from storefront.errors import NotFoundError, ValidationError
from storefront.models.product import Product
from storefront.responses import success_response
from storefront.schemas.cart import CartItemOut
from storefront.schemas.product import ProductOut
from storefront.services import cart as cart_service
from storefront.utils.identity import Identity, get_current_identity

router = APIRouter(prefix="/api", tags=["Debug"])
logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/test-cart")
def test_cart_get():
    return success_response({"timestamp": _now()}, message="Test cart API is working")


@router.post("/test-cart")
async def test_cart_post(request: Request):
    try:
        body = await request.json()
    except ValueError:
        raise ValidationError("Failed to parse request body")
    return success_response({"received": body, "timestamp": _now()}, message="POST request received successfully")


# Put one unit of the first in-stock product into the caller's cart
@router.post("/test/add-to-cart")
def test_add_to_cart(
    db: Session = Depends(get_products_db),
    identity: Identity = Depends(get_current_identity),
):
    product = (
        db.query(Product)
        .filter(Product.status == "active", Product.stock_quantity > 0)
        .order_by(Product.created_at.asc())
        .first()
    )
    if not product:
        raise NotFoundError("Product")
    item = cart_service.add_item(db, identity.user_id, product.id, 1)
    return success_response(CartItemOut.model_validate(item), message=f"Added {product.name} to cart")


@router.get("/test/check-cart")
def test_check_cart(
    db: Session = Depends(get_products_db),
    identity: Identity = Depends(get_current_identity),
):
    items = cart_service.get_cart_items(db, identity.user_id)
    return success_response({
        "user_id": identity.user_id,
        "cart_items": [CartItemOut.model_validate(it) for it in items],
        "cart_count": len(items),
    })


@router.get("/products/debug")
def products_debug(db: Session = Depends(get_products_db)):
    counts = dict(db.query(Product.status, func.count(Product.id)).group_by(Product.status).all())
    sample = db.query(Product).filter(Product.status == "active").limit(10).all()
    logger.debug("Products debug: %s", counts)
    return success_response({
        "products": [ProductOut.model_validate(p) for p in sample],
        "count": len(sample),
        "by_status": counts,
    })
