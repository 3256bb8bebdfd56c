# storefront/routes/products.py
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from storefront.database import get_products_db, get_users_db
from storefront.responses import ApiResponse, success_response
from storefront.schemas.common import paginate
from storefront.schemas.product import (
    CategoryOut,
    ProductListPage,
    ProductOut,
    ProductReviewsOut,
    ReviewCreate,
    ReviewOut,
)
from storefront.services import products as products_service
from storefront.utils.audit import client_ip, write_log
from storefront.utils.identity import Identity, get_current_identity

router = APIRouter(prefix="/api", tags=["Products"])


# Paginated list of active products with optional filters
@router.get("/products", response_model=ApiResponse[ProductListPage])
def list_products(
    limit: int = Query(20, ge=1, le=100),
    page: int = Query(1, ge=1),
    category_id: Optional[str] = Query(None),
    collection_id: Optional[str] = Query(None),
    min_price: Optional[float] = Query(None, ge=0),
    max_price: Optional[float] = Query(None, ge=0),
    brand: Optional[str] = Query(None),
    is_featured: Optional[bool] = Query(None),
    search: Optional[str] = Query(None, description="Search by name, brand or material"),
    db: Session = Depends(get_products_db),
):
    items, total = products_service.list_products(
        db, limit=limit, page=page, category_id=category_id, collection_id=collection_id,
        min_price=min_price, max_price=max_price, brand=brand, is_featured=is_featured, search=search,
    )
    out = ProductListPage(products=[ProductOut.model_validate(p) for p in items], pagination=paginate(page, limit, total))
    return success_response(out)


@router.get("/products/{id_or_slug}", response_model=ApiResponse[ProductOut])
def get_product(id_or_slug: str, db: Session = Depends(get_products_db)):
    return success_response(ProductOut.model_validate(products_service.get_product(db, id_or_slug)))


# Approved reviews of a product, newest first, with its average rating
@router.get("/products/{id_or_slug}/reviews", response_model=ApiResponse[ProductReviewsOut])
def list_product_reviews(id_or_slug: str, db: Session = Depends(get_products_db)):
    product = products_service.get_product(db, id_or_slug)
    average, count = products_service.product_rating(db, product.id)
    out = ProductReviewsOut(
        product_id=product.id,
        reviews=[ReviewOut.model_validate(r) for r in products_service.list_reviews(db, product.id)],
        average_rating=average,
        review_count=count,
    )
    return success_response(out)


@router.post(
    "/products/{product_id}/reviews", response_model=ApiResponse[ReviewOut], status_code=status.HTTP_201_CREATED
)
def add_product_review(
    product_id: str,
    payload: ReviewCreate,
    request: Request,
    db: Session = Depends(get_products_db),
    users_db: Session = Depends(get_users_db),
    identity: Identity = Depends(get_current_identity),
):
    review = products_service.add_review(db, identity.user_id, product_id, payload.rating, payload.review_text)
    write_log(users_db, user_id=identity.user_id, action="REVIEW_ADD", resource="products", status="SUCCESS",
              ip=client_ip(request), meta={"product_id": review.product_id, "rating": review.rating})
    return success_response(ReviewOut.model_validate(review), message="Review submitted for approval",
                            status_code=status.HTTP_201_CREATED)


@router.get("/categories", response_model=ApiResponse[List[CategoryOut]])
def list_categories(db: Session = Depends(get_products_db)):
    return success_response([CategoryOut.model_validate(c) for c in products_service.list_categories(db)])
