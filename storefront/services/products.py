# storefront/services/products.py
from typing import List, Optional, Tuple
import uuid

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from storefront.errors import NotFoundError, ValidationError
from storefront.models.product import Category, Product, ProductReview


def ensure_uuid(value: str, field: str) -> str:
    try:
        uuid.UUID(str(value))
    except ValueError:
        raise ValidationError(f"Invalid {field} format", field=field)
    return str(value)


def list_products(
    db: Session,
    *,
    limit: int = 20,
    page: int = 1,
    category_id: Optional[str] = None,
    collection_id: Optional[str] = None,
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
    brand: Optional[str] = None,
    is_featured: Optional[bool] = None,
    search: Optional[str] = None,
    status: str = "active",
) -> Tuple[List[Product], int]:
    query = db.query(Product).filter(Product.status == status)

    if category_id: query = query.filter(Product.category_id == category_id)
    if collection_id: query = query.filter(Product.collection_id == collection_id)
    if min_price is not None: query = query.filter(Product.price >= min_price)
    if max_price is not None: query = query.filter(Product.price <= max_price)
    if brand: query = query.filter(Product.brand.ilike(brand))
    if is_featured is not None: query = query.filter(Product.is_featured == is_featured)

    # Apply general search filter
    if search:
        like = f"%{search}%"
        query = query.filter(
            or_(
                Product.name.ilike(like),
                Product.short_description.ilike(like),
                Product.brand.ilike(like),
                Product.material.ilike(like),
            )
        )

    total = query.count()
    items = (
        query.order_by(Product.created_at.desc(), Product.name.asc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return items, total


def get_product(db: Session, id_or_slug: str) -> Product:
    product = db.query(Product).filter(or_(Product.id == id_or_slug, Product.slug == id_or_slug)).first()
    if not product:
        raise NotFoundError("Product", id_or_slug)
    return product


def get_active_product(db: Session, product_id: str) -> Product:
    ensure_uuid(product_id, "product_id")
    product = db.query(Product).filter(Product.id == product_id).first()
    if not product or product.status != "active":
        raise NotFoundError("Product", product_id)
    return product


def list_categories(db: Session) -> List[Category]:
    return db.query(Category).filter(Category.is_active.is_(True)).order_by(Category.name.asc()).all()


# ---- REVIEWS ----

def list_reviews(db: Session, product_id: str) -> List[ProductReview]:
    return (
        db.query(ProductReview)
        .filter(ProductReview.product_id == product_id, ProductReview.is_approved.is_(True))
        .order_by(ProductReview.created_at.desc())
        .all()
    )


def product_rating(db: Session, product_id: str) -> Tuple[float, int]:
    """Average of approved ratings rounded to one decimal, and how many there are."""
    average, count = (
        db.query(func.avg(ProductReview.rating), func.count(ProductReview.id))
        .filter(ProductReview.product_id == product_id, ProductReview.is_approved.is_(True))
        .one()
    )
    return (round(float(average), 1) if count else 0.0), count


def add_review(db: Session, user_id: str, product_id: str, rating: int, review_text: str) -> ProductReview:
    if not user_id or not review_text or not review_text.strip():
        raise ValidationError("Missing required fields: user_id, product_id, rating, comment", field="review_text")
    if rating < 1 or rating > 5:
        raise ValidationError("Rating must be between 1 and 5", field="rating")
    product = get_active_product(db, product_id)

    # New reviews wait for moderation
    review = ProductReview(
        product_id=product.id, user_id=user_id, rating=rating, review_text=review_text.strip(), is_approved=False,
    )
    db.add(review)
    db.commit()
    db.refresh(review)
    return review
