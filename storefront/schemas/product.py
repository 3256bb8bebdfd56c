# storefront/schemas/product.py
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List
from datetime import datetime

from storefront.schemas.common import Pagination


# Base configuration for ORM compatibility
class ORMBase(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class CategoryOut(ORMBase):
    id: str
    name: str
    slug: str
    description: Optional[str] = None
    parent_id: Optional[str] = None


# Full product representation
class ProductOut(ORMBase):
    id: str
    name: str
    slug: str
    description: Optional[str] = None
    short_description: Optional[str] = None
    sku: Optional[str] = None
    price: float
    compare_at_price: Optional[float] = None
    category_id: Optional[str] = None
    collection_id: Optional[str] = None
    brand: Optional[str] = None
    material: Optional[str] = None
    stock_quantity: int
    status: str
    is_featured: bool = False
    image_url: Optional[str] = None
    created_at: Optional[datetime] = None


# Paginated response for product listings
class ProductListPage(BaseModel):
    products: List[ProductOut]
    pagination: Pagination


# Request schema for posting a review; rating bounds are checked by the service
class ReviewCreate(BaseModel):
    rating: int
    review_text: str = Field(min_length=1)


class ReviewOut(ORMBase):
    id: str
    product_id: str
    user_id: str
    rating: int
    review_text: str
    created_at: Optional[datetime] = None


# Approved reviews with the rating they add up to
class ProductReviewsOut(BaseModel):
    product_id: str
    reviews: List[ReviewOut]
    average_rating: float
    review_count: int
