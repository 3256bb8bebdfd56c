# storefront/models/product.py
from sqlalchemy import Column, String, Float, Integer, Boolean, ForeignKey, DateTime, Text, CheckConstraint, func
from sqlalchemy.orm import relationship
from storefront.database import ProductsBase
from storefront.models._ids import new_id

# Catalog category, optionally nested under a parent
class Category(ProductsBase):
    __tablename__ = "categories"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String, nullable=False)
    slug = Column(String, unique=True, nullable=False, index=True)
    description = Column(Text, nullable=True)
    parent_id = Column(String(36), ForeignKey("categories.id"), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

# Model Product
# Catalog entry with price, stock and the references used for browsing.
class Product(ProductsBase):
    __tablename__ = "products"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String, nullable=False, index=True)
    slug = Column(String, unique=True, nullable=False, index=True)
    description = Column(Text)
    short_description = Column(String)
    sku = Column(String, unique=True, nullable=True)

    # Prices are kept non-negative at the database level
    price = Column(Float, CheckConstraint("price >= 0"), nullable=False)
    compare_at_price = Column(Float, nullable=True)

    category_id = Column(String(36), ForeignKey("categories.id"), nullable=True, index=True)
    collection_id = Column(String(36), nullable=True, index=True)
    brand = Column(String, index=True)
    material = Column(String)

    stock_quantity = Column(Integer, CheckConstraint("stock_quantity >= 0"), nullable=False, default=0)
    status = Column(String, default="active", index=True, nullable=False) # active / inactive
    is_featured = Column(Boolean, default=False, nullable=False)
    image_url = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    category = relationship("Category")

# Customer review; only approved reviews are shown or counted in the rating
class ProductReview(ProductsBase):
    __tablename__ = "product_reviews"

    id = Column(String(36), primary_key=True, default=new_id)
    product_id = Column(String(36), ForeignKey("products.id"), index=True, nullable=False)
    user_id = Column(String, index=True, nullable=False)
    rating = Column(Integer, CheckConstraint("rating BETWEEN 1 AND 5"), nullable=False)
    review_text = Column(Text, nullable=False)
    is_approved = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    product = relationship("Product")
