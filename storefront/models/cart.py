# storefront/models/cart.py
from sqlalchemy import Column, String, Integer, ForeignKey, DateTime, UniqueConstraint, func
from sqlalchemy.orm import relationship
from storefront.database import ProductsBase
from storefront.models._ids import new_id

# Represents a single product selection (product + variant + quantity) in a user's cart
class CartItem(ProductsBase):
    __tablename__ = "shopping_cart"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String, index=True, nullable=False)
    product_id = Column(String(36), ForeignKey("products.id"), index=True, nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    size = Column(String, nullable=True)
    color = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    product = relationship("Product")

    __table_args__ = (
        # One line per product variant in a user's cart
        UniqueConstraint("user_id", "product_id", "size", "color", name="uq_cart_user_product_variant"),
    )
