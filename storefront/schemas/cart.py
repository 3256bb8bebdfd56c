from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional

from storefront.schemas.product import ProductOut

# Request schema for adding an item to the cart
class CartAddItem(BaseModel):
    product_id: str
    quantity: int = Field(default=1, ge=1)
    size: Optional[str] = None
    color: Optional[str] = None

# Request schema for updating cart item quantity
class CartUpdateItem(BaseModel):
    quantity: int = Field(ge=1)

# Response schema for a single cart line
class CartItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    product_id: str
    quantity: int
    size: Optional[str] = None
    color: Optional[str] = None
    product: Optional[ProductOut] = None

# Response schema for the entire cart summary
class CartOut(BaseModel):
    items: List[CartItemOut]
    item_count: int
    total_price: float
