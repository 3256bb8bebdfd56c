from pydantic import BaseModel, ConfigDict
from typing import Optional
from datetime import datetime

from storefront.schemas.product import ProductOut


class WishlistAdd(BaseModel):
    product_id: str


class WishlistItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    product_id: str
    created_at: Optional[datetime] = None
    product: Optional[ProductOut] = None
