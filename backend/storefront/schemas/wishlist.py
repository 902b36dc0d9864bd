from typing import List
from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel


class WishlistItemResponse(BaseModel):
    """Schema for one wishlisted product."""
    product_id: str
    title: str
    price: Decimal
    available: bool
    added_at: datetime


class WishlistResponse(BaseModel):
    items: List[WishlistItemResponse]


class WishlistToggleResponse(BaseModel):
    product_id: str
    in_wishlist: bool
