from datetime import datetime
from pydantic import BaseModel, Field

from storefront.models.product import Product
from storefront.utils.helpers import get_current_timestamp


class WishlistItem(BaseModel):
    """Membership of a product in a user's wishlist."""
    user_id: str
    product_id: str
    created_at: datetime = Field(default_factory=get_current_timestamp)


class WishlistEntry(BaseModel):
    """Wishlist item joined with its resolved product."""
    item: WishlistItem
    product: Product
