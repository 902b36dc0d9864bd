from typing import List, Optional
from decimal import Decimal
from pydantic import BaseModel, Field

from storefront.models.cart import CartView


class AddToCartRequest(BaseModel):
    """Schema for adding a product to cart."""
    product_id: str
    quantity: int = Field(default=1, gt=0)

    class Config:
        json_schema_extra = {
            "example": {
                "product_id": "prod123",
                "quantity": 2
            }
        }


class UpdateCartItemRequest(BaseModel):
    """Schema for updating cart item quantity (0 or less removes the item)."""
    quantity: int

    class Config:
        json_schema_extra = {
            "example": {
                "quantity": 3
            }
        }


class CartItemResponse(BaseModel):
    """Schema for cart item response."""
    product_id: str
    quantity: int
    title: str
    price: Decimal
    image_url: Optional[str] = None
    subtotal: Decimal
    available: bool = True

    class Config:
        from_attributes = True


class CartResponse(BaseModel):
    """Schema for cart response."""
    items: List[CartItemResponse]
    total_amount: Decimal
    total_items: int

    class Config:
        from_attributes = True

    @classmethod
    def from_view(cls, view: CartView) -> "CartResponse":
        return cls(
            items=[
                CartItemResponse(
                    product_id=entry.product_id,
                    quantity=entry.quantity,
                    title=entry.product.name,
                    price=entry.product.price,
                    image_url=entry.product.image_url,
                    subtotal=entry.subtotal,
                    available=entry.is_available
                )
                for entry in view.entries
            ],
            total_amount=view.total,
            total_items=view.item_count
        )
