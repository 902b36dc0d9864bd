from typing import List, Optional
from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, Field

from storefront.models.order import Order, OrderItem, OrderStatus, ShippingAddress


class CheckoutRequest(BaseModel):
    """Schema for creating an order from the cart."""
    shipping_address: ShippingAddress
    expected_total: Decimal = Field(..., ge=0, description="Cart total the shopper confirmed")
    idempotency_key: Optional[str] = Field(default=None, max_length=128)

    class Config:
        json_schema_extra = {
            "example": {
                "shipping_address": {
                    "full_name": "Ada Lovelace",
                    "line1": "12 Analytical Row",
                    "city": "London",
                    "postal_code": "N1 9GU",
                    "country": "GB"
                },
                "expected_total": "543.00",
                "idempotency_key": "checkout-7f3a"
            }
        }


class OrderStatusUpdate(BaseModel):
    """Schema for changing an order's status."""
    status: OrderStatus


class OrderResponse(BaseModel):
    """Schema for order response."""
    id: str
    user_id: str
    items: List[OrderItem]
    total: Decimal
    status: OrderStatus
    shipping_address: ShippingAddress
    created_at: datetime
    updated_at: datetime
    valid_next_statuses: List[OrderStatus] = Field(default_factory=list)

    class Config:
        from_attributes = True

    @classmethod
    def from_order(cls, order: Order, valid_next_statuses: Optional[List[OrderStatus]] = None) -> "OrderResponse":
        return cls(
            id=order.id,
            user_id=order.user_id,
            items=order.items,
            total=order.total,
            status=order.status,
            shipping_address=order.shipping_address,
            created_at=order.created_at,
            updated_at=order.updated_at,
            valid_next_statuses=valid_next_statuses or []
        )
