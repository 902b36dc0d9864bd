from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from enum import Enum
from pydantic import BaseModel, Field, field_validator

from storefront.utils.helpers import get_current_timestamp, to_money


class OrderStatus(str, Enum):
    """Order status enumeration."""
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class StatusHistory(BaseModel):
    """Status history entry for tracking order status changes."""
    status: OrderStatus
    changed_at: datetime = Field(default_factory=get_current_timestamp)
    changed_by: str  # user_id or "system"


class ShippingAddress(BaseModel):
    """Delivery address captured at checkout, never mutated afterwards."""
    full_name: str = Field(min_length=1)
    line1: str = Field(min_length=1)
    line2: Optional[str] = None
    city: str = Field(min_length=1)
    state: Optional[str] = None
    postal_code: str = Field(min_length=1)
    country: str = Field(min_length=1)
    phone: Optional[str] = None

    @field_validator("full_name", "line1", "city", "postal_code", "country", mode="before")
    @classmethod
    def _strip_required(cls, value):
        if isinstance(value, str):
            return value.strip()
        return value


class OrderItem(BaseModel):
    """Snapshot of a product taken when the order was placed."""
    product_id: str
    title: str
    unit_price: Decimal = Field(ge=0)
    quantity: int = Field(gt=0)

    @field_validator("unit_price", mode="before")
    @classmethod
    def _quantize_price(cls, value):
        return to_money(value)

    class Config:
        frozen = True


class Order(BaseModel):
    """Order model for MongoDB."""
    id: Optional[str] = Field(None, alias="_id")
    user_id: str
    items: List[OrderItem]
    total: Decimal = Field(ge=0)
    status: OrderStatus = OrderStatus.PENDING
    shipping_address: ShippingAddress
    idempotency_key: Optional[str] = None
    status_history: List[StatusHistory] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=get_current_timestamp)
    updated_at: datetime = Field(default_factory=get_current_timestamp)

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value):
        return None if value is None else str(value)

    @field_validator("total", mode="before")
    @classmethod
    def _quantize_total(cls, value):
        return to_money(value)

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "user_id": "user123",
                "items": [
                    {
                        "product_id": "prod123",
                        "title": "Mechanical Keyboard",
                        "unit_price": "249.00",
                        "quantity": 2
                    }
                ],
                "total": "498.00",
                "status": "pending",
                "shipping_address": {
                    "full_name": "Ada Lovelace",
                    "line1": "12 Analytical Row",
                    "city": "London",
                    "postal_code": "N1 9GU",
                    "country": "GB"
                }
            }
        }
