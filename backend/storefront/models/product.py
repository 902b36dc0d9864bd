from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field, field_validator

from storefront.utils.helpers import to_money


class Product(BaseModel):
    """Catalog product, read-only from the cart's point of view."""
    id: str = Field(alias="_id")
    name: str
    description: Optional[str] = None
    price: Decimal = Field(ge=0)
    image_url: Optional[str] = None
    category: str = "general"
    stock: int = Field(default=0, ge=0)
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value):
        return str(value)

    @field_validator("price", mode="before")
    @classmethod
    def _quantize_price(cls, value):
        return to_money(value)

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "id": "prod123",
                "name": "Mechanical Keyboard",
                "description": "Hot-swappable 75% keyboard",
                "price": "249.00",
                "category": "electronics",
                "stock": 12,
                "is_active": True
            }
        }
