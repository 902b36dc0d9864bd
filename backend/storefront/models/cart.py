from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field

from storefront.models.product import Product
from storefront.utils.helpers import CENTS, get_current_timestamp


class CartLine(BaseModel):
    """One (user, product, quantity) row of a shopping cart."""
    user_id: str
    product_id: str
    quantity: int = Field(gt=0)
    created_at: datetime = Field(default_factory=get_current_timestamp)
    updated_at: datetime = Field(default_factory=get_current_timestamp)


class CartEntry(BaseModel):
    """A cart line joined with its currently resolved product."""
    line: CartLine
    product: Product

    @property
    def product_id(self) -> str:
        return self.line.product_id

    @property
    def quantity(self) -> int:
        return self.line.quantity

    @property
    def is_available(self) -> bool:
        return self.product.is_active

    @property
    def subtotal(self) -> Decimal:
        return (self.product.price * self.line.quantity).quantize(CENTS)


class CartView(BaseModel):
    """
    Derived presentation of a user's cart.

    Always built from scratch by ``CartView.build``; never patched in place.
    Inactive products stay visible but do not count towards ``total``.
    """
    user_id: Optional[str] = None
    entries: List[CartEntry] = Field(default_factory=list)
    total: Decimal = Decimal("0.00")
    item_count: int = 0

    @classmethod
    def build(cls, user_id: Optional[str], entries: List[CartEntry]) -> "CartView":
        total = sum(
            (entry.subtotal for entry in entries if entry.is_available),
            Decimal("0.00")
        )
        item_count = sum(entry.quantity for entry in entries)
        return cls(
            user_id=user_id,
            entries=list(entries),
            total=total.quantize(CENTS),
            item_count=item_count
        )

    @classmethod
    def empty(cls, user_id: Optional[str] = None) -> "CartView":
        return cls.build(user_id, [])

    @property
    def is_empty(self) -> bool:
        return not self.entries

    @property
    def available_entries(self) -> List[CartEntry]:
        return [entry for entry in self.entries if entry.is_available]

    @property
    def unavailable_entries(self) -> List[CartEntry]:
        return [entry for entry in self.entries if not entry.is_available]

    def find(self, product_id: str) -> Optional[CartEntry]:
        for entry in self.entries:
            if entry.product_id == product_id:
                return entry
        return None
