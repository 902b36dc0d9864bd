"""
Remote store contract consumed by the cart, order and wishlist engines.

Every call is scoped by the access-control layer of the hosted data service;
the engines never check row ownership themselves.
"""
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional

from storefront.models.cart import CartLine
from storefront.models.order import Order, OrderStatus, StatusHistory
from storefront.models.product import Product
from storefront.models.wishlist import WishlistItem


class StoreError(Exception):
    """A store call failed."""


class DuplicateKeyError(StoreError):
    """An insert violated a uniqueness constraint."""


class RemoteStore(ABC):
    """Row-level operations over products, cart lines, orders and wishlists."""

    # Cart lines

    @abstractmethod
    async def select_cart_lines(self, user_id: str) -> List[CartLine]:
        """Cart lines of a user, oldest first."""

    @abstractmethod
    async def select_cart_line(self, user_id: str, product_id: str) -> Optional[CartLine]:
        ...

    @abstractmethod
    async def insert_cart_line(self, user_id: str, product_id: str, quantity: int) -> CartLine:
        """Raises DuplicateKeyError when the (user, product) line already exists."""

    @abstractmethod
    async def update_cart_line(self, user_id: str, product_id: str, quantity: int) -> bool:
        """Replace the quantity; returns False when no line matched."""

    @abstractmethod
    async def delete_cart_line(self, user_id: str, product_id: str) -> None:
        ...

    @abstractmethod
    async def delete_all_cart_lines(self, user_id: str) -> None:
        ...

    # Products

    @abstractmethod
    async def select_product(self, product_id: str) -> Optional[Product]:
        ...

    @abstractmethod
    async def select_products(self, product_ids: Iterable[str]) -> Dict[str, Product]:
        """Resolve products by id; unknown ids are absent from the result."""

    # Orders

    @abstractmethod
    async def insert_order(self, order: Order) -> str:
        """Persist a new order and return its id.

        Raises DuplicateKeyError when the user already has an order with the
        same idempotency key.
        """

    @abstractmethod
    async def select_order(self, order_id: str) -> Optional[Order]:
        ...

    @abstractmethod
    async def select_order_by_idempotency_key(self, user_id: str, key: str) -> Optional[Order]:
        ...

    @abstractmethod
    async def update_order_status(
        self,
        order_id: str,
        expected_status: OrderStatus,
        new_status: OrderStatus,
        history_entry: StatusHistory
    ) -> bool:
        """Compare-and-swap the status; returns False when it had moved on."""

    @abstractmethod
    async def select_orders(self, user_id: Optional[str] = None) -> List[Order]:
        """Orders of one user, or of everyone when user_id is None, newest first."""

    # Wishlist

    @abstractmethod
    async def select_wishlist_items(self, user_id: str) -> List[WishlistItem]:
        ...

    @abstractmethod
    async def select_wishlist_item(self, user_id: str, product_id: str) -> Optional[WishlistItem]:
        ...

    @abstractmethod
    async def insert_wishlist_item(self, user_id: str, product_id: str) -> WishlistItem:
        """Raises DuplicateKeyError when the product is already wishlisted."""

    @abstractmethod
    async def delete_wishlist_item(self, user_id: str, product_id: str) -> None:
        ...
