import logging
from typing import Optional, Union

from tenacity import AsyncRetrying, RetryCallState, retry_if_exception_type, stop_after_attempt

from storefront.core.config import settings
from storefront.core.exceptions import CartOperationFailed, Unauthenticated, ValidationError
from storefront.models.cart import CartEntry, CartLine, CartView
from storefront.models.product import Product
from storefront.models.user import User
from storefront.store.base import RemoteStore, StoreError

logger = logging.getLogger(__name__)

CartItemRef = Union[str, Product, CartLine, CartEntry]


def product_id_of(item: CartItemRef) -> str:
    """Resolve the product id from a product, a cart line/entry or a raw id."""
    if isinstance(item, Product):
        return item.id
    if isinstance(item, (CartLine, CartEntry)):
        return item.product_id
    return str(item)


class CartService:
    """
    Client-side view of one user's cart, kept in sync with the remote store.

    Every mutation writes to the store and then rebuilds the whole view with
    ``refresh``; the view is never patched locally, so a failed call leaves the
    last successfully refreshed view in place.
    """

    def __init__(self, store: RemoteStore, user: Optional[User] = None, add_retries: Optional[int] = None):
        self.store = store
        self.user = user
        self.add_retries = settings.CART_ADD_RETRIES if add_retries is None else add_retries
        self._view = CartView.empty(self.user_id)

    @property
    def user_id(self) -> Optional[str]:
        return self.user.id if self.user else None

    @property
    def view(self) -> CartView:
        """Last successfully refreshed view."""
        return self._view

    async def set_user(self, user: Optional[User]) -> CartView:
        """Rebind the cart to another principal (sign-in / sign-out)."""
        self.user = user
        self._view = CartView.empty(self.user_id)
        return await self.refresh()

    async def refresh(self) -> CartView:
        """Rebuild the view from the store. No user yields an empty view."""
        user_id = self.user_id
        if user_id is None:
            self._view = CartView.empty()
            return self._view

        try:
            lines = await self.store.select_cart_lines(user_id)
            products = await self.store.select_products(line.product_id for line in lines)
        except StoreError as e:
            logger.error(f"Failed to refresh cart for user {user_id}: {e}")
            raise CartOperationFailed("Failed to load cart") from e

        if self.user_id != user_id:
            # Principal changed while the fetch was in flight
            return self._view

        entries = []
        for line in lines:
            product = products.get(line.product_id)
            if product is None:
                logger.info(f"Dropping cart line for missing product {line.product_id}")
                continue
            entries.append(CartEntry(line=line, product=product))

        self._view = CartView.build(user_id, entries)
        return self._view

    def _require_user(self, action: str) -> str:
        if self.user_id is None:
            raise Unauthenticated(f"Please sign in to {action}")
        return self.user_id

    async def add_item(self, product: Union[str, Product], quantity: int = 1) -> CartView:
        """
        Add ``quantity`` units of a product, incrementing an existing line.

        The look-up-then-write is not atomic; the store's unique (user, product)
        index is the real guard. A duplicate-key insert, or any other store
        error, is retried once, and the retry finds the concurrently inserted
        line and increments it.
        """
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            raise ValidationError("Quantity must be a positive integer")
        user_id = self._require_user("add items to cart")
        product_id = product_id_of(product)

        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.add_retries + 1),
                retry=retry_if_exception_type(StoreError),
                before_sleep=self._log_add_retry,
                reraise=True
            ):
                with attempt:
                    await self._add_or_increment(user_id, product_id, quantity)
        except StoreError as e:
            logger.error(f"Failed to add product {product_id} to cart of user {user_id}: {e}")
            raise CartOperationFailed("Failed to add item to cart") from e

        logger.info(f"Added {quantity} x {product_id} to cart of user {user_id}")
        return await self.refresh()

    async def _add_or_increment(self, user_id: str, product_id: str, quantity: int):
        existing = await self.store.select_cart_line(user_id, product_id)
        if existing is not None:
            if await self.store.update_cart_line(user_id, product_id, existing.quantity + quantity):
                return
            # Line was removed between read and write
        await self.store.insert_cart_line(user_id, product_id, quantity)

    @staticmethod
    def _log_add_retry(retry_state: RetryCallState):
        logger.warning(
            f"Retrying cart add after attempt {retry_state.attempt_number}: "
            f"{retry_state.outcome.exception()}"
        )

    async def update_quantity(self, item: CartItemRef, quantity: int) -> CartView:
        """Replace a line's quantity; zero or less removes the line."""
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise ValidationError("Quantity must be an integer")
        if quantity <= 0:
            return await self.remove_item(item)

        user_id = self._require_user("update your cart")
        product_id = product_id_of(item)
        try:
            matched = await self.store.update_cart_line(user_id, product_id, quantity)
        except StoreError as e:
            logger.error(f"Failed to update quantity of {product_id} for user {user_id}: {e}")
            raise CartOperationFailed("Failed to update quantity") from e

        if not matched:
            logger.info(f"Cart line {product_id} of user {user_id} no longer exists; nothing updated")
        return await self.refresh()

    async def remove_item(self, item: CartItemRef) -> CartView:
        """Delete one line. Removing an absent line succeeds."""
        user_id = self._require_user("update your cart")
        product_id = product_id_of(item)
        try:
            await self.store.delete_cart_line(user_id, product_id)
        except StoreError as e:
            logger.error(f"Failed to remove {product_id} from cart of user {user_id}: {e}")
            raise CartOperationFailed("Failed to remove item from cart") from e
        return await self.refresh()

    async def clear_cart(self) -> CartView:
        """Delete every line of the user's cart."""
        user_id = self._require_user("clear your cart")
        try:
            await self.store.delete_all_cart_lines(user_id)
        except StoreError as e:
            logger.error(f"Failed to clear cart of user {user_id}: {e}")
            raise CartOperationFailed("Failed to clear cart") from e
        logger.info(f"Cleared cart of user {user_id}")
        return await self.refresh()
