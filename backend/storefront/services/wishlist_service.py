import logging
from typing import List, Optional, Union

from storefront.core.exceptions import Unauthenticated, WishlistOperationFailed
from storefront.models.product import Product
from storefront.models.user import User
from storefront.models.wishlist import WishlistEntry
from storefront.store.base import DuplicateKeyError, RemoteStore, StoreError

logger = logging.getLogger(__name__)


class WishlistService:
    """Wishlist membership for one user: toggle in or out, no quantity."""

    def __init__(self, store: RemoteStore, user: Optional[User] = None):
        self.store = store
        self.user = user

    def _require_user(self) -> str:
        if self.user is None:
            raise Unauthenticated("Please sign in to use the wishlist")
        return self.user.id

    async def contains(self, product: Union[str, Product]) -> bool:
        user_id = self._require_user()
        product_id = product.id if isinstance(product, Product) else str(product)
        try:
            return await self.store.select_wishlist_item(user_id, product_id) is not None
        except StoreError as e:
            logger.error(f"Failed to check wishlist of user {user_id}: {e}")
            raise WishlistOperationFailed("Failed to load wishlist") from e

    async def add(self, product: Union[str, Product]) -> None:
        user_id = self._require_user()
        product_id = product.id if isinstance(product, Product) else str(product)
        try:
            await self.store.insert_wishlist_item(user_id, product_id)
        except DuplicateKeyError:
            logger.debug(f"Product {product_id} already in wishlist of user {user_id}")
        except StoreError as e:
            logger.error(f"Failed to add {product_id} to wishlist of user {user_id}: {e}")
            raise WishlistOperationFailed("Failed to update wishlist") from e

    async def remove(self, product: Union[str, Product]) -> None:
        user_id = self._require_user()
        product_id = product.id if isinstance(product, Product) else str(product)
        try:
            await self.store.delete_wishlist_item(user_id, product_id)
        except StoreError as e:
            logger.error(f"Failed to remove {product_id} from wishlist of user {user_id}: {e}")
            raise WishlistOperationFailed("Failed to update wishlist") from e

    async def toggle(self, product: Union[str, Product]) -> bool:
        """Flip membership and return whether the product is now wishlisted."""
        if await self.contains(product):
            await self.remove(product)
            return False
        await self.add(product)
        return True

    async def items(self) -> List[WishlistEntry]:
        """Wishlisted products, newest first; deleted products are skipped."""
        user_id = self._require_user()
        try:
            wishlist_items = await self.store.select_wishlist_items(user_id)
            products = await self.store.select_products(item.product_id for item in wishlist_items)
        except StoreError as e:
            logger.error(f"Failed to load wishlist of user {user_id}: {e}")
            raise WishlistOperationFailed("Failed to load wishlist") from e

        return [
            WishlistEntry(item=item, product=products[item.product_id])
            for item in wishlist_items
            if item.product_id in products
        ]
