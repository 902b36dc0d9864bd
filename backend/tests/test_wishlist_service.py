"""
Tests for the wishlist service.
"""
import pytest

from storefront.core.exceptions import Unauthenticated, WishlistOperationFailed
from storefront.services.wishlist_service import WishlistService


class TestWishlistService:
    """Test wishlist membership."""

    @pytest.mark.asyncio
    async def test_toggle_adds_then_removes(self, store, customer, keyboard):
        wishlist = WishlistService(store, customer)

        assert await wishlist.toggle(keyboard) is True
        assert await wishlist.contains(keyboard.id) is True
        assert await wishlist.toggle(keyboard.id) is False
        assert await wishlist.contains(keyboard) is False

    @pytest.mark.asyncio
    async def test_add_twice_is_idempotent(self, store, customer, keyboard):
        wishlist = WishlistService(store, customer)
        await wishlist.add(keyboard)
        await wishlist.add(keyboard)
        assert len(store.wishlist) == 1

    @pytest.mark.asyncio
    async def test_remove_absent(self, store, customer, keyboard):
        wishlist = WishlistService(store, customer)
        await wishlist.remove(keyboard)
        assert store.wishlist == {}

    @pytest.mark.asyncio
    async def test_items_skip_deleted_products(self, store, customer, keyboard, mouse):
        wishlist = WishlistService(store, customer)
        await wishlist.add(keyboard)
        await wishlist.add(mouse)
        del store.products[keyboard.id]

        entries = await wishlist.items()

        assert [entry.product.id for entry in entries] == [mouse.id]

    @pytest.mark.asyncio
    async def test_requires_user(self, store, keyboard):
        wishlist = WishlistService(store)
        with pytest.raises(Unauthenticated):
            await wishlist.toggle(keyboard)
        assert store.calls == []

    @pytest.mark.asyncio
    async def test_store_failure(self, store, customer, keyboard):
        wishlist = WishlistService(store, customer)
        store.fail["insert_wishlist_item"] = 1
        with pytest.raises(WishlistOperationFailed):
            await wishlist.add(keyboard)
