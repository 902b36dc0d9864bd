from fastapi import APIRouter, Depends

from storefront.api.deps import get_wishlist_service
from storefront.schemas.wishlist import WishlistItemResponse, WishlistResponse, WishlistToggleResponse
from storefront.services.wishlist_service import WishlistService

router = APIRouter()


@router.get("", response_model=WishlistResponse)
async def get_wishlist(wishlist: WishlistService = Depends(get_wishlist_service)):
    """
    List wishlisted products, newest first.
    """
    entries = await wishlist.items()
    return WishlistResponse(items=[
        WishlistItemResponse(
            product_id=entry.product.id,
            title=entry.product.name,
            price=entry.product.price,
            available=entry.product.is_active,
            added_at=entry.item.created_at
        )
        for entry in entries
    ])


@router.post("/{product_id}/toggle", response_model=WishlistToggleResponse)
async def toggle_wishlist(
    product_id: str,
    wishlist: WishlistService = Depends(get_wishlist_service)
):
    """
    Add the product to the wishlist, or remove it if already there.
    """
    in_wishlist = await wishlist.toggle(product_id)
    return WishlistToggleResponse(product_id=product_id, in_wishlist=in_wishlist)


@router.delete("/{product_id}", response_model=WishlistToggleResponse)
async def remove_from_wishlist(
    product_id: str,
    wishlist: WishlistService = Depends(get_wishlist_service)
):
    await wishlist.remove(product_id)
    return WishlistToggleResponse(product_id=product_id, in_wishlist=False)
