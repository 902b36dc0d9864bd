from fastapi import APIRouter, Depends, status

from storefront.api.deps import get_cart_service
from storefront.schemas.cart import AddToCartRequest, UpdateCartItemRequest, CartResponse
from storefront.services.cart_service import CartService

router = APIRouter()


@router.post("/items", response_model=CartResponse, status_code=status.HTTP_201_CREATED)
async def add_to_cart(
    request: AddToCartRequest,
    cart: CartService = Depends(get_cart_service)
):
    """
    Add a product to the cart.

    If the product is already in the cart, its quantity is increased.
    """
    view = await cart.add_item(request.product_id, request.quantity)
    return CartResponse.from_view(view)


@router.get("", response_model=CartResponse)
async def get_cart(cart: CartService = Depends(get_cart_service)):
    """
    Get the current user's cart with current product details.

    Items whose product was deactivated are listed as unavailable and do not
    count towards the total.
    """
    return CartResponse.from_view(cart.view)


@router.put("/items/{product_id}", response_model=CartResponse)
async def update_cart_item(
    product_id: str,
    request: UpdateCartItemRequest,
    cart: CartService = Depends(get_cart_service)
):
    """
    Set the quantity of an item in the cart. Zero or less removes it.
    """
    view = await cart.update_quantity(product_id, request.quantity)
    return CartResponse.from_view(view)


@router.delete("/items/{product_id}", response_model=CartResponse)
async def remove_from_cart(
    product_id: str,
    cart: CartService = Depends(get_cart_service)
):
    """
    Remove an item from the cart.
    """
    view = await cart.remove_item(product_id)
    return CartResponse.from_view(view)


@router.delete("", response_model=CartResponse)
async def clear_cart(cart: CartService = Depends(get_cart_service)):
    """
    Clear all items from the cart.
    """
    view = await cart.clear_cart()
    return CartResponse.from_view(view)
