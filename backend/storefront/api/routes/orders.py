from typing import List
from fastapi import APIRouter, Depends, Query, status

from storefront.api.deps import get_cart_service, get_current_user, get_order_service
from storefront.models.user import User
from storefront.schemas.order import CheckoutRequest, OrderResponse, OrderStatusUpdate
from storefront.services.cart_service import CartService
from storefront.services.order_service import OrderService

router = APIRouter()


@router.post("/checkout", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def checkout(
    request: CheckoutRequest,
    cart: CartService = Depends(get_cart_service),
    order_service: OrderService = Depends(get_order_service)
):
    """
    Create a pending order from the current cart.

    This will:
    1. Drop items whose product is no longer available
    2. Snapshot titles and prices into the order
    3. Persist the order and clear the cart

    The cart is re-read for this request, so the order is only placed when its
    total still equals expected_total (409 otherwise). Clients retrying a
    checkout should resend the same idempotency_key.
    """
    order = await order_service.create_order(
        cart,
        request.shipping_address,
        idempotency_key=request.idempotency_key,
        expected_total=request.expected_total
    )
    return OrderResponse.from_order(order, order_service.get_valid_next_statuses(order, cart.user))


@router.get("", response_model=List[OrderResponse])
async def list_orders(
    all_orders: bool = Query(False, description="Administrators only: list every user's orders"),
    current_user: User = Depends(get_current_user),
    order_service: OrderService = Depends(get_order_service)
):
    """
    List orders, newest first.
    """
    orders = await order_service.list_orders(current_user, all_orders=all_orders)
    return [
        OrderResponse.from_order(order, order_service.get_valid_next_statuses(order, current_user))
        for order in orders
    ]


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: str,
    current_user: User = Depends(get_current_user),
    order_service: OrderService = Depends(get_order_service)
):
    """
    Get a single order.
    """
    order = await order_service.get_order(order_id, current_user)
    return OrderResponse.from_order(order, order_service.get_valid_next_statuses(order, current_user))


@router.patch("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: str,
    request: OrderStatusUpdate,
    current_user: User = Depends(get_current_user),
    order_service: OrderService = Depends(get_order_service)
):
    """
    Change an order's status.

    Customers may cancel their own orders until they ship; administrators
    may perform any allowed transition.
    """
    order = await order_service.update_status(order_id, request.status, current_user)
    return OrderResponse.from_order(order, order_service.get_valid_next_statuses(order, current_user))
