"""
Order service: checkout from a cart view and order status transitions.
"""
import logging
from decimal import Decimal
from typing import List, Optional, Tuple, Union

from pydantic import ValidationError as PydanticValidationError

from storefront.core.exceptions import (
    CartChanged,
    CartOperationFailed,
    EmptyCart,
    InvalidTransition,
    OrderNotFound,
    OrderOperationFailed,
    PermissionDenied,
    Unauthenticated,
    ValidationError,
)
from storefront.core.security import MANAGE_ORDERS, VIEW_ALL_ORDERS, has_capability
from storefront.models.order import Order, OrderItem, OrderStatus, ShippingAddress, StatusHistory
from storefront.models.user import User
from storefront.services.cart_service import CartService
from storefront.store.base import DuplicateKeyError, RemoteStore, StoreError
from storefront.utils.helpers import CENTS, get_current_timestamp, to_money

logger = logging.getLogger(__name__)


class OrderService:
    """Service class for order management business logic."""

    # Valid status transitions
    STATUS_TRANSITIONS = {
        OrderStatus.PENDING: [OrderStatus.PROCESSING, OrderStatus.CANCELLED],
        OrderStatus.PROCESSING: [OrderStatus.SHIPPED, OrderStatus.CANCELLED],
        OrderStatus.SHIPPED: [OrderStatus.COMPLETED],
        OrderStatus.COMPLETED: [],  # Final state
        OrderStatus.CANCELLED: []   # Final state
    }

    # Statuses from which the owner may still cancel
    OWNER_CANCELLABLE = (OrderStatus.PENDING, OrderStatus.PROCESSING)

    def __init__(self, store: RemoteStore):
        self.store = store

    @staticmethod
    def validate_status_transition(current_status: str, new_status: str) -> Tuple[bool, Optional[str]]:
        """
        Validate if status transition is allowed.
        Returns (is_valid, error_message)
        """
        try:
            current = OrderStatus(current_status)
        except ValueError:
            return False, f"Invalid current status: {current_status}"
        try:
            new = OrderStatus(new_status)
        except ValueError:
            return False, f"Invalid status: {new_status}"

        valid_next_statuses = OrderService.STATUS_TRANSITIONS[current]

        if new not in valid_next_statuses:
            if not valid_next_statuses:
                return False, f"Order is in final state '{current.value}' and cannot be modified"
            allowed = ", ".join(s.value for s in valid_next_statuses)
            return False, f"Cannot transition from '{current.value}' to '{new.value}'. Valid transitions: {allowed}"

        return True, None

    @staticmethod
    def can_user_change_status(order: Order, new_status: OrderStatus, actor: User) -> Tuple[bool, Optional[str]]:
        """
        Check if the actor may move the order to ``new_status``.
        Returns (can_change, error_message)
        """
        if has_capability(actor, MANAGE_ORDERS):
            return True, None

        if order.user_id != actor.id:
            return False, "You can only modify your own orders"

        if new_status != OrderStatus.CANCELLED:
            return False, "Only administrators can advance orders"

        if order.status not in OrderService.OWNER_CANCELLABLE:
            return False, "Orders can only be cancelled before they ship"

        return True, None

    @staticmethod
    def get_valid_next_statuses(order: Order, actor: User) -> List[OrderStatus]:
        """Statuses the actor may move this order to."""
        return [
            status for status in OrderService.STATUS_TRANSITIONS[order.status]
            if OrderService.can_user_change_status(order, status, actor)[0]
        ]

    @staticmethod
    def build_items(cart_view) -> Tuple[List[OrderItem], Decimal]:
        """Snapshot the purchasable lines of a cart view and total them."""
        items = [
            OrderItem(
                product_id=entry.product.id,
                title=entry.product.name,
                unit_price=entry.product.price,
                quantity=entry.quantity
            )
            for entry in cart_view.available_entries
        ]
        total = sum((item.unit_price * item.quantity for item in items), Decimal("0.00"))
        return items, total.quantize(CENTS)

    async def create_order(
        self,
        cart: CartService,
        shipping_address: Union[ShippingAddress, dict],
        idempotency_key: Optional[str] = None,
        expected_total: Optional[Decimal] = None
    ) -> Order:
        """
        Turn the cart the user is looking at into a pending order.

        The cart's current view is used as-is (no refetch). Lines whose product
        became inactive are left out; if none remain the checkout fails with
        EmptyCart and the cart is untouched. When ``expected_total`` is given
        and the purchasable total differs from it, CartChanged is raised and
        nothing is written. Once the order is persisted it is
        never rolled back: a failure to clear the cart afterwards is logged and
        left for the next refresh to reconcile.
        """
        user = cart.user
        if user is None:
            raise Unauthenticated("Please sign in to place an order")

        address = self._validate_address(shipping_address)

        if idempotency_key:
            existing = await self._find_by_idempotency_key(user.id, idempotency_key)
            if existing is not None:
                logger.info(f"Returning existing order {existing.id} for idempotency key {idempotency_key}")
                return existing

        view = cart.view
        if view.is_empty:
            raise EmptyCart("Cart is empty")

        items, total = self.build_items(view)
        if not items:
            raise EmptyCart("None of the items in your cart are available anymore")
        if expected_total is not None and to_money(expected_total) != total:
            logger.info(f"Checkout for user {user.id} rejected: expected {expected_total}, cart total is {total}")
            raise CartChanged(f"Your cart total changed to {total}; please review it before placing the order")

        now = get_current_timestamp()
        order = Order(
            user_id=user.id,
            items=items,
            total=total,
            status=OrderStatus.PENDING,
            shipping_address=address,
            idempotency_key=idempotency_key,
            status_history=[StatusHistory(status=OrderStatus.PENDING, changed_at=now, changed_by=user.id)],
            created_at=now,
            updated_at=now
        )

        try:
            order.id = await self.store.insert_order(order)
        except DuplicateKeyError as e:
            # Concurrent checkout with the same idempotency key won the race
            existing = await self._find_by_idempotency_key(user.id, idempotency_key) if idempotency_key else None
            if existing is None:
                logger.error(f"Duplicate key creating order for user {user.id} (idempotency key {idempotency_key}): {e}")
                raise OrderOperationFailed("Failed to create order") from e
            return existing
        except StoreError as e:
            logger.error(f"Failed to create order for user {user.id}: {e}")
            raise OrderOperationFailed("Failed to create order") from e

        logger.info(f"Created order {order.id} for user {user.id} with total {order.total}")

        try:
            await cart.clear_cart()
        except CartOperationFailed as e:
            logger.warning(f"Order {order.id} created but cart cleanup failed: {e}")

        return order

    @staticmethod
    def _validate_address(shipping_address: Union[ShippingAddress, dict, None]) -> ShippingAddress:
        if isinstance(shipping_address, ShippingAddress):
            return shipping_address
        if not shipping_address:
            raise ValidationError("Shipping address is required")
        try:
            return ShippingAddress(**shipping_address)
        except (PydanticValidationError, TypeError) as e:
            raise ValidationError(f"Invalid shipping address: {e}") from e

    async def _find_by_idempotency_key(self, user_id: str, key: str) -> Optional[Order]:
        try:
            return await self.store.select_order_by_idempotency_key(user_id, key)
        except StoreError as e:
            logger.error(f"Failed to look up idempotency key {key}: {e}")
            raise OrderOperationFailed("Failed to create order") from e

    async def _load_order(self, order_id: str) -> Order:
        try:
            order = await self.store.select_order(order_id)
        except StoreError as e:
            logger.error(f"Failed to load order {order_id}: {e}")
            raise OrderOperationFailed("Failed to load order") from e
        if order is None:
            raise OrderNotFound("Order not found")
        return order

    async def get_order(self, order_id: str, actor: User) -> Order:
        """Load one order visible to the actor."""
        order = await self._load_order(order_id)
        if order.user_id != actor.id and not has_capability(actor, VIEW_ALL_ORDERS):
            # Do not reveal other users' orders
            raise OrderNotFound("Order not found")
        return order

    async def list_orders(self, actor: User, all_orders: bool = False) -> List[Order]:
        """The actor's orders, or everyone's for principals allowed to see them."""
        if all_orders and not has_capability(actor, VIEW_ALL_ORDERS):
            raise PermissionDenied("Only administrators can view all orders")
        try:
            return await self.store.select_orders(None if all_orders else actor.id)
        except StoreError as e:
            logger.error(f"Failed to list orders: {e}")
            raise OrderOperationFailed("Failed to load orders") from e

    async def update_status(self, order_id: str, new_status: Union[OrderStatus, str], actor: User) -> Order:
        """
        Move an order to ``new_status``.

        The write only succeeds if the order still has the status it was
        validated against; otherwise another writer got there first and the
        change is rejected as an invalid transition.
        """
        order = await self._load_order(order_id)
        if order.user_id != actor.id and not has_capability(actor, MANAGE_ORDERS):
            # Do not reveal other users' orders or their current status
            raise OrderNotFound("Order not found")

        is_valid, error_msg = self.validate_status_transition(order.status, new_status)
        if not is_valid:
            raise InvalidTransition(error_msg)
        new_status = OrderStatus(new_status)

        can_change, error_msg = self.can_user_change_status(order, new_status, actor)
        if not can_change:
            raise PermissionDenied(error_msg)

        entry = StatusHistory(status=new_status, changed_by=actor.id)
        try:
            updated = await self.store.update_order_status(order_id, order.status, new_status, entry)
        except StoreError as e:
            logger.error(f"Failed to update status of order {order_id}: {e}")
            raise OrderOperationFailed("Failed to update order status") from e

        if not updated:
            raise InvalidTransition(f"Order {order_id} is no longer '{order.status.value}'")

        logger.info(f"Order {order_id} moved from {order.status.value} to {new_status.value} by {actor.id}")
        return order.model_copy(update={
            "status": new_status,
            "updated_at": entry.changed_at,
            "status_history": order.status_history + [entry]
        })
