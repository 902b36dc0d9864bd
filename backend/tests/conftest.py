"""
Shared fixtures: an in-memory remote store and a few catalog products.
"""
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

import pytest
from bson import ObjectId

from storefront.models.cart import CartLine
from storefront.models.order import Order, OrderStatus, StatusHistory
from storefront.models.product import Product
from storefront.models.user import User, UserRole
from storefront.models.wishlist import WishlistItem
from storefront.store.base import DuplicateKeyError, RemoteStore, StoreError
from storefront.utils.helpers import get_current_timestamp


class InMemoryStore(RemoteStore):
    """Remote store kept in dicts, enforcing the same unique keys as MongoDB.

    ``fail`` maps a method name to the number of calls that should raise
    StoreError before the method starts succeeding again.
    """

    def __init__(self):
        self.products: Dict[str, Product] = {}
        self.cart_lines: Dict[tuple, CartLine] = {}
        self.orders: Dict[str, Order] = {}
        self.wishlist: Dict[tuple, WishlistItem] = {}
        self.fail: Dict[str, int] = {}
        self.calls: List[str] = []

    def _call(self, name: str):
        self.calls.append(name)
        remaining = self.fail.get(name, 0)
        if remaining:
            self.fail[name] = remaining - 1
            raise StoreError(f"{name} unavailable")

    def add_product(self, product: Product) -> Product:
        self.products[product.id] = product
        return product

    def set_active(self, product_id: str, is_active: bool):
        self.products[product_id] = self.products[product_id].model_copy(update={"is_active": is_active})

    async def select_cart_lines(self, user_id: str) -> List[CartLine]:
        self._call("select_cart_lines")
        lines = [line for (uid, _), line in self.cart_lines.items() if uid == user_id]
        return sorted(lines, key=lambda line: line.created_at)

    async def select_cart_line(self, user_id: str, product_id: str) -> Optional[CartLine]:
        self._call("select_cart_line")
        return self.cart_lines.get((user_id, product_id))

    async def insert_cart_line(self, user_id: str, product_id: str, quantity: int) -> CartLine:
        self._call("insert_cart_line")
        if (user_id, product_id) in self.cart_lines:
            raise DuplicateKeyError("cart_items user_id_1_product_id_1")
        line = CartLine(user_id=user_id, product_id=product_id, quantity=quantity)
        self.cart_lines[(user_id, product_id)] = line
        return line

    async def update_cart_line(self, user_id: str, product_id: str, quantity: int) -> bool:
        self._call("update_cart_line")
        line = self.cart_lines.get((user_id, product_id))
        if line is None:
            return False
        self.cart_lines[(user_id, product_id)] = line.model_copy(update={"quantity": quantity})
        return True

    async def delete_cart_line(self, user_id: str, product_id: str) -> None:
        self._call("delete_cart_line")
        self.cart_lines.pop((user_id, product_id), None)

    async def delete_all_cart_lines(self, user_id: str) -> None:
        self._call("delete_all_cart_lines")
        for key in [key for key in self.cart_lines if key[0] == user_id]:
            del self.cart_lines[key]

    async def select_product(self, product_id: str) -> Optional[Product]:
        self._call("select_product")
        return self.products.get(product_id)

    async def select_products(self, product_ids: Iterable[str]) -> Dict[str, Product]:
        self._call("select_products")
        return {pid: self.products[pid] for pid in product_ids if pid in self.products}

    async def insert_order(self, order: Order) -> str:
        self._call("insert_order")
        if order.idempotency_key and any(
            o.user_id == order.user_id and o.idempotency_key == order.idempotency_key
            for o in self.orders.values()
        ):
            raise DuplicateKeyError("orders user_id_1_idempotency_key_1")
        order_id = str(ObjectId())
        self.orders[order_id] = order.model_copy(update={"id": order_id})
        return order_id

    async def select_order(self, order_id: str) -> Optional[Order]:
        self._call("select_order")
        return self.orders.get(order_id)

    async def select_order_by_idempotency_key(self, user_id: str, key: str) -> Optional[Order]:
        self._call("select_order_by_idempotency_key")
        for order in self.orders.values():
            if order.user_id == user_id and order.idempotency_key == key:
                return order
        return None

    async def update_order_status(
        self,
        order_id: str,
        expected_status: OrderStatus,
        new_status: OrderStatus,
        history_entry: StatusHistory
    ) -> bool:
        self._call("update_order_status")
        order = self.orders.get(order_id)
        if order is None or order.status != expected_status:
            return False
        self.orders[order_id] = order.model_copy(update={
            "status": new_status,
            "status_history": order.status_history + [history_entry],
            "updated_at": history_entry.changed_at
        })
        return True

    async def select_orders(self, user_id: Optional[str] = None) -> List[Order]:
        self._call("select_orders")
        orders = [o for o in self.orders.values() if user_id is None or o.user_id == user_id]
        return sorted(orders, key=lambda o: o.created_at, reverse=True)

    async def select_wishlist_items(self, user_id: str) -> List[WishlistItem]:
        self._call("select_wishlist_items")
        items = [item for (uid, _), item in self.wishlist.items() if uid == user_id]
        return sorted(items, key=lambda item: item.created_at, reverse=True)

    async def select_wishlist_item(self, user_id: str, product_id: str) -> Optional[WishlistItem]:
        self._call("select_wishlist_item")
        return self.wishlist.get((user_id, product_id))

    async def insert_wishlist_item(self, user_id: str, product_id: str) -> WishlistItem:
        self._call("insert_wishlist_item")
        if (user_id, product_id) in self.wishlist:
            raise DuplicateKeyError("wishlist_items user_id_1_product_id_1")
        item = WishlistItem(user_id=user_id, product_id=product_id, created_at=get_current_timestamp())
        self.wishlist[(user_id, product_id)] = item
        return item

    async def delete_wishlist_item(self, user_id: str, product_id: str) -> None:
        self._call("delete_wishlist_item")
        self.wishlist.pop((user_id, product_id), None)


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def customer():
    return User(id="user123", email="shopper@example.com", role=UserRole.CUSTOMER)


@pytest.fixture
def other_customer():
    return User(id="user456", email="other@example.com", role=UserRole.CUSTOMER)


@pytest.fixture
def admin():
    return User(id="admin1", email="admin@example.com", role=UserRole.ADMIN, is_admin=True)


@pytest.fixture
def keyboard(store):
    return store.add_product(Product(
        id="prod-a",
        name="Mechanical Keyboard",
        price=Decimal("249.00"),
        category="electronics",
        stock=10
    ))


@pytest.fixture
def mouse(store):
    return store.add_product(Product(
        id="prod-b",
        name="Wireless Mouse",
        price=Decimal("45.00"),
        category="electronics",
        stock=25
    ))


@pytest.fixture
def shipping_address():
    return {
        "full_name": "Ada Lovelace",
        "line1": "12 Analytical Row",
        "city": "London",
        "postal_code": "N1 9GU",
        "country": "GB"
    }
