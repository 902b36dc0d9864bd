"""
MongoDB implementation of the remote store, on top of motor.
"""
import logging
from contextlib import contextmanager
from typing import Dict, Iterable, List, Optional

from bson import Decimal128
from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import ValidationError
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError as MongoDuplicateKeyError, PyMongoError

from storefront.models.cart import CartLine
from storefront.models.order import Order, OrderStatus, StatusHistory
from storefront.models.product import Product
from storefront.models.wishlist import WishlistItem
from storefront.store.base import DuplicateKeyError, RemoteStore, StoreError
from storefront.utils.helpers import get_current_timestamp, to_object_id

logger = logging.getLogger(__name__)


@contextmanager
def _store_errors(operation: str):
    """Translate driver errors into store errors."""
    try:
        yield
    except MongoDuplicateKeyError as e:
        raise DuplicateKeyError(f"{operation}: {e}") from e
    except PyMongoError as e:
        logger.error(f"Store call {operation} failed: {e}")
        raise StoreError(f"{operation}: {e}") from e


def _order_document(order: Order) -> dict:
    """Encode an order for MongoDB (decimals as Decimal128, enums as strings)."""
    document = {
        "user_id": order.user_id,
        "items": [
            {
                "product_id": item.product_id,
                "title": item.title,
                "unit_price": Decimal128(item.unit_price),
                "quantity": item.quantity
            }
            for item in order.items
        ],
        "total": Decimal128(order.total),
        "status": order.status.value,
        "shipping_address": order.shipping_address.model_dump(),
        "status_history": [_history_document(entry) for entry in order.status_history],
        "created_at": order.created_at,
        "updated_at": order.updated_at
    }
    if order.idempotency_key:
        document["idempotency_key"] = order.idempotency_key
    return document


def _history_document(entry: StatusHistory) -> dict:
    return {
        "status": entry.status.value,
        "changed_at": entry.changed_at,
        "changed_by": entry.changed_by
    }


class MongoStore(RemoteStore):
    """Remote store backed by the ``products``, ``cart_items``, ``orders``
    and ``wishlist_items`` collections."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db

    async def ensure_indexes(self):
        """Create the uniqueness constraints the engines rely on."""
        with _store_errors("ensure_indexes"):
            await self.db.cart_items.create_index(
                [("user_id", ASCENDING), ("product_id", ASCENDING)],
                unique=True
            )
            await self.db.wishlist_items.create_index(
                [("user_id", ASCENDING), ("product_id", ASCENDING)],
                unique=True
            )
            await self.db.orders.create_index(
                [("user_id", ASCENDING), ("idempotency_key", ASCENDING)],
                unique=True,
                partialFilterExpression={"idempotency_key": {"$type": "string"}}
            )
            await self.db.orders.create_index([("user_id", ASCENDING), ("created_at", DESCENDING)])
        logger.info("MongoDB indexes ensured")

    # Cart lines

    async def select_cart_lines(self, user_id: str) -> List[CartLine]:
        with _store_errors("select_cart_lines"):
            cursor = self.db.cart_items.find({"user_id": user_id}).sort("created_at", ASCENDING)
            documents = await cursor.to_list(length=None)
        lines = []
        for doc in documents:
            try:
                lines.append(CartLine(**doc))
            except ValidationError as e:
                # Rows written outside the engine (e.g. quantity 0) are left out of the cart
                logger.warning(f"Skipping malformed cart row {doc.get('_id')} for user {user_id}: {e}")
        return lines

    async def select_cart_line(self, user_id: str, product_id: str) -> Optional[CartLine]:
        with _store_errors("select_cart_line"):
            doc = await self.db.cart_items.find_one({"user_id": user_id, "product_id": product_id})
        if not doc:
            return None
        try:
            return CartLine(**doc)
        except ValidationError as e:
            logger.error(f"Malformed cart row {doc.get('_id')} for user {user_id}: {e}")
            raise StoreError(f"select_cart_line: malformed row {doc.get('_id')}") from e

    async def insert_cart_line(self, user_id: str, product_id: str, quantity: int) -> CartLine:
        line = CartLine(user_id=user_id, product_id=product_id, quantity=quantity)
        with _store_errors("insert_cart_line"):
            await self.db.cart_items.insert_one(line.model_dump())
        return line

    async def update_cart_line(self, user_id: str, product_id: str, quantity: int) -> bool:
        with _store_errors("update_cart_line"):
            result = await self.db.cart_items.update_one(
                {"user_id": user_id, "product_id": product_id},
                {"$set": {"quantity": quantity, "updated_at": get_current_timestamp()}}
            )
        return result.matched_count > 0

    async def delete_cart_line(self, user_id: str, product_id: str) -> None:
        with _store_errors("delete_cart_line"):
            await self.db.cart_items.delete_one({"user_id": user_id, "product_id": product_id})

    async def delete_all_cart_lines(self, user_id: str) -> None:
        with _store_errors("delete_all_cart_lines"):
            await self.db.cart_items.delete_many({"user_id": user_id})

    # Products

    async def select_product(self, product_id: str) -> Optional[Product]:
        with _store_errors("select_product"):
            doc = await self.db.products.find_one({"_id": to_object_id(product_id)})
        return Product(**doc) if doc else None

    async def select_products(self, product_ids: Iterable[str]) -> Dict[str, Product]:
        ids = list(dict.fromkeys(product_ids))
        if not ids:
            return {}
        # Catalog ids may be ObjectIds or plain strings; match either form
        lookup = list({to_object_id(i) for i in ids} | set(ids))
        with _store_errors("select_products"):
            documents = await self.db.products.find({"_id": {"$in": lookup}}).to_list(length=None)
        products = [Product(**doc) for doc in documents]
        return {product.id: product for product in products}

    # Orders

    async def insert_order(self, order: Order) -> str:
        with _store_errors("insert_order"):
            result = await self.db.orders.insert_one(_order_document(order))
        return str(result.inserted_id)

    async def select_order(self, order_id: str) -> Optional[Order]:
        with _store_errors("select_order"):
            doc = await self.db.orders.find_one({"_id": to_object_id(order_id)})
        return Order(**doc) if doc else None

    async def select_order_by_idempotency_key(self, user_id: str, key: str) -> Optional[Order]:
        with _store_errors("select_order_by_idempotency_key"):
            doc = await self.db.orders.find_one({"user_id": user_id, "idempotency_key": key})
        return Order(**doc) if doc else None

    async def update_order_status(
        self,
        order_id: str,
        expected_status: OrderStatus,
        new_status: OrderStatus,
        history_entry: StatusHistory
    ) -> bool:
        with _store_errors("update_order_status"):
            doc = await self.db.orders.find_one_and_update(
                {"_id": to_object_id(order_id), "status": expected_status.value},
                {
                    "$set": {"status": new_status.value, "updated_at": history_entry.changed_at},
                    "$push": {"status_history": _history_document(history_entry)}
                },
                return_document=ReturnDocument.AFTER
            )
        return doc is not None

    async def select_orders(self, user_id: Optional[str] = None) -> List[Order]:
        query = {} if user_id is None else {"user_id": user_id}
        with _store_errors("select_orders"):
            cursor = self.db.orders.find(query).sort("created_at", DESCENDING)
            documents = await cursor.to_list(length=None)
        return [Order(**doc) for doc in documents]

    # Wishlist

    async def select_wishlist_items(self, user_id: str) -> List[WishlistItem]:
        with _store_errors("select_wishlist_items"):
            cursor = self.db.wishlist_items.find({"user_id": user_id}).sort("created_at", DESCENDING)
            documents = await cursor.to_list(length=None)
        return [WishlistItem(**doc) for doc in documents]

    async def select_wishlist_item(self, user_id: str, product_id: str) -> Optional[WishlistItem]:
        with _store_errors("select_wishlist_item"):
            doc = await self.db.wishlist_items.find_one({"user_id": user_id, "product_id": product_id})
        return WishlistItem(**doc) if doc else None

    async def insert_wishlist_item(self, user_id: str, product_id: str) -> WishlistItem:
        item = WishlistItem(user_id=user_id, product_id=product_id)
        with _store_errors("insert_wishlist_item"):
            await self.db.wishlist_items.insert_one(item.model_dump())
        return item

    async def delete_wishlist_item(self, user_id: str, product_id: str) -> None:
        with _store_errors("delete_wishlist_item"):
            await self.db.wishlist_items.delete_one({"user_id": user_id, "product_id": product_id})
