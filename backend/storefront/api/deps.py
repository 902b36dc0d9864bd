from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import ValidationError as PydanticValidationError

from storefront.core.database import get_database
from storefront.core.security import decode_access_token, user_from_claims
from storefront.models.user import User
from storefront.services.cart_service import CartService
from storefront.services.order_service import OrderService
from storefront.services.wishlist_service import WishlistService
from storefront.store.base import RemoteStore
from storefront.store.mongo import MongoStore

# Security scheme
security = HTTPBearer()


async def get_db() -> AsyncIOMotorDatabase:
    """Dependency to get database instance."""
    return get_database()


async def get_store(db: AsyncIOMotorDatabase = Depends(get_db)) -> RemoteStore:
    """Dependency to get the remote store adapter."""
    return MongoStore(db)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> User:
    """
    Dependency to get the current authenticated user.

    The bearer token is issued by the auth service; its claims carry the
    principal, so no database lookup is needed.

    Raises:
        HTTPException: If the token is invalid
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise credentials_exception

    try:
        user = user_from_claims(payload)
    except PydanticValidationError:
        raise credentials_exception

    if user is None:
        raise credentials_exception

    return user


async def get_cart_service(
    current_user: User = Depends(get_current_user),
    store: RemoteStore = Depends(get_store)
) -> CartService:
    """Dependency returning a cart bound to the current user, freshly loaded."""
    cart = CartService(store, current_user)
    await cart.refresh()
    return cart


async def get_order_service(store: RemoteStore = Depends(get_store)) -> OrderService:
    return OrderService(store)


async def get_wishlist_service(
    current_user: User = Depends(get_current_user),
    store: RemoteStore = Depends(get_store)
) -> WishlistService:
    return WishlistService(store, current_user)
