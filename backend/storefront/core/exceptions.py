"""
Error taxonomy for the cart and order engines.

Every error carries the HTTP status code the API layer answers with, so a
single exception handler in ``main.py`` can translate them.
"""
from fastapi import status


class StorefrontError(Exception):
    """Base class for errors raised to the immediate caller."""
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str = ""):
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__


class Unauthenticated(StorefrontError):
    """No user is bound to the operation."""
    status_code = status.HTTP_401_UNAUTHORIZED


class ValidationError(StorefrontError):
    """Malformed input a caller should have pre-validated."""
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class OperationFailed(StorefrontError):
    """A store call failed."""
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class CartOperationFailed(OperationFailed):
    """A cart mutation or refresh failed; the last good view is kept."""


class OrderOperationFailed(OperationFailed):
    """An order could not be read or persisted."""


class WishlistOperationFailed(OperationFailed):
    """A wishlist read or mutation failed."""


class EmptyCart(StorefrontError):
    """Checkout attempted with nothing purchasable."""


class InvalidTransition(StorefrontError):
    """Illegal order status change."""
    status_code = status.HTTP_409_CONFLICT


class OrderNotFound(StorefrontError):
    status_code = status.HTTP_404_NOT_FOUND


class PermissionDenied(StorefrontError):
    status_code = status.HTTP_403_FORBIDDEN


class CartChanged(StorefrontError):
    """The cart no longer matches what the shopper confirmed."""
    status_code = status.HTTP_409_CONFLICT
