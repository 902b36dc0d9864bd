"""
Token decoding and the capability check used for every authorization decision.

Tokens are issued by the external auth service; this module only verifies them.
"""
from typing import Optional
from jose import JWTError, jwt

from storefront.core.config import settings
from storefront.models.user import User, UserRole

MANAGE_CATALOG = "manage_catalog"
MANAGE_ORDERS = "manage_orders"
VIEW_ALL_ORDERS = "view_all_orders"

ROLE_CAPABILITIES = {
    UserRole.ADMIN: frozenset({MANAGE_CATALOG, MANAGE_ORDERS, VIEW_ALL_ORDERS}),
    UserRole.CUSTOMER: frozenset(),
}


def decode_access_token(token: str) -> Optional[dict]:
    """Return the token claims, or None if the token is invalid or expired."""
    try:
        return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None


def user_from_claims(claims: dict) -> Optional[User]:
    """Build the principal from token claims (``sub``, ``email``, ``role``)."""
    user_id = claims.get("sub")
    if not user_id:
        return None
    role = claims.get("role") or UserRole.CUSTOMER.value
    if role not in {r.value for r in UserRole}:
        role = UserRole.CUSTOMER.value
    return User(
        id=str(user_id),
        email=claims.get("email"),
        full_name=claims.get("name"),
        role=role,
        is_admin=bool(claims.get("is_admin", False))
    )


def has_capability(user: Optional[User], capability: str) -> bool:
    """Single authorization check: does this principal hold the capability?"""
    if user is None:
        return False
    role = UserRole.ADMIN if user.is_admin else user.role
    return capability in ROLE_CAPABILITIES.get(role, frozenset())
