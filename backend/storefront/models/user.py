from typing import Optional
from enum import Enum
from pydantic import BaseModel, EmailStr, Field


class UserRole(str, Enum):
    """User role enumeration."""
    CUSTOMER = "customer"
    ADMIN = "admin"


class User(BaseModel):
    """Authenticated principal as supplied by the auth service."""
    id: str = Field(alias="_id")
    email: Optional[EmailStr] = None
    full_name: Optional[str] = None
    role: UserRole = UserRole.CUSTOMER
    is_admin: bool = False

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "id": "6b1f0e8c-2f4e-4a55-9c1d-3f8c1a2b9d10",
                "email": "user@example.com",
                "full_name": "Ada Lovelace",
                "role": "customer",
                "is_admin": False
            }
        }
