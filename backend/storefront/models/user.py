"""User data models."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from storefront.utils.helpers import utcnow


class UserRole(str, Enum):
    """Account roles."""

    CUSTOMER = "customer"
    ADMIN = "admin"


class UserBase(BaseModel):
    """Base user model."""

    model_config = ConfigDict(use_enum_values=True, validate_default=True)

    userId: str = Field(..., description="Unique user identifier")
    firstName: str = Field(..., min_length=1, max_length=100)
    lastName: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    phone: str = Field(..., pattern=r"^\+?1?\d{9,15}$")
    role: UserRole = UserRole.CUSTOMER


class UserCreate(UserBase):
    """User creation model."""

    pass


class UserInDB(UserBase):
    """User model as stored in database."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "userId": "user123",
                "firstName": "John",
                "lastName": "Doe",
                "email": "john.doe@example.com",
                "phone": "+1234567890",
                "role": "customer",
                "createdAt": "2024-01-01T00:00:00",
                "updatedAt": "2024-01-01T00:00:00",
            }
        },
    )

    createdAt: datetime = Field(default_factory=utcnow)
    updatedAt: datetime = Field(default_factory=utcnow)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

