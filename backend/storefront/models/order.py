"""Order data models."""

from collections.abc import Mapping
from datetime import UTC, datetime
from enum import Enum
from typing import Annotated, Any, Optional

from bson import ObjectId
from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    computed_field,
    field_validator,
    model_validator,
)

from storefront.utils.helpers import round2, utcnow


def _as_utc(value: datetime) -> datetime:
    # MongoDB hands back naive UTC datetimes unless the client is tz-aware
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


UTCDateTime = Annotated[datetime, AfterValidator(_as_utc)]


def owner_id(value: Any) -> Optional[str]:
    """Resolve any representation of an account reference to a plain string id.

    Accepts a bare string, an ``ObjectId``, a populated user document (dict
    with ``_id``/``id``/``userId``) or an object exposing ``userId``/``id``.
    Returns ``None`` for guest orders.
    """
    if value is None:
        return None
    if isinstance(value, str):
        return value.strip() or None
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, Mapping):
        for key in ("userId", "_id", "id"):
            if value.get(key) is not None:
                return owner_id(value[key])
        return None
    for attr in ("userId", "id"):
        if getattr(value, attr, None) is not None:
            return owner_id(getattr(value, attr))
    return str(value)


class OrderStatus(str, Enum):
    """Order lifecycle states."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class PaymentStatus(str, Enum):
    """Payment states tracked alongside the order."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class Customer(BaseModel):
    """Customer contact snapshot taken at order time."""

    model_config = ConfigDict(str_strip_whitespace=True)

    firstName: str = Field(..., min_length=1, max_length=100)
    lastName: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    phone: str = Field(..., min_length=1, max_length=30)

    @field_validator("email", mode="before")
    @classmethod
    def lowercase_email(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().lower()
        return v


class ShippingAddress(BaseModel):
    """Shipping address snapshot.

    ``zipCode`` is the stored name; ``postalCode`` is accepted on input.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    address: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)
    zipCode: str = Field(..., min_length=1)
    country: str = "Argentina"
    instructions: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def migrate_postal_code(cls, data: Any) -> Any:
        if isinstance(data, dict) and "zipCode" not in data and "postalCode" in data:
            data = dict(data)
            data["zipCode"] = data.pop("postalCode")
        return data


class LineItemInput(BaseModel):
    """Line item as submitted by a client. Prices are checked by the calculator."""

    product: Optional[str] = Field(None, description="Catalog document reference")
    productId: int | str = Field(..., description="Catalog product id")
    title: str = Field(..., min_length=1)
    price: float
    quantity: int
    image: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def accept_cart_aliases(cls, data: Any) -> Any:
        # Cart entries use id/name where orders use productId/title
        if isinstance(data, dict):
            data = dict(data)
            if "productId" not in data and "id" in data:
                data["productId"] = data.pop("id")
            if "title" not in data and "name" in data:
                data["title"] = data.pop("name")
        return data


class OrderItem(BaseModel):
    """Line item in an order."""

    product: Optional[str] = None
    productId: int | str
    title: str
    price: float = Field(..., ge=0)
    quantity: int = Field(..., ge=1)
    subtotal: float = Field(..., ge=0)
    image: Optional[str] = None

    @model_validator(mode="after")
    def check_subtotal(self) -> "OrderItem":
        expected = round2(self.price * self.quantity)
        if abs(self.subtotal - expected) >= 0.005:
            raise ValueError(
                f"subtotal {self.subtotal} does not match price x quantity ({expected})"
            )
        return self

    @classmethod
    def from_line(cls, line: LineItemInput) -> "OrderItem":
        """Build a stored line item, computing its subtotal."""
        return cls(
            product=line.product,
            productId=line.productId,
            title=line.title,
            price=line.price,
            quantity=line.quantity,
            subtotal=round2(line.price * line.quantity),
            image=line.image,
        )


class Pricing(BaseModel):
    """Monetary totals of an order."""

    subtotal: float = Field(..., ge=0)
    tax: float = Field(0, ge=0)
    shipping: float = Field(0, ge=0)
    total: float = Field(..., ge=0)

    @model_validator(mode="after")
    def check_total(self) -> "Pricing":
        expected = round2(self.subtotal + self.tax + self.shipping)
        if abs(self.total - expected) >= 0.005:
            raise ValueError(f"total {self.total} does not equal subtotal + tax + shipping")
        return self


class Payment(BaseModel):
    """Payment details for an order."""

    model_config = ConfigDict(use_enum_values=True, validate_default=True, validate_assignment=True)

    method: str = "stripe"
    status: PaymentStatus = PaymentStatus.PENDING
    paymentIntentId: Optional[str] = None
    transactionId: Optional[str] = None
    currency: str = "USD"
    paidAt: Optional[UTCDateTime] = None


class TimelineEntry(BaseModel):
    """One status change in the order history."""

    model_config = ConfigDict(use_enum_values=True)

    status: OrderStatus
    message: str
    timestamp: UTCDateTime = Field(default_factory=utcnow)
    updatedBy: Optional[str] = None

    @field_validator("updatedBy", mode="before")
    @classmethod
    def normalize_actor(cls, v: Any) -> Optional[str]:
        return owner_id(v)


class Tracking(BaseModel):
    """Carrier tracking details."""

    model_config = ConfigDict(validate_assignment=True)

    carrier: Optional[str] = None
    trackingNumber: Optional[str] = None
    trackingUrl: Optional[str] = None
    estimatedDelivery: Optional[UTCDateTime] = None


class OrderInDB(BaseModel):
    """Order model as stored in database."""

    model_config = ConfigDict(
        use_enum_values=True,
        validate_default=True,
        validate_assignment=True,
        json_schema_extra={
            "example": {
                "id": "665f1c2e9b1e8a3f4c2d1a0b",
                "orderNumber": "ORD-482913507",
                "user": "user_001",
                "customer": {
                    "firstName": "Kai",
                    "lastName": "He",
                    "email": "kai.he@example.com",
                    "phone": "+1234567890",
                },
                "shipping": {
                    "address": "Av. Siempre Viva 742",
                    "city": "Córdoba",
                    "state": "Córdoba",
                    "zipCode": "5000",
                    "country": "Argentina",
                },
                "items": [
                    {
                        "productId": 17,
                        "title": "Mechanical Keyboard",
                        "price": 30000,
                        "quantity": 1,
                        "subtotal": 30000,
                    }
                ],
                "pricing": {"subtotal": 30000, "tax": 6300, "shipping": 0, "total": 36300},
                "status": "confirmed",
            }
        },
    )

    id: Optional[str] = Field(None, description="String form of the MongoDB _id")
    orderNumber: Optional[str] = Field(None, description="Human readable order number")
    user: Optional[str] = Field(None, description="Owning account id, None for guest orders")
    customer: Customer
    shipping: ShippingAddress
    items: list[OrderItem] = Field(..., min_length=1)
    pricing: Pricing
    payment: Payment = Field(default_factory=Payment)
    status: OrderStatus = OrderStatus.PENDING
    timeline: list[TimelineEntry] = Field(default_factory=list)
    tracking: Optional[Tracking] = None
    notes: Optional[str] = Field(None, max_length=500)
    createdAt: UTCDateTime = Field(default_factory=utcnow)
    updatedAt: UTCDateTime = Field(default_factory=utcnow)

    @field_validator("user", mode="before")
    @classmethod
    def normalize_user(cls, v: Any) -> Optional[str]:
        return owner_id(v)

    @computed_field
    @property
    def totalItems(self) -> int:
        return sum(item.quantity for item in self.items)

    @computed_field
    @property
    def customerFullName(self) -> str:
        return f"{self.customer.firstName} {self.customer.lastName}"

    def to_document(self) -> dict[str, Any]:
        """Serialize for MongoDB, leaving ``_id`` to the database."""
        return self.model_dump(exclude={"id", "totalItems", "customerFullName"})

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> "OrderInDB":
        """Build an order from a raw MongoDB document."""
        data = dict(document)
        if "_id" in data:
            data["id"] = str(data.pop("_id"))
        return cls(**data)

    def public_view(self) -> dict[str, Any]:
        """Serialize for the public tracking endpoint, without payment references."""
        return self.model_dump(
            mode="json",
            exclude={"payment": {"paymentIntentId", "transactionId"}},
        )
