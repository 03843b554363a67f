"""API request and response models."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from storefront.models.order import (
    Customer,
    LineItemInput,
    OrderInDB,
    OrderStatus,
    Pricing,
    ShippingAddress,
    Tracking,
)


class StatusUpdateRequest(BaseModel):
    """Admin status change."""

    model_config = ConfigDict(
        use_enum_values=True,
        json_schema_extra={
            "example": {
                "status": "shipped",
                "message": "Handed over to the carrier",
                "tracking": {"carrier": "OCA", "trackingNumber": "OCA123456"},
            }
        },
    )

    status: OrderStatus
    message: Optional[str] = Field(None, max_length=500)
    tracking: Optional[Tracking] = None


class CancelRequest(BaseModel):
    """Order cancellation."""

    reason: Optional[str] = Field(None, max_length=500)


class NotesUpdateRequest(BaseModel):
    """Direct edit of order notes."""

    notes: str = Field(..., max_length=500)


class AdminOrderCreate(BaseModel):
    """Administrative order creation."""

    user: Optional[str] = Field(None, description="Account the order belongs to")
    customer: Customer
    shipping: ShippingAddress
    items: list[LineItemInput] = Field(..., min_length=1)
    notes: Optional[str] = Field(None, max_length=500)


class CreatePaymentIntentRequest(BaseModel):
    """Payment intent request. The amount is derived from the items server-side."""

    items: list[LineItemInput] = Field(..., min_length=1)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    metadata: dict[str, str] = Field(default_factory=dict)


class PaymentIntentResponse(BaseModel):
    """Client-confirmable payment handle."""

    clientSecret: Optional[str]
    paymentIntentId: str
    amount: int = Field(..., description="Amount in minor units")
    currency: str
    pricing: Pricing


class ConfirmPaymentRequest(BaseModel):
    """Checkout confirmation after the client completed the payment."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "paymentIntentId": "pi_3Nq0",
                "items": [{"productId": 17, "title": "Mechanical Keyboard", "price": 30000, "quantity": 1}],
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
                },
            }
        }
    )

    paymentIntentId: str = Field(..., pattern=r"^pi_[A-Za-z0-9_]+$")
    items: list[LineItemInput] = Field(..., min_length=1)
    customer: Customer
    shipping: ShippingAddress
    notes: Optional[str] = Field(None, max_length=500)

    @model_validator(mode="before")
    @classmethod
    def accept_checkout_form(cls, data: Any) -> Any:
        # Storefront checkout posts {orderData: {items, notes}, shippingInfo, customerInfo}
        if not isinstance(data, dict):
            return data
        data = dict(data)
        order_data = data.pop("orderData", None)
        if isinstance(order_data, dict):
            data.setdefault("items", order_data.get("items"))
            if order_data.get("notes") is not None:
                data.setdefault("notes", order_data["notes"])
        for legacy, name in (("shippingInfo", "shipping"), ("customerInfo", "customer")):
            if legacy in data:
                data.setdefault(name, data.pop(legacy))
        return data


class ConfirmPaymentResponse(BaseModel):
    """Checkout confirmation result."""

    message: str
    created: bool
    order: OrderInDB


class PaymentConfigResponse(BaseModel):
    """Public payment configuration for the front end."""

    publishableKey: str
    hasSecretKey: bool


class Pagination(BaseModel):
    """Pagination metadata of a listing."""

    currentPage: int
    totalPages: int
    totalOrders: int
    hasNextPage: bool
    hasPrevPage: bool
    limit: int


class OrderListResponse(BaseModel):
    """Paginated order listing."""

    orders: list[OrderInDB]
    pagination: Pagination


class StatusSummary(BaseModel):
    """Order count and amount for one status."""

    status: str
    count: int
    totalAmount: float


class OrderStatsResponse(BaseModel):
    """Aggregate order statistics."""

    totalOrders: int
    totalRevenue: float
    byStatus: list[StatusSummary]


class ErrorResponse(BaseModel):
    """Error response model."""

    error: str
    message: str
    details: Optional[list[dict[str, Any]]] = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    services: dict[str, str]
