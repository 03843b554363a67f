"""Data models package."""

from storefront.models.order import (
    Customer,
    LineItemInput,
    OrderInDB,
    OrderItem,
    OrderStatus,
    Payment,
    PaymentStatus,
    Pricing,
    ShippingAddress,
    TimelineEntry,
    Tracking,
    owner_id,
)
from storefront.models.request import (
    AdminOrderCreate,
    CancelRequest,
    ConfirmPaymentRequest,
    ConfirmPaymentResponse,
    CreatePaymentIntentRequest,
    ErrorResponse,
    HealthResponse,
    NotesUpdateRequest,
    OrderListResponse,
    OrderStatsResponse,
    Pagination,
    PaymentConfigResponse,
    PaymentIntentResponse,
    StatusSummary,
    StatusUpdateRequest,
)
from storefront.models.user import UserCreate, UserInDB, UserRole

__all__ = [
    # User models
    "UserCreate",
    "UserInDB",
    "UserRole",
    # Order models
    "Customer",
    "LineItemInput",
    "OrderInDB",
    "OrderItem",
    "OrderStatus",
    "Payment",
    "PaymentStatus",
    "Pricing",
    "ShippingAddress",
    "TimelineEntry",
    "Tracking",
    "owner_id",
    # Request/Response models
    "AdminOrderCreate",
    "CancelRequest",
    "ConfirmPaymentRequest",
    "ConfirmPaymentResponse",
    "CreatePaymentIntentRequest",
    "NotesUpdateRequest",
    "OrderListResponse",
    "OrderStatsResponse",
    "Pagination",
    "PaymentConfigResponse",
    "PaymentIntentResponse",
    "StatusSummary",
    "StatusUpdateRequest",
    "ErrorResponse",
    "HealthResponse",
]
