"""Custom exceptions for the storefront order service.

Every error carries a stable ``error_type`` (the class name) and the HTTP
status the API answers with. The API layer maps them in a single handler.
"""


class StorefrontError(Exception):
    """Base exception for all storefront errors."""

    status_code: int = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    @property
    def error_type(self) -> str:
        return type(self).__name__


class NotFound(StorefrontError):
    """Raised when a requested resource does not exist."""

    status_code = 404


class OrderNotFound(NotFound):
    """Raised when an order id or order number doesn't exist."""

    def __init__(self, reference: str):
        self.reference = reference
        super().__init__(f"Order not found: {reference}")


class Unauthorized(StorefrontError):
    """Raised when the caller cannot be identified."""

    status_code = 401


class Forbidden(StorefrontError):
    """Raised when the access policy denies an operation."""

    status_code = 403


class ValidationFailed(StorefrontError):
    """Raised on malformed or out-of-range input."""

    status_code = 422


class InvalidLineItem(ValidationFailed):
    """Raised when a line item has a negative price or a quantity below one."""

    def __init__(self, index: int, reason: str):
        self.index = index
        self.reason = reason
        super().__init__(f"Invalid line item #{index}: {reason}")


class InvalidCancellationState(StorefrontError):
    """Raised when cancelling an order that is no longer cancellable."""

    status_code = 409

    def __init__(self, order_number: str | None, status: str):
        self.order_number = order_number
        self.status = status
        label = f"Order {order_number}" if order_number else "Order"
        super().__init__(f"{label} cannot be cancelled while {status}")


class InvalidTransition(StorefrontError):
    """Raised when a status change is not allowed by the transition table."""

    status_code = 409

    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Cannot change order status from {current} to {target}")


class ConcurrentUpdate(StorefrontError):
    """Raised when an order changed status between read and write."""

    status_code = 409

    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__(f"Order {order_id} was modified concurrently, retry the request")


class DuplicateOrderNumber(StorefrontError):
    """Raised when a generated order number collides with a stored one.

    Retryable: the caller regenerates the number and inserts again.
    """

    status_code = 409

    def __init__(self, order_number: str):
        self.order_number = order_number
        super().__init__(f"Order number already exists: {order_number}")


class PaymentNotConfirmed(StorefrontError):
    """Raised when an order is created without a verified successful charge."""

    status_code = 402


class InvoiceRenderingFailed(StorefrontError):
    """Raised when the PDF renderer fails or returns an empty document."""

    status_code = 502


class UpstreamUnavailable(StorefrontError):
    """Raised when an external collaborator is unreachable or timed out."""

    status_code = 503
