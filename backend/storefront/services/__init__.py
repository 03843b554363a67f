"""Services package."""

from dataclasses import dataclass
from typing import Optional

from storefront.config import Settings
from storefront.database.mongodb import MongoDB
from storefront.services.access import ANONYMOUS, Caller
from storefront.services.checkout_service import CheckoutService
from storefront.services.notification_service import NotificationEvent, NotificationService
from storefront.services.order_query import OrderListParams
from storefront.services.order_service import OrderService
from storefront.services.payment_gateway import PaymentGateway, PaymentIntent, StripePaymentGateway
from storefront.services.pdf_renderer import PdfRenderer
from storefront.services.pricing import PricingRules, calculate_totals
from storefront.services.user_service import UserService


@dataclass
class Services:
    """Everything request handlers depend on, built once per process."""

    settings: Settings
    db: MongoDB
    users: UserService
    orders: OrderService
    checkout: CheckoutService
    gateway: PaymentGateway
    renderer: PdfRenderer
    notifications: NotificationService

    async def aclose(self) -> None:
        for client in (self.gateway, self.renderer):
            close = getattr(client, "aclose", None)
            if close is not None:
                await close()


def build_services(
    settings: Settings,
    db: MongoDB,
    gateway: Optional[PaymentGateway] = None,
    renderer: Optional[PdfRenderer] = None,
    notifications: Optional[NotificationService] = None,
) -> Services:
    """Wire the service graph; collaborators default to the configured clients."""
    gateway = gateway or StripePaymentGateway.from_settings(settings)
    orders = OrderService(db, settings)
    return Services(
        settings=settings,
        db=db,
        users=UserService(db),
        orders=orders,
        checkout=CheckoutService(orders, gateway, settings),
        gateway=gateway,
        renderer=renderer or PdfRenderer.from_settings(settings),
        notifications=notifications or NotificationService(settings),
    )


__all__ = [
    "ANONYMOUS",
    "Caller",
    "CheckoutService",
    "NotificationEvent",
    "NotificationService",
    "OrderListParams",
    "OrderService",
    "PaymentGateway",
    "PaymentIntent",
    "PdfRenderer",
    "PricingRules",
    "Services",
    "StripePaymentGateway",
    "UserService",
    "build_services",
    "calculate_totals",
]
