"""Builders and in-memory collaborators shared by the tests."""

import asyncio
from typing import Any, Optional

from storefront.config import Settings
from storefront.errors import PaymentNotConfirmed
from storefront.models.order import LineItemInput, OrderInDB
from storefront.services.access import Caller
from storefront.services.notification_service import NotificationService
from storefront.services.payment_gateway import PaymentIntent
from storefront.services.pricing import build_order_items, calculate_totals

ADMIN = Caller(userId="admin_001", isAdmin=True)
OWNER = Caller(userId="user_001")
OTHER = Caller(userId="user_002")

CUSTOMER = {
    "firstName": "Kai",
    "lastName": "He",
    "email": "Kai.He@Example.com",
    "phone": "+1234567890",
}

SHIPPING = {
    "address": "Av. Siempre Viva 742",
    "city": "Córdoba",
    "state": "Córdoba",
    "zipCode": "5000",
}


def line(price: float, quantity: int = 1, product_id: int = 1, title: str = "Keyboard") -> LineItemInput:
    return LineItemInput(productId=product_id, title=title, price=price, quantity=quantity)


def make_order(user: Optional[str] = "user_001", items: Optional[list] = None, **overrides: Any) -> OrderInDB:
    """A valid pending order, not yet persisted."""
    lines = items or [line(30000), line(25000, product_id=2, title="Mouse")]
    data: dict[str, Any] = {
        "user": user,
        "customer": CUSTOMER,
        "shipping": SHIPPING,
        "items": build_order_items(lines),
        "pricing": calculate_totals(lines),
        "payment": {"paymentIntentId": overrides.pop("paymentIntentId", None)},
    }
    data.update(overrides)
    return OrderInDB(**data)


class FakePaymentGateway:
    """In-memory payment processor."""

    def __init__(self) -> None:
        self.intents: dict[str, PaymentIntent] = {}
        self._seq = 0

    async def create_intent(self, amount: int, currency: str, metadata: dict[str, str]) -> PaymentIntent:
        self._seq += 1
        intent_id = f"pi_test_{self._seq}"
        intent = PaymentIntent(
            id=intent_id,
            status="requires_payment_method",
            amount=amount,
            currency=currency.upper(),
            client_secret=f"{intent_id}_secret",
            metadata=dict(metadata),
        )
        self.intents[intent_id] = intent
        return intent

    async def retrieve_intent(self, intent_id: str) -> PaymentIntent:
        if intent_id not in self.intents:
            raise PaymentNotConfirmed("Payment intent not found")
        return self.intents[intent_id]

    def succeed(self, intent_id: str) -> None:
        self.intents[intent_id].status = "succeeded"
        self.intents[intent_id].latest_charge = f"ch_{intent_id}"


class GatedPaymentGateway(FakePaymentGateway):
    """Gateway that holds every lookup until ``parties`` callers are waiting on it."""

    def __init__(self, parties: int = 2) -> None:
        super().__init__()
        self.parties = parties
        self.waiting = 0
        self.released = asyncio.Event()

    async def retrieve_intent(self, intent_id: str) -> PaymentIntent:
        self.waiting += 1
        if self.waiting >= self.parties:
            self.released.set()
        await self.released.wait()
        return await super().retrieve_intent(intent_id)


class FakePdfRenderer:
    """Renderer returning canned bytes and remembering what it was asked to render."""

    def __init__(self, pdf: bytes = b"%PDF-1.4\n" + b"0" * 1024) -> None:
        self.pdf = pdf
        self.rendered: list[str] = []

    async def render(self, html: str) -> bytes:
        self.rendered.append(html)
        return self.pdf


class RecordingNotificationService(NotificationService):
    """Notification service that records emails instead of sending them."""

    def __init__(self, settings: Settings) -> None:
        super().__init__(settings)
        self.sent: list[tuple[str, str]] = []

    async def _deliver(self, recipient: str, subject: str, html: str, text: str) -> bool:
        self.sent.append((recipient, subject))
        return True
