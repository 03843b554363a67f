"""Checkout: payment intent creation and order creation after a confirmed charge."""

import logging

from pymongo.errors import DuplicateKeyError

from storefront.config import Settings
from storefront.errors import PaymentNotConfirmed
from storefront.models.order import OrderInDB, OrderStatus, Payment, PaymentStatus
from storefront.models.request import (
    ConfirmPaymentRequest,
    CreatePaymentIntentRequest,
    PaymentIntentResponse,
)
from storefront.services import lifecycle
from storefront.services.access import Caller
from storefront.services.order_service import OrderService
from storefront.services.payment_gateway import PaymentGateway
from storefront.services.pricing import build_order_items, calculate_totals
from storefront.utils.helpers import to_minor_units

logger = logging.getLogger(__name__)


class CheckoutService:
    """Turns a processor-confirmed payment into a persisted, confirmed order."""

    def __init__(self, orders: OrderService, gateway: PaymentGateway, settings: Settings) -> None:
        self.orders = orders
        self.gateway = gateway
        self.settings = settings

    async def create_payment_intent(
        self, request: CreatePaymentIntentRequest
    ) -> PaymentIntentResponse:
        """Open a payment for the server-computed total of ``request.items``."""
        pricing = calculate_totals(request.items, self.orders.pricing_rules)
        currency = (request.currency or self.settings.currency).upper()
        intent = await self.gateway.create_intent(
            to_minor_units(pricing.total), currency, request.metadata
        )
        return PaymentIntentResponse(
            clientSecret=intent.client_secret,
            paymentIntentId=intent.id,
            amount=intent.amount,
            currency=intent.currency,
            pricing=pricing,
        )

    async def confirm_payment(
        self, request: ConfirmPaymentRequest, caller: Caller
    ) -> tuple[OrderInDB, bool]:
        """Create the order for a succeeded payment intent.

        Returns the order and whether it was created by this call; confirming
        an intent that already has an order returns that order.

        Raises:
            PaymentNotConfirmed: if the processor does not report the intent as
                succeeded, or its amount differs from the recomputed total.
        """
        existing = await self.orders.db.get_order_by_payment_intent(request.paymentIntentId)
        if existing is not None:
            logger.info(
                "Payment %s already confirmed as order %s",
                request.paymentIntentId,
                existing.orderNumber,
            )
            return existing, False

        pricing = calculate_totals(request.items, self.orders.pricing_rules)
        intent = await self.gateway.retrieve_intent(request.paymentIntentId)
        if intent.id != request.paymentIntentId:
            logger.warning("Processor returned %s for payment %s", intent.id, request.paymentIntentId)
            raise PaymentNotConfirmed("Payment intent not found")
        if not intent.succeeded:
            logger.warning("Payment %s not confirmed: status %s", intent.id, intent.status)
            raise PaymentNotConfirmed(f"Payment {intent.id} is {intent.status or 'unknown'}")
        if intent.amount != to_minor_units(pricing.total):
            logger.warning(
                "Payment %s amount %d does not match order total %s",
                intent.id,
                intent.amount,
                pricing.total,
            )
            raise PaymentNotConfirmed("Payment amount does not match the order total")

        order = OrderInDB(
            user=caller.userId,
            customer=request.customer,
            shipping=request.shipping,
            items=build_order_items(request.items),
            pricing=pricing,
            payment=Payment(
                method="stripe",
                status=PaymentStatus.PROCESSING,
                paymentIntentId=intent.id,
                transactionId=intent.latest_charge,
                currency=intent.currency or self.settings.currency,
            ),
            notes=request.notes,
        )
        order = lifecycle.transition(order, OrderStatus.CONFIRMED, actor_id=caller.userId)

        try:
            created = await self.orders.create_order(order)
        except DuplicateKeyError:
            # Another request confirmed the same intent first
            existing = await self.orders.db.get_order_by_payment_intent(intent.id)
            if existing is None:
                raise
            return existing, False

        logger.info("Order %s created for payment %s", created.orderNumber, intent.id)
        return created, True
