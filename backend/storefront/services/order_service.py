"""Order use cases: creation, reads, lifecycle changes, listing and stats."""

import logging
from typing import Any, Optional

from storefront.config import Settings
from storefront.database.mongodb import MongoDB
from storefront.errors import DuplicateOrderNumber, OrderNotFound, UpstreamUnavailable
from storefront.models.order import OrderInDB, OrderStatus, Tracking
from storefront.models.request import (
    AdminOrderCreate,
    OrderListResponse,
    OrderStatsResponse,
)
from storefront.services import access, lifecycle
from storefront.services.access import Caller
from storefront.services.invoice import generate_invoice_pdf, invoice_filename
from storefront.services.order_query import (
    OrderListParams,
    build_order_filter,
    build_pagination,
    build_sort,
)
from storefront.services.pdf_renderer import PdfRenderer
from storefront.services.pricing import PricingRules, build_order_items, calculate_totals
from storefront.utils.helpers import assign_order_number

logger = logging.getLogger(__name__)


class OrderService:
    """Order operations, with the access policy applied on every entry point."""

    def __init__(self, db: MongoDB, settings: Settings) -> None:
        self.db = db
        self.settings = settings
        self.pricing_rules = PricingRules.from_settings(settings)

    async def _require(self, order_id: str) -> OrderInDB:
        order = await self.db.get_order(order_id)
        if order is None:
            raise OrderNotFound(order_id)
        return order

    # Creation

    async def create_order(self, order: OrderInDB) -> OrderInDB:
        """Number and persist a new order.

        A colliding order number is regenerated and the insert retried; when
        every attempt collides the failure surfaces as ``UpstreamUnavailable``.
        """
        max_attempts = self.settings.order_number_max_attempts
        for attempt in range(1, max_attempts + 1):
            assign_order_number(order, self.settings.order_number_prefix)
            try:
                return await self.db.insert_order(order)
            except DuplicateOrderNumber as e:
                logger.warning(
                    "Order number %s already taken (attempt %d/%d)",
                    e.order_number,
                    attempt,
                    max_attempts,
                )
                order.orderNumber = None
        logger.error("Could not allocate an order number after %d attempts", max_attempts)
        raise UpstreamUnavailable("Could not allocate a unique order number, retry the request")

    async def admin_create_order(self, request: AdminOrderCreate, caller: Caller) -> OrderInDB:
        """Administrative creation path: a pending order with a creation entry."""
        access.ensure_admin(caller, "create orders")
        pricing = calculate_totals(request.items, self.pricing_rules)
        order = OrderInDB(
            user=request.user,
            customer=request.customer,
            shipping=request.shipping,
            items=build_order_items(request.items),
            pricing=pricing,
            payment={"currency": self.settings.currency},
            notes=request.notes,
        )
        lifecycle.start_timeline(order, actor_id=caller.userId)
        created = await self.create_order(order)
        logger.info("Order %s created by admin %s", created.orderNumber, caller.userId)
        return created

    # Reads

    async def get_order(self, order_id: str, caller: Caller) -> OrderInDB:
        order = await self._require(order_id)
        access.ensure_can_read(order, caller)
        return order

    async def get_public_order(self, order_number: str) -> dict[str, Any]:
        """Tracking by order number, without payment references."""
        order = await self.db.get_order_by_number(order_number)
        if order is None:
            raise OrderNotFound(order_number)
        return order.public_view()

    async def list_orders(self, params: OrderListParams, caller: Caller) -> OrderListResponse:
        filters = build_order_filter(params, caller)
        orders, total = await self.db.list_orders(
            filters, build_sort(params), params.skip, params.limit
        )
        logger.debug("Listing %d/%d orders for %s", len(orders), total, caller.userId)
        return OrderListResponse(
            orders=orders,
            pagination=build_pagination(total, params.page, params.limit),
        )

    async def stats(self, caller: Caller) -> OrderStatsResponse:
        access.ensure_admin(caller, "view order statistics")
        return OrderStatsResponse(**await self.db.order_stats())

    # Lifecycle

    async def _transition(
        self,
        order: OrderInDB,
        new_status: OrderStatus | str,
        message: Optional[str],
        caller: Caller,
        tracking: Optional[Tracking] = None,
    ) -> OrderInDB:
        updated = lifecycle.transition(
            order,
            new_status,
            message=message,
            actor_id=caller.userId,
            delivery_lead_days=self.settings.delivery_lead_days,
            tracking=tracking,
        )
        saved = await self.db.apply_status_change(order.id, order.status, updated)
        logger.info(
            "Order %s moved %s -> %s by %s",
            saved.orderNumber,
            order.status,
            saved.status,
            caller.userId,
        )
        return saved

    async def update_status(
        self,
        order_id: str,
        new_status: OrderStatus | str,
        caller: Caller,
        message: Optional[str] = None,
        tracking: Optional[Tracking] = None,
    ) -> OrderInDB:
        access.ensure_can_update_status(caller)
        order = await self._require(order_id)
        return await self._transition(order, new_status, message, caller, tracking)

    async def cancel_order(
        self, order_id: str, caller: Caller, reason: Optional[str] = None
    ) -> OrderInDB:
        order = await self._require(order_id)
        access.ensure_can_cancel(order, caller)
        message = reason or ("Cancelled by an administrator" if caller.isAdmin else "Cancelled by the customer")
        return await self._transition(order, OrderStatus.CANCELLED, message, caller)

    async def update_notes(self, order_id: str, notes: str, caller: Caller) -> OrderInDB:
        order = await self._require(order_id)
        access.ensure_can_modify(order, caller)
        return await self.db.update_notes(order_id, notes)

    # Invoice

    async def render_invoice(
        self, order_id: str, caller: Caller, renderer: PdfRenderer
    ) -> tuple[str, bytes]:
        """Return the invoice file name and PDF bytes for an order."""
        order = await self.get_order(order_id, caller)
        pdf = await generate_invoice_pdf(
            order,
            renderer,
            tax_rate=self.pricing_rules.tax_rate,
            shop_name=self.settings.app_name,
        )
        logger.info("Invoice for order %s rendered (%d bytes)", order.orderNumber, len(pdf))
        return invoice_filename(order), pdf
