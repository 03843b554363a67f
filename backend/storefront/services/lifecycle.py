"""Order status lifecycle.

``transition`` is the only code path that changes an order's status. It works
on a copy and keeps payment, timeline and tracking consistent with the new
status; persisting the result atomically is the database layer's job
(``MongoDB.apply_status_change``).
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from storefront.errors import InvalidTransition
from storefront.models.order import (
    OrderInDB,
    OrderStatus,
    PaymentStatus,
    TimelineEntry,
    Tracking,
)
from storefront.utils.helpers import utcnow

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELLED}),
    OrderStatus.CONFIRMED: frozenset(
        {OrderStatus.PROCESSING, OrderStatus.CANCELLED, OrderStatus.REFUNDED}
    ),
    OrderStatus.PROCESSING: frozenset({OrderStatus.SHIPPED, OrderStatus.REFUNDED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED, OrderStatus.REFUNDED}),
    OrderStatus.DELIVERED: frozenset({OrderStatus.REFUNDED}),
    OrderStatus.CANCELLED: frozenset(),
    OrderStatus.REFUNDED: frozenset(),
}

CANCELLABLE_STATUSES = frozenset({OrderStatus.PENDING, OrderStatus.CONFIRMED})

DEFAULT_MESSAGES: dict[OrderStatus, str] = {
    OrderStatus.PENDING: "Order created",
    OrderStatus.CONFIRMED: "Order confirmed and payment processed",
    OrderStatus.PROCESSING: "Order is being prepared",
    OrderStatus.SHIPPED: "Order shipped",
    OrderStatus.DELIVERED: "Order delivered",
    OrderStatus.CANCELLED: "Order cancelled",
    OrderStatus.REFUNDED: "Order refunded",
}


def can_transition(current: OrderStatus | str, target: OrderStatus | str) -> bool:
    """Whether ``current -> target`` is an edge of the status graph."""
    return OrderStatus(target) in ALLOWED_TRANSITIONS[OrderStatus(current)]


def default_message(status: OrderStatus | str) -> str:
    return DEFAULT_MESSAGES[OrderStatus(status)]


def transition(
    order: OrderInDB,
    new_status: OrderStatus | str,
    message: Optional[str] = None,
    actor_id: Optional[str] = None,
    now: Optional[datetime] = None,
    delivery_lead_days: int = 7,
    tracking: Optional[Tracking] = None,
) -> OrderInDB:
    """Return a copy of ``order`` moved to ``new_status``.

    Appends exactly one timeline entry and applies the status-coupled side
    effects:

    - confirmed: payment completed, ``paidAt`` stamped (kept if already paid)
    - cancelled: payment marked failed
    - refunded: payment marked refunded
    - shipped: ``tracking.estimatedDelivery`` defaults to now + lead time

    Raises:
        InvalidTransition: if the status graph has no such edge.
    """
    target = OrderStatus(new_status)
    current = OrderStatus(order.status)
    if not can_transition(current, target):
        raise InvalidTransition(current.value, target.value)

    now = now or utcnow()
    updated = order.model_copy(deep=True)
    updated.status = target
    updated.timeline = [
        *updated.timeline,
        TimelineEntry(
            status=target,
            message=message or default_message(target),
            timestamp=now,
            updatedBy=actor_id,
        ),
    ]

    if tracking is not None:
        merged = (updated.tracking or Tracking()).model_dump()
        merged.update(tracking.model_dump(exclude_none=True))
        updated.tracking = Tracking(**merged)

    if target == OrderStatus.CONFIRMED:
        if updated.payment.status != PaymentStatus.COMPLETED or updated.payment.paidAt is None:
            updated.payment.status = PaymentStatus.COMPLETED
            updated.payment.paidAt = updated.payment.paidAt or now
    elif target == OrderStatus.CANCELLED:
        if updated.payment.status == PaymentStatus.COMPLETED:
            logger.warning(
                "Cancelling paid order %s; payment %s needs a manual refund",
                order.orderNumber,
                updated.payment.paymentIntentId,
            )
        updated.payment.status = PaymentStatus.FAILED
    elif target == OrderStatus.REFUNDED:
        updated.payment.status = PaymentStatus.REFUNDED
    elif target == OrderStatus.SHIPPED:
        if updated.tracking is None or updated.tracking.estimatedDelivery is None:
            updated.tracking = updated.tracking or Tracking()
            updated.tracking.estimatedDelivery = now + timedelta(days=delivery_lead_days)

    updated.updatedAt = now
    return updated


def start_timeline(order: OrderInDB, actor_id: Optional[str] = None) -> OrderInDB:
    """Record the creation entry of a new pending order."""
    if order.timeline:
        return order
    order.timeline = [
        TimelineEntry(
            status=OrderStatus.PENDING,
            message=default_message(OrderStatus.PENDING),
            timestamp=order.createdAt,
            updatedBy=actor_id,
        )
    ]
    return order
