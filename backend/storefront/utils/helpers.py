"""Utility helper functions."""

import random
import re
import time
from datetime import UTC, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

_CENT = Decimal("0.01")


def utcnow() -> datetime:
    """Get the current timezone-aware UTC time."""
    return datetime.now(UTC)


def round2(value: float | int | Decimal) -> float:
    """Round a monetary amount to two decimals, half-up."""
    return float(Decimal(str(value)).quantize(_CENT, rounding=ROUND_HALF_UP))


def to_minor_units(amount: float | int) -> int:
    """Convert a major-unit amount to integer minor units (cents)."""
    return int((Decimal(str(amount)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def generate_order_number(prefix: str = "ORD", now_ms: int | None = None) -> str:
    """Generate a human readable order number.

    Format is ``<prefix>-<last 6 digits of epoch ms><3 random digits>``.
    Uniqueness is best effort; the unique index on ``orderNumber`` is the backstop.
    """
    if now_ms is None:
        now_ms = time.time_ns() // 1_000_000
    suffix = random.randint(0, 999)
    return f"{prefix}-{now_ms % 1_000_000:06d}{suffix:03d}"


def assign_order_number(order: Any, prefix: str = "ORD") -> str:
    """Assign an order number unless one is already set; return the number."""
    if not order.orderNumber:
        order.orderNumber = generate_order_number(prefix)
    return order.orderNumber


def escape_search(text: str) -> str:
    """Escape user input for use inside a MongoDB ``$regex``."""
    return re.escape(text.strip())

