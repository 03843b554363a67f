"""Order total calculation.

Totals are always derived here from the line items; amounts sent by a
client are never trusted.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Sequence

from storefront.config import Settings
from storefront.errors import InvalidLineItem, ValidationFailed
from storefront.models.order import LineItemInput, OrderItem, Pricing
from storefront.utils.helpers import round2


@dataclass(frozen=True)
class PricingRules:
    """Tax and shipping rules applied to a subtotal."""

    tax_rate: float = 0.21
    free_shipping_threshold: float = 50000
    flat_shipping_cost: float = 1500

    @classmethod
    def from_settings(cls, settings: Settings) -> "PricingRules":
        return cls(
            tax_rate=settings.tax_rate,
            free_shipping_threshold=settings.free_shipping_threshold,
            flat_shipping_cost=settings.flat_shipping_cost,
        )


DEFAULT_RULES = PricingRules()


def calculate_totals(
    items: Sequence[LineItemInput | OrderItem],
    rules: Optional[PricingRules] = None,
) -> Pricing:
    """Compute subtotal, tax, shipping and total for a set of line items.

    Raises:
        ValidationFailed: if the list is empty.
        InvalidLineItem: if an item has a negative price or a quantity below one.
    """
    rules = rules or DEFAULT_RULES
    if not items:
        raise ValidationFailed("An order needs at least one item")

    subtotal = Decimal("0")
    for index, item in enumerate(items):
        if item.price < 0:
            raise InvalidLineItem(index, f"price {item.price} is negative")
        if item.quantity < 1:
            raise InvalidLineItem(index, f"quantity {item.quantity} is below 1")
        subtotal += Decimal(str(item.price)) * item.quantity

    subtotal_value = round2(subtotal)
    tax = round2(subtotal * Decimal(str(rules.tax_rate)))
    shipping = 0.0 if subtotal_value >= rules.free_shipping_threshold else round2(rules.flat_shipping_cost)
    total = round2(Decimal(str(subtotal_value)) + Decimal(str(tax)) + Decimal(str(shipping)))

    return Pricing(subtotal=subtotal_value, tax=tax, shipping=shipping, total=total)


def build_order_items(lines: Sequence[LineItemInput]) -> list[OrderItem]:
    """Turn validated client line items into stored order items."""
    return [OrderItem.from_line(line) for line in lines]
