"""Utilities package."""

from storefront.utils.helpers import (
    assign_order_number,
    escape_search,
    generate_order_number,
    round2,
    to_minor_units,
    utcnow,
)
from storefront.utils.logger import setup_logging

__all__ = [
    "setup_logging",
    "assign_order_number",
    "escape_search",
    "generate_order_number",
    "round2",
    "to_minor_units",
    "utcnow",
]
