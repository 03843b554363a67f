"""Tests for utility helpers."""

import re

from storefront.utils.helpers import (
    assign_order_number,
    escape_search,
    generate_order_number,
    round2,
    to_minor_units,
)

from factories import make_order

ORDER_NUMBER = re.compile(r"^ORD-\d{9}$")


def test_order_number_format():
    assert ORDER_NUMBER.match(generate_order_number())


def test_order_number_uses_last_six_millisecond_digits():
    number = generate_order_number(now_ms=1718000123456)

    assert number.startswith("ORD-123456")
    assert len(number) == len("ORD-") + 9


def test_order_number_pads_short_timestamps():
    assert ORDER_NUMBER.match(generate_order_number(now_ms=42))


def test_order_number_prefix():
    assert generate_order_number(prefix="WEB").startswith("WEB-")


def test_assign_order_number_keeps_existing_number():
    order = make_order(orderNumber="ORD-000000001")

    assert assign_order_number(order) == "ORD-000000001"


def test_assign_order_number_fills_missing_number():
    order = make_order()

    number = assign_order_number(order)

    assert ORDER_NUMBER.match(number)
    assert order.orderNumber == number


def test_round2_half_up():
    assert round2(2.675) == 2.68
    assert round2(1.005) == 1.01
    assert round2(10) == 10.0


def test_to_minor_units():
    assert to_minor_units(66550) == 6655000
    assert to_minor_units(19.99) == 1999


def test_escape_search_neutralizes_regex():
    assert escape_search(" ORD-1.* ") == r"ORD\-1\.\*"

