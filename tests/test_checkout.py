"""Tests for payment intents and order creation after payment."""

import asyncio

import pytest
from pymongo.errors import DuplicateKeyError

from storefront.errors import PaymentNotConfirmed
from storefront.models.request import ConfirmPaymentRequest, CreatePaymentIntentRequest
from storefront.services import build_services
from storefront.services.access import ANONYMOUS

from factories import (
    CUSTOMER,
    OWNER,
    SHIPPING,
    FakePdfRenderer,
    GatedPaymentGateway,
    RecordingNotificationService,
    line,
    make_order,
)

ITEMS = [line(30000), line(25000, product_id=2, title="Mouse")]


async def paid_intent(services, items=ITEMS):
    response = await services.checkout.create_payment_intent(
        CreatePaymentIntentRequest(items=items, metadata={"cart": "c1"})
    )
    services.gateway.succeed(response.paymentIntentId)
    return response.paymentIntentId


def confirm_request(intent_id, items=ITEMS):
    return ConfirmPaymentRequest(
        paymentIntentId=intent_id,
        items=items,
        customer=CUSTOMER,
        shipping=SHIPPING,
    )


@pytest.mark.asyncio
async def test_intent_amount_is_computed_server_side(services):
    response = await services.checkout.create_payment_intent(
        CreatePaymentIntentRequest(items=ITEMS, currency="usd")
    )

    assert response.amount == 6655000
    assert response.currency == "USD"
    assert response.pricing.total == 66550
    assert response.clientSecret.endswith("_secret")
    assert services.gateway.intents[response.paymentIntentId].metadata == {}


@pytest.mark.asyncio
async def test_confirmed_payment_creates_confirmed_order(services):
    intent_id = await paid_intent(services)

    order, created = await services.checkout.confirm_payment(confirm_request(intent_id), OWNER)

    assert created
    assert order.id and order.orderNumber
    assert order.user == "user_001"
    assert order.status == "confirmed"
    assert order.pricing.total == 66550
    assert order.payment.status == "completed"
    assert order.payment.paymentIntentId == intent_id
    assert order.payment.transactionId == f"ch_{intent_id}"
    assert order.payment.paidAt is not None
    assert [entry.status for entry in order.timeline] == ["confirmed"]


@pytest.mark.asyncio
async def test_confirming_twice_returns_the_same_order(services):
    intent_id = await paid_intent(services)

    first, _ = await services.checkout.confirm_payment(confirm_request(intent_id), OWNER)
    second, created = await services.checkout.confirm_payment(confirm_request(intent_id), OWNER)

    assert not created
    assert second.id == first.id
    assert await services.db.orders.count_documents({}) == 1


@pytest.mark.asyncio
async def test_guest_checkout(services):
    intent_id = await paid_intent(services)

    order, created = await services.checkout.confirm_payment(confirm_request(intent_id), ANONYMOUS)

    assert created
    assert order.user is None


@pytest.mark.asyncio
async def test_unpaid_intent_creates_no_order(services):
    response = await services.checkout.create_payment_intent(
        CreatePaymentIntentRequest(items=ITEMS)
    )

    with pytest.raises(PaymentNotConfirmed):
        await services.checkout.confirm_payment(
            confirm_request(response.paymentIntentId), OWNER
        )

    assert await services.db.orders.count_documents({}) == 0


@pytest.mark.asyncio
async def test_amount_mismatch_is_rejected(services):
    intent_id = await paid_intent(services, items=[line(100)])

    with pytest.raises(PaymentNotConfirmed, match="amount"):
        await services.checkout.confirm_payment(confirm_request(intent_id), OWNER)

    assert await services.db.orders.count_documents({}) == 0


@pytest.mark.asyncio
async def test_unknown_intent_is_rejected(services):
    with pytest.raises(PaymentNotConfirmed):
        await services.checkout.confirm_payment(confirm_request("pi_missing"), OWNER)


@pytest.mark.asyncio
async def test_concurrent_confirmations_create_one_order(settings, mongo_db):
    services = build_services(
        settings,
        mongo_db,
        gateway=GatedPaymentGateway(parties=2),
        renderer=FakePdfRenderer(),
        notifications=RecordingNotificationService(settings),
    )
    intent_id = await paid_intent(services)

    results = await asyncio.gather(
        services.checkout.confirm_payment(confirm_request(intent_id), OWNER),
        services.checkout.confirm_payment(confirm_request(intent_id), OWNER),
    )

    assert sorted(created for _, created in results) == [False, True]
    assert results[0][0].id == results[1][0].id
    assert await services.db.orders.count_documents({}) == 1


@pytest.mark.asyncio
async def test_second_order_for_same_intent_is_a_key_conflict(services):
    await services.db.insert_order(make_order(orderNumber="ORD-000001001", paymentIntentId="pi_dup"))

    with pytest.raises(DuplicateKeyError):
        await services.db.insert_order(
            make_order(orderNumber="ORD-000001002", paymentIntentId="pi_dup")
        )

    assert await services.db.orders.count_documents({}) == 1


@pytest.mark.asyncio
async def test_orders_without_intent_do_not_conflict(services):
    await services.db.insert_order(make_order(orderNumber="ORD-000001001"))
    await services.db.insert_order(make_order(orderNumber="ORD-000001002"))

    assert await services.db.orders.count_documents({}) == 2


@pytest.mark.asyncio
async def test_processor_returning_another_intent_is_rejected(services):
    intent_id = await paid_intent(services)
    services.gateway.intents["pi_other"] = services.gateway.intents[intent_id]

    with pytest.raises(PaymentNotConfirmed):
        await services.checkout.confirm_payment(confirm_request("pi_other"), OWNER)

    assert await services.db.orders.count_documents({}) == 0
