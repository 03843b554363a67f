"""Tests for order email notifications."""

import smtplib

import pytest

from storefront.config import Settings
from storefront.models.order import OrderStatus
from storefront.services.lifecycle import transition
from storefront.services.notification_service import (
    NotificationEvent,
    NotificationService,
    event_for_status,
)

from factories import make_order


@pytest.fixture
def smtp_settings():
    return Settings(
        _env_file=None,
        smtp_from_email="shop@example.com",
        admin_emails="ops@example.com, owner@example.com",
    )


@pytest.fixture
def outbox(monkeypatch):
    sent = []

    def fake_send(self, recipient, subject, html_content, text_content):
        sent.append({"to": recipient, "subject": subject, "html": html_content, "text": text_content})

    monkeypatch.setattr(NotificationService, "_send", fake_send)
    return sent


def test_events_for_statuses():
    assert event_for_status(OrderStatus.CONFIRMED) == NotificationEvent.CONFIRMATION
    assert event_for_status("shipped") == NotificationEvent.SHIPPED
    assert event_for_status("delivered") == NotificationEvent.DELIVERED
    assert event_for_status("cancelled") == NotificationEvent.CANCELLED
    assert event_for_status("processing") is None
    assert event_for_status("refunded") is None


def test_admin_emails_parse_from_comma_separated(smtp_settings):
    assert smtp_settings.admin_emails == ["ops@example.com", "owner@example.com"]


@pytest.mark.asyncio
async def test_unconfigured_smtp_skips_sending(outbox):
    service = NotificationService(Settings(_env_file=None, smtp_from_email=""))

    assert not await service.notify(make_order(orderNumber="ORD-1"), NotificationEvent.CONFIRMATION)
    assert outbox == []


@pytest.mark.asyncio
async def test_confirmation_email(smtp_settings, outbox):
    service = NotificationService(smtp_settings)
    order = make_order(orderNumber="ORD-123456789")

    assert await service.notify(order, NotificationEvent.CONFIRMATION)

    (email,) = outbox
    assert email["to"] == "kai.he@example.com"
    assert email["subject"] == "Order confirmation #ORD-123456789"
    assert "Total: USD 66,550.00" in email["text"]
    assert "Keyboard" in email["html"]


@pytest.mark.asyncio
async def test_status_change_email_only_for_notable_statuses(smtp_settings, outbox):
    service = NotificationService(smtp_settings)
    order = transition(make_order(orderNumber="ORD-2"), "confirmed")

    assert not await service.notify_status_change(transition(order, "processing"))
    assert await service.notify_status_change(transition(order, "cancelled"))
    assert [email["subject"] for email in outbox] == ["Your order #ORD-2 was cancelled"]


@pytest.mark.asyncio
async def test_admins_are_told_about_new_orders(smtp_settings, outbox):
    service = NotificationService(smtp_settings)

    sent = await service.notify_admins_new_order(make_order(orderNumber="ORD-3"))

    assert sent == 2
    assert {email["to"] for email in outbox} == {"ops@example.com", "owner@example.com"}


@pytest.mark.asyncio
async def test_smtp_failure_is_reported_not_raised(smtp_settings, monkeypatch, caplog):
    def failing_send(self, *args):
        raise smtplib.SMTPServerDisconnected("connection lost")

    monkeypatch.setattr(NotificationService, "_send", failing_send)
    service = NotificationService(smtp_settings)

    assert not await service.notify(make_order(orderNumber="ORD-4"), NotificationEvent.SHIPPED)
    assert "SMTP error" in caplog.text


@pytest.mark.asyncio
async def test_unexpected_send_error_is_logged_not_raised(smtp_settings, monkeypatch, caplog):
    def failing_send(self, *args):
        raise ValueError("bad header")

    monkeypatch.setattr(NotificationService, "_send", failing_send)
    service = NotificationService(smtp_settings)

    assert not await service.notify(make_order(orderNumber="ORD-5"), NotificationEvent.DELIVERED)
    assert "Unexpected error sending email" in caplog.text
