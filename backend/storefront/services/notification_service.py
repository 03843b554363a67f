"""Order notifications sent by email.

Sending is best effort: failures are logged and reported as ``False``, and
never reach the request that triggered them.
"""

import asyncio
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from enum import Enum
from html import escape
from typing import Optional

from storefront.config import Settings
from storefront.models.order import OrderInDB, OrderStatus

logger = logging.getLogger(__name__)


class NotificationEvent(str, Enum):
    """Order events customers are told about."""

    CONFIRMATION = "confirmation"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


STATUS_EVENTS: dict[OrderStatus, NotificationEvent] = {
    OrderStatus.CONFIRMED: NotificationEvent.CONFIRMATION,
    OrderStatus.SHIPPED: NotificationEvent.SHIPPED,
    OrderStatus.DELIVERED: NotificationEvent.DELIVERED,
    OrderStatus.CANCELLED: NotificationEvent.CANCELLED,
}

SUBJECTS: dict[NotificationEvent, str] = {
    NotificationEvent.CONFIRMATION: "Order confirmation #{number}",
    NotificationEvent.SHIPPED: "Your order #{number} is on its way",
    NotificationEvent.DELIVERED: "Your order #{number} was delivered",
    NotificationEvent.CANCELLED: "Your order #{number} was cancelled",
}

HEADLINES: dict[NotificationEvent, str] = {
    NotificationEvent.CONFIRMATION: "Thanks for your purchase! We received your order.",
    NotificationEvent.SHIPPED: "Good news, your order has shipped.",
    NotificationEvent.DELIVERED: "Your order has been delivered. Enjoy!",
    NotificationEvent.CANCELLED: "Your order has been cancelled.",
}


def event_for_status(status: OrderStatus | str) -> Optional[NotificationEvent]:
    """Notification to send after a transition into ``status``, if any."""
    return STATUS_EVENTS.get(OrderStatus(status))


class NotificationService:
    """Email notifications for order events."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    @property
    def is_configured(self) -> bool:
        return bool(self.settings.smtp_host and self.settings.smtp_from_email)

    def _create_order_email_html(self, order: OrderInDB, event: NotificationEvent) -> str:
        """Create HTML email content for an order event."""
        tracking_html = ""
        if event == NotificationEvent.SHIPPED and order.tracking:
            tracking = order.tracking
            estimated = (
                tracking.estimatedDelivery.strftime("%d/%m/%Y")
                if tracking.estimatedDelivery
                else "to be confirmed"
            )
            tracking_html = f"""
                    <div class="tracking">
                        <p><strong>Carrier:</strong> {escape(tracking.carrier or "-")}</p>
                        <p><strong>Tracking number:</strong> {escape(tracking.trackingNumber or "-")}</p>
                        <p><strong>Estimated delivery:</strong> {estimated}</p>
                    </div>"""

        items_html = "".join(
            f"<li>{escape(item.title)} x {item.quantity}</li>" for item in order.items
        )
        html = f"""
        <!DOCTYPE html>
        <html>
        <head>
            <style>
                body {{
                    font-family: Arial, sans-serif;
                    line-height: 1.6;
                    color: #333;
                }}
                .container {{
                    max-width: 600px;
                    margin: 0 auto;
                    padding: 20px;
                }}
                .header {{
                    background-color: #007bff;
                    color: white;
                    padding: 20px;
                    text-align: center;
                }}
                .content {{
                    padding: 20px;
                    background-color: #f9f9f9;
                }}
                .total {{
                    font-size: 20px;
                    font-weight: bold;
                }}
            </style>
        </head>
        <body>
            <div class="container">
                <div class="header">
                    <h1>Order #{escape(order.orderNumber or "")}</h1>
                </div>
                <div class="content">
                    <p>Hello {escape(order.customer.firstName)},</p>
                    <p>{HEADLINES[event]}</p>
                    <ul>{items_html}</ul>
                    <p class="total">Total: {order.payment.currency} {order.pricing.total:,.2f}</p>{tracking_html}
                    <p><a href="{self.settings.client_url}/orders/{order.id}">View your order</a></p>
                </div>
            </div>
        </body>
        </html>
        """
        return html

    def _create_order_email_text(self, order: OrderInDB, event: NotificationEvent) -> str:
        lines = [
            f"Hello {order.customer.firstName},",
            "",
            HEADLINES[event],
            "",
            *(f"- {item.title} x {item.quantity}" for item in order.items),
            "",
            f"Total: {order.payment.currency} {order.pricing.total:,.2f}",
        ]
        if event == NotificationEvent.SHIPPED and order.tracking and order.tracking.trackingNumber:
            lines.append(f"Tracking number: {order.tracking.trackingNumber}")
        return "\n".join(lines)

    def _send(self, recipient: str, subject: str, html_content: str, text_content: str) -> None:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self.settings.smtp_from_email
        msg["To"] = recipient
        msg.attach(MIMEText(text_content, "plain"))
        msg.attach(MIMEText(html_content, "html"))

        with smtplib.SMTP(self.settings.smtp_host, self.settings.smtp_port, timeout=30) as server:
            server.starttls()
            if self.settings.smtp_username and self.settings.smtp_password:
                server.login(self.settings.smtp_username, self.settings.smtp_password)
            server.send_message(msg)

    async def _deliver(self, recipient: str, subject: str, html: str, text: str) -> bool:
        if not self.is_configured:
            logger.info("SMTP not configured, skipping email to %s: %s", recipient, subject)
            return False
        try:
            # smtplib blocks; keep it off the event loop
            await asyncio.to_thread(self._send, recipient, subject, html, text)
            logger.info("Email sent successfully to %s", recipient)
            return True
        except smtplib.SMTPAuthenticationError as e:
            logger.error("SMTP authentication failed. Check credentials: %s", e)
            return False
        except (smtplib.SMTPException, OSError) as e:
            logger.error("SMTP error sending email to %s: %s", recipient, e)
            return False
        except Exception:
            logger.exception("Unexpected error sending email to %s", recipient)
            return False

    async def notify(self, order: OrderInDB, event: NotificationEvent) -> bool:
        """Send the customer email for ``event``."""
        subject = SUBJECTS[event].format(number=order.orderNumber)
        return await self._deliver(
            order.customer.email,
            subject,
            self._create_order_email_html(order, event),
            self._create_order_email_text(order, event),
        )

    async def notify_status_change(self, order: OrderInDB) -> bool:
        """Email the customer about the order's current status, when it warrants one."""
        event = event_for_status(order.status)
        if event is None:
            return False
        return await self.notify(order, event)

    async def notify_admins_new_order(self, order: OrderInDB) -> int:
        """Tell every configured admin about a new order; returns how many were sent."""
        if not self.settings.admin_emails:
            logger.info("No admin emails configured")
            return 0
        subject = f"New order #{order.orderNumber}"
        text = (
            f"New order #{order.orderNumber} from {order.customerFullName} "
            f"({order.customer.email}): {order.totalItems} item(s), "
            f"{order.payment.currency} {order.pricing.total:,.2f}"
        )
        html = f"<div style=\"font-family: Arial, sans-serif;\"><h2>New order received</h2><p>{escape(text)}</p></div>"
        results = await asyncio.gather(
            *(self._deliver(email, subject, html, text) for email in self.settings.admin_emails)
        )
        return sum(results)

    async def notify_new_order(self, order: OrderInDB) -> None:
        """Confirmation for the customer and a heads-up for admins."""
        await self.notify(order, NotificationEvent.CONFIRMATION)
        await self.notify_admins_new_order(order)
