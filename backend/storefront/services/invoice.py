"""Invoice document generation."""

from datetime import datetime
from html import escape
from typing import Optional

from storefront.models.order import OrderInDB
from storefront.services.pdf_renderer import PdfRenderer
from storefront.utils.helpers import utcnow


def format_price(amount: float, currency: str = "USD") -> str:
    return f"{currency} {amount:,.2f}"


def format_date(value: Optional[datetime]) -> str:
    return value.strftime("%d/%m/%Y") if value else ""


def invoice_filename(order: OrderInDB) -> str:
    return f"invoice-{order.orderNumber or order.id}.pdf"


def render_invoice_html(order: OrderInDB, tax_rate: float = 0.21, shop_name: str = "Storefront") -> str:
    """Create the HTML invoice for an order."""
    currency = order.payment.currency
    rows = "".join(
        f"""
            <tr>
                <td>{escape(item.title)}</td>
                <td class="text-right">{item.quantity}</td>
                <td class="text-right">{format_price(item.price, currency)}</td>
                <td class="text-right">{format_price(item.subtotal, currency)}</td>
            </tr>"""
        for item in order.items
    )
    shipping_cost = (
        format_price(order.pricing.shipping, currency) if order.pricing.shipping > 0 else "FREE"
    )
    customer = order.customer
    address = order.shipping

    html = f"""
    <!DOCTYPE html>
    <html>
    <head>
        <meta charset="utf-8">
        <title>Invoice - {escape(order.orderNumber or "")}</title>
        <style>
            body {{
                font-family: Arial, sans-serif;
                margin: 20px;
                font-size: 14px;
                color: #333;
            }}
            .header {{
                text-align: center;
                margin-bottom: 30px;
                border-bottom: 2px solid #007bff;
                padding-bottom: 15px;
            }}
            .invoice-info {{
                background: #f8f9fa;
                padding: 15px;
                margin-bottom: 20px;
            }}
            table {{
                width: 100%;
                border-collapse: collapse;
                margin-bottom: 20px;
            }}
            th {{
                background: #007bff;
                color: white;
                padding: 10px;
                text-align: left;
            }}
            td {{
                padding: 10px;
                border-bottom: 1px solid #ddd;
            }}
            .text-right {{
                text-align: right;
            }}
            .total-row {{
                background: #007bff;
                color: white;
                font-weight: bold;
            }}
        </style>
    </head>
    <body>
        <div class="header">
            <h1>{escape(shop_name)}</h1>
        </div>

        <div class="invoice-info">
            <h2>INVOICE {escape(order.orderNumber or "")}</h2>
            <p><strong>Date:</strong> {format_date(order.createdAt)}</p>
            <p><strong>Status:</strong> {escape(str(order.status)).upper()}</p>
        </div>

        <div>
            <h3>Customer</h3>
            <p><strong>Name:</strong> {escape(order.customerFullName)}</p>
            <p><strong>Email:</strong> {escape(customer.email)}</p>
            <p><strong>Phone:</strong> {escape(customer.phone)}</p>
        </div>

        <div>
            <h3>Shipping address</h3>
            <p>{escape(address.address)}</p>
            <p>{escape(address.city)}, {escape(address.state)} {escape(address.zipCode)}</p>
            <p>{escape(address.country)}</p>
        </div>

        <table>
            <thead>
                <tr>
                    <th>Product</th>
                    <th class="text-right">Quantity</th>
                    <th class="text-right">Price</th>
                    <th class="text-right">Subtotal</th>
                </tr>
            </thead>
            <tbody>{rows}
            </tbody>
        </table>

        <table style="width: 300px; margin-left: auto;">
            <tr>
                <td><strong>Subtotal:</strong></td>
                <td class="text-right">{format_price(order.pricing.subtotal, currency)}</td>
            </tr>
            <tr>
                <td><strong>Tax ({tax_rate:.0%}):</strong></td>
                <td class="text-right">{format_price(order.pricing.tax, currency)}</td>
            </tr>
            <tr>
                <td><strong>Shipping:</strong></td>
                <td class="text-right">{shipping_cost}</td>
            </tr>
            <tr class="total-row">
                <td><strong>TOTAL:</strong></td>
                <td class="text-right"><strong>{format_price(order.pricing.total, currency)}</strong></td>
            </tr>
        </table>

        <div style="margin-top: 30px; text-align: center; color: #666;">
            <p>Thank you for shopping with {escape(shop_name)}</p>
            <p>Order {escape(order.orderNumber or "")} - Generated {format_date(utcnow())}</p>
        </div>
    </body>
    </html>
    """
    return html


async def generate_invoice_pdf(
    order: OrderInDB, renderer: PdfRenderer, tax_rate: float = 0.21, shop_name: str = "Storefront"
) -> bytes:
    """Render the invoice of ``order`` to PDF bytes."""
    return await renderer.render(render_invoice_html(order, tax_rate=tax_rate, shop_name=shop_name))
