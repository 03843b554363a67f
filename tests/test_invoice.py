"""Tests for invoice HTML and PDF rendering."""

import httpx
import pytest

from storefront.errors import InvoiceRenderingFailed, UpstreamUnavailable
from storefront.services.invoice import (
    format_price,
    generate_invoice_pdf,
    invoice_filename,
    render_invoice_html,
)
from storefront.services.pdf_renderer import PdfRenderer

from factories import FakePdfRenderer, line, make_order

PDF = b"%PDF-1.4\n" + b"0" * 2048


def renderer_with(handler):
    client = httpx.AsyncClient(
        base_url="http://renderer.test", transport=httpx.MockTransport(handler)
    )
    return PdfRenderer("http://renderer.test", client=client)


def test_format_price():
    assert format_price(66550) == "USD 66,550.00"
    assert format_price(12.5, "EUR") == "EUR 12.50"


def test_invoice_filename():
    assert invoice_filename(make_order(orderNumber="ORD-123456789")) == "invoice-ORD-123456789.pdf"


def test_invoice_html_lists_items_and_totals():
    order = make_order(orderNumber="ORD-123456789")

    html = render_invoice_html(order, tax_rate=0.21, shop_name="Test Shop")

    assert "INVOICE ORD-123456789" in html
    assert "Test Shop" in html
    assert "Keyboard" in html and "Mouse" in html
    assert "Tax (21%)" in html
    assert "USD 66,550.00" in html
    assert "FREE" in html
    assert "Córdoba, Córdoba 5000" in html


def test_invoice_html_shows_paid_shipping():
    html = render_invoice_html(make_order(items=[line(100)]))

    assert "USD 1,500.00" in html
    assert "FREE" not in html


def test_invoice_html_escapes_user_text():
    order = make_order(items=[line(10, title="<script>alert(1)</script>")])

    html = render_invoice_html(order)

    assert "<script>" not in html
    assert "&lt;script&gt;" in html


@pytest.mark.asyncio
async def test_generate_invoice_pdf_renders_html():
    renderer = FakePdfRenderer(pdf=PDF)

    pdf = await generate_invoice_pdf(make_order(orderNumber="ORD-1"), renderer)

    assert pdf == PDF
    assert "ORD-1" in renderer.rendered[0]


@pytest.mark.asyncio
async def test_renderer_posts_html_form():
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["body"] = request.content
        return httpx.Response(200, content=PDF)

    pdf = await renderer_with(handler).render("<h1>Invoice</h1>")

    assert pdf == PDF
    assert seen["path"] == "/forms/chromium/convert/html"
    assert b'filename="index.html"' in seen["body"]
    assert b"<h1>Invoice</h1>" in seen["body"]


@pytest.mark.asyncio
async def test_renderer_error_status():
    renderer = renderer_with(lambda request: httpx.Response(500, text="chromium crashed"))

    with pytest.raises(InvoiceRenderingFailed):
        await renderer.render("<h1>Invoice</h1>")


@pytest.mark.asyncio
async def test_renderer_empty_document():
    renderer = renderer_with(lambda request: httpx.Response(200, content=b""))

    with pytest.raises(InvoiceRenderingFailed, match="empty"):
        await renderer.render("<h1>Invoice</h1>")


@pytest.mark.asyncio
async def test_renderer_unreachable():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(UpstreamUnavailable):
        await renderer_with(handler).render("<h1>Invoice</h1>")
