"""HTML to PDF conversion through a headless Chromium service."""

import logging
from typing import Optional

import httpx

from storefront.config import Settings
from storefront.errors import InvoiceRenderingFailed, UpstreamUnavailable

logger = logging.getLogger(__name__)

# A4 with 15mm margins, in inches
_PAGE_OPTIONS = {
    "paperWidth": "8.27",
    "paperHeight": "11.7",
    "marginTop": "0.59",
    "marginBottom": "0.59",
    "marginLeft": "0.59",
    "marginRight": "0.59",
    "printBackground": "true",
}

_SUSPICIOUSLY_SMALL = 500  # bytes


class PdfRenderer:
    """Client for a Gotenberg-compatible Chromium conversion endpoint."""

    convert_path = "/forms/chromium/convert/html"

    def __init__(
        self,
        base_url: str,
        timeout: float = 15.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    @classmethod
    def from_settings(cls, settings: Settings) -> "PdfRenderer":
        return cls(base_url=settings.pdf_renderer_url, timeout=settings.pdf_renderer_timeout)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def render(self, html: str) -> bytes:
        """Render ``html`` to PDF bytes.

        Raises:
            UpstreamUnavailable: on timeout or connection failure.
            InvoiceRenderingFailed: on an error response or an empty document.
        """
        try:
            response = await self._client.post(
                self.convert_path,
                files={"files": ("index.html", html.encode("utf-8"), "text/html")},
                data=_PAGE_OPTIONS,
            )
        except httpx.TimeoutException as e:
            logger.error("PDF renderer timed out")
            raise UpstreamUnavailable("PDF renderer timed out") from e
        except httpx.TransportError as e:
            logger.error("PDF renderer unreachable: %s", e)
            raise UpstreamUnavailable("PDF renderer unreachable") from e

        if response.status_code >= 400:
            logger.error("PDF renderer returned %s", response.status_code)
            raise InvoiceRenderingFailed(f"PDF renderer returned {response.status_code}")

        pdf = response.content
        if not pdf:
            raise InvoiceRenderingFailed("PDF renderer returned an empty document")
        if len(pdf) < _SUSPICIOUSLY_SMALL:
            logger.warning("Rendered PDF is only %d bytes", len(pdf))
        return pdf
