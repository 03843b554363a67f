"""Payment processor client.

Only the processor's own view of a payment intent is trusted; a client
claiming a payment succeeded is never enough to create an order.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol
from urllib.parse import quote

import httpx

from storefront.config import Settings
from storefront.errors import PaymentNotConfirmed, UpstreamUnavailable, ValidationFailed

logger = logging.getLogger(__name__)


@dataclass
class PaymentIntent:
    """Processor-side payment handle."""

    id: str
    status: str
    amount: int
    currency: str
    client_secret: Optional[str] = None
    latest_charge: Optional[str] = None
    metadata: dict[str, str] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return self.status == "succeeded"

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> "PaymentIntent":
        if payload.get("object") != "payment_intent":
            raise PaymentNotConfirmed("Processor response is not a payment intent")
        return cls(
            id=payload["id"],
            status=payload.get("status", ""),
            amount=int(payload.get("amount", 0)),
            currency=str(payload.get("currency", "")).upper(),
            client_secret=payload.get("client_secret"),
            latest_charge=payload.get("latest_charge"),
            metadata=dict(payload.get("metadata") or {}),
        )


class PaymentGateway(Protocol):
    """What the checkout flow needs from a payment processor."""

    async def create_intent(
        self, amount: int, currency: str, metadata: dict[str, str]
    ) -> PaymentIntent: ...

    async def retrieve_intent(self, intent_id: str) -> PaymentIntent: ...


class StripePaymentGateway:
    """Stripe PaymentIntents over the REST API."""

    def __init__(
        self,
        secret_key: str,
        api_base: str = "https://api.stripe.com",
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.secret_key = secret_key
        self._client = client or httpx.AsyncClient(base_url=api_base, timeout=timeout)

    @classmethod
    def from_settings(cls, settings: Settings) -> "StripePaymentGateway":
        return cls(
            secret_key=settings.stripe_secret_key,
            api_base=settings.stripe_api_base,
            timeout=settings.stripe_timeout,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.secret_key)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def create_intent(
        self, amount: int, currency: str, metadata: dict[str, str]
    ) -> PaymentIntent:
        """Create a card payment intent for ``amount`` minor units."""
        if amount <= 0:
            raise ValidationFailed("Payment amount must be positive")

        form = {
            "amount": str(amount),
            "currency": currency.lower(),
            "payment_method_types[]": "card",
        }
        for key, value in metadata.items():
            form[f"metadata[{key}]"] = str(value)

        payload = await self._request("POST", "/v1/payment_intents", data=form)
        intent = PaymentIntent.from_api(payload)
        logger.info("Payment intent %s created for %d %s", intent.id, amount, intent.currency)
        return intent

    async def retrieve_intent(self, intent_id: str) -> PaymentIntent:
        # One path segment, whatever the caller sent
        segment = quote(intent_id, safe="")
        payload = await self._request("GET", f"/v1/payment_intents/{segment}")
        return PaymentIntent.from_api(payload)

    async def _request(
        self, method: str, path: str, data: Optional[dict[str, str]] = None
    ) -> dict[str, Any]:
        if not self.is_configured:
            raise UpstreamUnavailable("Payment processor is not configured")

        try:
            response = await self._client.request(
                method,
                path,
                data=data,
                headers={"Authorization": f"Bearer {self.secret_key}"},
            )
        except httpx.TimeoutException as e:
            logger.error("Payment processor timed out: %s %s", method, path)
            raise UpstreamUnavailable("Payment processor timed out") from e
        except httpx.TransportError as e:
            logger.error("Payment processor unreachable: %s", e)
            raise UpstreamUnavailable("Payment processor unreachable") from e

        if response.status_code >= 500 or response.status_code in (401, 403, 429):
            logger.error(
                "Payment processor error %s on %s %s", response.status_code, method, path
            )
            raise UpstreamUnavailable("Payment processor unavailable")
        if response.status_code == 404:
            raise PaymentNotConfirmed("Payment intent not found")
        if response.status_code >= 400:
            message = _error_message(response)
            logger.warning("Payment processor rejected request: %s", message)
            raise ValidationFailed(message)
        return response.json()


def _error_message(response: httpx.Response) -> str:
    try:
        return response.json()["error"]["message"]
    except (ValueError, KeyError, TypeError):
        return f"Payment processor rejected the request ({response.status_code})"
