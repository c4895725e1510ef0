import logging
from dataclasses import dataclass

import httpx

from booking_api.core.config import Settings
from booking_api.core.errors import PaymentProviderError, PaymentProviderTimeout

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PaymentOrder:
    id: str
    amount: int
    currency: str
    receipt: str
    status: str | None = None


class RazorpayClient:
    """Minimal Razorpay Orders API client.

    ``transport`` is handed to ``httpx.AsyncClient`` and lets callers swap
    the network layer (e.g. ``httpx.MockTransport``).
    """

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.key_id = settings.razorpay_key_id
        self.key_secret = settings.razorpay_key_secret
        self.api_base = settings.razorpay_api_base.rstrip("/")
        self.timeout = settings.razorpay_timeout_seconds
        self._transport = transport

    async def create_order(self, amount: int, currency: str, receipt: str) -> PaymentOrder:
        if not self.key_id or not self.key_secret:
            logger.warning("Razorpay not configured (RAZORPAY_KEY_ID / RAZORPAY_KEY_SECRET)")
            raise PaymentProviderError("Payment provider is not configured")
        payload = {"amount": amount, "currency": currency, "receipt": receipt}
        try:
            async with httpx.AsyncClient(
                auth=(self.key_id, self.key_secret),
                timeout=self.timeout,
                transport=self._transport,
            ) as client:
                resp = await client.post(f"{self.api_base}/orders", json=payload)
        except httpx.TimeoutException as e:
            logger.warning("Razorpay order creation timed out after %ss", self.timeout)
            raise PaymentProviderTimeout() from e
        except httpx.HTTPError as e:
            logger.exception("Razorpay request failed: %s", e)
            raise PaymentProviderError(f"Failed to create order: {type(e).__name__}") from e

        if resp.status_code != 200:
            logger.warning(
                "Razorpay order creation failed: status=%s body=%s",
                resp.status_code,
                resp.text[:500],
            )
            raise PaymentProviderError(_error_description(resp) or "Failed to create order")
        data = resp.json()
        return PaymentOrder(
            id=data["id"],
            amount=data.get("amount", amount),
            currency=data.get("currency", currency),
            receipt=data.get("receipt", receipt),
            status=data.get("status"),
        )


def _error_description(resp: httpx.Response) -> str | None:
    try:
        return resp.json()["error"]["description"]
    except (ValueError, KeyError, TypeError):
        return None
