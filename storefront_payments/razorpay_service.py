import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

from storefront_payments.config import Settings
from storefront_payments.errors import ConfigurationError, GatewayError, GatewayTimeoutError

logger = logging.getLogger(__name__)


def _payload(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


class RazorpayClient:
    """Authenticated calls to the Razorpay REST API. Holds no order state."""

    def __init__(self, settings: Settings, transport: Optional[httpx.BaseTransport] = None):
        self._settings = settings
        self._client = httpx.Client(
            base_url=settings.api_url,
            auth=(settings.key_id, settings.key_secret),
            timeout=settings.timeout_seconds,
            headers={"Content-Type": "application/json"},
            transport=transport,
        )

    def create_order(
        self, amount: int, currency: str, receipt: str, notes: Dict[str, str]
    ) -> Dict[str, Any]:
        """Create a gateway order. ``amount`` is already in minor units."""
        return self._request(
            "POST",
            "/orders",
            json={
                "amount": amount,
                "currency": currency,
                "receipt": receipt,
                "notes": notes,
                "payment_capture": 1 if self._settings.auto_capture else 0,
            },
        )

    def fetch_payment(self, payment_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/payments/{quote(payment_id, safe='')}")

    def close(self) -> None:
        self._client.close()

    def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        if not self._settings.razorpay_configured:
            raise ConfigurationError("Razorpay credentials not configured")

        try:
            response = self._client.request(method, path, **kwargs)
        except httpx.TimeoutException:
            logger.warning("Razorpay %s %s timed out", method, path)
            raise GatewayTimeoutError("Payment gateway request timed out")
        except httpx.HTTPError as exc:
            logger.error("Razorpay %s %s failed: %s", method, path, exc)
            raise GatewayError("Payment gateway unreachable", details=str(exc))

        if response.is_error:
            logger.warning("Razorpay %s %s returned %s", method, path, response.status_code)
            raise GatewayError(
                "Payment gateway returned an error",
                details=_payload(response),
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError:
            logger.error("Razorpay %s %s returned a non-JSON body", method, path)
            raise GatewayError("Payment gateway returned an invalid response", details=response.text)
