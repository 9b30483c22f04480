"""
Payment Gateway
Razorpay REST integration and signature helpers
"""

from typing import Optional
import hashlib
import hmac
import logging
import httpx
from portal.errors import GatewayError, ValidationFailedError

logger = logging.getLogger(__name__)


def compute_signature(secret: str, message) -> str:
    """Hex HMAC-SHA256 of message (str or bytes) under secret"""
    if isinstance(message, str):
        message = message.encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def signatures_match(expected: str, supplied: Optional[str]) -> bool:
    if not supplied:
        return False
    return hmac.compare_digest(expected.encode("utf-8"), supplied.encode("utf-8"))


class RazorpayClient:
    """Thin async client for the Orders and Payment Links APIs"""

    def __init__(
        self,
        api_url: str,
        key_id: Optional[str],
        key_secret: Optional[str],
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 30
    ):
        self.api_url = api_url.rstrip("/")
        self.key_id = key_id
        self.key_secret = key_secret
        self.transport = transport
        self.timeout = timeout

    def _ensure_config(self):
        if not self.key_id or not self.key_secret:
            raise ValidationFailedError("Payment gateway is not configured")

    async def _post(self, path: str, payload: dict) -> dict:
        self._ensure_config()
        url = f"{self.api_url}{path}"

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                auth=(self.key_id, self.key_secret),
                transport=self.transport,
            ) as client:
                resp = await client.post(url, json=payload)
        except httpx.HTTPError as e:
            logger.error("Gateway request to %s failed: %s", path, e)
            raise GatewayError() from e

        if resp.status_code not in (200, 201):
            logger.error("Gateway %s returned %s: %s", path, resp.status_code, resp.text)
            raise GatewayError(f"Payment gateway returned {resp.status_code}")

        return resp.json()

    async def create_order(self, amount: int, currency: str, receipt: str, notes: dict) -> dict:
        """Create an order; amount is in paise"""
        return await self._post(
            "/orders",
            {"amount": amount, "currency": currency, "receipt": receipt, "notes": notes},
        )

    async def create_payment_link(
        self,
        amount: int,
        currency: str,
        description: str,
        notes: dict,
        customer: Optional[dict] = None
    ) -> dict:
        payload = {
            "amount": amount,
            "currency": currency,
            "description": description,
            "notes": notes,
        }
        if customer:
            payload["customer"] = customer
            payload["notify"] = {
                "sms": bool(customer.get("contact")),
                "email": bool(customer.get("email")),
            }
        return await self._post("/payment_links", payload)
