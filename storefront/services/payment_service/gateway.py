"""
Razorpay client over httpx.

Only the three calls the checkout needs: create an order (payment intent),
fetch a payment, refund a payment. Amounts are in minor units (paise).
"""
import hashlib
import hmac
from typing import Any, Dict, Optional

import httpx
import structlog

from storefront.shared.config.settings import RAZORPAY_BASE_URL, RAZORPAY_KEY_ID, RAZORPAY_KEY_SECRET
from storefront.shared.errors import GatewayError

logger = structlog.get_logger(__name__)


class RazorpayGateway:
    def __init__(
        self,
        key_id: str = RAZORPAY_KEY_ID,
        key_secret: str = RAZORPAY_KEY_SECRET,
        base_url: str = RAZORPAY_BASE_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.key_id = key_id
        self.key_secret = key_secret
        self.base_url = base_url.rstrip("/")
        self._transport = transport

    def signature_for(self, order_id: int | str, payment_id: str) -> str:
        message = f"{order_id}|{payment_id}".encode("utf-8")
        return hmac.new(self.key_secret.encode("utf-8"), message, hashlib.sha256).hexdigest()

    def verify_signature(self, order_id: int | str, payment_id: str, signature: str) -> bool:
        return hmac.compare_digest(self.signature_for(order_id, payment_id), signature)

    async def _request(self, method: str, path: str, json: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        async with httpx.AsyncClient(
            base_url=self.base_url,
            auth=(self.key_id, self.key_secret),
            transport=self._transport,
        ) as client:
            try:
                resp = await client.request(method, path, json=json)
                resp.raise_for_status()
            except httpx.HTTPStatusError as e:
                logger.error(
                    "gateway_rejected",
                    method=method,
                    path=path,
                    status_code=e.response.status_code,
                    body=e.response.text,
                )
                raise GatewayError()
            except httpx.HTTPError as e:
                logger.error("gateway_unreachable", method=method, path=path, error=str(e))
                raise GatewayError()
            return resp.json()

    async def create_order(
        self,
        amount_minor: int,
        currency: str,
        receipt: str,
        notes: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        payload = {"amount": amount_minor, "currency": currency, "receipt": receipt, "notes": notes or {}}
        return await self._request("POST", "/orders", json=payload)

    async def fetch_payment(self, payment_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"/payments/{payment_id}")

    async def refund(
        self,
        payment_id: str,
        amount_minor: Optional[int] = None,
        notes: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"notes": notes or {}}
        if amount_minor is not None:
            payload["amount"] = amount_minor
        return await self._request("POST", f"/payments/{payment_id}/refund", json=payload)


def get_payment_gateway() -> RazorpayGateway:
    return RazorpayGateway()
