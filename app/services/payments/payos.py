"""
PayOS payment-link client (https://payos.vn/docs/api/).
Only link creation is used: checkout happens on PayOS, status is reported back via
PUT /update-payment-status.
"""
import hashlib
import hmac
import logging
import time
from dataclasses import dataclass

import httpx
import pybreaker

from app.services.circuit_breaker import get_circuit_breaker
from app.utils.metrics import upstream_request_duration_seconds

logger = logging.getLogger(__name__)

PAYOS_SUCCESS_CODE = "00"


class PaymentGatewayError(Exception):
    """Raised when PayOS does not return a checkout URL; message is the gateway's description."""
    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.code = code


@dataclass(frozen=True)
class PayOSConfig:
    client_id: str
    api_key: str
    checksum_key: str
    api_url: str = "https://api-merchant.payos.vn"
    return_url: str = ""
    cancel_url: str = ""
    timeout: float = 30.0

    @classmethod
    def from_settings(cls, settings) -> "PayOSConfig":
        return cls(
            client_id=settings.payos_client_id,
            api_key=settings.payos_api_key,
            checksum_key=settings.payos_checksum_key,
            api_url=settings.payos_api_url,
            return_url=settings.payos_return_url,
            cancel_url=settings.payos_cancel_url,
            timeout=settings.payos_timeout,
        )


@dataclass
class PaymentLink:
    checkout_url: str
    payment_link_id: str | None
    code: str


def create_signature(
    checksum_key: str,
    *,
    amount: int,
    cancel_url: str,
    description: str,
    order_code: int,
    return_url: str,
) -> str:
    """HMAC-SHA256 over the alphabetically ordered fields PayOS signs."""
    data = (
        f"amount={amount}&cancelUrl={cancel_url}&description={description}"
        f"&orderCode={order_code}&returnUrl={return_url}"
    )
    return hmac.new(checksum_key.encode("utf-8"), data.encode("utf-8"), hashlib.sha256).hexdigest()


class PayOSClient:
    def __init__(self, config: PayOSConfig, transport: httpx.BaseTransport | None = None) -> None:
        self.config = config
        self._client = httpx.Client(
            base_url=config.api_url,
            timeout=config.timeout,
            transport=transport,
            headers={"x-client-id": config.client_id, "x-api-key": config.api_key},
        )
        self._breaker = get_circuit_breaker("payos")

    def _post(self, payload: dict) -> httpx.Response:
        resp = self._client.post("/v2/payment-requests", json=payload)
        if resp.status_code >= 500:
            resp.raise_for_status()
        return resp

    def create_payment_link(
        self,
        *,
        order_code: int,
        amount: int,
        description: str,
        return_url: str | None = None,
        cancel_url: str | None = None,
        buyer_name: str | None = None,
    ) -> PaymentLink:
        return_url = return_url or self.config.return_url
        cancel_url = cancel_url or self.config.cancel_url
        payload = {
            "orderCode": order_code,
            "amount": amount,
            "description": description,
            "returnUrl": return_url,
            "cancelUrl": cancel_url,
            "signature": create_signature(
                self.config.checksum_key,
                amount=amount,
                cancel_url=cancel_url,
                description=description,
                order_code=order_code,
                return_url=return_url,
            ),
        }
        if buyer_name:
            payload["buyerName"] = buyer_name

        start = time.time()
        try:
            resp = self._breaker.call(self._post, payload)
        except pybreaker.CircuitBreakerError as e:
            raise PaymentGatewayError("Payment gateway is temporarily unavailable") from e
        except httpx.HTTPStatusError as e:
            raise PaymentGatewayError(f"Payment gateway returned HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise PaymentGatewayError(str(e) or type(e).__name__) from e
        finally:
            upstream_request_duration_seconds.labels(service="payos").observe(time.time() - start)

        try:
            body = resp.json()
        except ValueError as e:
            raise PaymentGatewayError(f"Invalid response from payment gateway (HTTP {resp.status_code})") from e

        code = str(body.get("code", ""))
        data = body.get("data") or {}
        if code != PAYOS_SUCCESS_CODE or not data.get("checkoutUrl"):
            desc = body.get("desc") or f"HTTP {resp.status_code}"
            logger.warning("payos_link_rejected", extra={"status_code": resp.status_code, "error": desc})
            raise PaymentGatewayError(desc, code=code or None)

        return PaymentLink(
            checkout_url=data["checkoutUrl"],
            payment_link_id=data.get("paymentLinkId"),
            code=code,
        )
