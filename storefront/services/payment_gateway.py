# storefront/services/payment_gateway.py
import hashlib
import hmac
from typing import Any, Dict

import requests
from requests import RequestException

from storefront.domain.errors import PaymentError
from storefront.utils.retry import connect_retry
from storefront.utils.settings import (
    RAZORPAY_API_URL,
    RAZORPAY_KEY_ID,
    RAZORPAY_KEY_SECRET,
    HTTP_TIMEOUT_SECONDS,
)
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def payment_signature(gateway_order_id: str, gateway_payment_id: str, secret: str) -> str:
    body = f"{gateway_order_id}|{gateway_payment_id}"
    return hmac.new(secret.encode(), body.encode(), hashlib.sha256).hexdigest()


class PaymentGateway:
    """
    Server-side half of the payment gateway integration.

    The private secret never leaves this class: order creation returns only
    the public key id, and payment confirmations are checked here.
    """

    def __init__(
        self,
        key_id: str | None = None,
        key_secret: str | None = None,
        base_url: str | None = None,
        timeout: float = HTTP_TIMEOUT_SECONDS,
    ):
        self.key_id = key_id if key_id is not None else RAZORPAY_KEY_ID
        self.key_secret = key_secret if key_secret is not None else RAZORPAY_KEY_SECRET
        self.base_url = (base_url or RAZORPAY_API_URL).rstrip("/")
        self.timeout = timeout

    @connect_retry()
    def _post_order(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{self.base_url}/orders"
        logger.info(f"PaymentGateway POST {url} receipt={payload['receipt']}")

        resp = requests.post(
            url,
            json=payload,
            auth=(self.key_id, self.key_secret),
            timeout=self.timeout,
        )
        resp.raise_for_status()
        return resp.json()

    def create_gateway_order(self, amount_minor_units: int, currency: str, receipt: str) -> Dict[str, Any]:
        if amount_minor_units <= 0:
            raise PaymentError("The order amount must be positive.")

        try:
            data = self._post_order(
                {"amount": amount_minor_units, "currency": currency or "INR", "receipt": receipt}
            )
            gateway_order = {
                "gateway_order_id": data["id"],
                "amount": data["amount"],
                "currency": data["currency"],
                "public_key": self.key_id,
            }
        except (RequestException, ValueError, KeyError) as e:
            logger.error(f"Gateway order creation failed for {receipt}: {e}")
            raise PaymentError("We could not start the payment. Please try again.") from e

        logger.info(f"Gateway order {gateway_order['gateway_order_id']} created for {receipt}")
        return gateway_order

    def verify_payment(self, gateway_order_id: str, gateway_payment_id: str, signature: str) -> bool:
        """True only if ``signature`` is the HMAC-SHA256 of ``order_id|payment_id``."""
        if not (gateway_order_id and gateway_payment_id and signature and self.key_secret):
            return False

        expected = payment_signature(gateway_order_id, gateway_payment_id, self.key_secret)
        verified = hmac.compare_digest(expected.encode(), signature.encode())

        if not verified:
            logger.warning(f"Signature mismatch for gateway order {gateway_order_id}")
        return verified
