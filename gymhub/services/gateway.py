"""Razorpay adapter with a local fallback for demo and test setups.

Without credentials, order ids are generated locally and every checkout is
accepted, so the rest of the app runs without network access.
"""
import hashlib
import hmac
import logging
import time

from flask import current_app

from ..errors import GatewayError

logger = logging.getLogger(__name__)


class RazorpayGateway:
    def __init__(self, key_id="", key_secret="", currency="INR"):
        self.key_id = key_id or ""
        self.key_secret = key_secret or ""
        self.currency = currency
        self._client = None

    def configured(self):
        return bool(self.key_id and self.key_secret)

    def public_key(self):
        return self.key_id if self.configured() else ""

    @property
    def client(self):
        if self._client is None:
            import razorpay

            self._client = razorpay.Client(auth=(self.key_id, self.key_secret))
        return self._client

    def create_remote_order(self, amount_minor, currency, receipt, sequence=None):
        """Create a checkout order and return its id."""
        if not self.configured():
            return local_order_id(sequence)

        try:
            order = self.client.order.create(
                data={
                    "amount": amount_minor,
                    "currency": currency,
                    "receipt": receipt,
                }
            )
        except Exception as e:
            logger.error("Razorpay order creation failed for %s: %s", receipt, e)
            raise GatewayError("Payment gateway error") from e
        return order["id"]

    def verify_signature(self, order_id, gateway_payment_id, signature):
        if not self.configured():
            return True
        if not gateway_payment_id or not signature:
            return False

        message = f"{order_id}|{gateway_payment_id}"
        expected = hmac.new(
            self.key_secret.encode(), message.encode(), hashlib.sha256
        ).hexdigest()
        return hmac.compare_digest(expected, signature)


def local_order_id(sequence=None):
    millis = int(time.time() * 1000)
    return f"ord_{millis}_{sequence if sequence is not None else 0}"


def get_gateway():
    config = current_app.config
    return RazorpayGateway(
        key_id=config.get("RAZORPAY_KEY_ID"),
        key_secret=config.get("RAZORPAY_KEY_SECRET"),
        currency=config.get("PAYMENT_CURRENCY", "INR"),
    )
