"""Razorpay order creation and checkout confirmation.

The order initiator never takes an amount from the caller. Amount and currency
come from the plan catalog, and the user and resource ids travel inside the
provider-side order notes so they come back unmodified with the webhook.
"""

import logging
import time
from dataclasses import dataclass
from datetime import datetime

import razorpay
import requests
from razorpay.errors import (
    BadRequestError,
    GatewayError,
    ServerError,
    SignatureVerificationError,
)

from leadmagnet.errors import (
    AuthenticationError,
    ConfigurationError,
    UpstreamError,
    ValidationError,
)
from leadmagnet.payments.webhooks import RESOURCE_ID_MAX_LENGTH, USER_ID_MAX_LENGTH
from leadmagnet.plans import PlanCatalog, utcnow

ORDER_PURPOSE = "campaign_unlock"
RECEIPT_MAX_LENGTH = 40

PROVIDER_ERRORS = (
    BadRequestError,
    GatewayError,
    ServerError,
    requests.exceptions.RequestException,
)


@dataclass(frozen=True)
class OrderResult:
    """A created provider order."""

    order_id: str
    key_id: str
    amount: int
    currency: str
    description: str
    receipt: str
    created_at: datetime

    def to_response(self) -> dict:
        """Render the order the way the checkout widget expects it."""
        return {
            "orderId": self.order_id,
            "keyId": self.key_id,
            "amount": self.amount,
            "currency": self.currency,
            "description": self.description,
        }


@dataclass(frozen=True)
class CapturedPayment:
    """A payment the provider reports as captured."""

    payment_id: str
    order_id: str
    amount: int
    currency: str
    user_id: str | None
    resource_id: str | None


def build_receipt(resource_id: str, now: datetime) -> str:
    """Build the receipt token for an order.

    The provider caps receipts at 40 characters; the timestamp is kept and the
    resource id is shortened when needed.
    """
    suffix = f"_{int(now.timestamp())}"
    prefix = f"rcpt_{resource_id}"
    return prefix[: RECEIPT_MAX_LENGTH - len(suffix)] + suffix


def _note(notes: dict, key: str) -> str | None:
    value = notes.get(key)
    return str(value) if value not in (None, "") else None


def _require(value, name: str, max_length: int | None = None) -> str:
    value = "" if value is None else str(value).strip()
    if not value or (max_length and len(value) > max_length):
        raise ValidationError(f"Invalid or missing {name}")
    return value


class OrderInitiator:
    """Create provider orders for campaign unlocks."""

    def __init__(
        self,
        key_id: str | None,
        key_secret: str | None,
        catalog: PlanCatalog,
        timeout: float = 10,
        client=None,
    ):
        """Initialize the order initiator.

        Parameters
        ----------
        key_id : str
            The Razorpay key id. Also returned to the browser.
        key_secret : str
            The Razorpay key secret.
        catalog : PlanCatalog
            Source of the server side price.
        timeout : float
            Seconds before an outbound provider call is abandoned.
        client : razorpay.Client, optional
            A preconfigured client, mainly for tests.
        """
        self.key_id = key_id
        self.key_secret = key_secret
        self.catalog = catalog
        self.timeout = timeout
        self._client = client

    @property
    def client(self):
        """Get the Razorpay client, creating it on first use."""
        if not self.key_id or not self.key_secret:
            missing = [
                name
                for name, value in (
                    ("RAZORPAY_KEY_ID", self.key_id),
                    ("RAZORPAY_KEY_SECRET", self.key_secret),
                )
                if not value
            ]
            raise ConfigurationError(details=f"Missing keys: {', '.join(missing)}")
        if self._client is None:
            self._client = razorpay.Client(auth=(self.key_id, self.key_secret))
        return self._client

    def create_order(self, user_id, resource_id, now: datetime | None = None) -> OrderResult:
        """Create a provider order for unlocking a campaign.

        Parameters
        ----------
        user_id : str
            The paying user.
        resource_id : str
            The campaign to unlock.
        now : datetime, optional
            Creation time, defaults to the current UTC time.

        Returns
        -------
        OrderResult
            The created order.

        Raises
        ------
        ValidationError
            If user_id or resource_id is missing or too long.
        ConfigurationError
            If the provider credentials are absent.
        UpstreamError
            If the provider rejects the request or does not answer in time.
        """
        user_id = _require(user_id, "user_id", USER_ID_MAX_LENGTH)
        resource_id = _require(resource_id, "resource_id", RESOURCE_ID_MAX_LENGTH)
        client = self.client
        now = now or utcnow()

        price = self.catalog.price_for(resource_id)
        receipt = build_receipt(resource_id, now)
        order_request = {
            "amount": price.amount,
            "currency": price.currency,
            "receipt": receipt,
            "payment_capture": 1,
            "notes": {
                "user_id": user_id,
                "resource_id": resource_id,
                "purpose": ORDER_PURPOSE,
                "created_at": now.isoformat(),
            },
        }
        logging.info(
            "Creating order: user_id=%s, resource_id=%s, amount=%s %s",
            user_id,
            resource_id,
            price.amount,
            price.currency,
        )

        start = time.time()
        try:
            order = client.order.create(data=order_request, timeout=self.timeout)
        except PROVIDER_ERRORS as e:
            logging.error(f"Razorpay order creation failed: {str(e)}")
            raise UpstreamError("Could not create order", details=str(e)) from e

        order_id = order.get("id") if isinstance(order, dict) else None
        if not order_id:
            raise UpstreamError("Could not create order", details=f"Unexpected response: {order}")

        logging.info(f"Order created: {order_id} in {time.time() - start:.2f}s")
        return OrderResult(
            order_id=order_id,
            key_id=self.key_id,
            amount=price.amount,
            currency=price.currency,
            description=price.description,
            receipt=receipt,
            created_at=now,
        )

    def verify_checkout_signature(self, order_id, payment_id, signature) -> None:
        """Verify the signature the checkout widget hands back to the browser.

        Raises
        ------
        AuthenticationError
            If the signature does not match.
        """
        order_id = _require(order_id, "order_id")
        payment_id = _require(payment_id, "payment_id")
        if not signature:
            raise AuthenticationError(details="Missing checkout signature")
        try:
            self.client.utility.verify_payment_signature(
                {
                    "razorpay_order_id": order_id,
                    "razorpay_payment_id": payment_id,
                    "razorpay_signature": signature,
                }
            )
        except SignatureVerificationError as e:
            logging.warning(f"Checkout signature verification failed for payment {payment_id}")
            raise AuthenticationError(details=str(e)) from e

    def fetch_captured_payment(self, payment_id, order_id) -> CapturedPayment:
        """Fetch a payment and check that it was captured for the given order.

        Raises
        ------
        ValidationError
            If the payment is not captured or belongs to another order.
        UpstreamError
            If the provider cannot be reached.
        """
        payment_id = _require(payment_id, "payment_id")
        order_id = _require(order_id, "order_id")
        try:
            payment = self.client.payment.fetch(payment_id, timeout=self.timeout)
        except PROVIDER_ERRORS as e:
            logging.error(f"Razorpay payment fetch failed for {payment_id}: {str(e)}")
            raise UpstreamError("Could not verify payment", details=str(e)) from e

        if payment.get("order_id") != order_id or payment.get("status") != "captured":
            raise ValidationError(
                "Payment not valid or not captured",
                details=f"order_id={payment.get('order_id')}, status={payment.get('status')}",
            )

        notes = payment.get("notes") or {}
        if not isinstance(notes, dict):
            # the provider sends an empty list when an order has no notes
            notes = {}
        return CapturedPayment(
            payment_id=payment_id,
            order_id=order_id,
            amount=int(payment.get("amount") or 0),
            currency=payment.get("currency") or "",
            user_id=_note(notes, "user_id"),
            resource_id=_note(notes, "resource_id"),
        )
