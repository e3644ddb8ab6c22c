"""Payment related helper functions.

Glue between the HTTP routes and the payment core: builds the order
initiator from the app config and runs the webhook state machine.
"""

import logging
from datetime import datetime

from flask import current_app

from app.helpers.entitlements import apply_unlock, get_subscription_status
from app.schemas import SubscriptionStatusSchema, VerifyPaymentSchema
from leadmagnet.errors import AuthenticationError, ConflictIgnored, ValidationError
from leadmagnet.payments.orders import OrderInitiator
from leadmagnet.payments.webhooks import (
    UnlockRequest,
    event_type,
    extract_unlock,
    is_payment_captured,
    parse_event,
)
from leadmagnet.plans import PlanCatalog
from leadmagnet.signature import verify_signature

PROCESSED = "processed"
IGNORED = "ignored"
DUPLICATE = "duplicate"


def get_plan_catalog() -> PlanCatalog:
    """Get the plan catalog built when the app was created."""
    return current_app.extensions["plan_catalog"]


def get_order_initiator() -> OrderInitiator:
    """Build an order initiator from the app config.

    A client stored under ``app.extensions["razorpay_client"]`` is reused.
    """
    return OrderInitiator(
        key_id=current_app.config.get("RAZORPAY_KEY_ID"),
        key_secret=current_app.config.get("RAZORPAY_KEY_SECRET"),
        catalog=get_plan_catalog(),
        timeout=current_app.config.get("RAZORPAY_TIMEOUT_SECONDS", 10),
        client=current_app.extensions.get("razorpay_client"),
    )


def process_webhook(
    raw_body: bytes,
    signature: str | None,
    secret: str | None,
    catalog: PlanCatalog,
    now: datetime | None = None,
) -> str:
    """Authenticate, parse, filter and apply one webhook delivery.

    Args:
        raw_body (bytes): The request body exactly as received.
        signature (str): The signature header.
        secret (str): The webhook shared secret.
        catalog (PlanCatalog): Source of the renewal window.
        now (datetime): Time of the upgrade, defaults to the current UTC time.

    Returns
    -------
        str: PROCESSED, IGNORED for events other than a captured payment, or
        DUPLICATE when an earlier delivery already applied the payment.

    Raises
    ------
        AuthenticationError: If the secret or signature is missing or wrong.
        ValidationError: If the body is malformed or lacks the user or resource id.
        UpstreamError: If the database fails.
    """
    if not secret:
        logging.error("RAZORPAY_WEBHOOK_SECRET is not set, rejecting webhook")
        raise AuthenticationError(details="Webhook secret not set")
    if not signature:
        logging.error("Webhook received without a signature")
        raise AuthenticationError(details="Missing signature")
    if not verify_signature(raw_body, signature, secret):
        logging.error("Webhook signature mismatch")
        raise AuthenticationError(details="Signature mismatch")

    event = parse_event(raw_body)

    kind = event_type(event)
    if not is_payment_captured(event):
        logging.info(f"Webhook event '{kind}' ignored")
        return IGNORED

    unlock = extract_unlock(event)
    logging.info(
        f"Applying captured payment {unlock.payment_id} for user {unlock.user_id}, "
        f"resource {unlock.resource_id}"
    )
    try:
        apply_unlock(unlock, catalog, source="webhook", now=now)
    except ConflictIgnored:
        return DUPLICATE
    return PROCESSED


def confirm_checkout(
    data: VerifyPaymentSchema, initiator: OrderInitiator, now: datetime | None = None
) -> SubscriptionStatusSchema:
    """Apply a payment the browser reports right after checkout.

    The checkout signature is verified and the payment is fetched from the
    provider before anything is written. Whichever of this call and the webhook
    comes first applies the unlock; the other one is a no-op.

    Raises
    ------
        AuthenticationError: If the checkout signature is wrong.
        ValidationError: If the payment is not captured or was made for another
            user or resource, or its notes do not name the user and
            the resource.
        UpstreamError: If the provider or the database fails.
    """
    initiator.verify_checkout_signature(data.order_id, data.payment_id, data.signature)
    payment = initiator.fetch_captured_payment(data.payment_id, data.order_id)

    if not payment.user_id or not payment.resource_id:
        logging.error(f"Payment {payment.payment_id} is missing user_id or resource_id in its notes")
        raise ValidationError("Missing user_id or resource_id")
    if payment.user_id != data.user_id or payment.resource_id != data.resource_id:
        logging.error(
            f"Payment {payment.payment_id} was made for user {payment.user_id}, "
            f"resource {payment.resource_id}, not for the requesting user/resource"
        )
        raise ValidationError("Payment does not match the request")

    unlock = UnlockRequest(
        user_id=data.user_id,
        resource_id=data.resource_id,
        payment_id=payment.payment_id,
        order_id=payment.order_id,
        amount=payment.amount,
        currency=payment.currency,
    )
    try:
        apply_unlock(unlock, initiator.catalog, source="checkout", now=now)
    except ConflictIgnored:
        logging.info(f"Payment {payment.payment_id} was already applied")

    return get_subscription_status(data.user_id, initiator.catalog, now=now)
