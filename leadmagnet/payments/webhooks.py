"""Parsing, filtering and extraction of Razorpay webhook events."""

import json
import logging
from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from leadmagnet.errors import ValidationError

PAYMENT_CAPTURED = "payment.captured"

# column sizes of users.id, campaign_unlocks.resource_id and campaign_unlocks.payment_id
USER_ID_MAX_LENGTH = 64
RESOURCE_ID_MAX_LENGTH = 255
PAYMENT_ID_MAX_LENGTH = 255


class PaymentEntity(BaseModel):
    """The payment object inside a webhook payload."""

    model_config = ConfigDict(extra="ignore")

    id: str | None = None
    order_id: str | None = None
    amount: int | None = None
    currency: str | None = None
    status: str | None = None
    email: str | None = None
    notes: dict = Field(default_factory=dict)

    @field_validator("notes", mode="before")
    @classmethod
    def empty_notes(cls, value):
        """Razorpay sends ``[]`` instead of ``{}`` when there are no notes."""
        if not value:
            return {}
        return value


class WebhookEnvelope(BaseModel):
    """The outer structure of a webhook event."""

    model_config = ConfigDict(extra="ignore")

    event: str | None = None
    account_id: str | None = None
    payload: dict = Field(default_factory=dict)
    created_at: int | None = None


@dataclass(frozen=True)
class UnlockRequest:
    """Everything needed to apply a paid campaign unlock."""

    user_id: str
    resource_id: str
    payment_id: str
    order_id: str | None = None
    amount: int | None = None
    currency: str | None = None


def parse_event(raw_body: bytes | str) -> dict:
    """Decode a webhook body.

    Raises
    ------
    ValidationError
        If the body is not a JSON object.
    """
    try:
        event = json.loads(raw_body)
    except (TypeError, ValueError) as e:
        raise ValidationError("Invalid payload", details=str(e)) from e
    if not isinstance(event, dict):
        raise ValidationError("Invalid payload", details="Event is not a JSON object")
    return event


def event_type(event: dict) -> str | None:
    """Get the kind of an event."""
    value = event.get("event")
    return value if isinstance(value, str) else None


def is_payment_captured(event: dict) -> bool:
    """Check if an event reports a captured payment."""
    return event_type(event) == PAYMENT_CAPTURED


def extract_unlock(event: dict) -> UnlockRequest:
    """Pull the unlock details out of a payment captured event.

    Raises
    ------
    ValidationError
        If the payment entity, the payment id, or the user or resource id in
        the notes is missing or longer than the stored columns allow.
    """
    try:
        envelope = WebhookEnvelope.model_validate(event)
        entity = (envelope.payload.get("payment") or {}).get("entity")
        if not entity:
            raise ValidationError("Missing payment entity")
        payment = PaymentEntity.model_validate(entity)
    except (PydanticValidationError, AttributeError) as e:
        raise ValidationError("Invalid payload", details=str(e)) from e

    if not payment.id:
        raise ValidationError("Missing payment id")
    if len(payment.id) > PAYMENT_ID_MAX_LENGTH:
        raise ValidationError("Invalid payment id")

    user_id = payment.notes.get("user_id")
    resource_id = payment.notes.get("resource_id")
    if not user_id or not resource_id:
        logging.error(f"Payment {payment.id} is missing user_id or resource_id in its notes")
        raise ValidationError("Missing user_id or resource_id")

    user_id = str(user_id)
    resource_id = str(resource_id)
    if len(user_id) > USER_ID_MAX_LENGTH or len(resource_id) > RESOURCE_ID_MAX_LENGTH:
        logging.error(f"Payment {payment.id} carries an oversized user_id or resource_id")
        raise ValidationError("Invalid user_id or resource_id")

    return UnlockRequest(
        user_id=user_id,
        resource_id=resource_id,
        payment_id=payment.id,
        order_id=payment.order_id,
        amount=payment.amount,
        currency=payment.currency,
    )
