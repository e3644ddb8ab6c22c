"""Payment provider integration: order creation and webhook event handling."""

from .orders import CapturedPayment, OrderInitiator, OrderResult
from .webhooks import (
    PAYMENT_CAPTURED,
    UnlockRequest,
    extract_unlock,
    is_payment_captured,
    parse_event,
)

__all__ = [
    "CapturedPayment",
    "OrderInitiator",
    "OrderResult",
    "PAYMENT_CAPTURED",
    "UnlockRequest",
    "extract_unlock",
    "is_payment_captured",
    "parse_event",
]
