"""Error taxonomy for the payment confirmation flow.

Every failure raised by the order initiator, the webhook handling and the
entitlement updater is one of the classes below. Each class carries the HTTP
status the API layer answers with and whether the caller may retry.
"""


class PaymentFlowError(Exception):
    """Base class for all payment flow errors."""

    http_status = 500
    retryable = False
    default_message = "Internal server error"

    def __init__(self, message: str | None = None, details: str | None = None):
        """Initialize a payment flow error.

        Parameters
        ----------
        message : str, optional
            A human-readable error message, safe to return to the caller.
        details : str, optional
            Additional context for the logs. Never returned to the caller.
        """
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def __str__(self) -> str:
        """Return a string representation of the error."""
        error_str = f"[{type(self).__name__}] {self.message}"
        if self.details:
            error_str += f" - Details: {self.details}"
        return error_str

    def to_dict(self) -> dict:
        """Convert the error to a response body."""
        return {"error": self.message}


class ValidationError(PaymentFlowError):
    """Bad or missing request fields."""

    http_status = 400
    default_message = "Invalid request"


class AuthenticationError(PaymentFlowError):
    """Signature mismatch, or a missing signature or secret.

    The message is always the same so a caller cannot tell which part was wrong.
    """

    http_status = 400
    default_message = "Invalid signature"

    def __init__(self, details: str | None = None):
        """Initialize with the fixed public message."""
        super().__init__(None, details)


class ConfigurationError(PaymentFlowError):
    """A required server secret is absent."""

    http_status = 500
    default_message = "Server configuration error"


class UpstreamError(PaymentFlowError):
    """The payment provider or the database failed or timed out."""

    http_status = 500
    retryable = True
    default_message = "Payment processing failed"


class EntitlementDenied(PaymentFlowError):
    """The user's plan does not allow the requested action."""

    http_status = 403
    default_message = "Plan limit reached"


class ConflictIgnored(PaymentFlowError):
    """The event was already applied by an earlier delivery."""

    http_status = 200
    default_message = "Already processed"
