"""Request schemas for the payment endpoints."""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from leadmagnet.payments.webhooks import (
    PAYMENT_ID_MAX_LENGTH,
    RESOURCE_ID_MAX_LENGTH,
    USER_ID_MAX_LENGTH,
)


class _RequestSchema(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    @field_validator("*", mode="before")
    @classmethod
    def coerce_ids(cls, value):
        """Accept numeric ids; they are stored as strings."""
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


class CreateOrderSchema(_RequestSchema):
    """Schema for an order creation request. Any amount sent is ignored."""

    user_id: str = Field(max_length=USER_ID_MAX_LENGTH)
    resource_id: str = Field(max_length=RESOURCE_ID_MAX_LENGTH)

    @field_validator("user_id", "resource_id")
    @classmethod
    def not_blank(cls, value: str) -> str:
        """Reject empty ids."""
        if not value:
            raise ValueError("must not be empty")
        return value


class VerifyPaymentSchema(CreateOrderSchema):
    """Schema for confirming a checkout from the browser."""

    order_id: str
    payment_id: str = Field(max_length=PAYMENT_ID_MAX_LENGTH)
    signature: str

    @field_validator("order_id", "payment_id", "signature")
    @classmethod
    def not_blank_payment_fields(cls, value: str) -> str:
        """Reject empty payment fields."""
        if not value:
            raise ValueError("must not be empty")
        return value
