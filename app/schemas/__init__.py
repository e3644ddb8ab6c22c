"""Schemas package initialization."""

from .payment import CreateOrderSchema, VerifyPaymentSchema
from .subscription import CampaignUnlockSchema, SubscriptionStatusSchema

__all__ = [
    "CreateOrderSchema",
    "VerifyPaymentSchema",
    "CampaignUnlockSchema",
    "SubscriptionStatusSchema",
]
