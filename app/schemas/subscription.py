"""Subscription and payment history schemas."""

from datetime import datetime

from pydantic import BaseModel, field_serializer

from leadmagnet.plans import as_utc


class SubscriptionStatusSchema(BaseModel):
    """Schema for the entitlement state of a user."""

    user_id: str
    plan: str
    is_subscribed: bool
    can_access_pdf: bool
    monthly_campaign_limit: int
    used_campaigns: int
    remaining_campaigns: int
    subscription_expiry: datetime | None = None
    campaign_count_period: str | None = None

    @field_serializer("subscription_expiry")
    def serialize_expiry(self, value: datetime | None):
        """Render the expiry as an ISO-8601 UTC timestamp."""
        return as_utc(value).isoformat() if value else None


class CampaignUnlockSchema(BaseModel):
    """Schema for a paid campaign unlock."""

    id: int
    user_id: str
    resource_id: str
    payment_id: str
    order_id: str | None
    amount: int | None
    currency: str | None
    status: str
    source: str
    created_at: datetime

    class Config:
        """Config for the campaign unlock schema."""

        from_attributes = True

    @field_serializer("created_at")
    def serialize_created_at(self, value: datetime):
        """Render the creation time as an ISO-8601 UTC timestamp."""
        return as_utc(value).isoformat()
