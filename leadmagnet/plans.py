"""Plan and pricing catalog.

The catalog is built once from the application configuration when the app
starts and is passed to the components that need it. It is immutable.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from types import MappingProxyType
from typing import Mapping

FREE = "free"
PREMIUM = "premium"
UNLIMITED = -1


@dataclass(frozen=True)
class PlanLimits:
    """Usage limits of a plan. UNLIMITED (-1) means no limit."""

    campaigns: int
    leads_per_month: int
    emails_per_month: int
    storage_gb: int


@dataclass(frozen=True)
class Plan:
    """A subscription plan."""

    plan_id: str
    name: str
    monthly_campaign_limit: int
    limits: PlanLimits
    features: frozenset = field(default_factory=frozenset)

    def has_feature(self, feature: str) -> bool:
        """Check if the plan includes a feature."""
        return feature in self.features


@dataclass(frozen=True)
class UnlockPrice:
    """Server side price of a campaign unlock, in the currency's smallest unit."""

    amount: int
    currency: str
    description: str


@dataclass(frozen=True)
class PlanCatalog:
    """All plans, the unlock price and the renewal window."""

    plans: Mapping[str, Plan]
    unlock_price: UnlockPrice
    renewal_window: timedelta

    def get(self, plan_id: str | None) -> Plan:
        """Get a plan by id. Unknown or missing ids resolve to the free plan."""
        return self.plans.get(plan_id or FREE, self.plans[FREE])

    def campaign_limit(self, plan_id: str | None) -> int:
        """Get the number of campaigns a plan allows per month."""
        return self.get(plan_id).monthly_campaign_limit

    def price_for(self, resource_id: str) -> UnlockPrice:
        """Get the price of unlocking a resource.

        Every campaign currently costs the same. The resource id is part of the
        signature so a per-resource policy does not change callers.
        """
        return self.unlock_price

    def expiry_from(self, now: datetime) -> datetime:
        """Get the subscription expiry for a payment made at ``now``."""
        return now + self.renewal_window


def utcnow() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC, convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def campaign_period(now: datetime) -> str:
    """Get the campaign counting period, e.g. ``2024-06``."""
    return f"{now.year}-{now.month:02d}"


def is_within_paid_period(subscription_expiry: datetime | None, now: datetime) -> bool:
    """Check if a subscription expiry is still in the future."""
    if subscription_expiry is None:
        return False
    return as_utc(subscription_expiry) >= as_utc(now)


def build_plan_catalog(config: Mapping) -> PlanCatalog:
    """Build the catalog from a configuration mapping.

    Parameters
    ----------
    config : Mapping
        The Flask config, or any mapping with the same keys.

    Returns
    -------
    PlanCatalog
        The immutable catalog.
    """
    free = Plan(
        plan_id=FREE,
        name="Free",
        monthly_campaign_limit=int(config.get("FREE_CAMPAIGN_LIMIT", 3)),
        limits=PlanLimits(campaigns=1, leads_per_month=50, emails_per_month=100, storage_gb=1),
    )
    premium = Plan(
        plan_id=PREMIUM,
        name="Premium",
        monthly_campaign_limit=int(config.get("PREMIUM_CAMPAIGN_LIMIT", 5)),
        limits=PlanLimits(
            campaigns=UNLIMITED,
            leads_per_month=UNLIMITED,
            emails_per_month=10000,
            storage_gb=50,
        ),
        features=frozenset(
            {
                "pdf_download",
                "custom_branding",
                "email_sequences",
                "analytics",
                "api_access",
                "priority_support",
            }
        ),
    )
    unlock_price = UnlockPrice(
        amount=int(config.get("UNLOCK_PRICE_AMOUNT", 900)),
        currency=config.get("UNLOCK_CURRENCY", "INR"),
        description=config.get("UNLOCK_DESCRIPTION", "Campaign unlock"),
    )
    return PlanCatalog(
        plans=MappingProxyType({FREE: free, PREMIUM: premium}),
        unlock_price=unlock_price,
        renewal_window=timedelta(days=int(config.get("RENEWAL_WINDOW_DAYS", 30))),
    )
