"""Entitlement related helper functions.

The user record holds the entitlement fields read by the rest of the system:
plan, subscription_expiry, campaign_count and campaign_count_period. They are
only upgraded by ``apply_unlock`` after a payment has been verified.
"""

import logging
from datetime import datetime

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from app.database import db
from app.models.campaign_unlock import CampaignUnlock
from app.models.user import User
from app.schemas import CampaignUnlockSchema, SubscriptionStatusSchema
from leadmagnet.errors import ConflictIgnored, EntitlementDenied, UpstreamError
from leadmagnet.payments.webhooks import UnlockRequest
from leadmagnet.plans import (
    FREE,
    PREMIUM,
    UNLIMITED,
    PlanCatalog,
    as_utc,
    campaign_period,
    is_within_paid_period,
    utcnow,
)


def _naive_utc(value: datetime) -> datetime:
    """Convert to the naive UTC datetimes stored in the database."""
    return as_utc(value).replace(tzinfo=None)


def unlock_exists(resource_id: str, payment_id: str) -> bool:
    """Check if a payment was already applied to a resource."""
    return (
        CampaignUnlock.query.filter_by(resource_id=resource_id, payment_id=payment_id).first()
        is not None
    )


def apply_unlock(
    unlock: UnlockRequest,
    catalog: PlanCatalog,
    source: str = "webhook",
    now: datetime | None = None,
) -> CampaignUnlock:
    """
    Record a paid campaign unlock and upgrade the paying user.

    This function performs the following steps in one transaction:
    1. Creates the user row if the user has none yet
    2. Inserts the unlock row, keyed by (resource_id, payment_id)
    3. Upgrades the user to premium, resets the campaign counter and sets the
       subscription expiry to now plus the renewal window
    4. Commits both writes together

    Args:
        unlock (UnlockRequest): The verified unlock.
        catalog (PlanCatalog): Source of the renewal window.
        source (str): Where the confirmation came from, webhook or checkout.
        now (datetime): Time of the upgrade, defaults to the current UTC time.

    Returns
    -------
        CampaignUnlock: The stored unlock.

    Raises
    ------
        ConflictIgnored: If this payment was already applied to this resource.
        UpstreamError: If the database fails; nothing is written in that case.
    """
    now = as_utc(now or utcnow())
    try:
        user = db.session.get(User, unlock.user_id)
        if user is None:
            logging.warning(f"No user record for {unlock.user_id}, creating one")
            user = User(id=unlock.user_id, plan=FREE, campaign_count=0)
            db.session.add(user)

        record = CampaignUnlock(
            user_id=unlock.user_id,
            resource_id=unlock.resource_id,
            payment_id=unlock.payment_id,
            order_id=unlock.order_id,
            amount=unlock.amount,
            currency=unlock.currency,
            status="paid",
            source=source,
        )
        db.session.add(record)

        # the unique constraint is checked here, before the user is touched
        db.session.flush()

        user.plan = PREMIUM
        user.subscription_status = "active"
        user.campaign_count = 0
        user.campaign_count_period = campaign_period(now)
        user.subscription_expiry = _naive_utc(catalog.expiry_from(now))

        db.session.commit()
    except IntegrityError as e:
        db.session.rollback()
        if unlock_exists(unlock.resource_id, unlock.payment_id):
            logging.info(
                f"Payment {unlock.payment_id} already applied to {unlock.resource_id}, skipping"
            )
            raise ConflictIgnored(details=f"payment_id={unlock.payment_id}") from e
        logging.error(f"Failed to apply unlock for payment {unlock.payment_id}: {str(e)}")
        raise UpstreamError("Failed to update user", details=str(e)) from e
    except SQLAlchemyError as e:
        db.session.rollback()
        logging.error(f"Failed to apply unlock for payment {unlock.payment_id}: {str(e)}")
        raise UpstreamError("Failed to update user", details=str(e)) from e

    logging.info(
        f"User {unlock.user_id} upgraded to {PREMIUM} until {user.subscription_expiry} "
        f"(payment {unlock.payment_id}, resource {unlock.resource_id}, source {source})"
    )
    return record


def default_subscription(user_id: str, catalog: PlanCatalog) -> SubscriptionStatusSchema:
    """Get the status of a user without a record.

    Campaigns can only be recorded on an active subscription, so none remain.
    """
    limit = catalog.campaign_limit(FREE)
    return SubscriptionStatusSchema(
        user_id=user_id,
        plan=FREE,
        is_subscribed=False,
        can_access_pdf=False,
        monthly_campaign_limit=limit,
        used_campaigns=0,
        remaining_campaigns=0,
    )


def get_subscription_status(
    user_id: str, catalog: PlanCatalog, now: datetime | None = None
) -> SubscriptionStatusSchema:
    """Get the entitlement state of a user.

    Campaigns counted in an earlier period do not count against the current one.
    Without an active subscription no campaigns remain.
    """
    now = as_utc(now or utcnow())
    user = db.session.get(User, user_id)
    if user is None:
        return default_subscription(user_id, catalog)

    plan = user.plan or FREE
    paid = plan != FREE and is_within_paid_period(user.subscription_expiry, now)
    limit = catalog.campaign_limit(plan)
    used = user.campaign_count or 0
    if user.campaign_count_period != campaign_period(now):
        used = 0

    if not paid:
        remaining = 0
    elif limit == UNLIMITED:
        remaining = UNLIMITED
    else:
        remaining = max(0, limit - used)

    return SubscriptionStatusSchema(
        user_id=user.id,
        plan=plan,
        is_subscribed=paid,
        can_access_pdf=paid,
        monthly_campaign_limit=limit,
        used_campaigns=used,
        remaining_campaigns=remaining,
        subscription_expiry=user.subscription_expiry,
        campaign_count_period=user.campaign_count_period,
    )


def reset_campaign_count_if_period_changed(user: User, period: str) -> bool:
    """Reset the campaign counter when a new period has started.

    Returns
    -------
        bool: True if the counter was reset. The change is flushed, not committed.
    """
    if user.campaign_count_period == period:
        return False
    user.campaign_count = 0
    user.campaign_count_period = period
    db.session.flush()
    return True


def record_campaign_usage(
    user_id: str, catalog: PlanCatalog, now: datetime | None = None
) -> SubscriptionStatusSchema:
    """Count one campaign against the user's monthly allowance.

    Raises
    ------
        EntitlementDenied: If the user has no active subscription or no campaigns left.
        UpstreamError: If the database fails.
    """
    now = as_utc(now or utcnow())
    period = campaign_period(now)
    try:
        user = db.session.get(User, user_id)
        if user is None or user.plan == FREE:
            raise EntitlementDenied("An active subscription is required")
        if not is_within_paid_period(user.subscription_expiry, now):
            raise EntitlementDenied("Subscription has expired")

        reset_campaign_count_if_period_changed(user, period)

        statement = update(User).where(User.id == user_id, User.campaign_count_period == period)
        limit = catalog.campaign_limit(user.plan)
        if limit != UNLIMITED:
            # conditional so that concurrent requests cannot go over the limit
            statement = statement.where(User.campaign_count < limit)
        result = db.session.execute(
            statement.values(campaign_count=User.campaign_count + 1),
            execution_options={"synchronize_session": False},
        )
        if result.rowcount == 0:
            raise EntitlementDenied(f"Monthly campaign limit of {limit} reached")

        db.session.commit()
    except EntitlementDenied:
        db.session.rollback()
        raise
    except SQLAlchemyError as e:
        db.session.rollback()
        logging.error(f"Failed to record campaign usage for user {user_id}: {str(e)}")
        raise UpstreamError("Failed to record campaign usage", details=str(e)) from e

    db.session.expire_all()
    logging.info(f"Recorded campaign usage for user {user_id} in period {period}")
    return get_subscription_status(user_id, catalog, now=now)


def get_payment_history(user_id: str) -> list[CampaignUnlockSchema]:
    """Get the campaign unlocks of a user, newest first."""
    unlocks = (
        CampaignUnlock.query.filter_by(user_id=user_id)
        .order_by(CampaignUnlock.created_at.desc(), CampaignUnlock.id.desc())
        .all()
    )
    return [CampaignUnlockSchema.model_validate(unlock) for unlock in unlocks]
