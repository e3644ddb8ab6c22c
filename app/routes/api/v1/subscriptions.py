"""API routes for reading and consuming a user's entitlement."""

import logging

from flask_restx import Namespace, Resource, fields
from sentry_sdk import capture_exception

from app.helpers.entitlements import (
    get_payment_history,
    get_subscription_status,
    record_campaign_usage,
)
from app.helpers.payments import get_plan_catalog
from app.routes.api.v1.payments import CORS_HEADERS
from leadmagnet.errors import PaymentFlowError

subscriptions_ns = Namespace("subscriptions", description="Subscription and entitlement operations")

# Models for response documentation
subscription_model = subscriptions_ns.model(
    "SubscriptionStatus",
    {
        "user_id": fields.String(description="User id"),
        "plan": fields.String(description="free or premium"),
        "is_subscribed": fields.Boolean(description="Paid plan within its paid period"),
        "can_access_pdf": fields.Boolean(description="Whether PDFs can be downloaded"),
        "monthly_campaign_limit": fields.Integer(description="Campaigns allowed per month"),
        "used_campaigns": fields.Integer(description="Campaigns used this month"),
        "remaining_campaigns": fields.Integer(description="Campaigns left this month"),
        "subscription_expiry": fields.String(description="ISO-8601 UTC expiry"),
        "campaign_count_period": fields.String(description="Counting period, YYYY-MM"),
    },
)

unlock_model = subscriptions_ns.model(
    "CampaignUnlock",
    {
        "id": fields.Integer(description="Unlock id"),
        "user_id": fields.String(description="Paying user"),
        "resource_id": fields.String(description="Unlocked campaign"),
        "payment_id": fields.String(description="Razorpay payment id"),
        "order_id": fields.String(description="Razorpay order id"),
        "amount": fields.Integer(description="Amount in the smallest currency unit"),
        "currency": fields.String(description="ISO currency code"),
        "status": fields.String(description="Unlock status"),
        "source": fields.String(description="webhook or checkout"),
        "created_at": fields.String(description="ISO-8601 UTC creation time"),
    },
)


@subscriptions_ns.route("/<string:user_id>")
class SubscriptionResource(Resource):
    """Resource for a user's subscription status."""

    @subscriptions_ns.response(200, "Subscription status", subscription_model)
    def get(self, user_id):
        """Get the subscription status of a user."""
        try:
            status = get_subscription_status(user_id, get_plan_catalog())
        except Exception as e:
            logging.error(f"Error getting subscription for {user_id}: {str(e)}", exc_info=True)
            capture_exception(e)
            return {"error": "Internal server error"}, 500, CORS_HEADERS
        return status.model_dump(mode="json"), 200, CORS_HEADERS


@subscriptions_ns.route("/<string:user_id>/payments")
class PaymentHistoryResource(Resource):
    """Resource for a user's payment history."""

    @subscriptions_ns.response(200, "Unlocks, newest first", [unlock_model])
    def get(self, user_id):
        """Get the paid campaign unlocks of a user."""
        try:
            unlocks = get_payment_history(user_id)
        except Exception as e:
            logging.error(f"Error getting payments for {user_id}: {str(e)}", exc_info=True)
            capture_exception(e)
            return {"error": "Internal server error"}, 500, CORS_HEADERS
        return {"payments": [u.model_dump(mode="json") for u in unlocks]}, 200, CORS_HEADERS


@subscriptions_ns.route("/<string:user_id>/campaigns")
class CampaignUsageResource(Resource):
    """Resource for counting campaigns against the monthly allowance."""

    @subscriptions_ns.response(200, "Campaign counted", subscription_model)
    @subscriptions_ns.response(403, "No active subscription or no campaigns left")
    def post(self, user_id):
        """Count one new campaign for a user."""
        try:
            status = record_campaign_usage(user_id, get_plan_catalog())
        except PaymentFlowError as e:
            logging.warning(f"Campaign usage refused for {user_id}: {str(e)}")
            return e.to_dict(), e.http_status, CORS_HEADERS
        return status.model_dump(mode="json"), 200, CORS_HEADERS
