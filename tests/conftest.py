"""Shared fixtures for the payment flow tests."""

import json

import pytest

from app.factory import create_app
from app.models import db
from config import engine_options
from leadmagnet.signature import compute_signature

WEBHOOK_SECRET = "whsec_test_secret"

TEST_CONFIG = {
    "TESTING": True,
    "SQLALCHEMY_DATABASE_URI": "sqlite://",
    "SQLALCHEMY_ENGINE_OPTIONS": engine_options("sqlite://"),
    "SENTRY_DSN": None,
    "LOG_LEVEL": "DEBUG",
    "RAZORPAY_KEY_ID": "rzp_test_key",
    "RAZORPAY_KEY_SECRET": "rzp_test_secret",
    "RAZORPAY_WEBHOOK_SECRET": WEBHOOK_SECRET,
    "RAZORPAY_TIMEOUT_SECONDS": 5,
    "ENABLE_PAYMENTS_HEALTH_ENDPOINT": True,
    "UNLOCK_PRICE_AMOUNT": 900,
    "UNLOCK_CURRENCY": "INR",
    "UNLOCK_DESCRIPTION": "Campaign unlock",
    "RENEWAL_WINDOW_DAYS": 30,
    "FREE_CAMPAIGN_LIMIT": 3,
    "PREMIUM_CAMPAIGN_LIMIT": 5,
}


@pytest.fixture
def app():
    app = create_app(TEST_CONFIG)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def catalog(app):
    return app.extensions["plan_catalog"]


@pytest.fixture
def razorpay_client(app, mocker):
    # Replaces the Razorpay SDK client used by the order initiator
    mock_client = mocker.MagicMock()
    mock_client.order.create.return_value = {"id": "order_test_1", "status": "created"}
    app.extensions["razorpay_client"] = mock_client
    return mock_client


def captured_event(payment_id="pay_1", user_id="u1", resource_id="c1", event="payment.captured"):
    """Build a webhook event the way Razorpay sends it."""
    notes = {}
    if user_id is not None:
        notes["user_id"] = user_id
    if resource_id is not None:
        notes["resource_id"] = resource_id
    return {
        "entity": "event",
        "account_id": "acc_test",
        "event": event,
        "contains": ["payment"],
        "payload": {
            "payment": {
                "entity": {
                    "id": payment_id,
                    "entity": "payment",
                    "amount": 900,
                    "currency": "INR",
                    "status": "captured",
                    "order_id": "order_test_1",
                    "email": "u1@example.com",
                    "notes": notes,
                }
            }
        },
        "created_at": 1718000000,
    }


def signed(event, secret=WEBHOOK_SECRET):
    """Serialize an event and sign the exact bytes."""
    body = json.dumps(event).encode("utf-8")
    return body, compute_signature(body, secret)


@pytest.fixture
def post_webhook(client):
    def _post(body, signature):
        headers = {}
        if signature is not None:
            headers["X-Razorpay-Signature"] = signature
        return client.post(
            "/api/v1/payments/webhook",
            data=body,
            headers=headers,
            content_type="application/json",
        )

    return _post
