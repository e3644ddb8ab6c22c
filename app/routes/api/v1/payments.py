"""Razorpay payment routes and webhook handler.

This module handles all payment related operations including:
- Payment configuration for the checkout widget
- Order creation for campaign unlocks
- Webhook processing for captured payments
- Checkout confirmation from the browser
- Health checks for the Razorpay integration
"""

import logging

from flask import current_app, make_response, request
from flask_restx import Namespace, Resource, fields
from pydantic import ValidationError as PydanticValidationError
from sentry_sdk import capture_exception

from app.helpers.payments import (
    confirm_checkout,
    get_order_initiator,
    get_plan_catalog,
    process_webhook,
)
from app.schemas import CreateOrderSchema, VerifyPaymentSchema
from leadmagnet.errors import (
    AuthenticationError,
    ConfigurationError,
    PaymentFlowError,
    ValidationError,
)

payments_ns = Namespace("payments", description="Razorpay payment operations")

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": (
        "authorization, x-client-info, apikey, content-type, x-razorpay-signature"
    ),
    "Access-Control-Allow-Methods": "POST, OPTIONS, GET",
    "Access-Control-Max-Age": "86400",
}

# Models for request/response documentation
config_model = payments_ns.model(
    "PaymentConfig",
    {
        "keyId": fields.String(description="Razorpay key id for the checkout widget"),
    },
)

order_request_model = payments_ns.model(
    "OrderRequest",
    {
        "user_id": fields.String(required=True, description="Paying user"),
        "resource_id": fields.String(required=True, description="Campaign to unlock"),
    },
)

order_model = payments_ns.model(
    "Order",
    {
        "orderId": fields.String(description="Razorpay order id"),
        "keyId": fields.String(description="Razorpay key id"),
        "amount": fields.Integer(description="Amount in the smallest currency unit"),
        "currency": fields.String(description="ISO currency code"),
        "description": fields.String(description="What is being paid for"),
    },
)

verify_request_model = payments_ns.model(
    "VerifyPaymentRequest",
    {
        "user_id": fields.String(required=True, description="Paying user"),
        "resource_id": fields.String(required=True, description="Unlocked campaign"),
        "order_id": fields.String(required=True, description="razorpay_order_id"),
        "payment_id": fields.String(required=True, description="razorpay_payment_id"),
        "signature": fields.String(required=True, description="razorpay_signature"),
    },
)


def _text_response(body: str, status: int):
    """Build a bare text response carrying the CORS headers."""
    response = make_response(body, status)
    response.mimetype = "text/plain"
    response.headers.update(CORS_HEADERS)
    return response


def _preflight():
    return _text_response("", 204)


def _invalid_fields(error: PydanticValidationError) -> dict:
    missing = sorted({str(err["loc"][0]) for err in error.errors() if err.get("loc")})
    if not missing:
        return {"error": ValidationError.default_message}
    return {"error": f"Invalid or missing {', '.join(missing)}"}


def _error_response(error: PaymentFlowError, action: str):
    if error.http_status >= 500:
        logging.error(f"Error {action}: {error}")
    else:
        logging.warning(f"Rejected {action}: {error}")
    return error.to_dict(), error.http_status, CORS_HEADERS


@payments_ns.route("/config")
class PaymentConfigResource(Resource):
    """Resource for getting the checkout configuration."""

    @payments_ns.marshal_with(config_model)
    @payments_ns.response(500, "Payment provider not configured")
    def get(self):
        """Get the Razorpay key id."""
        key_id = current_app.config.get("RAZORPAY_KEY_ID")
        if not key_id:
            logging.error("RAZORPAY_KEY_ID not found in application configuration")
            payments_ns.abort(500, ConfigurationError.default_message)
        return {"keyId": key_id}, 200, CORS_HEADERS

    def options(self):
        """Answer the CORS preflight."""
        return _preflight()


@payments_ns.route("/orders")
class CreateOrderResource(Resource):
    """Resource for creating Razorpay orders."""

    @payments_ns.expect(order_request_model)
    @payments_ns.response(200, "Order created", order_model)
    @payments_ns.response(400, "Missing user_id or resource_id")
    @payments_ns.response(500, "Provider or configuration error")
    def post(self):
        """Create an order to unlock a campaign. The amount is set by the server."""
        try:
            data = CreateOrderSchema.model_validate(request.get_json(silent=True) or {})
        except PydanticValidationError as e:
            logging.warning(f"Invalid order request: {str(e)}")
            return _invalid_fields(e), 400, CORS_HEADERS

        try:
            order = get_order_initiator().create_order(data.user_id, data.resource_id)
        except PaymentFlowError as e:
            return _error_response(e, "creating order")
        except Exception as e:
            logging.error(f"Error creating order: {str(e)}", exc_info=True)
            capture_exception(e)
            return {"error": "Internal server error"}, 500, CORS_HEADERS

        return order.to_response(), 200, CORS_HEADERS

    def options(self):
        """Answer the CORS preflight."""
        return _preflight()


@payments_ns.route("/webhook")
class RazorpayWebhookResource(Resource):
    """Resource for handling Razorpay webhooks."""

    @payments_ns.doc(params={"X-Razorpay-Signature": {"in": "header", "required": True}})
    @payments_ns.response(200, "Processed, duplicate or ignored")
    @payments_ns.response(400, "Invalid signature or payload")
    @payments_ns.response(500, "Storage error, the provider will retry")
    def post(self):
        """Handle a Razorpay webhook event."""
        raw_body = request.get_data(cache=True)
        signature = request.headers.get("X-Razorpay-Signature")

        try:
            outcome = process_webhook(
                raw_body,
                signature,
                current_app.config.get("RAZORPAY_WEBHOOK_SECRET"),
                get_plan_catalog(),
            )
        except AuthenticationError as e:
            logging.error(f"Invalid webhook signature: {e.details}")
            return _text_response(e.message, 400)
        except ValidationError as e:
            logging.error(f"Invalid webhook payload: {str(e)}")
            return _text_response(e.message, 400)
        except PaymentFlowError as e:
            logging.error(f"Error processing webhook: {str(e)}")
            return _text_response("Webhook error", e.http_status)
        except Exception as e:
            logging.error(f"Error processing webhook: {str(e)}", exc_info=True)
            capture_exception(e)
            return _text_response("Webhook error", 500)

        logging.info(f"Webhook handled: {outcome}")
        return _text_response("OK", 200)

    def options(self):
        """Answer the CORS preflight."""
        return _preflight()


@payments_ns.route("/verify")
class VerifyPaymentResource(Resource):
    """Resource for confirming a checkout from the browser."""

    @payments_ns.expect(verify_request_model)
    @payments_ns.response(200, "Payment applied, subscription status returned")
    @payments_ns.response(400, "Invalid signature or payment")
    @payments_ns.response(500, "Provider or storage error")
    def post(self):
        """Verify a checkout payment and apply the unlock."""
        try:
            data = VerifyPaymentSchema.model_validate(request.get_json(silent=True) or {})
        except PydanticValidationError as e:
            logging.warning(f"Invalid verify request: {str(e)}")
            return _invalid_fields(e), 400, CORS_HEADERS

        try:
            status = confirm_checkout(data, get_order_initiator())
        except PaymentFlowError as e:
            return _error_response(e, "verifying payment")
        except Exception as e:
            logging.error(f"Error verifying payment: {str(e)}", exc_info=True)
            capture_exception(e)
            return {"error": "Internal server error"}, 500, CORS_HEADERS

        return {"success": True, "subscription": status.model_dump(mode="json")}, 200, CORS_HEADERS

    def options(self):
        """Answer the CORS preflight."""
        return _preflight()


@payments_ns.route("/health")
class PaymentsHealthResource(Resource):
    """Resource for checking the Razorpay integration."""

    def get(self):
        """Check if Razorpay is properly configured."""
        if not current_app.config.get("ENABLE_PAYMENTS_HEALTH_ENDPOINT", False):
            return {"status": "disabled", "message": "Payments health endpoint is disabled"}, 403

        keys = ("RAZORPAY_KEY_ID", "RAZORPAY_KEY_SECRET", "RAZORPAY_WEBHOOK_SECRET")
        missing_keys = [key for key in keys if not current_app.config.get(key)]
        if missing_keys:
            return {
                "status": "error",
                "message": "Missing Razorpay configuration",
                "details": f"Missing keys: {', '.join(missing_keys)}",
            }, 500

        catalog = get_plan_catalog()
        return {
            "status": "healthy",
            "message": "Razorpay is configured",
            "details": {
                "unlock_amount": catalog.unlock_price.amount,
                "unlock_currency": catalog.unlock_price.currency,
                "renewal_window_days": catalog.renewal_window.days,
            },
        }
