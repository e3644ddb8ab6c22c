from datetime import datetime, timezone

import pytest
import requests
from razorpay.errors import BadRequestError, ServerError, SignatureVerificationError

from leadmagnet.errors import (
    AuthenticationError,
    ConfigurationError,
    UpstreamError,
    ValidationError,
)
from leadmagnet.payments.orders import (
    ORDER_PURPOSE,
    RECEIPT_MAX_LENGTH,
    OrderInitiator,
    build_receipt,
)
from leadmagnet.payments.webhooks import USER_ID_MAX_LENGTH
from leadmagnet.plans import build_plan_catalog

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def plan_catalog():
    return build_plan_catalog({"UNLOCK_PRICE_AMOUNT": 900, "UNLOCK_CURRENCY": "INR"})


@pytest.fixture
def provider(mocker):
    mock_client = mocker.MagicMock()
    mock_client.order.create.return_value = {"id": "order_123", "status": "created"}
    return mock_client


@pytest.fixture
def initiator(plan_catalog, provider):
    return OrderInitiator("rzp_test_key", "rzp_test_secret", plan_catalog, timeout=5, client=provider)


def test_create_order_uses_server_price(initiator, provider):
    order = initiator.create_order("u1", "c1", now=NOW)

    assert order.order_id == "order_123"
    assert order.key_id == "rzp_test_key"
    assert order.amount == 900
    assert order.currency == "INR"

    provider.order.create.assert_called_once()
    kwargs = provider.order.create.call_args.kwargs
    assert kwargs["timeout"] == 5
    data = kwargs["data"]
    assert data["amount"] == 900
    assert data["currency"] == "INR"
    assert data["payment_capture"] == 1
    assert data["receipt"].startswith("rcpt_c1_")
    assert data["notes"]["user_id"] == "u1"
    assert data["notes"]["resource_id"] == "c1"
    assert data["notes"]["purpose"] == ORDER_PURPOSE


def test_create_order_response_shape(initiator):
    response = initiator.create_order("u1", "c1", now=NOW).to_response()
    assert response == {
        "orderId": "order_123",
        "keyId": "rzp_test_key",
        "amount": 900,
        "currency": "INR",
        "description": "Campaign unlock",
    }


@pytest.mark.parametrize("user_id, resource_id", [(None, "c1"), ("u1", None), ("  ", "c1"), ("u1", "")])
def test_create_order_requires_ids(initiator, provider, user_id, resource_id):
    with pytest.raises(ValidationError):
        initiator.create_order(user_id, resource_id)
    provider.order.create.assert_not_called()


@pytest.mark.parametrize("key_id, key_secret", [(None, "secret"), ("rzp_test_key", None)])
def test_create_order_without_credentials(plan_catalog, provider, key_id, key_secret):
    initiator = OrderInitiator(key_id, key_secret, plan_catalog, client=provider)
    with pytest.raises(ConfigurationError) as excinfo:
        initiator.create_order("u1", "c1")
    assert excinfo.value.http_status == 500
    provider.order.create.assert_not_called()


@pytest.mark.parametrize(
    "error",
    [
        BadRequestError("The amount must be at least INR 1.00"),
        ServerError("Internal error"),
        requests.exceptions.Timeout("read timed out"),
    ],
)
def test_create_order_provider_failure(initiator, provider, error):
    provider.order.create.side_effect = error
    with pytest.raises(UpstreamError) as excinfo:
        initiator.create_order("u1", "c1")
    assert excinfo.value.retryable is True


def test_create_order_response_without_id(initiator, provider):
    provider.order.create.return_value = {"error": "unexpected"}
    with pytest.raises(UpstreamError):
        initiator.create_order("u1", "c1")


def test_build_receipt_keeps_timestamp_within_limit():
    receipt = build_receipt("c" * 100, NOW)
    assert len(receipt) == RECEIPT_MAX_LENGTH
    assert receipt.endswith(f"_{int(NOW.timestamp())}")

    assert build_receipt("c1", NOW) == f"rcpt_c1_{int(NOW.timestamp())}"


def test_verify_checkout_signature(initiator, provider):
    initiator.verify_checkout_signature("order_123", "pay_1", "sig")
    provider.utility.verify_payment_signature.assert_called_once_with(
        {
            "razorpay_order_id": "order_123",
            "razorpay_payment_id": "pay_1",
            "razorpay_signature": "sig",
        }
    )


def test_verify_checkout_signature_mismatch(initiator, provider):
    provider.utility.verify_payment_signature.side_effect = SignatureVerificationError(
        "Razorpay Signature Verification Failed"
    )
    with pytest.raises(AuthenticationError) as excinfo:
        initiator.verify_checkout_signature("order_123", "pay_1", "bad")
    assert excinfo.value.message == "Invalid signature"


def test_verify_checkout_signature_missing(initiator, provider):
    with pytest.raises(AuthenticationError):
        initiator.verify_checkout_signature("order_123", "pay_1", "")
    provider.utility.verify_payment_signature.assert_not_called()


def test_fetch_captured_payment(initiator, provider):
    provider.payment.fetch.return_value = {
        "id": "pay_1",
        "order_id": "order_123",
        "status": "captured",
        "amount": 900,
        "currency": "INR",
        "notes": {"user_id": "u1", "resource_id": "c1"},
    }
    payment = initiator.fetch_captured_payment("pay_1", "order_123")

    assert payment.payment_id == "pay_1"
    assert payment.user_id == "u1"
    assert payment.resource_id == "c1"
    assert payment.amount == 900
    provider.payment.fetch.assert_called_once_with("pay_1", timeout=5)


def test_fetch_captured_payment_with_empty_notes(initiator, provider):
    provider.payment.fetch.return_value = {
        "id": "pay_1",
        "order_id": "order_123",
        "status": "captured",
        "amount": 900,
        "currency": "INR",
        "notes": [],
    }
    payment = initiator.fetch_captured_payment("pay_1", "order_123")
    assert payment.user_id is None
    assert payment.resource_id is None


@pytest.mark.parametrize(
    "payment",
    [
        {"id": "pay_1", "order_id": "order_123", "status": "authorized"},
        {"id": "pay_1", "order_id": "order_other", "status": "captured"},
    ],
)
def test_fetch_captured_payment_rejects(initiator, provider, payment):
    provider.payment.fetch.return_value = payment
    with pytest.raises(ValidationError):
        initiator.fetch_captured_payment("pay_1", "order_123")


def test_fetch_captured_payment_provider_failure(initiator, provider):
    provider.payment.fetch.side_effect = requests.exceptions.ConnectionError("down")
    with pytest.raises(UpstreamError):
        initiator.fetch_captured_payment("pay_1", "order_123")


def test_create_order_rejects_oversized_user_id(initiator, provider):
    with pytest.raises(ValidationError) as excinfo:
        initiator.create_order("u" * (USER_ID_MAX_LENGTH + 1), "c1")
    assert excinfo.value.message == "Invalid or missing user_id"
    provider.order.create.assert_not_called()


def test_fetch_captured_payment_stringifies_note_ids(initiator, provider):
    provider.payment.fetch.return_value = {
        "id": "pay_1",
        "order_id": "order_123",
        "status": "captured",
        "amount": 900,
        "currency": "INR",
        "notes": {"user_id": 12, "resource_id": ""},
    }
    payment = initiator.fetch_captured_payment("pay_1", "order_123")
    assert payment.user_id == "12"
    assert payment.resource_id is None
