import logging
import sys

import pytest

from leadmagnet.errors import (
    AuthenticationError,
    ConfigurationError,
    ConflictIgnored,
    EntitlementDenied,
    PaymentFlowError,
    UpstreamError,
    ValidationError,
)
from leadmagnet.logging import configure_logging, get_log_level


@pytest.mark.parametrize(
    "error_class, status, retryable",
    [
        (ValidationError, 400, False),
        (AuthenticationError, 400, False),
        (ConfigurationError, 500, False),
        (UpstreamError, 500, True),
        (EntitlementDenied, 403, False),
        (ConflictIgnored, 200, False),
    ],
)
def test_error_taxonomy(error_class, status, retryable):
    error = error_class()
    assert isinstance(error, PaymentFlowError)
    assert error.http_status == status
    assert error.retryable is retryable
    assert error.to_dict() == {"error": error_class.default_message}


def test_details_are_not_returned():
    error = UpstreamError("Could not create order", details="api key rzp_live_xyz rejected")
    assert error.to_dict() == {"error": "Could not create order"}
    assert "rzp_live_xyz" in str(error)


def test_authentication_error_message_is_fixed():
    assert AuthenticationError(details="Webhook secret not set").message == "Invalid signature"
    assert AuthenticationError(details="Signature mismatch").message == "Invalid signature"


def test_get_log_level(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "debug")
    assert get_log_level() == "DEBUG"

    monkeypatch.setenv("LOG_LEVEL", "chatty")
    assert get_log_level() == "INFO"


def test_get_log_level_prefers_explicit_value(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "debug")
    assert get_log_level("error") == "ERROR"


def test_configure_logging(monkeypatch):
    monkeypatch.delenv("LOG_LEVEL", raising=False)

    logging_config = configure_logging(log_level="warning")

    assert logging_config["root"]["level"] == "WARNING"
    assert logging_config["loggers"]["werkzeug"]["level"] == "WARNING"
    assert logging_config["handlers"]["console"]["stream"] is sys.stdout
    assert logging.getLogger().level == logging.WARNING


def test_configure_logging_from_app_config(app):
    app.config["LOG_LEVEL"] = "error"
    app.config["LOG_TO_STDOUT"] = False

    logging_config = configure_logging(app)

    assert logging_config["root"]["level"] == "ERROR"
    assert logging_config["loggers"]["razorpay"]["level"] == "ERROR"
    assert logging_config["loggers"]["sqlalchemy.engine"]["level"] == "WARNING"
    assert logging_config["handlers"]["console"]["stream"] is sys.stderr
