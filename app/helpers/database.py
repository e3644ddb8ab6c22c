"""Database and configuration health checks."""

import logging

from flask import current_app
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.models import db

REQUIRED_SECRETS = ("RAZORPAY_KEY_ID", "RAZORPAY_KEY_SECRET", "RAZORPAY_WEBHOOK_SECRET")


def check_database() -> tuple[bool, str]:
    """Check if the database is up and running.

    Returns
    -------
    tuple
        A tuple with a boolean indicating success and a string with the message.
    """
    try:
        db.session.execute(text("SELECT 1"))
        return True, "Database is up and running."
    except SQLAlchemyError as e:
        logging.exception("Database check failed")
        return False, str(e)


def check_payment_config() -> tuple[bool, str]:
    """Check that the payment secrets are present."""
    missing = [key for key in REQUIRED_SECRETS if not current_app.config.get(key)]
    if missing:
        return False, f"Missing configuration: {', '.join(missing)}"
    return True, "Payment configuration present."


def perform_health_checks() -> list[str]:
    """Perform health checks on the application.

    Returns
    -------
    list
        A list of errors, if any.
    """
    checks = [check_database, check_payment_config]
    errors = []
    for check in checks:
        logging.debug(f"Running check: {check.__name__}")
        success, message = check()
        if not success:
            logging.error(f"Health check failed ({check.__name__}): {message}")
            errors.append(message)
        else:
            logging.debug(f"Health check passed ({check.__name__}): {message}")
    return errors
